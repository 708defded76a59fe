"""Error taxonomy for the alignment engine.

Three failure classes are distinguished:

- ``MalformedInput``: a single raw record cannot be normalized. Callers
  isolate it, skip the record and keep going.
- ``ConfigurationError``: weights or thresholds are outside their valid
  range. Raised at configuration time, before any alignment work.
- ``InvariantViolation``: the cluster partition is broken. Always fatal.
"""

from collections.abc import Sequence

__all__ = [
    "AlignmentError",
    "MalformedInput",
    "ConfigurationError",
    "InvariantViolation",
]


class AlignmentError(Exception):
    """Base class for all alignment engine errors."""


class MalformedInput(AlignmentError):
    """Raised when a raw record cannot be normalized at all."""

    def __init__(
        self,
        message: str,
        dataset: str | None = None,
        source_id: str | None = None,
    ) -> None:
        """Initialize malformed input error.

        Parameters
        ----------
        message : str
            Error message.
        dataset : str | None, optional
            Dataset the record came from, if known.
        source_id : str | None, optional
            Source-local identifier, if known.
        """
        super().__init__(message)
        self.dataset = dataset
        self.source_id = source_id


class ConfigurationError(AlignmentError, ValueError):
    """Raised when configuration values are outside their valid range."""


class InvariantViolation(AlignmentError):
    """Raised when the cluster partition is invalid.

    Attributes
    ----------
    records : tuple[str, ...]
        Record references involved in the violation.
    clusters : tuple[str, ...]
        Cluster identifiers involved in the violation.
    """

    def __init__(
        self,
        message: str,
        records: Sequence[str] = (),
        clusters: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.records = tuple(records)
        self.clusters = tuple(clusters)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.records:
            parts.append(f"records={list(self.records)}")
        if self.clusters:
            parts.append(f"clusters={list(self.clusters)}")
        return " ".join(parts)

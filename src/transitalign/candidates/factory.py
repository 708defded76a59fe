"""Registry-based factory for blocker instantiation.

New blocker types are added by extending ``BLOCKER_REGISTRY``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from transitalign.candidates.blockers import (
    Blocker,
    GridCellBlocker,
    IdentifierBlocker,
    NameMinHashBlocker,
    NameTokenBlocker,
)

if TYPE_CHECKING:
    from transitalign.engine.config import AlignmentConfig

# type → callable that returns a Blocker
BLOCKER_REGISTRY: dict[str, type] = {
    "cell": GridCellBlocker,
    "identifier": IdentifierBlocker,
    "name_token": NameTokenBlocker,
    "minhash": NameMinHashBlocker,
}

# config.name_blocking value → registry key
NAME_BLOCKING_TYPES = {
    "token": "name_token",
    "minhash": "minhash",
}


@dataclass(frozen=True)
class BlockerConfig:
    """Declarative configuration for a single blocker.

    Attributes
    ----------
    type : str
        Key in ``BLOCKER_REGISTRY``.
    enabled : bool
        Disabled configs are silently skipped by ``create_blockers``.
    params : dict[str, Any]
        Keyword arguments forwarded to the blocker constructor.
    """

    type: str
    enabled: bool = True
    params: dict[str, Any] = field(default_factory=dict)


def create_blocker(config: BlockerConfig) -> Blocker:
    """Instantiate a single blocker from *config*.

    Raises
    ------
    ValueError
        If ``config.type`` is not in the registry.
    """
    cls = BLOCKER_REGISTRY.get(config.type)
    if cls is None:
        valid = ", ".join(sorted(BLOCKER_REGISTRY))
        raise ValueError(f"Unknown blocker type: {config.type!r}. Valid types: {valid}")
    return cls(**config.params)  # type: ignore[no-any-return]


def create_blockers(configs: list[BlockerConfig]) -> list[Blocker]:
    """Instantiate all *enabled* blockers from a config list."""
    return [create_blocker(cfg) for cfg in configs if cfg.enabled]


def blocker_configs_for(config: AlignmentConfig) -> list[BlockerConfig]:
    """Derive the blocker set an alignment run uses.

    Parameters
    ----------
    config : AlignmentConfig
        Run configuration.

    Returns
    -------
    list[BlockerConfig]
        Grid cell, identifier and name-fallback blockers.
    """
    return [
        BlockerConfig(
            type="cell",
            params={
                "cell_size_meters": config.effective_cell_size_meters,
                "by_category": config.block_by_category,
            },
        ),
        BlockerConfig(type="identifier"),
        BlockerConfig(type=NAME_BLOCKING_TYPES[config.name_blocking]),
    ]

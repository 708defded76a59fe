"""Blocking index: inverted index from block keys to records.

Coordinates multiple blocker plug-ins to produce a single, deduplicated,
deterministic stream of cross-dataset candidate pairs.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from itertools import combinations
from typing import TYPE_CHECKING, Any

from transitalign.candidates.blockers import Blocker, BlockerStats
from transitalign.candidates.models import BlockKey, CandidatePair
from transitalign.models.records import NormalizedRecord, RecordKey

if TYPE_CHECKING:
    from transitalign.audit.logger import AuditLogger

DEFAULT_MAX_BLOCK_SIZE = 1000
STAGE_NAME = "blocking"


def _by_key(record: NormalizedRecord) -> RecordKey:
    return record.key


class BlockingIndex:
    """Group records by blocker keys and enumerate candidate pairs.

    Parameters
    ----------
    blockers : list[Blocker]
        Blocker plug-ins (order-independent; run sorted by name).
    max_block_size : int, optional
        Log a warning when a block exceeds this size.
    logger : AuditLogger | None, optional
        Audit logger for ``oversized_block`` warnings.

    Examples
    --------
    >>> index = BlockingIndex([IdentifierBlocker()])
    >>> blocks = index.build(records)
    >>> pairs = list(index.candidate_pairs())
    """

    def __init__(
        self,
        blockers: Iterable[Blocker],
        *,
        max_block_size: int = DEFAULT_MAX_BLOCK_SIZE,
        logger: AuditLogger | None = None,
    ) -> None:
        self.blockers = sorted(blockers, key=lambda b: b.name)
        self.max_block_size = max_block_size
        self.logger = logger
        self.stats: dict[str, BlockerStats] = {}
        self._indexes: dict[str, dict[BlockKey, set[NormalizedRecord]]] = {}
        self._built = False

    def build(self, records: Iterable[NormalizedRecord]) -> dict[BlockKey, set[NormalizedRecord]]:
        """Index *records* under every blocker.

        Parameters
        ----------
        records : Iterable[NormalizedRecord]
            Records to index (materialised once).

        Returns
        -------
        dict[BlockKey, set[NormalizedRecord]]
            Merged view of all blocks, keyed by ``BlockKey``.
        """
        records_list = list(records)

        for blocker in self.blockers:
            if hasattr(blocker, "initialize"):
                blocker.initialize(records_list)

        self.stats = {}
        self._indexes = {}
        merged: dict[BlockKey, set[NormalizedRecord]] = {}

        for blocker in self.blockers:
            stats = BlockerStats()
            index: dict[BlockKey, set[NormalizedRecord]] = defaultdict(set)

            for record in records_list:
                stats.records_seen += 1
                keys = list(blocker.block_keys(record))
                if not keys:
                    continue
                stats.records_keyed += 1
                for key in keys:
                    index[key].add(record)

            stats.unique_keys = len(index)
            for key in sorted(index):
                size = len(index[key])
                stats.max_block = max(stats.max_block, size)
                if size > 1:
                    stats.blocks_gt1 += 1
                if size > self.max_block_size:
                    stats.oversized_blocks += 1
                    if self.logger:
                        self.logger.event(
                            "oversized_block",
                            data={
                                "blocker": blocker.name,
                                "block_key": str(key)[:100],
                                "block_size": size,
                                "max_block_size": self.max_block_size,
                            },
                            level="WARN",
                            stage=STAGE_NAME,
                        )

            self.stats[blocker.name] = stats
            self._indexes[blocker.name] = dict(index)
            for key, members in index.items():
                merged.setdefault(key, set()).update(members)

        self._built = True
        return merged

    def candidate_pairs(self) -> Iterator[CandidatePair]:
        """Lazily yield unique cross-dataset candidate pairs.

        Blockers run in name order, blocks in key order and members in
        ``(source_dataset, source_id)`` order, so the sequence is
        deterministic. A pair produced by several blockers is yielded once.

        Raises
        ------
        RuntimeError
            If ``build()`` has not been called.
        """
        if not self._built:
            raise RuntimeError("build() must be called before candidate_pairs()")

        seen: set[tuple[RecordKey, RecordKey]] = set()

        for blocker in self.blockers:
            stats = self.stats[blocker.name]
            accepts = getattr(blocker, "accepts", None)

            for a, b in self._raw_pairs(blocker):
                if a.source_dataset == b.source_dataset:
                    continue
                if accepts is not None and not accepts(a, b):
                    continue
                stats.pairs_raw += 1
                pair = CandidatePair.of(a, b, blocker.name)
                if pair.keys in seen:
                    continue
                seen.add(pair.keys)
                stats.pairs_unique += 1
                yield pair

    def _raw_pairs(self, blocker: Blocker) -> Iterator[tuple[NormalizedRecord, NormalizedRecord]]:
        """Yield every record pair sharing a block, or adjacent blocks."""
        index = self._indexes[blocker.name]
        neighbours = getattr(blocker, "neighbour_keys", None)

        for key in sorted(index):
            members = sorted(index[key], key=_by_key)
            yield from combinations(members, 2)

            if neighbours is None:
                continue
            # Each adjacent block pair is visited once, from its smaller key
            for other_key in sorted(k for k in neighbours(key) if k > key and k in index):
                others = sorted(index[other_key], key=_by_key)
                for a in members:
                    for b in others:
                        yield a, b

    def stats_dict(self) -> dict[str, Any]:
        """Per-blocker statistics as plain dicts."""
        return {name: s.to_dict() for name, s in self.stats.items()}

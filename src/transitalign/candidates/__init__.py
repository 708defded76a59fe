"""Candidate generation via blocking.

Blocking groups records by cheap keys (grid cell, name token, external
identifier) so that only records sharing a key, or adjacent cells, are
scored.
"""

from transitalign.candidates.blockers import (
    Blocker,
    BlockerStats,
    GridCellBlocker,
    IdentifierBlocker,
    NameMinHashBlocker,
    NameTokenBlocker,
)
from transitalign.candidates.factory import (
    BLOCKER_REGISTRY,
    BlockerConfig,
    blocker_configs_for,
    create_blocker,
    create_blockers,
)
from transitalign.candidates.index import DEFAULT_MAX_BLOCK_SIZE, BlockingIndex
from transitalign.candidates.models import BlockKey, CandidatePair

__all__ = [
    "BLOCKER_REGISTRY",
    "DEFAULT_MAX_BLOCK_SIZE",
    "BlockKey",
    "Blocker",
    "BlockerConfig",
    "BlockerStats",
    "BlockingIndex",
    "CandidatePair",
    "GridCellBlocker",
    "IdentifierBlocker",
    "NameMinHashBlocker",
    "NameTokenBlocker",
    "blocker_configs_for",
    "create_blocker",
    "create_blockers",
]

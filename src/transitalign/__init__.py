"""Cross-dataset alignment of transit location records.

This package provides:
- Data models (transitalign.models): raw and normalized records
- Normalization (transitalign.normalize): provider fields to canonical form
- Candidates (transitalign.candidates): spatial and name blocking
- Scoring (transitalign.scoring): weighted pairwise similarity
- Clustering (transitalign.clustering): match resolution and cohesion guard
- Alignment (transitalign.alignment): canonical entities and provenance
- Engine (transitalign.engine): configuration and run orchestration
- Audit (transitalign.audit): JSONL event logging
- IO (transitalign.io): reference input adapters and output sink
- CLI (transitalign.cli): command-line interface
- Public API (transitalign.api): high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from transitalign.api import align, align_files
from transitalign.engine import AlignmentConfig, AlignmentRunResult, load_config
from transitalign.errors import (
    AlignmentError,
    ConfigurationError,
    InvariantViolation,
    MalformedInput,
)
from transitalign.models import Dataset, NormalizedRecord, RawRecord
from transitalign.normalize import normalize

__all__ = [
    "__version__",
    "__license__",
    "AlignmentConfig",
    "AlignmentError",
    "AlignmentRunResult",
    "ConfigurationError",
    "Dataset",
    "InvariantViolation",
    "MalformedInput",
    "NormalizedRecord",
    "RawRecord",
    "align",
    "align_files",
    "load_config",
    "normalize",
]

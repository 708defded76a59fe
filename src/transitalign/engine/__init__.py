"""Alignment orchestration engine.

This package provides the main entry point for running a complete
alignment, including configuration and result types.
"""

from transitalign.engine.config import AlignmentConfig, AlignmentRunResult, load_config
from transitalign.engine.runner import run_alignment

__all__ = [
    "AlignmentConfig",
    "AlignmentRunResult",
    "load_config",
    "run_alignment",
]

"""Audit logging subsystem for transitalign.

Main Components
---------------
- AuditLogger: JSONL event logger
- generate_run_id: ``ISO8601__hex`` run identifiers
"""

from transitalign.audit.helpers import generate_run_id, get_package_version
from transitalign.audit.logger import AuditLogger
from transitalign.audit.models import LOG_LEVELS, LogEvent

__all__ = [
    "LOG_LEVELS",
    "AuditLogger",
    "LogEvent",
    "generate_run_id",
    "get_package_version",
]

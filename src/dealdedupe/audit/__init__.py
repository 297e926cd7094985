"""Audit logging subsystem for dealdedupe.

Main Components
---------------
- AuditLogger: JSONL event logger
- generate_run_id: Run identifier factory
"""

from dealdedupe.audit.helpers import generate_run_id, get_package_version
from dealdedupe.audit.logger import AuditLogger
from dealdedupe.audit.models import LogEvent
from dealdedupe.utils import get_iso_timestamp

__all__ = [
    "AuditLogger",
    "LogEvent",
    "generate_run_id",
    "get_iso_timestamp",
    "get_package_version",
]

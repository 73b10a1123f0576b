"""Audit logging subsystem for erchain.

Main Components
---------------
- AuditLogger: JSONL event logger injected into the pipeline
- LogEvent: structured event envelope
"""

from erchain.audit.helpers import generate_run_id
from erchain.audit.logger import AuditLogger
from erchain.audit.models import LogEvent, LogLevel

__all__ = [
    "AuditLogger",
    "LogEvent",
    "LogLevel",
    "generate_run_id",
]

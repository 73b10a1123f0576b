"""Audit event envelope and severity levels."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any

__all__ = ["LogLevel", "LogEvent"]


class LogLevel(StrEnum):
    """Severity of an audit event.

    ``WARN`` marks configuration that has no effect (for example a late-match
    callback on a synchronous chain); ``ERROR`` marks a failed stage.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass
class LogEvent:
    """One line of the JSONL audit log.

    Attributes
    ----------
    ts : str
        UTC timestamp, ISO8601 with ``Z`` suffix.
    run_id : str
        Identifier shared by every event of one run.
    level : str
        A ``LogLevel`` value.
    event : str
        Event type, e.g. ``"matcher_finished"``.
    data : dict[str, Any]
        Event payload.
    stage : str | None
        Pipeline stage the event belongs to (``"generation"``,
        ``"matching"``, a component name, or ``"output"``).
    rid : str | None
        Record the event is about, if any.
    """

    ts: str
    run_id: str
    level: str
    event: str
    data: dict[str, Any] = field(default_factory=dict)
    stage: str | None = None
    rid: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return asdict(self)

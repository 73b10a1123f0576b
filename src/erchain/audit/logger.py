"""Structured JSONL audit logger.

The pipeline reports timings, candidate counts, reconfiguration and stage
failures through an injected ``AuditLogger`` instead of printing them.
Every call appends one JSON object to the log file and flushes it, so a
crashed run still leaves every event emitted before the failure.

Event types
-----------
Run:             run_started, run_finished
Stages:          stage_started, stage_finished, matcher_finished
Reconfiguration: matcher_added, context_updated, configuration_changed,
                 async_callback_registered, async_unavailable (WARN)
Output:          artifact_written
Failures:        error (ERROR)
"""

import json
from pathlib import Path
from typing import Any

from erchain.audit.helpers import utc_timestamp
from erchain.audit.models import LogEvent, LogLevel

__all__ = ["AuditLogger"]


class AuditLogger:
    """Append-only JSONL event sink bound to one run.

    Attributes
    ----------
    run_id : str
        Identifier written on every event.
    log_path : Path
        Destination file; parent directories are created.
    current_stage : str | None
        Stage attached to events that do not name one.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        self.run_id = run_id
        self.log_path = Path(log_path)
        self.current_stage: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Flush and close the log file; safe to call twice."""
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        """Attach *stage* to subsequent events (None clears it)."""
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = LogLevel.INFO,
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Append one event to the log.

        Parameters
        ----------
        event_type : str
            Event type identifier.
        data : dict[str, Any] | None, optional
            Payload; must be JSON-serialisable.
        level : str, optional
            A ``LogLevel`` value.
        stage : str | None, optional
            Stage name; defaults to ``current_stage``.
        rid : str | None, optional
            Record the event is about.
        """
        log_event = LogEvent(
            ts=utc_timestamp(),
            run_id=self.run_id,
            level=str(level),
            event=event_type,
            data=data or {},
            stage=stage if stage is not None else self.current_stage,
            rid=rid,
        )
        json.dump(log_event.to_dict(), self._file, ensure_ascii=False, separators=(",", ":"))
        self._file.write("\n")
        self._file.flush()

    # ------------------------------------------------------------------
    # Run and stage lifecycle
    # ------------------------------------------------------------------

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        """Record the command line and the settings snapshot of a run."""
        self.event("run_started", data={"command": list(command), "parameters": parameters})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_processed: int | None = None,
    ) -> None:
        """Record the outcome (``"success"`` or ``"failed"``) of a run."""
        data: dict[str, Any] = {"status": status, "duration_seconds": duration_seconds}
        if records_processed is not None:
            data["records_processed"] = records_processed
        self.event("run_finished", data=data)

    def stage_started(self, stage: str, expected_records: int | None = None) -> None:
        """Log stage_started event and make *stage* the current stage."""
        self.set_stage(stage)

        data: dict[str, Any] = {}
        if expected_records is not None:
            data["expected_records"] = expected_records
        self.event("stage_started", data=data, stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> None:
        """Log stage_finished event.

        Parameters
        ----------
        stage : str
            ``"generation"`` or ``"matching"``.
        duration_seconds : float
            Wall-clock time of the stage.
        counters : dict[str, int] | None, optional
            Stage counters, e.g. ``{"blocks": 12}`` or
            ``{"matchers": 2, "pairs_out": 40}``.
        """
        data: dict[str, Any] = {"duration_seconds": duration_seconds}
        if counters:
            data["counters"] = counters
        self.event("stage_finished", data=data, stage=stage)

    def matcher_finished(
        self,
        index: int,
        name: str,
        pairs_out: int,
        duration_seconds: float,
    ) -> None:
        """Log matcher_finished event for one link of the matcher chain.

        Parameters
        ----------
        index : int
            Position of the matcher in the chain.
        name : str
            Matcher identifier.
        pairs_out : int
            Size of the collection the matcher returned.
        duration_seconds : float
            Time spent in the matcher call.
        """
        self.event(
            "matcher_finished",
            data={
                "index": index,
                "matcher": name,
                "pairs_out": pairs_out,
                "duration_seconds": duration_seconds,
            },
        )

    # ------------------------------------------------------------------
    # Reconfiguration
    # ------------------------------------------------------------------

    def matcher_added(self, name: str, position: int) -> None:
        """Log a matcher appended to the chain at *position*."""
        self.event("matcher_added", data={"matcher": name, "position": position})

    def context_updated(self, context: list[str], components: int) -> None:
        """Log a context broadcast reaching *components* components."""
        self.event("context_updated", data={"context": list(context), "components": components})

    def configuration_changed(self, **changes: str) -> None:
        """Log a similarity or tokenizer switch, e.g. ``similarity="Dice"``."""
        self.event("configuration_changed", data=dict(changes))

    def async_wiring(self, matcher: str | None, wired: bool) -> None:
        """Log the outcome of a late-match callback registration.

        A registration that had no effect is a WARN ``async_unavailable``
        event; a wired callback is an INFO ``async_callback_registered``.
        """
        if wired:
            self.event("async_callback_registered", data={"matcher": matcher})
            return
        self.event(
            "async_unavailable",
            data={
                "last_matcher": matcher,
                "message": "Asynchrony has no effect in this pipeline",
            },
            level=LogLevel.WARN,
        )

    # ------------------------------------------------------------------
    # Output and failures
    # ------------------------------------------------------------------

    def artifact_written(
        self,
        path: str,
        sha256: str,
        stage: str | None = None,
        bytes_written: int | None = None,
        record_count: int | None = None,
    ) -> None:
        """Log artifact_written event.

        Parameters
        ----------
        path : str
            File name of the artifact.
        sha256 : str
            ``"sha256:<hex>"`` digest of the file.
        stage : str | None, optional
            Stage that produced it.
        bytes_written : int | None, optional
            File size in bytes.
        record_count : int | None, optional
            Number of lines (pairs) written.
        """
        data: dict[str, Any] = {"path": path, "sha256": sha256}
        if bytes_written is not None:
            data["bytes"] = bytes_written
        if record_count is not None:
            data["record_count"] = record_count
        self.event("artifact_written", data=data, stage=stage)

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        traceback: str | None = None,
    ) -> None:
        """Log an ERROR event for a failed stage.

        Parameters
        ----------
        exception_class : str
            Name of the original exception type.
        message : str
            Its message.
        stage : str | None, optional
            Name of the failing generator or matcher.
        traceback : str | None, optional
            Formatted traceback.
        """
        data: dict[str, Any] = {"exception_class": exception_class, "message": message}
        if traceback is not None:
            data["traceback"] = traceback
        self.event("error", data=data, stage=stage, level=LogLevel.ERROR)

"""Public API for running entity-resolution pipelines on JSONL data.

This module provides the main convenience functions of erchain:
- Loading records from JSONL
- Writing matched pairs to JSONL
- Building and running a pipeline from settings in one call
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from erchain.audit.helpers import file_sha256
from erchain.audit.logger import AuditLogger
from erchain.engine.builder import build_pipeline
from erchain.engine.settings import PipelineSettings, load_settings
from erchain.matching.base import Matcher
from erchain.models import CandidatePairs, Record, RecordPair, pair_id

__all__ = [
    "load_records",
    "write_pairs",
    "resolve",
]


def load_records(path: str | Path) -> list[Record]:
    """Load records from a JSONL file.

    Each non-blank line is a JSON object with an ``rid`` key; all other
    keys become record fields.

    Parameters
    ----------
    path : str | Path
        Path to JSONL file.

    Returns
    -------
    list[Record]
        Records in file order.

    Raises
    ------
    FileNotFoundError
        If file does not exist.
    ValueError
        If a line is not a JSON object with an ``rid``.

    Examples
    --------
        >>> from erchain import load_records
        >>> records = load_records("people.jsonl")
        >>> records[0].rid
        'p1'
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    records: list[Record] = []
    with file_path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{file_path.name}:{line_no}: invalid JSON: {exc}") from exc
            if not isinstance(data, dict) or "rid" not in data:
                raise ValueError(f"{file_path.name}:{line_no}: expected an object with 'rid'")
            records.append(Record.from_dict(data))
    return records


def write_pairs(pairs: Iterable[RecordPair], path: str | Path) -> int:
    """Write record pairs to a JSONL file.

    Each line is ``{"pair_id": "a|b", "rid_a": "a", "rid_b": "b"}``.
    Parent directories are created if needed.

    Parameters
    ----------
    pairs : Iterable[RecordPair]
        Pairs to write, in order.
    path : str | Path
        Output file path.

    Returns
    -------
    int
        Number of pairs written.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with output_path.open("w", encoding="utf-8") as f:
        for pair in pairs:
            row = {"pair_id": pair_id(pair), "rid_a": pair[0].rid, "rid_b": pair[1].rid}
            json.dump(row, f, ensure_ascii=False, separators=(",", ":"))
            f.write("\n")
            count += 1
    return count


def resolve(
    input_path: str | Path,
    settings: PipelineSettings | str | Path,
    *,
    output_path: str | Path | None = None,
    logger: AuditLogger | None = None,
) -> CandidatePairs:
    """Load records, run the configured pipeline and optionally write pairs.

    When the chain ends in an asynchronous matcher, its late matches are
    collected through the pipeline callback. The matcher is drained and
    shut down before the result is returned, and the late pairs are
    appended to the synchronous ones.

    Parameters
    ----------
    input_path : str | Path
        JSONL records file.
    settings : PipelineSettings | str | Path
        Settings object or path to a settings JSON file.
    output_path : str | Path | None, optional
        Where to write the matched pairs as JSONL.
    logger : AuditLogger | None, optional
        Audit logger for pipeline and artifact events.

    Returns
    -------
    CandidatePairs
        Pairs returned by the pipeline, plus any late matches.

    Raises
    ------
    ConfigurationError
        If the settings are invalid.
    StageFailure
        If a pipeline stage fails.

    Examples
    --------
        >>> from erchain import resolve
        >>> pairs = resolve("people.jsonl", "settings.json", output_path="pairs.jsonl")
        >>> len(pairs)
        3
    """
    if not isinstance(settings, PipelineSettings):
        settings = load_settings(settings)

    records = load_records(input_path)
    pipeline = build_pipeline(settings, logger=logger)

    matchers = pipeline.matchers
    tail = matchers[-1] if matchers else None
    if tail is None or not tail.asynchronous:
        pairs = pipeline.run_pipeline(records)
    else:
        late: list[RecordPair] = []
        pipeline.set_on_receive_new_matches(late.extend)
        try:
            pairs = pipeline.run_pipeline(records)
        finally:
            _drain(tail)
        pairs = CandidatePairs.from_pairs([*pairs, *late])

    if output_path is not None:
        out = Path(output_path)
        count = write_pairs(pairs, out)
        if logger:
            logger.artifact_written(
                path=out.name,
                sha256=file_sha256(out),
                stage="output",
                bytes_written=out.stat().st_size,
                record_count=count,
            )

    return pairs


def _drain(matcher: Matcher) -> None:
    """Wait for an asynchronous matcher's background work, then release it."""
    wait = getattr(matcher, "wait", None)
    shutdown = getattr(matcher, "shutdown", None)
    try:
        if wait is not None:
            wait()
    finally:
        if shutdown is not None:
            shutdown()

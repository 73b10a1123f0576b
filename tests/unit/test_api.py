"""Tests for the public API module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from erchain import (
    ConfigurationError,
    PipelineSettings,
    Record,
    load_records,
    resolve,
    write_pairs,
)


def _write_jsonl(path: Path, rows: list[dict]) -> Path:
    with path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")
    return path


def _read_jsonl(path: Path) -> list[dict]:
    with path.open() as f:
        return [json.loads(line) for line in f if line.strip()]


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """JSONL file with two duplicates and one distinct record."""
    return _write_jsonl(
        tmp_path / "people.jsonl",
        [
            {"rid": "p1", "name": "Ada Lovelace"},
            {"rid": "p2", "name": "ada lovelace"},
            {"rid": "p3", "name": "Grace Hopper"},
        ],
    )


# ---------------------------------------------------------------------------
# load_records / write_pairs
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_load_records(records_file: Path) -> None:
    """Test records load in file order with fields kept."""
    records = load_records(records_file)

    assert [r.rid for r in records] == ["p1", "p2", "p3"]
    assert records[0].get("name") == "Ada Lovelace"


@pytest.mark.unit
def test_load_records_skips_blank_lines(tmp_path: Path) -> None:
    """Test blank lines are ignored."""
    path = tmp_path / "r.jsonl"
    path.write_text('{"rid": "a"}\n\n   \n{"rid": "b"}\n', encoding="utf-8")

    assert [r.rid for r in load_records(path)] == ["a", "b"]


@pytest.mark.unit
def test_load_records_errors(tmp_path: Path) -> None:
    """Test missing files and bad lines are reported with a location."""
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.jsonl")

    path = tmp_path / "bad.jsonl"
    path.write_text('{"rid": "a"}\n{"name": "no rid"}\n', encoding="utf-8")
    with pytest.raises(ValueError, match="bad.jsonl:2"):
        load_records(path)

    path.write_text("not json\n", encoding="utf-8")
    with pytest.raises(ValueError, match="invalid JSON"):
        load_records(path)


@pytest.mark.unit
def test_write_pairs(tmp_path: Path) -> None:
    """Test pairs are written one per line and parent dirs created."""
    a, b = Record("a"), Record("b")
    out = tmp_path / "nested" / "pairs.jsonl"

    count = write_pairs([(a, b)], out)

    assert count == 1
    assert _read_jsonl(out) == [{"pair_id": "a|b", "rid_a": "a", "rid_b": "b"}]


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resolve_with_settings_object(records_file: Path, tmp_path: Path) -> None:
    """Test resolve runs the configured pipeline and writes output."""
    settings = PipelineSettings(
        context=["name"],
        blocker={"type": "exact"},
        matchers=[{"type": "all"}],
    )
    out = tmp_path / "pairs.jsonl"

    pairs = resolve(records_file, settings, output_path=out)

    assert pairs.pair_ids() == {"p1|p2"}
    assert [row["pair_id"] for row in _read_jsonl(out)] == ["p1|p2"]


@pytest.mark.unit
def test_resolve_with_settings_path(records_file: Path, tmp_path: Path) -> None:
    """Test resolve accepts a settings file path and skips output."""
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps({"join": {"type": "pass_join", "params": {"threshold": 0}}}),
        encoding="utf-8",
    )

    pairs = resolve(records_file, settings_path)

    assert pairs.pair_ids() == {"p1|p2"}
    assert not (tmp_path / "pairs.jsonl").exists()


@pytest.mark.unit
def test_resolve_invalid_settings(records_file: Path) -> None:
    """Test a blocker pipeline without matchers fails fast."""
    settings = PipelineSettings(blocker={"type": "exact"})

    with pytest.raises(ConfigurationError, match="no matchers"):
        resolve(records_file, settings)


@pytest.mark.unit
def test_resolve_collects_late_matches(records_file: Path, tmp_path: Path) -> None:
    """Test pairs from an asynchronous last matcher are returned and written."""
    settings = PipelineSettings(
        context=["name"],
        blocker={"type": "exact"},
        matchers=[{"type": "deferred", "params": {"threshold": 0.5}}],
    )
    out = tmp_path / "pairs.jsonl"

    pairs = resolve(records_file, settings, output_path=out)

    assert pairs.pair_ids() == {"p1|p2"}
    assert [row["pair_id"] for row in _read_jsonl(out)] == ["p1|p2"]


@pytest.mark.unit
def test_resolve_drains_async_matcher(records_file: Path) -> None:
    """Test the asynchronous matcher is waited on and its executor released."""
    from erchain.engine import builder

    built = []
    original = builder.build_pipeline

    def tracking_build(settings, logger=None):
        pipeline = original(settings, logger=logger)
        built.append(pipeline)
        return pipeline

    settings = PipelineSettings(
        context=["name"],
        join={"type": "pass_join", "params": {"threshold": 0}},
        matchers=[{"type": "deferred", "params": {"threshold": 0.5}}],
    )

    with patch("erchain.api.build_pipeline", side_effect=tracking_build):
        pairs = resolve(records_file, settings)

    (tail,) = built[0].matchers
    assert pairs.pair_ids() == {"p1|p2"}
    assert tail.accepted == 1
    assert tail._executor is None

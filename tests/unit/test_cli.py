"""Tests for CLI module."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from erchain.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Provide Click test CLI runner."""
    return CliRunner()


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Settings for an exact-key blocker followed by an all-pairs matcher."""
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "table_name": "people",
                "context": ["name"],
                "blocker": {"type": "exact"},
                "matchers": [{"type": "all"}],
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """Three records, two sharing a normalised name."""
    path = tmp_path / "people.jsonl"
    rows = [
        {"rid": "p1", "name": "Ada Lovelace"},
        {"rid": "p2", "name": "ADA  LOVELACE"},
        {"rid": "p3", "name": "Grace Hopper"},
    ]
    path.write_text("".join(json.dumps(r) + "\n" for r in rows), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Top-level CLI
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_cli_version_flag(runner: CliRunner) -> None:
    """Test --version flag outputs version string."""
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "erchain" in result.output


@pytest.mark.unit
def test_cli_help(runner: CliRunner) -> None:
    """Test --help output lists commands."""
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "describe" in result.output
    assert "resolve" in result.output


@pytest.mark.unit
def test_cli_invalid_command(runner: CliRunner) -> None:
    """Test invalid command returns non-zero exit code."""
    result = runner.invoke(cli, ["invalid-command"])

    assert result.exit_code != 0


# ---------------------------------------------------------------------------
# describe command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_describe(runner: CliRunner, settings_file: Path) -> None:
    """Test describe prints the stage chain."""
    result = runner.invoke(cli, ["describe", "-c", str(settings_file)])

    assert result.exit_code == 0
    assert "records --> exact_key --> all_matcher --> pairs" in result.output


@pytest.mark.unit
def test_describe_invalid_settings(runner: CliRunner, tmp_path: Path) -> None:
    """Test describe reports invalid settings and exits 1."""
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"matchers": []}), encoding="utf-8")

    result = runner.invoke(cli, ["describe", "-c", str(path)])

    assert result.exit_code == 1
    assert "Invalid settings" in result.output


# ---------------------------------------------------------------------------
# resolve command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_resolve_help(runner: CliRunner) -> None:
    """Test resolve command help."""
    result = runner.invoke(cli, ["resolve", "--help"])

    assert result.exit_code == 0
    assert "--config" in result.output
    assert "--log" in result.output


@pytest.mark.unit
def test_resolve_nonexistent_input(runner: CliRunner, settings_file: Path) -> None:
    """Test missing input file is rejected by click."""
    result = runner.invoke(
        cli, ["resolve", "missing.jsonl", "-c", str(settings_file), "-o", "out.jsonl"]
    )

    assert result.exit_code != 0


@pytest.mark.unit
def test_resolve_execution(
    runner: CliRunner, settings_file: Path, records_file: Path, tmp_path: Path
) -> None:
    """Test resolve writes pairs and an audit log."""
    out = tmp_path / "pairs.jsonl"
    log = tmp_path / "events.jsonl"

    result = runner.invoke(
        cli,
        [
            "resolve",
            str(records_file),
            "-c",
            str(settings_file),
            "-o",
            str(out),
            "--log",
            str(log),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Wrote 1 matched pairs" in result.output
    assert json.loads(out.read_text().strip()) == {"pair_id": "p1|p2", "rid_a": "p1", "rid_b": "p2"}

    events = [json.loads(line) for line in log.read_text().splitlines()]
    names = [e["event"] for e in events]
    assert names[0] == "run_started"
    assert names[-1] == "run_finished"
    assert "artifact_written" in names
    assert events[-1]["data"]["status"] == "success"
    assert len({e["run_id"] for e in events}) == 1


@pytest.mark.unit
def test_resolve_verbose_flag(
    runner: CliRunner, settings_file: Path, records_file: Path, tmp_path: Path
) -> None:
    """Test --verbose echoes inputs."""
    result = runner.invoke(
        cli,
        [
            "resolve",
            str(records_file),
            "-c",
            str(settings_file),
            "-o",
            str(tmp_path / "pairs.jsonl"),
            "-v",
        ],
    )

    assert result.exit_code == 0
    assert "Input:" in result.output


@pytest.mark.unit
def test_resolve_failure_exits_1(
    runner: CliRunner, records_file: Path, tmp_path: Path
) -> None:
    """Test a run that cannot start reports the error and logs failure."""
    settings = tmp_path / "blocker_only.json"
    settings.write_text(json.dumps({"blocker": {"type": "exact"}}), encoding="utf-8")
    log = tmp_path / "events.jsonl"

    result = runner.invoke(
        cli,
        [
            "resolve",
            str(records_file),
            "-c",
            str(settings),
            "-o",
            str(tmp_path / "pairs.jsonl"),
            "--log",
            str(log),
        ],
    )

    assert result.exit_code == 1
    assert "Error" in result.output
    events = [json.loads(line) for line in log.read_text().splitlines()]
    assert events[-1]["event"] == "run_finished"
    assert events[-1]["data"]["status"] == "failed"


@pytest.mark.unit
def test_resolve_deferred_matcher(
    runner: CliRunner, records_file: Path, tmp_path: Path
) -> None:
    """Test late matches from a deferred last matcher reach the output file."""
    settings = tmp_path / "deferred.json"
    settings.write_text(
        json.dumps(
            {
                "context": ["name"],
                "blocker": {"type": "exact"},
                "matchers": [{"type": "deferred", "params": {"threshold": 0.5}}],
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "pairs.jsonl"

    result = runner.invoke(
        cli,
        ["resolve", str(records_file), "-c", str(settings), "-o", str(out)],
    )

    assert result.exit_code == 0, result.output
    assert "Wrote 1 matched pairs" in result.output
    assert json.loads(out.read_text().strip())["pair_id"] == "p1|p2"

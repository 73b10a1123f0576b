"""Integration tests for end-to-end entity resolution.

This module runs complete pipelines through the public API with real
blockers, joins and matchers, and files on disk.
"""

import json
from pathlib import Path

import jsonschema
import pytest

from erchain import (
    EntityResolutionPipeline,
    PipelineSettings,
    Record,
    build_pipeline,
    resolve,
)
from erchain.audit import AuditLogger
from erchain.candidates import BroadcastJoin, ExactKeyBlocker, TokenBlocker
from erchain.matching import AllMatcher, DeferredMatcher, SimilarityMatcher
from erchain.models import CandidatePairs

_SCHEMAS_DIR = Path(__file__).parent.parent.parent / "schemas"

PEOPLE = [
    {"rid": "p01", "name": "Ada Lovelace", "city": "London"},
    {"rid": "p02", "name": "Lovelace, Ada", "city": "London"},
    {"rid": "p03", "name": "Charles Babbage", "city": "London"},
    {"rid": "p04", "name": "Babbage Charles", "city": "Teignmouth"},
    {"rid": "p05", "name": "Grace Hopper", "city": "New York"},
    {"rid": "p06", "name": "Grace B. Hopper", "city": "New York"},
    {"rid": "p07", "name": "Alan Turing", "city": "London"},
]


@pytest.fixture
def people() -> list[Record]:
    """Small people table with spelling and ordering variants."""
    return [Record.from_dict(row) for row in PEOPLE]


@pytest.mark.integration
def test_blocker_scenario_returns_intra_block_pair() -> None:
    """Test blocks {A,B} and {C} with an all-pairs matcher give only (A, B)."""
    records = [
        Record("A", {"key": "k1"}),
        Record("B", {"key": "k1"}),
        Record("C", {"key": "k2"}),
    ]
    pipeline = EntityResolutionPipeline.from_blocker(
        ["key"], "abc", ExactKeyBlocker(["key"]), [AllMatcher()]
    )

    assert pipeline.run_pipeline(records).pair_ids() == {"A|B"}


@pytest.mark.integration
def test_join_scenario_passes_every_pair_without_matchers() -> None:
    """Test a pass-everything join with no matchers returns (A, B)."""
    records = [Record("A", {"name": "x"}), Record("B", {"name": "y"})]
    pipeline = EntityResolutionPipeline.from_join(
        ["name"], "ab", BroadcastJoin(threshold=0.0), []
    )

    assert pipeline.run_pipeline(records).pair_ids() == {"A|B"}


@pytest.mark.integration
def test_token_blocking_with_similarity_chain(people: list[Record]) -> None:
    """Test token blocks refined by a punctuation-aware similarity matcher."""
    pipeline = EntityResolutionPipeline.from_blocker(
        ["name"],
        "people",
        TokenBlocker(tokenizer="WhiteSpaceAndPunc"),
        [SimilarityMatcher(threshold=0.6, tokenizer="WhiteSpaceAndPunc"), AllMatcher()],
    )
    pipeline.update_context(["name"])

    pairs = pipeline.run_pipeline(people)

    assert pairs.pair_ids() == {"p01|p02", "p03|p04", "p05|p06"}
    assert pipeline.last_run is not None
    assert pipeline.last_run.matcher_invocations == 2


@pytest.mark.integration
def test_join_reconfigured_at_runtime(people: list[Record]) -> None:
    """Test tokenizer and similarity changes alter the join's decisions."""
    pipeline = EntityResolutionPipeline.from_join(
        ["name"], "people", BroadcastJoin(threshold=1.0), [AllMatcher()]
    )
    pipeline.update_context(["name"])

    # "Lovelace," keeps its comma under whitespace tokenization
    assert pipeline.run_pipeline(people).pair_ids() == {"p03|p04"}

    pipeline.change_tokenization("WhiteSpaceAndPunc")
    assert pipeline.run_pipeline(people).pair_ids() == {"p01|p02", "p03|p04"}

    pipeline.change_similarity("Overlap")
    assert pipeline.run_pipeline(people).pair_ids() == {"p01|p02", "p03|p04", "p05|p06"}


@pytest.mark.integration
def test_async_pipeline_delivers_late_matches(people: list[Record]) -> None:
    """Test a deferred last matcher delivers through the registered callback."""
    received: list[CandidatePairs] = []
    deferred = DeferredMatcher(threshold=0.5, tokenizer="WhiteSpaceAndPunc")
    pipeline = EntityResolutionPipeline.from_blocker(
        ["name"], "people", TokenBlocker(tokenizer="WhiteSpaceAndPunc"), [deferred]
    )
    pipeline.update_context(["name"])
    assert pipeline.set_on_receive_new_matches(received.append)

    try:
        immediate = pipeline.run_pipeline(people)
        deferred.wait(timeout=10)
    finally:
        deferred.shutdown()

    late = set().union(*(batch.pair_ids() for batch in received))
    assert len(immediate) == 0
    assert late == {"p01|p02", "p03|p04", "p05|p06"}


@pytest.mark.integration
def test_resolve_from_files_with_audit_log(tmp_path: Path) -> None:
    """Test settings file, records file, output and events line up."""
    records_path = tmp_path / "people.jsonl"
    records_path.write_text("".join(json.dumps(r) + "\n" for r in PEOPLE), encoding="utf-8")
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(
        json.dumps(
            {
                "table_name": "people",
                "context": ["name"],
                "join": {"type": "broadcast", "params": {"threshold": 0.6}},
                "matchers": [{"type": "all"}],
                "tokenizer": "WhiteSpaceAndPunc",
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "out" / "pairs.jsonl"
    log_path = tmp_path / "events.jsonl"

    with AuditLogger(run_id="e2e", log_path=log_path) as logger:
        pairs = resolve(records_path, settings_path, output_path=out, logger=logger)

    written = [json.loads(line) for line in out.read_text().splitlines()]
    assert [row["pair_id"] for row in written] == sorted(pairs.pair_ids())
    assert {"p01|p02", "p03|p04", "p05|p06"} == pairs.pair_ids()

    with (_SCHEMAS_DIR / "log_event.schema.json").open() as f:
        schema = json.load(f)
    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    for event in events:
        jsonschema.validate(instance=event, schema=schema)

    artifact = next(e for e in events if e["event"] == "artifact_written")
    assert artifact["stage"] == "output"
    assert artifact["data"]["record_count"] == 3
    assert artifact["data"]["sha256"].startswith("sha256:")


@pytest.mark.integration
def test_settings_round_trip_builds_same_pipeline() -> None:
    """Test a pipeline rebuilt from serialised settings describes the same."""
    settings = PipelineSettings(
        context=["name"],
        join={"type": "broadcast"},
        matchers=[{"type": "similarity"}, {"type": "deferred"}],
        similarity="Cosine",
    )

    first = build_pipeline(settings)
    second = build_pipeline(PipelineSettings.from_dict(settings.to_dict()))

    assert first.describe() == second.describe()
    assert first.describe() == [
        "records",
        "join(Cosine)",
        "similarity_matcher",
        "deferred_matcher",
        "pairs",
    ]

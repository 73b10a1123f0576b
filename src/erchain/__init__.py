"""Composable blocking/similarity-join + matcher-chain entity resolution.

This package provides:
- Data models (erchain.models) — records, blocks, candidate pairs
- Featurization (erchain.featurize) — tokenizers and similarity features
- Candidates (erchain.candidates) — blockers and similarity joins
- Matching (erchain.matching) — synchronous and asynchronous matchers
- Engine (erchain.engine) — the pipeline, its settings and builder
- Audit (erchain.audit) — structured JSONL event logging
- CLI (erchain.cli) — command-line interface
- Public API (erchain.api) — high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from erchain.api import load_records, resolve, write_pairs
from erchain.engine import EntityResolutionPipeline, PipelineSettings, build_pipeline
from erchain.errors import ConfigurationError, PipelineError, StageFailure
from erchain.models import BlockedRecords, CandidatePairs, Record

__all__ = [
    "__version__",
    "__license__",
    "EntityResolutionPipeline",
    "PipelineSettings",
    "build_pipeline",
    "Record",
    "BlockedRecords",
    "CandidatePairs",
    "load_records",
    "write_pairs",
    "resolve",
    "PipelineError",
    "ConfigurationError",
    "StageFailure",
]

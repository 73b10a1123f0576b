"""Pipeline orchestration engine.

This package provides the blocker/join + matcher-chain pipeline, its state
and statistics types, and the settings-driven builder.
"""

from erchain.engine.builder import build_pipeline
from erchain.engine.config import (
    BlockingGeneration,
    Generation,
    JoinGeneration,
    PipelineConfig,
    RunStats,
)
from erchain.engine.pipeline import EntityResolutionPipeline
from erchain.engine.settings import SETTINGS_SCHEMA, PipelineSettings, load_settings

__all__ = [
    "EntityResolutionPipeline",
    "BlockingGeneration",
    "JoinGeneration",
    "Generation",
    "PipelineConfig",
    "RunStats",
    "PipelineSettings",
    "SETTINGS_SCHEMA",
    "load_settings",
    "build_pipeline",
]

"""Declarative pipeline settings and their JSON loader."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from erchain.errors import ConfigurationError
from erchain.factory import ComponentConfig

__all__ = ["PipelineSettings", "SETTINGS_SCHEMA", "load_settings"]

_COMPONENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "additionalProperties": False,
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "enabled": {"type": "boolean"},
        "params": {"type": "object"},
    },
}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "erchain pipeline settings",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "table_name": {"type": "string"},
        "context": {"type": "array", "items": {"type": "string"}},
        "blocker": _COMPONENT_SCHEMA,
        "join": _COMPONENT_SCHEMA,
        "matchers": {"type": "array", "items": _COMPONENT_SCHEMA},
        "tokenizer": {"type": ["string", "null"]},
        "similarity": {"type": ["string", "null"]},
    },
    "oneOf": [
        {"required": ["blocker"], "not": {"required": ["join"]}},
        {"required": ["join"], "not": {"required": ["blocker"]}},
    ],
}


def _as_component(value: ComponentConfig | dict[str, Any] | None) -> ComponentConfig | None:
    if value is None or isinstance(value, ComponentConfig):
        return value
    return ComponentConfig.from_dict(value)


@dataclass
class PipelineSettings:
    """Declarative description of a pipeline.

    Attributes
    ----------
    table_name : str
        Label of the record collection.
    context : list[str]
        Attributes broadcast to every component after construction.
    blocker : ComponentConfig | None
        Blocker component; exactly one of ``blocker`` / ``join`` is set.
    join : ComponentConfig | None
        Similarity join component.
    matchers : list[ComponentConfig]
        Matcher chain components in execution order.
    tokenizer : str | None
        Tokenizer applied with ``change_tokenization`` (join pipelines).
    similarity : str | None
        Similarity applied with ``change_similarity`` (join pipelines).
    """

    table_name: str = "records"
    context: list[str] = field(default_factory=list)
    blocker: ComponentConfig | None = None
    join: ComponentConfig | None = None
    matchers: list[ComponentConfig] = field(default_factory=list)
    tokenizer: str | None = None
    similarity: str | None = None

    def __post_init__(self) -> None:
        """Coerce nested dicts and validate the generation choice."""
        self.blocker = _as_component(self.blocker)
        self.join = _as_component(self.join)
        self.matchers = [_as_component(m) for m in self.matchers]  # type: ignore[misc]
        self.context = list(self.context)

        if (self.blocker is None) == (self.join is None):
            raise ConfigurationError("Exactly one of 'blocker' or 'join' must be configured")

        if self.blocker is not None and (self.tokenizer or self.similarity):
            raise ConfigurationError("'tokenizer' and 'similarity' require a 'join'")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        data: dict[str, Any] = {
            "table_name": self.table_name,
            "context": list(self.context),
            "matchers": [m.to_dict() for m in self.matchers],
            "tokenizer": self.tokenizer,
            "similarity": self.similarity,
        }
        if self.blocker is not None:
            data["blocker"] = self.blocker.to_dict()
        if self.join is not None:
            data["join"] = self.join.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineSettings":
        """Validate *data* against ``SETTINGS_SCHEMA`` and build settings.

        Raises
        ------
        ConfigurationError
            If *data* does not satisfy the schema.
        """
        try:
            jsonschema.validate(instance=data, schema=SETTINGS_SCHEMA)
        except jsonschema.ValidationError as exc:
            location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigurationError(f"Invalid settings at {location}: {exc.message}") from exc

        return cls(
            table_name=data.get("table_name", "records"),
            context=data.get("context", []),
            blocker=data.get("blocker"),
            join=data.get("join"),
            matchers=data.get("matchers", []),
            tokenizer=data.get("tokenizer"),
            similarity=data.get("similarity"),
        )


def load_settings(path: Path | str) -> PipelineSettings:
    """Load pipeline settings from a JSON file.

    Parameters
    ----------
    path : Path | str
        JSON document matching ``SETTINGS_SCHEMA``.

    Returns
    -------
    PipelineSettings
        Validated settings.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ConfigurationError
        If the file is not valid JSON or fails schema validation.
    """
    settings_path = Path(path)
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Settings file is not valid JSON: {exc}") from exc

    return PipelineSettings.from_dict(data)

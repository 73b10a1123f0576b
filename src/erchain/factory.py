"""Registry-based factory for pipeline components.

New component types are added by extending the registries below, with no
``match``/``case`` cascade to maintain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from erchain.candidates.blockers import Blocker, ExactKeyBlocker, TokenBlocker
from erchain.candidates.joins import BroadcastJoin, PassJoin, SimilarityJoin
from erchain.errors import ConfigurationError
from erchain.matching import AllMatcher, DeferredMatcher, Matcher, SimilarityMatcher

__all__ = [
    "BLOCKER_REGISTRY",
    "JOIN_REGISTRY",
    "MATCHER_REGISTRY",
    "ComponentConfig",
    "create_blocker",
    "create_join",
    "create_matcher",
    "create_matchers",
]

# type → class returning a component
BLOCKER_REGISTRY: dict[str, type] = {
    "exact": ExactKeyBlocker,
    "token": TokenBlocker,
}

JOIN_REGISTRY: dict[str, type] = {
    "broadcast": BroadcastJoin,
    "pass_join": PassJoin,
}

MATCHER_REGISTRY: dict[str, type] = {
    "all": AllMatcher,
    "similarity": SimilarityMatcher,
    "deferred": DeferredMatcher,
}


@dataclass(frozen=True)
class ComponentConfig:
    """Declarative configuration for a single component.

    Attributes
    ----------
    type : str
        Key in the relevant registry.
    enabled : bool
        Disabled matcher configs are skipped by ``create_matchers``.
    params : dict[str, Any]
        Keyword arguments forwarded to the component constructor.
    """

    type: str
    enabled: bool = True
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"type": self.type, "enabled": self.enabled, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComponentConfig:
        """Create from a ``{"type", "enabled"?, "params"?}`` mapping."""
        return cls(
            type=data["type"],
            enabled=data.get("enabled", True),
            params=dict(data.get("params", {})),
        )


def _instantiate(registry: dict[str, type], kind: str, config: ComponentConfig) -> Any:
    cls = registry.get(config.type)
    if cls is None:
        valid = ", ".join(sorted(registry))
        raise ConfigurationError(f"Unknown {kind} type: {config.type!r}. Valid types: {valid}")
    try:
        return cls(**config.params)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid params for {kind} {config.type!r}: {exc}") from exc


def create_blocker(config: ComponentConfig) -> Blocker:
    """Instantiate a blocker from *config*.

    Raises
    ------
    ConfigurationError
        If ``config.type`` is not registered or the params are rejected.
    """
    return _instantiate(BLOCKER_REGISTRY, "blocker", config)  # type: ignore[no-any-return]


def create_join(config: ComponentConfig) -> SimilarityJoin:
    """Instantiate a similarity join from *config*."""
    return _instantiate(JOIN_REGISTRY, "join", config)  # type: ignore[no-any-return]


def create_matcher(config: ComponentConfig) -> Matcher:
    """Instantiate a matcher from *config*."""
    return _instantiate(MATCHER_REGISTRY, "matcher", config)  # type: ignore[no-any-return]


def create_matchers(configs: list[ComponentConfig]) -> list[Matcher]:
    """Instantiate all *enabled* matchers, preserving order.

    Parameters
    ----------
    configs : list[ComponentConfig]
        Matcher configurations (disabled entries are filtered out).

    Returns
    -------
    list[Matcher]
        Matchers in declared order.
    """
    return [create_matcher(cfg) for cfg in configs if cfg.enabled]

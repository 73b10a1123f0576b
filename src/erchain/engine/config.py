"""Pipeline state and run statistics dataclasses."""

from dataclasses import asdict, dataclass, field
from typing import Any

from erchain.candidates.blockers import Blocker
from erchain.candidates.joins import SimilarityJoin
from erchain.matching.base import MatchCallback, Matcher

__all__ = [
    "BlockingGeneration",
    "JoinGeneration",
    "Generation",
    "PipelineConfig",
    "RunStats",
]


@dataclass(frozen=True)
class BlockingGeneration:
    """Candidate generation by blocking.

    Attributes
    ----------
    blocker : Blocker
        Blocker producing the blocks handed to the first matcher.
    """

    blocker: Blocker


@dataclass(frozen=True)
class JoinGeneration:
    """Candidate generation by similarity self-join.

    Attributes
    ----------
    join : SimilarityJoin
        Join producing the candidate pairs handed to the first matcher.
    """

    join: SimilarityJoin


# Exactly one generation strategy per pipeline.
Generation = BlockingGeneration | JoinGeneration


@dataclass
class PipelineConfig:
    """Mutable state owned by a pipeline.

    Attributes
    ----------
    generation : Generation
        The single candidate generation strategy.
    matchers : list[Matcher]
        Ordered matcher chain; output of stage i feeds stage i + 1.
    shared_context : list[str]
        Context last broadcast to every component.
    async_callback : MatchCallback | None
        Handler wired to the last matcher, if it is asynchronous.
    """

    generation: Generation
    matchers: list[Matcher] = field(default_factory=list)
    shared_context: list[str] = field(default_factory=list)
    async_callback: MatchCallback | None = None


@dataclass
class RunStats:
    """Observability signals from the most recent run.

    Not used for any control decision.

    Attributes
    ----------
    generation_seconds : float
        Wall-clock time of the generation call.
    matching_seconds : float
        Wall-clock time of the whole matcher fold.
    candidate_count : int
        Pairs produced by a join, or blocks produced by a blocker.
    matcher_invocations : int
        Number of matcher calls made.
    result_count : int
        Pairs in the returned collection.
    """

    generation_seconds: float = 0.0
    matching_seconds: float = 0.0
    candidate_count: int = 0
    matcher_invocations: int = 0
    result_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

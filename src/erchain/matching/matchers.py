"""Synchronous matchers."""

from __future__ import annotations

from collections.abc import Iterable

from erchain.featurize.similarity import SimilarityFeature, SimilarityName
from erchain.featurize.tokenizers import Tokenizer
from erchain.matching.base import BaseMatcher, expand_pairs
from erchain.models.collections import CandidatePairs, GenerationOutput

__all__ = ["AllMatcher", "SimilarityMatcher"]


class AllMatcher(BaseMatcher):
    """Match every pair it receives.

    Typically placed after a similarity join, which already made the
    matching decision, or after a blocker to emit all intra-block pairs.
    """

    name: str = "all_matcher"

    def match_pairs(self, candidates: GenerationOutput) -> CandidatePairs:
        """Return every candidate pair."""
        return expand_pairs(candidates)


class SimilarityMatcher(BaseMatcher):
    """Keep pairs whose similarity feature passes the threshold."""

    name: str = "similarity_matcher"

    def __init__(
        self,
        similarity: str = SimilarityName.JACCARD,
        threshold: float = 0.5,
        tokenizer: Tokenizer | str = "WhiteSpace",
        attributes: Iterable[str] | None = None,
    ) -> None:
        super().__init__()
        self.simfeature = SimilarityFeature(
            similarity=similarity,
            threshold=threshold,
            tokenizer=tokenizer,
            attributes=attributes,
        )

    def update_context(self, context: list[str]) -> None:
        """Store *context* and forward it to the similarity feature."""
        super().update_context(context)
        self.simfeature.update_context(context)

    def match_pairs(self, candidates: GenerationOutput) -> CandidatePairs:
        """Return the candidate pairs accepted by the feature, in input order."""
        pairs = expand_pairs(candidates)
        return CandidatePairs(pairs=tuple(p for p in pairs if self.simfeature.matches(*p)))

    def __repr__(self) -> str:
        return f"SimilarityMatcher(simfeature={self.simfeature!r})"

"""Matchers: ordered refinement stages over candidate pairs."""

from erchain.matching.base import BaseMatcher, MatchCallback, Matcher, expand_pairs
from erchain.matching.deferred import DeferredMatcher
from erchain.matching.matchers import AllMatcher, SimilarityMatcher

__all__ = [
    # Protocol
    "Matcher",
    "MatchCallback",
    "BaseMatcher",
    "expand_pairs",
    # Synchronous
    "AllMatcher",
    "SimilarityMatcher",
    # Asynchronous
    "DeferredMatcher",
]

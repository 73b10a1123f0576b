"""Candidate generation: blockers and similarity joins."""

from erchain.candidates.blockers import (
    Blocker,
    ExactKeyBlocker,
    KeyedBlocker,
    TokenBlocker,
)
from erchain.candidates.joins import (
    BroadcastJoin,
    JoinVariant,
    PassJoin,
    SimilarityJoin,
)

__all__ = [
    # Protocols
    "Blocker",
    "SimilarityJoin",
    # Blockers
    "KeyedBlocker",
    "ExactKeyBlocker",
    "TokenBlocker",
    # Joins
    "JoinVariant",
    "BroadcastJoin",
    "PassJoin",
]

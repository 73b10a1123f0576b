"""Similarity joins: candidate generation with a first matching decision.

A similarity join takes two record collections and returns the pairs whose
similarity passes the join's feature threshold. The pipeline uses it as a
self-join (same collection on both sides, ``asymmetric=False``).

Pair orientation
----------------
* ``asymmetric=False`` — unordered comparison: each pair is emitted once
  with the lexicographically smaller rid first; self pairs are skipped.
* ``asymmetric=True`` — ordered ``(left, right)`` pairs; a record is still
  never paired with itself.

Output is sorted by pair id so runs are reproducible.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Protocol, runtime_checkable

from erchain.errors import ConfigurationError
from erchain.featurize.similarity import SimilarityFeature, SimilarityName, edit_distance
from erchain.featurize.tokenizers import Tokenizer
from erchain.models.collections import CandidatePairs
from erchain.models.records import Record, RecordPair, pair_id

__all__ = [
    "JoinVariant",
    "SimilarityJoin",
    "BroadcastJoin",
    "PassJoin",
]


class JoinVariant(StrEnum):
    """Join algorithm families.

    Attributes
    ----------
    BROADCAST : str
        Token-index join over any token similarity.
    LENGTH_PARTITION : str
        Edit-distance join that partitions strings by length.
    """

    BROADCAST = "broadcast"
    LENGTH_PARTITION = "length_partition"


@runtime_checkable
class SimilarityJoin(Protocol):
    """Structural protocol for similarity joins.

    Attributes
    ----------
    name : str
        Stable identifier used in audit logs.
    variant : JoinVariant
        Algorithm family; some reconfigurations depend on it.
    simfeature : SimilarityFeature
        Feature deciding which pairs pass; its tokenizer is replaceable.
    """

    name: str
    variant: JoinVariant
    simfeature: SimilarityFeature

    def join(
        self,
        left: Iterable[Record],
        right: Iterable[Record],
        asymmetric: bool,
    ) -> CandidatePairs:
        """Return the pairs of *left* × *right* that pass the feature."""
        ...

    def set_similarity_featurizer(self, name: str) -> None:
        """Switch the similarity measure by name."""
        ...

    def update_context(self, context: list[str]) -> None:
        """Receive the attributes the pipeline currently works on."""
        ...


# ============================================================================
# Pure helpers
# ============================================================================


def _orient(left: Record, right: Record, asymmetric: bool) -> RecordPair:
    if asymmetric or left.rid <= right.rid:
        return (left, right)
    return (right, left)


def _collect(
    left: list[Record],
    candidates_for: Callable[[Record], Iterable[Record]],
    verify: Callable[[Record, Record], bool],
    asymmetric: bool,
) -> CandidatePairs:
    """Probe every left record, verify each new pair once, sort by id."""
    seen: set[str] = set()
    accepted: dict[str, RecordPair] = {}

    for record in left:
        for other in candidates_for(record):
            if other.rid == record.rid:
                continue
            pair = _orient(record, other, asymmetric)
            pid = pair_id(pair)
            if pid in seen:
                continue
            seen.add(pid)
            if verify(*pair):
                accepted[pid] = pair

    return CandidatePairs(pairs=tuple(accepted[pid] for pid in sorted(accepted)))


def _segments(length: int, k: int) -> list[tuple[int, int]]:
    """Split a string of *length* into ``k + 1`` (start, size) segments.

    The first segments get ``length // (k + 1)`` characters and the last
    ``length % (k + 1)`` segments one more.
    """
    parts = k + 1
    base, extra = divmod(length, parts)
    segments = []
    start = 0
    for i in range(parts):
        size = base + (1 if i >= parts - extra else 0)
        segments.append((start, size))
        start += size
    return segments


# ============================================================================
# Joins
# ============================================================================


class BroadcastJoin:
    """Token-index similarity join.

    Right-side records are indexed by token. When the measure is token
    based and the threshold is positive, a pair must share at least one
    token to pass, so only records reached through the index are verified.
    Otherwise every pair is verified.
    """

    name: str = "broadcast_join"
    variant: JoinVariant = JoinVariant.BROADCAST

    def __init__(
        self,
        similarity: str = SimilarityName.JACCARD,
        threshold: float = 0.5,
        tokenizer: Tokenizer | str = "WhiteSpace",
        attributes: Iterable[str] | None = None,
    ) -> None:
        self.simfeature = SimilarityFeature(
            similarity=similarity,
            threshold=threshold,
            tokenizer=tokenizer,
            attributes=attributes,
        )

    def set_similarity_featurizer(self, name: str) -> None:
        """Switch the feature's measure; tokenizer and threshold are kept."""
        self.simfeature.set_similarity(name)

    def update_context(self, context: list[str]) -> None:
        """Forward *context* to the similarity feature."""
        self.simfeature.update_context(context)

    def join(
        self,
        left: Iterable[Record],
        right: Iterable[Record],
        asymmetric: bool,
    ) -> CandidatePairs:
        """Return the pairs of *left* × *right* accepted by the feature."""
        feature = self.simfeature
        left_records = list(left)
        right_records = list(right)

        prune = not feature.is_distance and feature.threshold > 0
        if not prune:
            return _collect(left_records, lambda _: right_records, feature.matches, asymmetric)

        index: dict[str, list[Record]] = defaultdict(list)
        for record in right_records:
            for token in sorted(feature.tokens(record)):
                index[token].append(record)

        def candidates_for(record: Record) -> Iterable[Record]:
            found: dict[str, Record] = {}
            for token in sorted(feature.tokens(record)):
                for other in index.get(token, ()):
                    found.setdefault(other.rid, other)
            return found.values()

        return _collect(left_records, candidates_for, feature.matches, asymmetric)

    def __repr__(self) -> str:
        return f"BroadcastJoin(simfeature={self.simfeature!r})"


class PassJoin:
    """Length-partitioning edit-distance join.

    Each right-side string of length ``l > k`` is cut into ``k + 1``
    segments and indexed by ``(l, segment_index, segment)``. Two strings
    within distance ``k`` share at least one segment at a position shifted
    by at most ``k``, so a left string probes only the lengths
    ``[n - k, n + k]`` and the substrings in that position window.
    Strings no longer than ``k`` are compared directly.

    Only ``EditDistance`` is supported as the similarity.
    """

    name: str = "pass_join"
    variant: JoinVariant = JoinVariant.LENGTH_PARTITION

    def __init__(
        self,
        threshold: int = 1,
        attributes: Iterable[str] | None = None,
    ) -> None:
        if threshold < 0:
            raise ConfigurationError(f"threshold must be >= 0, got {threshold}")
        self.simfeature = SimilarityFeature(
            similarity=SimilarityName.EDIT_DISTANCE,
            threshold=threshold,
            attributes=attributes,
        )

    def set_similarity_featurizer(self, name: str) -> None:
        """Accept only ``EditDistance``.

        Raises
        ------
        ConfigurationError
            For any other measure.
        """
        if name != SimilarityName.EDIT_DISTANCE:
            raise ConfigurationError(f"PassJoin only supports EditDistance, got {name!r}")
        self.simfeature.set_similarity(name)

    def update_context(self, context: list[str]) -> None:
        """Forward *context* to the similarity feature."""
        self.simfeature.update_context(context)

    def join(
        self,
        left: Iterable[Record],
        right: Iterable[Record],
        asymmetric: bool,
    ) -> CandidatePairs:
        """Return the pairs of *left* × *right* within edit distance ``k``."""
        k = int(self.simfeature.threshold)
        feature = self.simfeature
        left_records = list(left)
        right_records = list(right)

        texts: dict[str, str] = {}
        for record in (*left_records, *right_records):
            if record.rid not in texts:
                texts[record.rid] = feature.text(record)

        short: dict[int, list[Record]] = defaultdict(list)
        index: dict[tuple[int, int, str], list[Record]] = defaultdict(list)
        for record in right_records:
            text = texts[record.rid]
            length = len(text)
            if length <= k:
                short[length].append(record)
                continue
            for i, (start, size) in enumerate(_segments(length, k)):
                index[(length, i, text[start : start + size])].append(record)

        def candidates_for(record: Record) -> Iterable[Record]:
            text = texts[record.rid]
            n = len(text)
            found: dict[str, Record] = {}
            for length in range(max(0, n - k), n + k + 1):
                if length <= k:
                    for other in short.get(length, ()):
                        found.setdefault(other.rid, other)
                    continue
                for i, (start, size) in enumerate(_segments(length, k)):
                    lo = max(0, start - k)
                    hi = min(n - size, start + k)
                    for pos in range(lo, hi + 1):
                        for other in index.get((length, i, text[pos : pos + size]), ()):
                            found.setdefault(other.rid, other)
            return found.values()

        def verify(a: Record, b: Record) -> bool:
            return edit_distance(texts[a.rid], texts[b.rid]) <= k

        return _collect(left_records, candidates_for, verify, asymmetric)

    def __repr__(self) -> str:
        return f"PassJoin(threshold={self.simfeature.threshold!r})"

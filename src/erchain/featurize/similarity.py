"""Pairwise similarity features.

A ``SimilarityFeature`` projects each record onto its context attributes,
tokenizes the projection with a replaceable tokenizer, and scores pairs
with a named measure. Token measures are similarities (higher is closer);
``EditDistance`` is a distance on the raw projection (lower is closer).

All measure functions are pure and deterministic.
"""

import math
from collections.abc import Callable, Iterable
from enum import StrEnum

from erchain.errors import ConfigurationError
from erchain.featurize.tokenizers import Tokenizer, create_tokenizer
from erchain.models.records import Record

__all__ = [
    "SimilarityName",
    "SimilarityFeature",
    "TOKEN_MEASURES",
    "jaccard_similarity",
    "overlap_similarity",
    "dice_similarity",
    "cosine_similarity",
    "edit_distance",
]


class SimilarityName(StrEnum):
    """Names of the supported similarity measures."""

    JACCARD = "Jaccard"
    OVERLAP = "Overlap"
    DICE = "Dice"
    COSINE = "Cosine"
    EDIT_DISTANCE = "EditDistance"


def jaccard_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Calculate Jaccard similarity between two token sets.

    Parameters
    ----------
    set_a : set[str]
        First set.
    set_b : set[str]
        Second set.

    Returns
    -------
    float
        |A ∩ B| / |A ∪ B| in [0, 1]; 0.0 when either set is empty.
    """
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def overlap_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Return the number of shared tokens as a float."""
    return float(len(set_a & set_b))


def dice_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Calculate Dice coefficient 2|A ∩ B| / (|A| + |B|)."""
    if not set_a or not set_b:
        return 0.0
    return 2.0 * len(set_a & set_b) / (len(set_a) + len(set_b))


def cosine_similarity(set_a: set[str], set_b: set[str]) -> float:
    """Calculate set cosine |A ∩ B| / sqrt(|A| * |B|)."""
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / math.sqrt(len(set_a) * len(set_b))


def edit_distance(left: str, right: str) -> int:
    """Compute the Levenshtein distance between two strings.

    Parameters
    ----------
    left : str
        First string.
    right : str
        Second string.

    Returns
    -------
    int
        Minimum number of single-character insertions, deletions and
        substitutions turning *left* into *right*.
    """
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    prev = list(range(len(right) + 1))
    for i, c1 in enumerate(left, start=1):
        curr = [i]
        for j, c2 in enumerate(right, start=1):
            cost = 0 if c1 == c2 else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


# name → set-based measure
TOKEN_MEASURES: dict[str, Callable[[set[str], set[str]], float]] = {
    SimilarityName.JACCARD: jaccard_similarity,
    SimilarityName.OVERLAP: overlap_similarity,
    SimilarityName.DICE: dice_similarity,
    SimilarityName.COSINE: cosine_similarity,
}


def _check_similarity(name: str) -> SimilarityName:
    try:
        return SimilarityName(name)
    except ValueError:
        valid = ", ".join(s.value for s in SimilarityName)
        raise ConfigurationError(
            f"Unknown similarity: {name!r}. Valid similarities: {valid}"
        ) from None


class SimilarityFeature:
    """Configurable pairwise similarity over projected record attributes.

    Attributes
    ----------
    similarity : SimilarityName
        Active measure.
    threshold : float
        Acceptance threshold. Token measures accept ``score >= threshold``;
        ``EditDistance`` accepts ``score <= threshold``.
    tokenizer : Tokenizer
        Replaceable tokenizer used by token measures.
    attributes : list[str] | None
        Attributes to project; None means all fields.
    """

    def __init__(
        self,
        similarity: str = SimilarityName.JACCARD,
        threshold: float = 0.5,
        tokenizer: Tokenizer | str = "WhiteSpace",
        attributes: Iterable[str] | None = None,
    ) -> None:
        self.similarity = _check_similarity(similarity)
        self.threshold = threshold
        self.tokenizer = create_tokenizer(tokenizer) if isinstance(tokenizer, str) else tokenizer
        self.attributes = list(attributes) if attributes else None

    @property
    def name(self) -> str:
        """Identifier of the active measure (e.g. ``"Jaccard"``)."""
        return self.similarity.value

    @property
    def is_distance(self) -> bool:
        """True when lower scores mean closer records."""
        return self.similarity is SimilarityName.EDIT_DISTANCE

    def set_similarity(self, name: str) -> None:
        """Switch the active measure, keeping tokenizer and threshold.

        Raises
        ------
        ConfigurationError
            If *name* is not a known measure.
        """
        self.similarity = _check_similarity(name)

    def update_context(self, context: Iterable[str]) -> None:
        """Use *context* as the projected attributes."""
        self.attributes = list(context) or None

    def text(self, record: Record) -> str:
        """Return the casefolded projection of *record*."""
        return record.project(self.attributes).casefold()

    def tokens(self, record: Record) -> set[str]:
        """Return the token set of *record* under the current tokenizer."""
        return set(self.tokenizer.tokenize(record.project(self.attributes)))

    def score(self, left: Record, right: Record) -> float:
        """Score a pair under the active measure."""
        if self.is_distance:
            return float(edit_distance(self.text(left), self.text(right)))
        measure = TOKEN_MEASURES[self.similarity]
        return measure(self.tokens(left), self.tokens(right))

    def matches(self, left: Record, right: Record) -> bool:
        """Return True when the pair passes the threshold."""
        value = self.score(left, right)
        if self.is_distance:
            return value <= self.threshold
        return value >= self.threshold

    def __repr__(self) -> str:
        return (
            f"SimilarityFeature(similarity={self.name!r}, threshold={self.threshold!r}, "
            f"tokenizer={self.tokenizer!r}, attributes={self.attributes!r})"
        )

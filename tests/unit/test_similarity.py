"""Tests for similarity measures and the similarity feature."""

import math

import pytest

from erchain.errors import ConfigurationError
from erchain.featurize import (
    SimilarityFeature,
    SimilarityName,
    cosine_similarity,
    dice_similarity,
    edit_distance,
    jaccard_similarity,
    overlap_similarity,
)

# ---------------------------------------------------------------------------
# Measures
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ({"x", "y"}, {"x", "y"}, 1.0),
        ({"x", "y"}, {"y", "z"}, 1 / 3),
        ({"x"}, {"y"}, 0.0),
        (set(), {"y"}, 0.0),
        (set(), set(), 0.0),
    ],
)
def test_jaccard_similarity(a: set, b: set, expected: float) -> None:
    """Test Jaccard on identical, overlapping, disjoint and empty sets."""
    assert jaccard_similarity(a, b) == pytest.approx(expected)


@pytest.mark.unit
def test_set_measures_on_overlap() -> None:
    """Test overlap, Dice and cosine on a shared-token example."""
    a, b = {"ada", "lovelace", "countess"}, {"ada", "lovelace"}

    assert overlap_similarity(a, b) == 2.0
    assert dice_similarity(a, b) == pytest.approx(4 / 5)
    assert cosine_similarity(a, b) == pytest.approx(2 / math.sqrt(6))
    assert dice_similarity(set(), b) == 0.0
    assert cosine_similarity(a, set()) == 0.0


@pytest.mark.unit
@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("", "", 0),
        ("abc", "", 3),
        ("", "ab", 2),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("same", "same", 0),
    ],
)
def test_edit_distance(left: str, right: str, expected: int) -> None:
    """Test Levenshtein distance on classic examples."""
    assert edit_distance(left, right) == expected
    assert edit_distance(right, left) == expected


# ---------------------------------------------------------------------------
# SimilarityFeature
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_feature_token_measure_threshold_inclusive(make_record) -> None:
    """Test token measures accept scores equal to the threshold."""
    feature = SimilarityFeature(similarity="Jaccard", threshold=0.5, attributes=["name"])
    left = make_record("a", name="ada lovelace")
    right = make_record("b", name="ada byron")

    assert feature.score(left, right) == pytest.approx(1 / 3)
    assert not feature.matches(left, right)

    feature.threshold = 1 / 3
    assert feature.matches(left, right)


@pytest.mark.unit
def test_feature_edit_distance_is_a_distance(make_record) -> None:
    """Test EditDistance accepts scores at or below the threshold."""
    feature = SimilarityFeature(similarity="EditDistance", threshold=1, attributes=["name"])
    left = make_record("a", name="Smith")
    right = make_record("b", name="smyth")

    assert feature.is_distance
    assert feature.score(left, right) == 1.0
    assert feature.matches(left, right)
    assert not feature.matches(left, make_record("c", name="Smithers"))


@pytest.mark.unit
def test_feature_set_similarity_keeps_tokenizer_and_threshold() -> None:
    """Test switching the measure keeps the other settings."""
    feature = SimilarityFeature(threshold=0.7, tokenizer="WhiteSpaceAndPunc")
    tokenizer = feature.tokenizer

    feature.set_similarity(SimilarityName.DICE)

    assert feature.name == "Dice"
    assert feature.threshold == 0.7
    assert feature.tokenizer is tokenizer


@pytest.mark.unit
def test_feature_rejects_unknown_similarity() -> None:
    """Test unknown measure names raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match="Unknown similarity"):
        SimilarityFeature(similarity="Hamming")

    feature = SimilarityFeature()
    with pytest.raises(ConfigurationError):
        feature.set_similarity("jaccard")
    assert feature.name == "Jaccard"


@pytest.mark.unit
def test_feature_update_context_changes_projection(make_record) -> None:
    """Test context selects which attributes are tokenized."""
    feature = SimilarityFeature(attributes=["name"])
    record = make_record("a", name="Ada", city="London")

    assert feature.tokens(record) == {"ada"}

    feature.update_context(["city"])
    assert feature.tokens(record) == {"london"}

    feature.update_context([])
    assert feature.tokens(record) == {"ada", "london"}


@pytest.mark.unit
def test_feature_tokens_follow_replaced_tokenizer(make_record) -> None:
    """Test replacing the tokenizer changes token sets."""
    from erchain.featurize import create_tokenizer

    feature = SimilarityFeature(attributes=["name"])
    record = make_record("a", name="Lovelace,Ada")

    assert feature.tokens(record) == {"lovelace,ada"}

    feature.tokenizer = create_tokenizer("WhiteSpaceAndPunc")
    assert feature.tokens(record) == {"lovelace", "ada"}

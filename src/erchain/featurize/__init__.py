"""Tokenizers and similarity features used by joins and matchers."""

from erchain.featurize.similarity import (
    TOKEN_MEASURES,
    SimilarityFeature,
    SimilarityName,
    cosine_similarity,
    dice_similarity,
    edit_distance,
    jaccard_similarity,
    overlap_similarity,
)
from erchain.featurize.tokenizers import (
    TOKENIZER_REGISTRY,
    Tokenizer,
    TokenizerName,
    WhiteSpacePunctuationTokenizer,
    WhiteSpaceTokenizer,
    create_tokenizer,
)

__all__ = [
    # Tokenizers
    "Tokenizer",
    "TokenizerName",
    "WhiteSpaceTokenizer",
    "WhiteSpacePunctuationTokenizer",
    "TOKENIZER_REGISTRY",
    "create_tokenizer",
    # Similarity
    "SimilarityName",
    "SimilarityFeature",
    "TOKEN_MEASURES",
    "jaccard_similarity",
    "overlap_similarity",
    "dice_similarity",
    "cosine_similarity",
    "edit_distance",
]

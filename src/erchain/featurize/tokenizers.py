"""Named tokenization strategies.

The pipeline only selects tokenizers by name; the closed set of names is
``TokenizerName``. Tokenizers are pure: no state beyond their class.
"""

import re
import string
from enum import StrEnum
from typing import Protocol, runtime_checkable

from erchain.errors import ConfigurationError

__all__ = [
    "Tokenizer",
    "TokenizerName",
    "WhiteSpaceTokenizer",
    "WhiteSpacePunctuationTokenizer",
    "TOKENIZER_REGISTRY",
    "create_tokenizer",
]

_PUNCTUATION_SPLIT = re.compile(rf"[\s{re.escape(string.punctuation)}]+")


class TokenizerName(StrEnum):
    """Tokenizer names accepted by ``change_tokenization``."""

    WHITESPACE = "WhiteSpace"
    WHITESPACE_AND_PUNC = "WhiteSpaceAndPunc"


@runtime_checkable
class Tokenizer(Protocol):
    """Structural protocol for tokenizers.

    Attributes
    ----------
    name : str
        Registry name of the strategy.
    """

    name: str

    def tokenize(self, text: str) -> list[str]:
        """Split *text* into tokens."""
        ...


class WhiteSpaceTokenizer:
    """Casefold, then split on runs of whitespace."""

    name: str = TokenizerName.WHITESPACE

    def tokenize(self, text: str) -> list[str]:
        """Return whitespace-separated tokens of *text*."""
        return text.casefold().split()

    def __repr__(self) -> str:
        return "WhiteSpaceTokenizer()"


class WhiteSpacePunctuationTokenizer:
    """Casefold, then split on whitespace and ASCII punctuation."""

    name: str = TokenizerName.WHITESPACE_AND_PUNC

    def tokenize(self, text: str) -> list[str]:
        """Return tokens of *text* with punctuation treated as a separator."""
        return [t for t in _PUNCTUATION_SPLIT.split(text.casefold()) if t]

    def __repr__(self) -> str:
        return "WhiteSpacePunctuationTokenizer()"


TOKENIZER_REGISTRY: dict[str, type] = {
    TokenizerName.WHITESPACE: WhiteSpaceTokenizer,
    TokenizerName.WHITESPACE_AND_PUNC: WhiteSpacePunctuationTokenizer,
}


def create_tokenizer(name: str) -> Tokenizer:
    """Instantiate the tokenizer registered under *name*.

    Parameters
    ----------
    name : str
        One of the ``TokenizerName`` values.

    Returns
    -------
    Tokenizer
        Fresh tokenizer instance.

    Raises
    ------
    ConfigurationError
        If *name* is not a known tokenizer.
    """
    cls = TOKENIZER_REGISTRY.get(name)
    if cls is None:
        valid = ", ".join(sorted(TOKENIZER_REGISTRY))
        raise ConfigurationError(f"Invalid tokenizer: {name!r}. Valid tokenizers: {valid}")
    return cls()  # type: ignore[no-any-return]

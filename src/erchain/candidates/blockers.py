"""Blocker plug-ins for candidate generation.

Each blocker maps records to block keys; records sharing a key land in the
same block. Blocking favours *recall*: precision is left to the matcher
chain that consumes the blocks.

Architecture
------------
* ``Blocker`` — structural protocol (one attribute + two methods).
* ``KeyedBlocker`` — shared inverted-index implementation; subclasses
  only decide which keys a record gets.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from erchain.featurize.tokenizers import Tokenizer, create_tokenizer
from erchain.models.collections import BlockedRecords
from erchain.models.records import Record

__all__ = [
    "Blocker",
    "KeyedBlocker",
    "ExactKeyBlocker",
    "TokenBlocker",
]

MIN_TOKEN_LEN = 3


# ============================================================================
# Protocol
# ============================================================================


@runtime_checkable
class Blocker(Protocol):
    """Structural protocol every blocker must satisfy.

    Attributes
    ----------
    name : str
        Stable identifier used in audit logs and pipeline descriptions.
    """

    name: str

    def block(self, records: Iterable[Record]) -> BlockedRecords:
        """Partition *records* into blocks of likely matches."""
        ...

    def update_context(self, context: list[str]) -> None:
        """Receive the attributes the pipeline currently works on."""
        ...


# ============================================================================
# Shared implementation
# ============================================================================


class KeyedBlocker:
    """Group records by the keys returned from ``block_keys``.

    Attributes
    ----------
    attributes : list[str] | None
        Attributes to project before keying; None means all fields.
    max_block_size : int | None
        Blocks larger than this are dropped; None keeps everything.
    """

    name: str = "keyed"

    def __init__(
        self,
        attributes: Iterable[str] | None = None,
        max_block_size: int | None = None,
    ) -> None:
        self.attributes = list(attributes) if attributes else None
        self.max_block_size = max_block_size

    def block_keys(self, record: Record) -> Iterable[str]:
        """Yield zero or more blocking keys for *record*."""
        raise NotImplementedError

    def update_context(self, context: list[str]) -> None:
        """Use *context* as the projected attributes."""
        self.attributes = list(context) or None

    def block(self, records: Iterable[Record]) -> BlockedRecords:
        """Build an inverted index key → records and emit one block per key.

        Blocks are ordered by key; records without keys are left out.
        """
        index: dict[str, dict[str, Record]] = defaultdict(dict)
        for record in records:
            for key in self.block_keys(record):
                index[key].setdefault(record.rid, record)

        blocks = []
        for key in sorted(index):
            members = index[key]
            if self.max_block_size is not None and len(members) > self.max_block_size:
                continue
            blocks.append(frozenset(members.values()))
        return BlockedRecords(blocks=tuple(blocks))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(attributes={self.attributes!r})"


# ============================================================================
# Concrete blockers
# ============================================================================


class ExactKeyBlocker(KeyedBlocker):
    """Block by the casefolded projection of the context attributes.

    Every keyed record lands in exactly one block, so the output is a
    partition (singleton blocks included).
    """

    name: str = "exact_key"

    def block_keys(self, record: Record) -> Iterable[str]:
        """Yield the normalised projection if it is non-empty."""
        key = " ".join(record.project(self.attributes).casefold().split())
        if key:
            yield key


class TokenBlocker(KeyedBlocker):
    """Block by every sufficiently long token of the projection.

    A record appears in one block per distinct token, so blocks overlap.
    """

    name: str = "token"

    def __init__(
        self,
        tokenizer: Tokenizer | str = "WhiteSpace",
        min_token_len: int = MIN_TOKEN_LEN,
        attributes: Iterable[str] | None = None,
        max_block_size: int | None = None,
    ) -> None:
        super().__init__(attributes=attributes, max_block_size=max_block_size)
        self.tokenizer = create_tokenizer(tokenizer) if isinstance(tokenizer, str) else tokenizer
        self.min_token_len = min_token_len

    def block_keys(self, record: Record) -> Iterable[str]:
        """Yield each distinct token of at least ``min_token_len`` chars."""
        tokens = self.tokenizer.tokenize(record.project(self.attributes))
        yield from sorted({t for t in tokens if len(t) >= self.min_token_len})

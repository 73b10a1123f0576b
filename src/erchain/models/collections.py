"""Collections threaded through the pipeline.

Generation produces either ``BlockedRecords`` (blocking) or
``CandidatePairs`` (similarity join). Every matcher returns
``CandidatePairs``.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from erchain.models.records import Block, RecordPair, pair_id

__all__ = ["BlockedRecords", "CandidatePairs", "GenerationOutput"]


@dataclass(frozen=True)
class BlockedRecords:
    """Output of a blocker: groups of mutually comparable records.

    Attributes
    ----------
    blocks : tuple[Block, ...]
        Blocks in deterministic order.
    """

    blocks: tuple[Block, ...] = ()

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    @classmethod
    def from_blocks(cls, blocks: Iterable[Iterable]) -> "BlockedRecords":
        """Build from any iterable of record iterables."""
        return cls(blocks=tuple(frozenset(b) for b in blocks))


@dataclass(frozen=True)
class CandidatePairs:
    """Working pair collection passed along the matcher chain.

    Attributes
    ----------
    pairs : tuple[RecordPair, ...]
        Record pairs in deterministic order.
    """

    pairs: tuple[RecordPair, ...] = ()

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[RecordPair]:
        return iter(self.pairs)

    def pair_ids(self) -> set[str]:
        """Return the set of ``"rid_a|rid_b"`` identifiers."""
        return {pair_id(p) for p in self.pairs}

    def to_set(self) -> set[RecordPair]:
        """Return the pairs as a set."""
        return set(self.pairs)

    @classmethod
    def empty(cls) -> "CandidatePairs":
        """Return an empty collection."""
        return cls()

    @classmethod
    def from_pairs(cls, pairs: Iterable[RecordPair]) -> "CandidatePairs":
        """Build from *pairs*, dropping repeated ordered pairs.

        The first occurrence of each pair wins, so input order is kept.
        """
        unique: dict[str, RecordPair] = {}
        for pair in pairs:
            unique.setdefault(pair_id(pair), pair)
        return cls(pairs=tuple(unique.values()))


# What the first matcher in a chain may receive.
GenerationOutput = BlockedRecords | CandidatePairs

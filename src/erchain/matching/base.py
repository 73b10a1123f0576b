"""Matcher protocol and shared base class.

A matcher refines the output of the previous stage. The first matcher in
a chain may receive ``BlockedRecords`` (blocking) or ``CandidatePairs``
(similarity join); every later matcher receives ``CandidatePairs``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from itertools import combinations
from typing import Protocol, runtime_checkable

from erchain.errors import ConfigurationError
from erchain.models.collections import BlockedRecords, CandidatePairs, GenerationOutput
from erchain.models.records import RecordPair

__all__ = [
    "MatchCallback",
    "Matcher",
    "BaseMatcher",
    "expand_pairs",
]

# Handler for pairs an asynchronous matcher discovers after returning.
MatchCallback = Callable[[CandidatePairs], None]


@runtime_checkable
class Matcher(Protocol):
    """Structural protocol every matcher must satisfy.

    Attributes
    ----------
    name : str
        Stable identifier used in audit logs and pipeline descriptions.
    asynchronous : bool
        True when the matcher keeps working after ``match_pairs`` returns.
    on_receive_new_matches : MatchCallback | None
        Late-result handler; only settable on asynchronous matchers.
    """

    name: str
    asynchronous: bool
    on_receive_new_matches: MatchCallback | None

    def match_pairs(self, candidates: GenerationOutput) -> CandidatePairs:
        """Return the refined pairs of *candidates*."""
        ...

    def update_context(self, context: list[str]) -> None:
        """Receive the attributes the pipeline currently works on."""
        ...


def _block_pairs(blocked: BlockedRecords) -> Iterator[RecordPair]:
    for block in blocked:
        members = sorted(block, key=lambda r: r.rid)
        yield from combinations(members, 2)


def expand_pairs(candidates: GenerationOutput) -> CandidatePairs:
    """Turn generation output into pairs.

    Blocks expand to every intra-block pair (smaller rid first, repeated
    pairs across overlapping blocks dropped); pairs pass through.

    Raises
    ------
    TypeError
        If *candidates* is neither ``BlockedRecords`` nor ``CandidatePairs``.
    """
    if isinstance(candidates, CandidatePairs):
        return candidates
    if isinstance(candidates, BlockedRecords):
        return CandidatePairs.from_pairs(_block_pairs(candidates))
    raise TypeError(f"Unsupported matcher input: {type(candidates).__name__}")


class BaseMatcher:
    """Common state for matchers: context and the late-result slot."""

    name: str = "base"
    asynchronous: bool = False

    def __init__(self) -> None:
        self.context: list[str] = []
        self._on_receive_new_matches: MatchCallback | None = None

    @property
    def on_receive_new_matches(self) -> MatchCallback | None:
        """Handler invoked with pairs discovered after ``match_pairs`` returned."""
        return self._on_receive_new_matches

    @on_receive_new_matches.setter
    def on_receive_new_matches(self, callback: MatchCallback | None) -> None:
        if callback is not None and not self.asynchronous:
            raise ConfigurationError(
                f"{self.name} is synchronous; it cannot deliver late matches"
            )
        self._on_receive_new_matches = callback

    def update_context(self, context: list[str]) -> None:
        """Store *context*."""
        self.context = list(context)

    def match_pairs(self, candidates: GenerationOutput) -> CandidatePairs:
        """Return the refined pairs of *candidates*."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

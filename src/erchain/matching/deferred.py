"""Asynchronous matcher delivering results after it returns.

``DeferredMatcher.match_pairs`` hands the verification of every candidate
pair to an executor and returns an empty collection immediately. Accepted
pairs reach ``on_receive_new_matches`` in batches as they are found.

The matcher owns the lifetime of its background work: the pipeline never
waits on it. Callers that need the full result call ``wait()``, which also
re-raises failures from the background work.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures

from erchain.featurize.similarity import SimilarityFeature, SimilarityName
from erchain.featurize.tokenizers import Tokenizer
from erchain.matching.base import BaseMatcher, expand_pairs
from erchain.models.collections import CandidatePairs, GenerationOutput
from erchain.models.records import RecordPair

__all__ = ["DeferredMatcher"]

DEFAULT_BATCH_SIZE = 100


class DeferredMatcher(BaseMatcher):
    """Similarity matcher whose decisions arrive through a callback.

    Attributes
    ----------
    simfeature : SimilarityFeature
        Feature deciding which pairs are delivered.
    batch_size : int
        Maximum number of pairs per callback invocation.
    accepted : int
        Pairs accepted by all work collected so far through ``wait``.
    """

    name: str = "deferred_matcher"
    asynchronous: bool = True

    def __init__(
        self,
        similarity: str = SimilarityName.JACCARD,
        threshold: float = 0.5,
        tokenizer: Tokenizer | str = "WhiteSpace",
        attributes: Iterable[str] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        executor: Executor | None = None,
    ) -> None:
        super().__init__()
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.simfeature = SimilarityFeature(
            similarity=similarity,
            threshold=threshold,
            tokenizer=tokenizer,
            attributes=attributes,
        )
        self.batch_size = batch_size
        self._executor = executor
        self._owns_executor = executor is None
        self.accepted = 0
        self._pending: list[Future[int]] = []
        self._lock = threading.Lock()

    def update_context(self, context: list[str]) -> None:
        """Store *context* and forward it to the similarity feature."""
        super().update_context(context)
        self.simfeature.update_context(context)

    def match_pairs(self, candidates: GenerationOutput) -> CandidatePairs:
        """Schedule verification of *candidates* and return no pairs yet."""
        pairs = expand_pairs(candidates)
        future = self._get_executor().submit(self._verify, pairs)
        with self._lock:
            self._pending.append(future)
        return CandidatePairs.empty()

    def wait(self, timeout: float | None = None) -> int:
        """Block until scheduled work finishes.

        Parameters
        ----------
        timeout : float | None, optional
            Seconds to wait; None waits indefinitely.

        Returns
        -------
        int
            Number of pairs accepted by the work finished in this call.

        Raises
        ------
        TimeoutError
            If work is still running after *timeout*.
        Exception
            The first failure raised by the background work, after the
            counts of the batches that succeeded were added to ``accepted``.
        """
        with self._lock:
            pending = list(self._pending)

        done, not_done = wait_futures(pending, timeout=timeout)

        with self._lock:
            self._pending = [f for f in self._pending if f not in done]

        accepted = 0
        errors: list[BaseException] = []
        for future in done:
            exc = future.exception()
            if exc is not None:
                errors.append(exc)
            else:
                accepted += future.result()
        self.accepted += accepted
        if errors:
            raise errors[0]
        if not_done:
            raise TimeoutError(f"{len(not_done)} deferred batch(es) still running")
        return accepted

    def shutdown(self) -> None:
        """Release the executor if this matcher created it."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="erchain-deferred",
            )
        return self._executor

    def _verify(self, pairs: CandidatePairs) -> int:
        accepted = 0
        batch: list[RecordPair] = []
        for pair in pairs:
            if not self.simfeature.matches(*pair):
                continue
            batch.append(pair)
            if len(batch) >= self.batch_size:
                accepted += self._deliver(batch)
                batch = []
        if batch:
            accepted += self._deliver(batch)
        return accepted

    def _deliver(self, batch: list[RecordPair]) -> int:
        # Read the slot at delivery time so late registration still applies.
        callback = self.on_receive_new_matches
        if callback is not None:
            callback(CandidatePairs(pairs=tuple(batch)))
        return len(batch)

    def __repr__(self) -> str:
        return f"DeferredMatcher(simfeature={self.simfeature!r}, batch_size={self.batch_size})"

"""Blocker/join + matcher-chain pipeline.

This module wires one candidate generator and an ordered chain of matchers
into a single reconfigurable pipeline.

Execution Flow:
    Phase 1: Generation. A blocker partitions the records into blocks, or
             a similarity self-join produces candidate pairs directly.
    Phase 2: Matching. The matcher chain is folded left to right; the first
             matcher receives the generation output, every later matcher
             the pairs returned by its predecessor.

Stages run sequentially and are never retried: the first failure aborts
the run. An asynchronous last matcher may keep delivering pairs through
its callback after ``run_pipeline`` has returned; the pipeline neither
waits for nor cancels that work.
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from erchain.audit.logger import AuditLogger
from erchain.candidates.blockers import Blocker
from erchain.candidates.joins import JoinVariant, SimilarityJoin
from erchain.engine.config import (
    BlockingGeneration,
    Generation,
    JoinGeneration,
    PipelineConfig,
    RunStats,
)
from erchain.errors import ConfigurationError, StageFailure
from erchain.featurize.similarity import SimilarityName
from erchain.featurize.tokenizers import create_tokenizer
from erchain.matching.base import MatchCallback, Matcher
from erchain.models.collections import CandidatePairs, GenerationOutput
from erchain.models.records import Record

__all__ = ["EntityResolutionPipeline", "INPUT_STAGE", "OUTPUT_STAGE"]

GENERATION_STAGE = "generation"
MATCHING_STAGE = "matching"

# Endpoints rendered by ``describe``.
INPUT_STAGE = "records"
OUTPUT_STAGE = "pairs"


def _identify(component: Any) -> str:
    return getattr(component, "name", None) or type(component).__name__


class EntityResolutionPipeline:
    """One candidate generator followed by an ordered matcher chain.

    Build with ``from_blocker`` or ``from_join``; the generation strategy
    is fixed at construction and is never both or neither.

    Attributes
    ----------
    table_name : str
        Label of the record collection, used in audit events.
    config : PipelineConfig
        Generation strategy, matcher chain, shared context and callback.
    last_run : RunStats | None
        Timings and counts of the most recent successful run.
    """

    def __init__(
        self,
        context: Iterable[str] | None,
        table_name: str,
        generation: Generation,
        matchers: Iterable[Matcher],
        *,
        logger: AuditLogger | None = None,
    ) -> None:
        """Initialize pipeline.

        Parameters
        ----------
        context : Iterable[str] | None
            Initial shared context (attribute names). Stored, not broadcast.
        table_name : str
            Label of the record collection.
        generation : Generation
            ``BlockingGeneration`` or ``JoinGeneration``.
        matchers : Iterable[Matcher]
            Matcher chain; may be empty but not None. Copied.
        logger : AuditLogger | None, optional
            Sink for timings, counts and diagnostics.

        Raises
        ------
        TypeError
            If *generation* is not a generation strategy or *matchers* is None.
        """
        if not isinstance(generation, BlockingGeneration | JoinGeneration):
            raise TypeError(
                f"generation must be BlockingGeneration or JoinGeneration, "
                f"got {type(generation).__name__}"
            )
        if matchers is None:
            raise TypeError("matchers must be a sequence, got None")

        self.table_name = table_name
        self.config = PipelineConfig(
            generation=generation,
            matchers=list(matchers),
            shared_context=list(context or []),
        )
        self.last_run: RunStats | None = None
        self._logger = logger

    @classmethod
    def from_blocker(
        cls,
        context: Iterable[str] | None,
        table_name: str,
        blocker: Blocker,
        matchers: Iterable[Matcher],
        *,
        logger: AuditLogger | None = None,
    ) -> EntityResolutionPipeline:
        """Create a pipeline that generates candidates by blocking."""
        return cls(context, table_name, BlockingGeneration(blocker), matchers, logger=logger)

    @classmethod
    def from_join(
        cls,
        context: Iterable[str] | None,
        table_name: str,
        join: SimilarityJoin,
        matchers: Iterable[Matcher],
        *,
        logger: AuditLogger | None = None,
    ) -> EntityResolutionPipeline:
        """Create a pipeline that generates candidates by similarity self-join.

        The join already makes a first matching decision, so *matchers* is
        commonly a single ``AllMatcher`` or an asynchronous matcher.
        """
        return cls(context, table_name, JoinGeneration(join), matchers, logger=logger)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def blocker(self) -> Blocker | None:
        """Configured blocker, or None for a join pipeline."""
        generation = self.config.generation
        return generation.blocker if isinstance(generation, BlockingGeneration) else None

    @property
    def join(self) -> SimilarityJoin | None:
        """Configured similarity join, or None for a blocking pipeline."""
        generation = self.config.generation
        return generation.join if isinstance(generation, JoinGeneration) else None

    @property
    def generator(self) -> Blocker | SimilarityJoin:
        """Whichever of blocker or join is configured."""
        generation = self.config.generation
        if isinstance(generation, BlockingGeneration):
            return generation.blocker
        return generation.join

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        """Snapshot of the matcher chain in execution order."""
        return tuple(self.config.matchers)

    @property
    def shared_context(self) -> list[str]:
        """Copy of the context last broadcast (or given at construction)."""
        return list(self.config.shared_context)

    @property
    def async_callback(self) -> MatchCallback | None:
        """Callback wired to the last matcher, if any."""
        return self.config.async_callback

    def describe(self) -> list[str]:
        """Return the stage names from input records to output pairs.

        Returns
        -------
        list[str]
            ``["records", <generator>, *<matchers>, "pairs"]``; a join is
            rendered as ``join(<similarity>)``.
        """
        join = self.join
        if join is not None:
            generator = f"join({join.simfeature.name})"
        else:
            generator = _identify(self.blocker)

        return [
            INPUT_STAGE,
            generator,
            *(_identify(m) for m in self.config.matchers),
            OUTPUT_STAGE,
        ]

    def format_pipeline(self) -> str:
        """Render ``describe()`` as an arrow chain."""
        return " --> ".join(self.describe())

    def __repr__(self) -> str:
        return f"EntityResolutionPipeline({self.table_name!r}: {self.format_pipeline()})"

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run_pipeline(self, records: Iterable[Record]) -> CandidatePairs:
        """Generate candidates and fold the matcher chain over them.

        Parameters
        ----------
        records : Iterable[Record]
            Input collection; a one-shot iterator is materialised once.

        Returns
        -------
        CandidatePairs
            Output of the last matcher, or the join output unchanged when
            the chain is empty.

        Raises
        ------
        ConfigurationError
            If generation is by blocking and the chain is empty.
        StageFailure
            If the generator or any matcher raises; the original exception
            is chained as ``__cause__``.
        """
        generation = self.config.generation
        matchers = list(self.config.matchers)

        if isinstance(generation, BlockingGeneration) and not matchers:
            raise ConfigurationError(
                "Blocking pipeline has no matchers: blocks are not pairs. "
                "Add a matcher (e.g. AllMatcher) before running."
            )

        if isinstance(records, Iterator):
            records = list(records)

        stats = RunStats()
        output = self._generate(records, stats)
        result = self._match(output, matchers, stats)

        stats.result_count = len(result)
        self.last_run = stats
        return result

    def _generate(self, records: Iterable[Record], stats: RunStats) -> GenerationOutput:
        """Phase 1: exactly one blocker or join call."""
        generation = self.config.generation
        expected = len(records) if hasattr(records, "__len__") else None

        if self._logger:
            self._logger.stage_started(GENERATION_STAGE, expected_records=expected)

        start = time.perf_counter()
        output: GenerationOutput
        if isinstance(generation, BlockingGeneration):
            blocker = generation.blocker
            output = self._invoke(_identify(blocker), None, blocker.block, records)
            counters = {"blocks": len(output)}
        else:
            join = generation.join
            output = self._invoke(_identify(join), None, join.join, records, records, False)
            counters = {"candidate_pairs": len(output)}
        duration = time.perf_counter() - start

        stats.generation_seconds = duration
        stats.candidate_count = len(output)

        if self._logger:
            self._logger.stage_finished(
                stage=GENERATION_STAGE,
                duration_seconds=duration,
                counters=counters,
            )

        return output

    def _match(
        self,
        output: GenerationOutput,
        matchers: list[Matcher],
        stats: RunStats,
    ) -> CandidatePairs:
        """Phase 2: strict left-to-right fold over the matcher chain."""
        if self._logger:
            self._logger.stage_started(MATCHING_STAGE)

        start = time.perf_counter()
        current: GenerationOutput = output
        for index, matcher in enumerate(matchers):
            name = _identify(matcher)
            matcher_start = time.perf_counter()
            current = self._invoke(name, index, matcher.match_pairs, current)
            stats.matcher_invocations += 1
            if self._logger:
                self._logger.matcher_finished(
                    index=index,
                    name=name,
                    pairs_out=len(current),
                    duration_seconds=time.perf_counter() - matcher_start,
                )
        duration = time.perf_counter() - start

        stats.matching_seconds = duration

        if self._logger:
            self._logger.stage_finished(
                stage=MATCHING_STAGE,
                duration_seconds=duration,
                counters={"matchers": len(matchers), "pairs_out": len(current)},
            )

        # Empty chains only reach here with join output (CandidatePairs).
        return current  # type: ignore[return-value]

    def _invoke(
        self,
        name: str,
        index: int | None,
        call: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Call one stage, converting any failure into ``StageFailure``."""
        try:
            return call(*args)
        except Exception as exc:
            if self._logger:
                self._logger.error(
                    exception_class=type(exc).__name__,
                    message=str(exc),
                    stage=name,
                    traceback=traceback.format_exc(),
                )
            position = "generator" if index is None else f"matcher {index}"
            raise StageFailure(
                f"{position} {name!r} failed: {type(exc).__name__}: {exc}",
                stage=name,
                index=index,
            ) from exc

    # ------------------------------------------------------------------
    # Reconfiguration
    # ------------------------------------------------------------------

    def add_matcher(self, matcher: Matcher) -> None:
        """Append *matcher* to the end of the chain."""
        self.config.matchers.append(matcher)

        if self._logger:
            self._logger.matcher_added(_identify(matcher), len(self.config.matchers) - 1)

    def update_context(self, new_context: Iterable[str]) -> None:
        """Broadcast *new_context* to the generator, then each matcher in order."""
        context = list(new_context)
        self.config.shared_context = context

        self.generator.update_context(context)
        for matcher in self.config.matchers:
            matcher.update_context(context)

        if self._logger:
            self._logger.context_updated(context, components=1 + len(self.config.matchers))

    def set_on_receive_new_matches(self, callback: MatchCallback) -> bool:
        """Wire *callback* to the last matcher if it is asynchronous.

        A synchronous (or missing) last matcher makes this a no-op that
        logs an ``async_unavailable`` warning; it never raises.

        Returns
        -------
        bool
            True if the callback was wired.
        """
        matchers = self.config.matchers
        last = matchers[-1] if matchers else None
        wired = last is not None and last.asynchronous

        if wired:
            last.on_receive_new_matches = callback  # type: ignore[union-attr]
            self.config.async_callback = callback

        if self._logger:
            self._logger.async_wiring(_identify(last) if last is not None else None, wired)
        return wired

    def change_similarity(self, name: str) -> None:
        """Switch the similarity measure of the configured join.

        Raises
        ------
        ConfigurationError
            For ``EditDistance``, for a blocking pipeline, for a
            length-partitioning join, or if the join rejects *name*.
        """
        if name == SimilarityName.EDIT_DISTANCE:
            raise ConfigurationError(
                "EditDistance cannot be set through change_similarity(); "
                "build the pipeline around an edit-distance join (PassJoin) instead"
            )

        join = self._require_join("change_similarity")
        if join.variant == JoinVariant.LENGTH_PARTITION:
            raise ConfigurationError(
                f"{_identify(join)} is a length-partitioning edit-distance join; "
                "use a token similarity join (BroadcastJoin) to change the similarity"
            )

        join.set_similarity_featurizer(name)

        if self._logger:
            self._logger.configuration_changed(similarity=name)

    def change_tokenization(self, name: str) -> None:
        """Replace the tokenizer of the join's similarity feature.

        Parameters
        ----------
        name : str
            ``"WhiteSpace"`` or ``"WhiteSpaceAndPunc"``.

        Raises
        ------
        ConfigurationError
            For any other name, or for a blocking pipeline.
        """
        tokenizer = create_tokenizer(name)
        join = self._require_join("change_tokenization")
        join.simfeature.tokenizer = tokenizer

        if self._logger:
            self._logger.configuration_changed(tokenizer=name)

    def _require_join(self, operation: str) -> SimilarityJoin:
        join = self.join
        if join is None:
            raise ConfigurationError(
                f"{operation}() requires a similarity join; "
                f"this pipeline generates candidates with {_identify(self.blocker)}"
            )
        return join

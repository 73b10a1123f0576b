"""Exception hierarchy for erchain.

Every error raised by the pipeline core is synchronous and surfaces to the
direct caller of the operation that triggered it.
"""

__all__ = [
    "PipelineError",
    "ConfigurationError",
    "StageFailure",
]


class PipelineError(Exception):
    """Base class for all erchain errors."""


class ConfigurationError(PipelineError):
    """Raised when a pipeline or component is configured inconsistently.

    Never retried. Examples: an unsupported similarity for the active join,
    an unknown tokenizer name, or a blocker-only pipeline with no matchers.
    """


class StageFailure(PipelineError):
    """Raised when the generator or a matcher fails during a run.

    The original exception is attached as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        index: int | None = None,
    ) -> None:
        """Initialize stage failure.

        Parameters
        ----------
        message : str
            Error message.
        stage : str
            Name of the failing stage (generator or matcher name).
        index : int | None, optional
            Position of the matcher in the chain, None for the generator.
        """
        super().__init__(message)
        self.stage = stage
        self.index = index

"""Build a pipeline from declarative settings."""

from erchain.audit.logger import AuditLogger
from erchain.engine.pipeline import EntityResolutionPipeline
from erchain.engine.settings import PipelineSettings
from erchain.factory import create_blocker, create_join, create_matchers

__all__ = ["build_pipeline"]


def build_pipeline(
    settings: PipelineSettings,
    logger: AuditLogger | None = None,
) -> EntityResolutionPipeline:
    """Instantiate components and assemble the pipeline they describe.

    Tokenizer and similarity overrides go through ``change_tokenization``
    and ``change_similarity`` so they obey the same rules as runtime
    reconfiguration. A non-empty context is broadcast last.

    Parameters
    ----------
    settings : PipelineSettings
        Validated settings.
    logger : AuditLogger | None, optional
        Audit logger handed to the pipeline.

    Returns
    -------
    EntityResolutionPipeline
        Ready-to-run pipeline.

    Raises
    ------
    ConfigurationError
        If a component type is unknown or an override is not allowed.
    """
    matchers = create_matchers(settings.matchers)

    if settings.blocker is not None:
        pipeline = EntityResolutionPipeline.from_blocker(
            settings.context,
            settings.table_name,
            create_blocker(settings.blocker),
            matchers,
            logger=logger,
        )
    else:
        pipeline = EntityResolutionPipeline.from_join(
            settings.context,
            settings.table_name,
            create_join(settings.join),
            matchers,
            logger=logger,
        )

    if settings.tokenizer:
        pipeline.change_tokenization(settings.tokenizer)
    if settings.similarity:
        pipeline.change_similarity(settings.similarity)
    if settings.context:
        pipeline.update_context(settings.context)

    return pipeline

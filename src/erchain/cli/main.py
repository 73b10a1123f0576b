"""Command-line interface for erchain.

Thin shell over the library: the pipeline itself has no CLI concerns.
"""

import importlib.metadata
import sys
import time
from pathlib import Path

import click

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("erchain")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development


@click.group()
@click.version_option(version=__version__, prog_name="erchain")
def cli() -> None:
    """Blocker/join + matcher-chain entity resolution.

    Use 'erchain COMMAND --help' for command-specific help.
    """


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    required=True,
    help="Pipeline settings JSON file",
)
def describe(config_path: str) -> None:
    """Print the stages of the pipeline described by a settings file.

    Examples
    --------
        erchain describe -c settings.json
    """
    from erchain.engine import build_pipeline, load_settings

    try:
        pipeline = build_pipeline(load_settings(config_path))
    except Exception as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(pipeline.format_pipeline())


@cli.command()
@click.argument("input_path", type=click.Path(exists=True))
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    required=True,
    help="Pipeline settings JSON file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    required=True,
    help="Output JSONL file for matched pairs",
)
@click.option(
    "--log",
    "log_path",
    type=click.Path(),
    default=None,
    help="Write audit events to this JSONL file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def resolve(
    input_path: str,
    config_path: str,
    output: str,
    log_path: str | None,
    verbose: bool,
) -> None:
    """Run the pipeline on the JSONL records in INPUT_PATH.

    Each input line is a JSON object with an "rid" key. Matched pairs are
    written to OUTPUT as {"pair_id", "rid_a", "rid_b"} lines.

    Examples
    --------
        erchain resolve people.jsonl -c settings.json -o pairs.jsonl
        erchain resolve people.jsonl -c settings.json -o pairs.jsonl --log events.jsonl
    """
    from erchain.api import resolve as resolve_pairs
    from erchain.audit import AuditLogger, generate_run_id
    from erchain.engine import load_settings

    logger = AuditLogger(generate_run_id(), Path(log_path)) if log_path else None
    start = time.perf_counter()

    try:
        settings = load_settings(config_path)
        if logger:
            logger.run_started(command=sys.argv, parameters=settings.to_dict())

        if verbose:
            click.echo(f"Input: {input_path}", err=True)
            click.echo(f"Settings: {config_path}", err=True)

        pairs = resolve_pairs(input_path, settings, output_path=output, logger=logger)

        if logger:
            logger.run_finished(status="success", duration_seconds=time.perf_counter() - start)

        click.secho(f"✓ Wrote {len(pairs)} matched pairs to {output}", fg="green")

    except Exception as e:
        if logger:
            logger.run_finished(status="failed", duration_seconds=time.perf_counter() - start)
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)

    finally:
        if logger:
            logger.close()


if __name__ == "__main__":
    cli()

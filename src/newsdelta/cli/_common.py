"""Common CLI utilities and the main app group."""

import json
import logging
from pathlib import Path

import click
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler

from newsdelta import __version__
from newsdelta.config import get_settings
from newsdelta.exceptions import ConfigurationError

console = Console(stderr=True)
_configured = False


def configure_logging(*, verbose: bool = False) -> None:
    """Configure logging with Rich handler. Call once at startup.

    Uses NEWSDELTA_LOG_LEVEL unless verbose is set.
    """
    global _configured
    if _configured:
        return

    level = logging.DEBUG if verbose else get_settings().log_level

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
            )
        ],
        force=True,
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _configured = True


def dump_model(model: BaseModel) -> str:
    """Serialise a result model as indented JSON, omitting unset optionals."""
    return json.dumps(model.model_dump(exclude_none=True), indent=2)


def write_output(content: str, output: Path | None) -> None:
    """Write content to a file, or to stdout when no file is given."""
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(content)
            if not content.endswith("\n"):
                f.write("\n")
    else:
        click.echo(content)


@click.group(help="Sitemap intelligence and delta engine for news crawling.")
@click.version_option(__version__, prog_name="newsdelta")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def app(verbose: bool) -> None:
    """
    Entry point for the newsdelta CLI.

    Provides commands for evaluating robots.txt, classifying sitemaps,
    hashing URLs and computing new-URL deltas.
    """
    try:
        configure_logging(verbose=verbose)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

"""Seen-hash state commands."""

from pathlib import Path

import click

from newsdelta.cli._common import app

STATE_HELP = "Seen-hash state file. Defaults to ~/.newsdelta/seen.json or NEWSDELTA_STATE_PATH."


@app.group()
def seen() -> None:
    """Manage the local seen-hash state.

    The state records dedup hashes of URLs already reported by
    `delta --commit`, so later runs only report new URLs.

    Examples:
        newsdelta seen stats           # Show state statistics
        newsdelta seen clear           # Forget every recorded hash
    """
    pass


@seen.command("stats")
@click.option(
    "--state",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help=STATE_HELP,
)
def seen_stats(state: Path | None) -> None:
    """Show seen-hash statistics."""
    from newsdelta.seen import SeenHashStore

    stats = SeenHashStore(state).stats()

    click.echo("Seen-hash State:")
    click.echo(f"  File: {stats['path']}")
    click.echo(f"  Entries: {stats['entries']}")
    click.echo(f"  Size: {stats['size_bytes']} bytes")
    if stats["oldest"]:
        click.echo(f"  Oldest: {stats['oldest']}")
        click.echo(f"  Newest: {stats['newest']}")


@seen.command("clear")
@click.option(
    "--state",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help=STATE_HELP,
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    default=False,
    help="Skip confirmation prompt.",
)
def seen_clear(state: Path | None, yes: bool) -> None:
    """Forget every recorded hash."""
    from newsdelta.seen import SeenHashStore

    if not yes:
        if not click.confirm("Are you sure you want to clear all seen hashes?"):
            click.echo("Aborted.")
            return

    cleared = SeenHashStore(state).clear()
    click.echo(f"Cleared {cleared} seen hashes")

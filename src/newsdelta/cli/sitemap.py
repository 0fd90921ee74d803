"""Sitemap classification, URL hashing and delta commands."""

from pathlib import Path

import click

from newsdelta.cli._common import app, dump_model, write_output


@app.command("analyze", help="Classify a sitemap document.")
@click.argument("sitemap_url")
@click.option(
    "--file",
    "xml_file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the sitemap from a local file instead of fetching it.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: json (full analysis) or text (summary).",
)
def analyze_cmd(sitemap_url: str, xml_file: Path | None, output_format: str) -> None:
    """Classify a sitemap as index/urlset and infer its refresh mode.

    Examples:
        newsdelta analyze https://example.com/sitemap.xml
        newsdelta analyze https://example.com/2025/07/22_1.xml --file shard.xml --format json
    """
    import asyncio

    from newsdelta.discovery.sitemap import analyze_sitemap
    from newsdelta.exceptions import NewsDeltaError
    from newsdelta.services.fetcher import SitemapFetcher

    async def fetch() -> str:
        async with SitemapFetcher() as fetcher:
            return await fetcher.fetch_xml_text(sitemap_url)

    try:
        raw_xml = xml_file.read_bytes() if xml_file else asyncio.run(fetch())
    except NewsDeltaError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    analysis = analyze_sitemap(sitemap_url, raw_xml)

    if output_format == "json":
        click.echo(dump_model(analysis))
        return

    click.echo(f"{analysis.url}")
    click.echo(f"  kind: {analysis.kind}")
    click.echo(f"  mode: {analysis.mode}")
    if analysis.stats:
        click.echo(
            f"  urls: {analysis.stats.url_count} "
            f"(lastmod days: {analysis.stats.lastmod_days}, has lastmod: {analysis.stats.has_lastmod})"
        )
    if analysis.children is not None:
        click.echo(f"  children: {len(analysis.children)}")
        for child in analysis.children:
            click.echo(f"    {child}")
    for reason in analysis.reasons:
        click.echo(f"  - {reason}")


@app.command("hash", help="Print the canonical form and dedup hash of a URL.")
@click.argument("url")
@click.option(
    "--bits",
    type=click.Choice(["64", "128"]),
    default="64",
    show_default=True,
    help="Hash width.",
)
def hash_cmd(url: str, bits: str) -> None:
    """Normalise a URL and print its truncated SHA-256 hash.

    Examples:
        newsdelta hash "https://example.com/a?utm_source=x#top"
        newsdelta hash https://example.com/a --bits 128
    """
    from newsdelta.exceptions import InvalidUrlError
    from newsdelta.utils import hash_url, normalise_url

    try:
        canonical = normalise_url(url)
        digest = hash_url(url, int(bits))  # type: ignore[arg-type]
    except InvalidUrlError as e:
        click.echo(f"Error: {e.message}: {url}", err=True)
        raise SystemExit(1)

    click.echo(f"{digest}  {canonical}")


@app.command("delta", help="Find new, crawlable URLs in a site's sitemaps.")
@click.argument("site_url")
@click.option(
    "--sitemap",
    "sitemaps",
    type=str,
    multiple=True,
    help="Sitemap URL to start from. Repeatable. Defaults to robots.txt Sitemap directives.",
)
@click.option(
    "--state",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Seen-hash state file. Defaults to ~/.newsdelta/seen.json or NEWSDELTA_STATE_PATH.",
)
@click.option(
    "--commit/--no-commit",
    default=False,
    help="Record new hashes in the state file after a successful run.",
)
@click.option(
    "--user-agent",
    type=str,
    default=None,
    help="Agent matched against robots.txt groups. Also reads NEWSDELTA_ROBOTS_USER_AGENT env.",
)
@click.option(
    "--hash-bits",
    type=click.Choice(["64", "128"]),
    default=None,
    help="Dedup hash width. Also reads NEWSDELTA_HASH_BITS env (default 128).",
)
@click.option(
    "--max-depth",
    type=click.IntRange(1, 10),
    default=None,
    help="Maximum sitemap index nesting. Also reads NEWSDELTA_MAX_DEPTH env (default 3).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Output file path. If omitted, prints to stdout.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: json (full report) or text (new URLs only).",
)
def delta_cmd(
    site_url: str,
    sitemaps: tuple[str, ...],
    state: Path | None,
    commit: bool,
    user_agent: str | None,
    hash_bits: str | None,
    max_depth: int | None,
    output: Path | None,
    output_format: str,
) -> None:
    """Compute which sitemap URLs are new since the last committed run.

    Examples:
        newsdelta delta https://example.com
        newsdelta delta https://example.com --sitemap https://example.com/news-sitemap.xml --commit
        newsdelta delta https://example.com --format json --output delta.json
    """
    import asyncio
    import sys

    from newsdelta.exceptions import NewsDeltaError
    from newsdelta.seen import SeenHashStore
    from newsdelta.services.fetcher import SitemapFetcher
    from newsdelta.services.pipeline import DeltaService

    async def run():
        store = SeenHashStore(state)
        async with SitemapFetcher() as fetcher:
            service = DeltaService(
                fetcher,
                user_agent=user_agent,
                hash_bits=int(hash_bits) if hash_bits else None,  # type: ignore[arg-type]
                max_depth=max_depth,
            )
            report = None
            async for event in service.run(site_url, sitemap_urls=sitemaps or None, seen_hashes=store.snapshot()):
                if event.type in ("complete", "error"):
                    report = event.report
                elif sys.stderr.isatty() and event.message:
                    click.echo(f"\r{event.message:<70}", nl=False, err=True)
            if sys.stderr.isatty():
                click.echo("\r" + " " * 70 + "\r", nl=False, err=True)

        if report is not None and report.success and commit:
            inserted = store.record(report.new_urls, report.new_hashes)
            click.echo(f"Recorded {inserted} new hashes in {store.path}", err=True)
        return report

    try:
        report = asyncio.run(run())
    except NewsDeltaError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    # Handle errors
    if report is None or not report.success:
        click.echo(f"Error: {report.error if report else 'Delta failed'}", err=True)
        raise SystemExit(1)

    for error in report.errors:
        click.echo(f"Warning: {error}", err=True)

    if output_format == "json":
        content = dump_model(report)
    else:
        # Text format: new URLs only, one per line
        content = "\n".join(report.new_urls)

    write_output(content, output)
    if output:
        click.echo(f"Wrote {len(report.new_urls)} new URLs to {output}")

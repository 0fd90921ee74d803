"""robots.txt inspection command."""

from pathlib import Path

import click

from newsdelta.cli._common import app


@app.command("robots", help="Show effective robots.txt rules for a site.")
@click.argument("site_url")
@click.option(
    "--file",
    "robots_file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read robots.txt from a local file instead of fetching it.",
)
@click.option(
    "--user-agent",
    type=str,
    default=None,
    help="Agent matched against User-agent groups. Also reads NEWSDELTA_ROBOTS_USER_AGENT env.",
)
@click.option(
    "--check",
    "paths",
    type=str,
    multiple=True,
    help="Path (or URL) to test against the rules. Repeatable.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)
def robots_cmd(
    site_url: str,
    robots_file: Path | None,
    user_agent: str | None,
    paths: tuple[str, ...],
    output_format: str,
) -> None:
    """Fetch and evaluate robots.txt.

    Examples:
        newsdelta robots https://example.com
        newsdelta robots https://example.com --check /news/today --check /admin
        newsdelta robots https://example.com --file robots.txt --format json
    """
    import asyncio
    import json

    from newsdelta.config import get_settings
    from newsdelta.discovery.robots import is_path_allowed, parse_robots_txt
    from newsdelta.exceptions import NewsDeltaError
    from newsdelta.services.fetcher import SitemapFetcher
    from newsdelta.utils import define_base_url, url_path

    async def fetch() -> str:
        async with SitemapFetcher() as fetcher:
            return await fetcher.fetch_robots_txt(site_url)

    try:
        agent = user_agent or get_settings().robots_user_agent
        if robots_file:
            define_base_url(site_url)
            content = robots_file.read_text(encoding="utf-8")
        else:
            content = asyncio.run(fetch())
    except NewsDeltaError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    rules = parse_robots_txt(content, agent)
    checks = {path: is_path_allowed(url_path(path) if "://" in path else path, rules) for path in paths}

    if output_format == "json":
        payload = {"user_agent": agent, **rules.model_dump()}
        if checks:
            payload["checks"] = checks
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"User-agent: {agent}")
    for rule in rules.allows:
        click.echo(f"  Allow: {rule}")
    for rule in rules.disallows:
        click.echo(f"  Disallow: {rule}")
    for sitemap in rules.sitemaps:
        click.echo(f"Sitemap: {sitemap}")
    for path, allowed in checks.items():
        click.echo(f"{'ALLOWED' if allowed else 'BLOCKED'} {path}")

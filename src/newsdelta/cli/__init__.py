"""Command-line interface for newsdelta.

This package provides the CLI commands for newsdelta. Commands are organized
into modules by functionality:

- robots: robots.txt rules and path checks
- sitemap: sitemap classification, URL hashing and new-URL deltas
- seen: Seen-hash state management (seen stats/clear)
"""

# Import all command modules to register them with the app
# The order doesn't matter - Click handles command registration
from newsdelta.cli import (
    robots,  # noqa: F401
    seen,  # noqa: F401
    sitemap,  # noqa: F401
)
from newsdelta.cli._common import app

__all__ = ["app"]

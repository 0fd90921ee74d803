"""Allow running as ``python -m newsdelta``."""

from newsdelta.cli import app

if __name__ == "__main__":
    app()

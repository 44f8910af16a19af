"""Allow ``python -m toolbridge``."""

from toolbridge.cli.app import cli

if __name__ == "__main__":
    cli()

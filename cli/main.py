# cli/main.py
"""Main CLI entry point for flowgen."""

import click
from pathlib import Path
import sys

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core import __version__  # noqa: E402


@click.group()
@click.version_option(version=__version__)
def cli():
    """flowgen - Turn workflow graphs into LangChain.js projects."""
    pass


def register_commands():
    """Register all CLI command groups."""
    from core.generator.cli import generate
    cli.add_command(generate)


register_commands()


if __name__ == '__main__':
    cli()

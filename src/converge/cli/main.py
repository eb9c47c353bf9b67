"""Main CLI entry point for converge."""

import logging
import click
from .commands.validate import validate
from .commands.plan import plan
from .commands.apply import apply
from .commands.destroy import destroy
from .commands.state import state
from .commands.version import version as version_command
from ..utils.logging import get_logger, set_level
from .. import __version__

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="converge", message="%(prog)s version %(version)s")
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def cli(verbose):
    """converge - Declarative infrastructure planning and convergence."""
    set_level(logging.DEBUG if verbose else logging.WARNING)


cli.add_command(validate)
cli.add_command(plan)
cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(state)
cli.add_command(version_command)

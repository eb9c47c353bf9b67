"""Destroy command - delete every resource recorded for the environment."""

import sys
import click
from ... import build_context, destroy as destroy_core
from ...execution.models import Outcome
from ...presentation.human_formatter import format_report
from ...utils.logging import get_logger
from ..utils import (
    fail, resolve_file_path, to_json, write_output, cancel_on_interrupt,
    environment_option, config_option, json_option, quiet_option,
    EXIT_OK, EXIT_PARTIAL_FAILURE,
)

logger = get_logger("cli.destroy")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@environment_option
@config_option
@click.option('--credentials', envvar='CONVERGE_CREDENTIALS', help='Credentials profile handed to providers')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@json_option
@quiet_option
def destroy(declarations, environment, config_path, credentials, yes, as_json, quiet):
    """Tear down everything in state, dependents before their dependencies."""
    try:
        path = resolve_file_path(declarations)
        context = build_context(environment, config_path, credentials)
    except Exception as e:
        fail(e)
    
    if not yes:
        click.confirm(f"Destroy all resources in environment '{context.environment}'?", abort=True, err=True)
    
    try:
        with cancel_on_interrupt(context):
            report = destroy_core(str(path), context)
    except Exception as e:
        fail(e)
    
    write_output(to_json(report) if as_json else format_report(report), None, quiet)
    sys.exit(EXIT_OK if report.outcome == Outcome.SUCCESS else EXIT_PARTIAL_FAILURE)

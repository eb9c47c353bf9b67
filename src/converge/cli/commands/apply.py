"""Apply command - compute a plan and execute it."""

import sys
import click
from ... import build_context, apply as apply_core
from ...execution.models import Outcome
from ...presentation.human_formatter import format_report
from ...utils.logging import get_logger
from ..utils import (
    fail, resolve_file_path, to_json, write_output, cancel_on_interrupt,
    environment_option, config_option, json_option, quiet_option,
    EXIT_OK, EXIT_PARTIAL_FAILURE,
)

logger = get_logger("cli.apply")


@click.command()
@click.argument('declarations', type=click.Path(exists=False), required=False)
@environment_option
@config_option
@click.option('--plan-file', type=click.Path(), help='Apply a plan saved with `plan --out`')
@click.option('--credentials', envvar='CONVERGE_CREDENTIALS', help='Credentials profile handed to providers')
@json_option
@quiet_option
def apply(declarations, environment, config_path, plan_file, credentials, as_json, quiet):
    """
    Converge the environment to DECLARATIONS.
    
    Exits 0 when every action succeeded, 3 when some failed or were skipped,
    4 when the declarations are invalid (nothing is applied).
    """
    if not declarations and not plan_file:
        raise click.UsageError("Provide DECLARATIONS or --plan-file")
    
    try:
        path = str(resolve_file_path(declarations)) if declarations and not plan_file else None
        context = build_context(environment, config_path, credentials)
        if not quiet:
            source = plan_file or path
            click.echo(f"Applying {source} to environment '{context.environment}'...", err=True)
        with cancel_on_interrupt(context):
            report = apply_core(path, context, plan_file=plan_file)
    except Exception as e:
        fail(e)
    
    write_output(to_json(report) if as_json else format_report(report), None, quiet)
    sys.exit(EXIT_OK if report.outcome == Outcome.SUCCESS else EXIT_PARTIAL_FAILURE)

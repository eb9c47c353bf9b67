"""Plan command - compute and print a plan without applying it."""

from pathlib import Path
import click
from ... import build_context, plan as plan_core
from ...planning.saved_plan import save_plan
from ...presentation.human_formatter import format_plan
from ...utils.logging import get_logger
from ..utils import (
    fail, resolve_file_path, to_json, write_output,
    environment_option, config_option, json_option, quiet_option,
)

logger = get_logger("cli.plan")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@environment_option
@config_option
@click.option('--out', type=click.Path(), help='Save the plan as JSON for a later `apply --plan-file`')
@click.option('--destroy', is_flag=True, help='Plan a full teardown instead')
@json_option
@quiet_option
def plan(declarations, environment, config_path, out, destroy, as_json, quiet):
    """
    Show the actions needed to converge the environment to DECLARATIONS.
    
    Nothing is created, changed or deleted.
    """
    try:
        path = resolve_file_path(declarations)
        context = build_context(environment, config_path)
        if not quiet:
            click.echo(f"Planning {path} for environment '{context.environment}'...", err=True)
        result = plan_core(str(path), context, destroy=destroy)
        if out:
            save_plan(result, Path(out))
            if not quiet:
                click.echo(f"Plan saved to: {out}", err=True)
    except Exception as e:
        fail(e)
    
    write_output(to_json(result) if as_json else format_plan(result), None, quiet)

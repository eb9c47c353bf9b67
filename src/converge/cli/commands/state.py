"""State commands - inspect recorded resources."""

import click
from ... import build_context, open_store
from ...presentation.human_formatter import format_record, format_state
from ...utils.errors import StateError
from ...utils.logging import get_logger
from ..utils import fail, to_json, write_output, environment_option, config_option, json_option

logger = get_logger("cli.state")


@click.group()
def state():
    """Inspect persisted state."""
    pass


@state.command(name="list")
@environment_option
@config_option
@json_option
def list_resources(environment, config_path, as_json):
    """List every resource recorded for the environment."""
    try:
        context = build_context(environment, config_path)
        snapshot = open_store(context).load()
    except Exception as e:
        fail(e)
    write_output(to_json(snapshot) if as_json else format_state(snapshot), None, True)


@state.command()
@click.argument('name')
@environment_option
@config_option
@json_option
def show(name, environment, config_path, as_json):
    """Show the recorded attributes and outputs of NAME."""
    try:
        context = build_context(environment, config_path)
        record = open_store(context).load().get(name)
        if record is None:
            raise StateError(f"No resource named '{name}' in environment '{context.environment}'")
    except Exception as e:
        fail(e)
    write_output(to_json(record) if as_json else format_record(record), None, True)

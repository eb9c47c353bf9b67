"""Validate command - check declarations and the dependency graph."""

import click
from ... import load_graph
from ...config import resolve_environment
from ...utils.logging import get_logger
from ..utils import fail, resolve_file_path, environment_option, quiet_option

logger = get_logger("cli.validate")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@environment_option
@quiet_option
def validate(declarations, environment, quiet):
    """Check names, dependencies and cycles without touching state or providers."""
    try:
        path = resolve_file_path(declarations)
        env = resolve_environment(environment)
        graph = load_graph(str(path), env)
    except Exception as e:
        fail(e)
    
    if not quiet:
        click.echo(f"Order: {' -> '.join(graph.topological_order()) or '(empty)'}", err=True)
    click.echo(f"Valid: {len(graph)} resources, {graph.graph.number_of_edges()} dependencies ({env}).")

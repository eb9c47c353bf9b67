"""CLI utilities package."""

import json
import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Optional
import click
from ...utils.errors import ConvergeError, DeclarationError, ValidationError
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL_FAILURE = 3
EXIT_VALIDATION_FAILURE = 4


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def exit_code_for(error: Exception) -> int:
    """Validation problems are reported distinctly from runtime failures."""
    if isinstance(error, (ValidationError, DeclarationError)):
        return EXIT_VALIDATION_FAILURE
    return EXIT_ERROR


def fail(error: Exception) -> None:
    """Print an error and exit with the matching code."""
    if isinstance(error, ConvergeError):
        suggestion = None
        if isinstance(error, ValidationError):
            suggestion = "Fix the declarations; nothing was changed."
        click.echo(format_error(str(error), suggestion), err=True)
    else:
        logger.error(f"Unexpected error: {error}", exc_info=True)
        click.echo(format_error(f"Unexpected failure: {error}"), err=True)
    raise SystemExit(exit_code_for(error))


def write_output(text: str, output: Optional[str], quiet: bool) -> None:
    """Echo ``text`` or save it to ``output``."""
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(text)
        if not quiet:
            click.echo(f"Output saved to: {output_path}", err=True)
        return
    try:
        click.echo(text)
    except UnicodeEncodeError:
        click.echo(text.encode('ascii', errors='replace').decode('ascii'))


def to_json(model) -> str:
    """Pydantic model as indented JSON."""
    return json.dumps(model.model_dump(), indent=2, default=str)


@contextmanager
def cancel_on_interrupt(context):
    """First Ctrl-C requests cancellation; in-flight actions still finish."""
    def handler(signum, frame):
        click.echo("Cancellation requested; waiting for running actions to finish...", err=True)
        context.cancel()
    
    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


environment_option = click.option('--env', 'environment', help='Target environment (default: .converge-env.yaml, CONVERGE_ENV or development)')
config_option = click.option('--config', 'config_path', type=click.Path(), help='Extra settings YAML layered over the defaults')
json_option = click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of human-readable')
quiet_option = click.option('--quiet', is_flag=True, help='Suppress progress messages')


__all__ = [
    "resolve_file_path",
    "format_error",
    "exit_code_for",
    "fail",
    "write_output",
    "to_json",
    "cancel_on_interrupt",
    "environment_option",
    "config_option",
    "json_option",
    "quiet_option",
    "EXIT_OK",
    "EXIT_ERROR",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_VALIDATION_FAILURE",
]

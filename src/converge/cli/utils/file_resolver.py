"""File path resolution utilities for CLI."""

from pathlib import Path
from ...utils.errors import DeclarationError

DECLARATION_SUFFIXES = (".yaml", ".yml", ".json")


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a declaration file path.
    
    Relative paths are resolved against the current directory; ``~`` is expanded.
    
    Args:
        file_path: User-provided file path or name
        
    Returns:
        Resolved Path object
        
    Raises:
        DeclarationError: If the file does not exist, is not a file, or has an
            unsupported extension
    """
    path = Path(file_path).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    path = path.resolve()
    
    if not path.exists():
        raise DeclarationError(
            f"File not found: {file_path}. Please check the file path and try again."
        )
    
    if not path.is_file():
        raise DeclarationError(
            f"Path is not a file: {file_path}. Please provide a declaration file."
        )
    
    if path.suffix.lower() not in DECLARATION_SUFFIXES:
        raise DeclarationError(
            f"Unsupported declaration format '{path.suffix}'. Use one of: {', '.join(DECLARATION_SUFFIXES)}"
        )
    
    return path

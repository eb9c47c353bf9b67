"""Load resource declarations from YAML or JSON and apply environment variables."""

import json
from pathlib import Path
from typing import Dict, Any
import yaml
from pydantic import ValidationError
from .models import DeclarationDocument, DeclarationSet, ResourceDeclaration
from .references import substitute, VARIABLE_SCOPE
from ..utils.errors import DeclarationError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_loader")


def load_declarations(path: str, environment: str) -> DeclarationSet:
    """
    Load a declaration file and resolve it for one environment.
    
    Args:
        path: Path to a .yaml/.yml/.json declaration file
        environment: Environment whose variable overrides apply
        
    Returns:
        DeclarationSet with ``${var.x}`` placeholders substituted
        
    Raises:
        DeclarationError: If the file is missing, unparsable or invalid
    """
    data = read_declaration_file(path)
    declarations = parse_declarations(data, environment)
    logger.info(
        f"Loaded {len(declarations.resources)} resource declarations from {path} "
        f"(environment: {environment})"
    )
    return declarations


def read_declaration_file(path: str) -> Dict[str, Any]:
    """Read the raw document; JSON for .json files, YAML otherwise."""
    file_path = Path(path)
    
    if not file_path.exists():
        raise DeclarationError(f"Declaration file not found: {path}")
    
    if not file_path.is_file():
        raise DeclarationError(f"Path is not a file: {path}")
    
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise DeclarationError(f"Invalid JSON in declaration file: {e}")
    except yaml.YAMLError as e:
        raise DeclarationError(f"Invalid YAML in declaration file: {e}")
    except OSError as e:
        raise DeclarationError(f"Error reading declaration file: {e}")
    
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DeclarationError("Declaration file must contain a dictionary")
    return data


def parse_declarations(data: Dict[str, Any], environment: str) -> DeclarationSet:
    """Validate a raw document and substitute variables for ``environment``."""
    try:
        document = DeclarationDocument(**data)
    except ValidationError as e:
        raise DeclarationError(f"Invalid declaration document: {e}")
    
    variables = dict(document.variables)
    overrides = document.environments.get(environment)
    if overrides is not None:
        variables.update(overrides.variables)
    elif document.environments:
        logger.warning(f"No overrides declared for environment '{environment}', using defaults")
    
    def lookup(scope: str, key: str) -> Any:
        if key not in variables:
            raise DeclarationError(f"Undefined variable: ${{{scope}.{key}}}")
        return variables[key]
    
    resources = []
    for idx, raw in enumerate(document.resources):
        if not isinstance(raw, dict):
            raise DeclarationError(f"Resource at index {idx} must be a mapping")
        resolved = dict(raw)
        resolved["attributes"] = substitute(
            raw.get("attributes") or {}, lookup, lambda scope: scope == VARIABLE_SCOPE
        )
        try:
            resources.append(ResourceDeclaration(**resolved))
        except ValidationError as e:
            raise DeclarationError(f"Invalid resource at index {idx}: {e}")
    
    return DeclarationSet(environment=environment, resources=resources)

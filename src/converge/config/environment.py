"""Environment selection: which deployment environment a command targets."""

import os
import re
from typing import Optional
from pathlib import Path
import yaml
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.environment")

DEFAULT_ENVIRONMENT = "development"
ENV_FILE_NAME = ".converge-env.yaml"
_ENV_NAME = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def normalize_environment_name(name: str) -> str:
    """Lower-case and validate an environment name."""
    normalized = name.strip().lower()
    if not _ENV_NAME.match(normalized):
        raise ConfigError(
            f"Invalid environment name '{name}'. "
            "Use lowercase letters, digits, '-' or '_'."
        )
    return normalized


def resolve_environment(override: Optional[str] = None) -> str:
    """
    Resolve the environment selector.
    
    Priority:
    1. Explicit override (CLI --env)
    2. .converge-env.yaml in current directory or up to 3 parents
    3. CONVERGE_ENV environment variable
    4. Default to development
    
    Args:
        override: Environment name passed on the command line
        
    Returns:
        Normalized environment name
        
    Raises:
        ConfigError: If the selected name is invalid or the env file is malformed
    """
    if override:
        return normalize_environment_name(override)
    
    current_dir = Path.cwd()
    for directory in [current_dir, *list(current_dir.parents)[:3]]:
        config_file = directory / ENV_FILE_NAME
        if config_file.exists():
            return _load_from_file(config_file)
    
    env_var = os.getenv("CONVERGE_ENV")
    if env_var:
        return normalize_environment_name(env_var)
    
    logger.debug(f"No environment selected, defaulting to {DEFAULT_ENVIRONMENT}")
    return DEFAULT_ENVIRONMENT


def _load_from_file(config_file: Path) -> str:
    """Load environment name from YAML file."""
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse environment file {config_file}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read environment file {config_file}: {e}")
    
    if not isinstance(data, dict) or not isinstance(data.get("environment"), dict):
        raise ConfigError(f"Environment file {config_file} missing 'environment' mapping")
    
    name = normalize_environment_name(str(data["environment"].get("name", DEFAULT_ENVIRONMENT)))
    logger.debug(f"Loaded environment '{name}' from {config_file}")
    return name

"""Configuration module: load engine settings and resolve the target environment."""

from typing import Optional
from pydantic import ValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config
from .environment import resolve_environment, normalize_environment_name, DEFAULT_ENVIRONMENT
from .settings import Settings, ExecutorSettings, StateSettings, ProviderSettings

logger = get_logger("config")


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load and validate engine settings.
    
    Args:
        config_path: Optional explicit config file layered on top of the defaults
        
    Returns:
        Settings model
        
    Raises:
        ConfigError: If the config cannot be loaded or fails validation
    """
    config = load_config(config_path)
    try:
        settings = Settings(**config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    logger.debug(
        f"Settings: workers={settings.executor.max_workers}, "
        f"attempts={settings.executor.max_attempts}, state={settings.state.directory}"
    )
    return settings


__all__ = [
    "load_settings",
    "load_config",
    "resolve_environment",
    "normalize_environment_name",
    "DEFAULT_ENVIRONMENT",
    "Settings",
    "ExecutorSettings",
    "StateSettings",
    "ProviderSettings",
]

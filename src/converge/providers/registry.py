"""Declarative registry of supported provider kinds."""

from enum import Enum
from typing import Any, Dict, Optional
from .base import Provider
from .simulated import SimulatedProvider
from .local_file import LocalFileProvider
from ..utils.errors import ConfigError


class ProviderKind(str, Enum):
    """Closed set of provider variants."""
    SIMULATED = "simulated"
    LOCAL_FILE = "local_file"


SUPPORTED_PROVIDERS = {
    ProviderKind.SIMULATED: {
        "description": "Deterministic in-process provider (no side effects)",
        "required_options": [],
    },
    ProviderKind.LOCAL_FILE: {
        "description": "Writes each resource as a JSON document under a root directory",
        "required_options": ["root"],
    },
}


def parse_kind(kind: str) -> ProviderKind:
    """Map a configured kind name onto the closed set, or fail."""
    try:
        return ProviderKind(kind)
    except ValueError:
        supported = ", ".join(k.value for k in ProviderKind)
        raise ConfigError(f"Unsupported provider kind '{kind}' (supported: {supported})")


def build_provider(kind: str, environment: str, options: Optional[Dict[str, Any]] = None) -> Provider:
    """
    Instantiate a provider for ``kind``.
    
    Raises:
        ConfigError: If the kind is unknown or required options are missing
    """
    provider_kind = parse_kind(kind)
    options = options or {}
    missing = [o for o in SUPPORTED_PROVIDERS[provider_kind]["required_options"] if o not in options]
    if missing:
        raise ConfigError(f"Provider '{provider_kind.value}' missing options: {missing}")
    
    if provider_kind == ProviderKind.SIMULATED:
        return SimulatedProvider(options)
    return LocalFileProvider(root=options["root"], environment=environment)


class ProviderSet:
    """Lazily built providers for one run, one instance per kind."""
    
    def __init__(self, context, overrides: Optional[Dict[str, Provider]] = None):
        self.context = context
        self._providers: Dict[str, Provider] = dict(overrides or {})
    
    def get(self, kind: str) -> Provider:
        if kind not in self._providers:
            options = self.context.settings.providers.options.get(kind, {})
            self._providers[kind] = build_provider(kind, self.context.environment, options)
        return self._providers[kind]

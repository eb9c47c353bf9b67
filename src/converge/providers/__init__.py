from .base import Provider, ProviderResult
from .registry import ProviderKind, ProviderSet, SUPPORTED_PROVIDERS, build_provider, parse_kind
from .simulated import SimulatedProvider
from .local_file import LocalFileProvider

__all__ = [
    "Provider",
    "ProviderResult",
    "ProviderKind",
    "ProviderSet",
    "SUPPORTED_PROVIDERS",
    "build_provider",
    "parse_kind",
    "SimulatedProvider",
    "LocalFileProvider",
]

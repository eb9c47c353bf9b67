"""Custom exception classes for converge."""

from typing import List


class ConvergeError(Exception):
    """Base exception for all converge errors."""
    pass


class ValidationError(ConvergeError):
    """Raised when the declared resource graph is invalid. Always raised before any provider call."""
    pass


class DuplicateNameError(ValidationError):
    """Raised when two resources share a logical name."""
    pass


class UnknownDependencyError(ValidationError):
    """Raised when a resource depends on (or references) an undeclared resource."""
    pass


class CycleError(ValidationError):
    """Raised when the dependency relation is not a DAG."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class DeclarationError(ConvergeError):
    """Raised when a declaration file cannot be loaded or is invalid."""
    pass


class ConfigError(ConvergeError):
    """Raised when configuration is invalid or missing."""
    pass


class StateError(ConvergeError):
    """Raised when the state store cannot be read or written."""
    pass


class PlanError(ConvergeError):
    """Raised when a saved plan is malformed or no longer matches current state."""
    pass


class ProviderError(ConvergeError):
    """Base class for failures reported by a provider."""
    pass


class TransientError(ProviderError):
    """Retryable provider failure (throttling, timeouts, eventual consistency)."""
    pass


class PermanentError(ProviderError):
    """Non-retryable provider failure, surfaced to the user as-is."""
    pass

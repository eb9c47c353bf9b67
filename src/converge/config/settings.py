"""Typed engine settings validated from the merged config tree."""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ExecutorSettings(BaseModel):
    """Worker pool, retry and timeout settings for the executor."""
    max_workers: int = Field(default=4, ge=1, description="Concurrent provider calls")
    max_attempts: int = Field(default=3, ge=1, description="Total attempts per action, including the first")
    backoff_base: float = Field(default=0.5, ge=0, description="Initial retry delay in seconds")
    backoff_max: float = Field(default=8.0, ge=0, description="Upper bound for a single retry delay")
    action_timeout: Optional[float] = Field(default=300, gt=0, description="Per-attempt timeout in seconds; None disables")


class StateSettings(BaseModel):
    """Where state snapshots live."""
    directory: str = Field(default=".converge/state", description="Directory holding one JSON file per environment")


class ProviderSettings(BaseModel):
    """Mapping of resource types onto provider kinds."""
    default: str = Field(default="simulated", description="Provider kind for unmapped resource types")
    types: Dict[str, str] = Field(default_factory=dict, description="Resource type -> provider kind")
    options: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Per-kind provider options")
    
    def kind_for(self, resource_type: str, override: Optional[str] = None) -> str:
        """Provider kind used for a resource type."""
        if override:
            return override
        return self.types.get(resource_type, self.default)


class Settings(BaseModel):
    """Complete engine settings."""
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    state: StateSettings = Field(default_factory=StateSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)

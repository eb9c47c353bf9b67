"""Pydantic models for persisted state."""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

STATE_FORMAT_VERSION = 1


class StateRecord(BaseModel):
    """Last-applied state of one resource."""
    name: str = Field(..., description="Logical resource name")
    type: str = Field(..., description="Resource type tag")
    provider: str = Field(..., description="Provider kind that owns the resource")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Declared attributes as last applied")
    provider_id: str = Field(..., description="Identifier assigned by the provider at creation")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Outputs reported by the provider")
    dependencies: List[str] = Field(default_factory=list, description="Dependencies at the time of the last apply")


class StateSnapshot(BaseModel):
    """All records of one environment."""
    version: int = Field(default=STATE_FORMAT_VERSION)
    environment: str = Field(..., description="Environment this snapshot belongs to")
    serial: int = Field(default=0, ge=0, description="Incremented on every commit or removal")
    records: Dict[str, StateRecord] = Field(default_factory=dict, description="Records keyed by resource name")
    
    def get(self, name: str) -> Optional[StateRecord]:
        return self.records.get(name)
    
    def names(self) -> List[str]:
        return list(self.records)

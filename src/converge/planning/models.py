"""Pydantic models for plans."""

from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

PLAN_FORMAT_VERSION = "1.0.0"


class ActionType(str, Enum):
    """Change applied to one resource."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"
    DELETE = "DELETE"


class PlannedAction(BaseModel):
    """One step of a plan, referencing exactly one resource."""
    name: str = Field(..., description="Logical resource name")
    action: ActionType = Field(..., description="Change to apply")
    resource_type: str = Field(..., description="Target resource type (prior type for DELETE)")
    provider: str = Field(..., description="Provider kind that performs the change")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Target attributes (empty for DELETE)")
    prior_attributes: Optional[Dict[str, Any]] = Field(None, description="Last-applied attributes, if any")
    prior_type: Optional[str] = Field(None, description="Last-applied type (REPLACE only)")
    prior_provider: Optional[str] = Field(None, description="Last-applied provider kind (REPLACE only)")
    provider_id: Optional[str] = Field(None, description="Existing provider identifier, if any")
    dependencies: List[str] = Field(default_factory=list, description="Resource dependencies recorded into state after apply")
    depends_on: List[str] = Field(default_factory=list, description="Names of actions in this plan that must succeed first")
    deferred_inputs: List[str] = Field(default_factory=list, description="References whose value is only known after another action runs")
    changed_keys: List[str] = Field(default_factory=list, description="Top-level attribute keys that differ from state")
    
    class Config:
        use_enum_values = True


class Plan(BaseModel):
    """Ordered change set; list order is a topological order of ``depends_on``."""
    version: str = Field(default=PLAN_FORMAT_VERSION, description="Plan format version")
    environment: str = Field(..., description="Environment the plan targets")
    state_serial: int = Field(default=0, ge=0, description="Serial of the state snapshot the plan was computed against")
    destroy: bool = Field(default=False, description="Whether this is a full teardown plan")
    actions: List[PlannedAction] = Field(default_factory=list)
    
    @property
    def is_empty(self) -> bool:
        return not self.actions
    
    def counts(self) -> Dict[str, int]:
        """Number of actions per action type."""
        counts = {action.value: 0 for action in ActionType}
        for planned in self.actions:
            counts[ActionType(planned.action).value] += 1
        return counts
    
    def get(self, name: str) -> Optional[PlannedAction]:
        for planned in self.actions:
            if planned.name == name:
                return planned
        return None
    
    def index_of(self, name: str) -> int:
        for idx, planned in enumerate(self.actions):
            if planned.name == name:
                return idx
        raise KeyError(name)

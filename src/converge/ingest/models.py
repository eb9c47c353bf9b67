"""Pydantic models for resource declarations."""

import re
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from .references import VARIABLE_SCOPE

_RESOURCE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")


class ResourceDeclaration(BaseModel):
    """One declared unit of desired external state."""
    name: str = Field(..., description="Stable logical name, unique within a graph")
    type: str = Field(..., min_length=1, description="Resource type tag")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Desired attributes; may contain ${resource.output} references")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependencies by logical name")
    provider: Optional[str] = Field(None, description="Provider kind override for this resource")
    
    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _RESOURCE_NAME.match(value):
            raise ValueError(f"invalid resource name '{value}' (letters, digits, '-' and '_', starting with a letter)")
        if value == VARIABLE_SCOPE:
            raise ValueError(f"resource name '{value}' is reserved for ${{{VARIABLE_SCOPE}.NAME}} variables")
        return value


class EnvironmentOverrides(BaseModel):
    """Per-environment parameterization."""
    variables: Dict[str, Any] = Field(default_factory=dict)


class DeclarationDocument(BaseModel):
    """Raw declaration file before variable substitution."""
    variables: Dict[str, Any] = Field(default_factory=dict)
    environments: Dict[str, EnvironmentOverrides] = Field(default_factory=dict)
    resources: List[Dict[str, Any]] = Field(default_factory=list)


class DeclarationSet(BaseModel):
    """Resolved declarations for one environment, in declaration order."""
    environment: str = Field(..., description="Environment the variables were resolved for")
    resources: List[ResourceDeclaration] = Field(default_factory=list)

"""Abstract base class for resource providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict
from pydantic import BaseModel, Field


class ProviderResult(BaseModel):
    """Outcome of a successful create call."""
    provider_id: str = Field(..., min_length=1, description="Identifier assigned by the external system")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Values other resources may reference")


class Provider(ABC):
    """
    Uniform capability interface over one external system.
    
    Implementations translate a resource's desired attributes into calls
    against that system. Every method may raise:
    - TransientError: the call may succeed if retried
    - PermanentError: retrying will not help; reported to the user
    Any other exception is treated as permanent by the executor.
    """
    
    kind: str = ""
    
    @abstractmethod
    def create(self, resource_type: str, attributes: Dict[str, Any]) -> ProviderResult:
        """
        Create the resource.
        
        Args:
            resource_type: Type tag of the declared resource
            attributes: Fully resolved attributes (no placeholders left)
            
        Returns:
            ProviderResult with the new identifier and outputs
        """
        pass
    
    @abstractmethod
    def update(self, resource_type: str, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Converge an existing resource to new attributes.
        
        Returns:
            Fresh outputs for the resource
        """
        pass
    
    @abstractmethod
    def delete(self, resource_type: str, provider_id: str) -> None:
        """Delete the resource. Deleting something already gone is not an error."""
        pass

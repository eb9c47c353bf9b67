"""Pydantic models for apply results."""

from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, Field


class ResultStatus(str, Enum):
    """Terminal status of one planned action."""
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class Outcome(str, Enum):
    """Overall outcome of an apply, worst status wins."""
    SUCCESS = "SUCCESS"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"


class ActionResult(BaseModel):
    """What happened to one resource."""
    name: str = Field(..., description="Logical resource name")
    action: str = Field(..., description="Planned action type")
    status: ResultStatus = Field(..., description="Terminal status")
    error: Optional[str] = Field(None, description="Originating error for FAILED entries")
    error_type: Optional[str] = Field(None, description="TransientError, PermanentError, ...")
    reason: Optional[str] = Field(None, description="Why a SKIPPED entry was not attempted")
    attempts: int = Field(default=0, ge=0, description="Provider attempts made")
    duration_ms: int = Field(default=0, ge=0)
    provider_id: Optional[str] = Field(None, description="Provider identifier after the action")
    
    class Config:
        use_enum_values = True


class ApplyReport(BaseModel):
    """Per-resource results of applying a plan, in plan order."""
    environment: str
    results: List[ActionResult] = Field(default_factory=list)
    cancelled: bool = Field(default=False)
    
    @property
    def outcome(self) -> Outcome:
        if all(r.status == ResultStatus.SUCCEEDED for r in self.results):
            return Outcome.SUCCESS
        return Outcome.PARTIAL_FAILURE
    
    def by_status(self, status: ResultStatus) -> List[ActionResult]:
        return [r for r in self.results if r.status == status]
    
    def get(self, name: str) -> Optional[ActionResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None
    
    def summary(self) -> Dict[str, int]:
        return {status.value: len(self.by_status(status)) for status in ResultStatus}

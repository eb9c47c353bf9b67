"""Explicit deployment context threaded through planning and execution."""

import threading
from typing import Optional
from ..config.settings import Settings


class DeploymentContext:
    """
    Everything a run needs that is not part of the resource graph.
    
    Holds the environment selector, an opaque credentials handle passed to
    providers, the engine settings and the cancellation signal.
    """
    
    def __init__(
        self,
        environment: str,
        settings: Optional[Settings] = None,
        credentials: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.environment = environment
        self.settings = settings or Settings()
        self.credentials = credentials
        self.cancel_event = cancel_event or threading.Event()
    
    def cancel(self) -> None:
        """Stop dispatching new actions; in-flight actions finish."""
        self.cancel_event.set()
    
    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
    
    def __repr__(self) -> str:
        # credentials deliberately omitted
        return f"DeploymentContext(environment={self.environment}, cancelled={self.cancelled})"

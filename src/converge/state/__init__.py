from .models import StateRecord, StateSnapshot
from .store import StateStore, InMemoryStateStore, FileStateStore

__all__ = [
    "StateRecord",
    "StateSnapshot",
    "StateStore",
    "InMemoryStateStore",
    "FileStateStore",
]

"""State store implementations: persistence of last-applied resource state."""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import ValidationError
from .models import StateRecord, StateSnapshot, STATE_FORMAT_VERSION
from ..utils.errors import StateError
from ..utils.logging import get_logger

logger = get_logger("state.store")


class StateStore(ABC):
    """
    Persistence abstraction for State Records.
    
    Stores never talk to providers. Only the executor mutates a store, one
    record at a time; every mutation is all-or-nothing for that record.
    """
    
    def __init__(self, environment: str):
        self.environment = environment
        self._lock = threading.Lock()
    
    def load(self) -> StateSnapshot:
        """Return the last snapshot, or an empty one on first run."""
        with self._lock:
            return self._read().model_copy(deep=True)
    
    def commit(
        self,
        name: str,
        type: str,
        attributes: Dict[str, Any],
        provider_id: str,
        outputs: Optional[Dict[str, Any]] = None,
        dependencies: Optional[List[str]] = None,
        provider: str = "simulated",
    ) -> StateRecord:
        """Persist one resource record atomically."""
        record = StateRecord(
            name=name,
            type=type,
            provider=provider,
            attributes=attributes,
            provider_id=provider_id,
            outputs=outputs or {},
            dependencies=list(dependencies or []),
        )
        with self._lock:
            snapshot = self._read()
            snapshot.records[name] = record
            snapshot.serial += 1
            self._write(snapshot)
        logger.debug(f"Committed state for {name} (serial {snapshot.serial})")
        return record
    
    def remove(self, name: str) -> None:
        """Drop a record once provider-side deletion is confirmed."""
        with self._lock:
            snapshot = self._read()
            if name not in snapshot.records:
                logger.debug(f"No state record to remove for {name}")
                return
            del snapshot.records[name]
            snapshot.serial += 1
            self._write(snapshot)
        logger.debug(f"Removed state for {name} (serial {snapshot.serial})")
    
    @abstractmethod
    def _read(self) -> StateSnapshot:
        """Read the current snapshot (caller holds the lock)."""
        pass
    
    @abstractmethod
    def _write(self, snapshot: StateSnapshot) -> None:
        """Replace the stored snapshot (caller holds the lock)."""
        pass


class InMemoryStateStore(StateStore):
    """Process-local store for programmatic use and tests."""
    
    def __init__(self, environment: str = "development"):
        super().__init__(environment)
        self._snapshot = StateSnapshot(environment=environment)
    
    def _read(self) -> StateSnapshot:
        return self._snapshot.model_copy(deep=True)
    
    def _write(self, snapshot: StateSnapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)


class FileStateStore(StateStore):
    """
    JSON file per environment: ``<directory>/<environment>.json``.
    
    Writes go to a temporary file in the same directory which then replaces the
    target, so a crash never leaves a half-written snapshot behind.
    """
    
    def __init__(self, directory: str, environment: str):
        super().__init__(environment)
        self.directory = Path(directory)
        self.path = self.directory / f"{environment}.json"
    
    def _read(self) -> StateSnapshot:
        if not self.path.exists():
            return StateSnapshot(environment=self.environment)
        
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateError(f"Corrupt state file {self.path}: {e}")
        except OSError as e:
            raise StateError(f"Error reading state file {self.path}: {e}")
        
        try:
            snapshot = StateSnapshot(**data)
        except (ValidationError, TypeError) as e:
            raise StateError(f"Invalid state file {self.path}: {e}")
        
        if snapshot.version != STATE_FORMAT_VERSION:
            raise StateError(f"Unsupported state format version {snapshot.version} in {self.path}")
        if snapshot.environment != self.environment:
            raise StateError(
                f"State file {self.path} belongs to environment '{snapshot.environment}', "
                f"expected '{self.environment}'"
            )
        return snapshot
    
    def _write(self, snapshot: StateSnapshot) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.environment}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(snapshot.model_dump(), f, indent=2, sort_keys=True)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StateError(f"Failed to write state file {self.path}: {e}")

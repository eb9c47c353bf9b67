"""Deterministic in-process provider for dry runs, demos and tests."""

import hashlib
import json
import threading
from typing import Any, Dict, List, Optional
from .base import Provider, ProviderResult
from ..utils.errors import PermanentError, TransientError
from ..utils.logging import get_logger

logger = get_logger("providers.simulated")


class SimulatedProvider(Provider):
    """
    Provider that fabricates identifiers instead of calling a real system.
    
    Identifiers are ``<type>-<digest>`` where the digest covers the attributes,
    so the same declaration always yields the same id. Outputs echo the
    attributes plus ``id``.
    
    Failure injection (via options, keyed by ``name`` attribute or resource type):
    - ``fail_permanently``: list of keys whose calls raise PermanentError
    - ``fail_transiently``: mapping key -> number of calls that raise TransientError first
    """
    
    kind = "simulated"
    
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.fail_permanently: List[str] = list(options.get("fail_permanently", []))
        self._transient_budget: Dict[str, int] = dict(options.get("fail_transiently", {}))
        self._lock = threading.Lock()
        self.calls: List[tuple] = []
    
    def create(self, resource_type: str, attributes: Dict[str, Any]) -> ProviderResult:
        self._record("create", resource_type, attributes)
        provider_id = f"{resource_type}-{_digest(attributes)}"
        logger.debug(f"Simulated create {provider_id}")
        return ProviderResult(provider_id=provider_id, outputs={**attributes, "id": provider_id})
    
    def update(self, resource_type: str, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update", resource_type, attributes, provider_id)
        logger.debug(f"Simulated update {provider_id}")
        return {**attributes, "id": provider_id}
    
    def delete(self, resource_type: str, provider_id: str) -> None:
        self._record("delete", resource_type, {}, provider_id)
        logger.debug(f"Simulated delete {provider_id}")
    
    def _record(self, operation: str, resource_type: str, attributes: Dict[str, Any], provider_id: str = None) -> None:
        keys = [k for k in (attributes.get("name"), resource_type, provider_id) if k]
        with self._lock:
            self.calls.append((operation, resource_type, provider_id))
            for key in keys:
                if key in self.fail_permanently:
                    raise PermanentError(f"Simulated permanent failure for {key}")
                if self._transient_budget.get(key, 0) > 0:
                    self._transient_budget[key] -= 1
                    raise TransientError(f"Simulated transient failure for {key}")


def _digest(attributes: Dict[str, Any]) -> str:
    payload = json.dumps(attributes, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:12]

"""Provider that materializes resources as JSON documents on local disk."""

import json
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Optional
from .base import Provider, ProviderResult
from ..utils.errors import PermanentError, TransientError
from ..utils.logging import get_logger

logger = get_logger("providers.local_file")


class LocalFileProvider(Provider):
    """
    One file per resource under ``<root>/<environment>/<type>/``.
    
    The provider id is the file path relative to the root. Useful for
    exercising the full plan/apply/destroy cycle without any cloud account.
    """
    
    kind = "local_file"
    
    def __init__(self, root: str, environment: str):
        self.root = Path(root)
        self.environment = environment
    
    def create(self, resource_type: str, attributes: Dict[str, Any]) -> ProviderResult:
        relative = Path(self.environment) / resource_type / f"{uuid.uuid4().hex[:12]}.json"
        self._write(relative, attributes)
        provider_id = relative.as_posix()
        logger.info(f"Created {provider_id}")
        return ProviderResult(provider_id=provider_id, outputs=self._outputs(provider_id, attributes))
    
    def update(self, resource_type: str, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        relative = Path(provider_id)
        if not (self.root / relative).exists():
            raise PermanentError(f"Resource file {provider_id} no longer exists")
        self._write(relative, attributes)
        logger.info(f"Updated {provider_id}")
        return self._outputs(provider_id, attributes)
    
    def delete(self, resource_type: str, provider_id: str) -> None:
        path = self.root / provider_id
        try:
            path.unlink()
            logger.info(f"Deleted {provider_id}")
        except FileNotFoundError:
            logger.debug(f"{provider_id} already gone")
        except OSError as e:
            raise TransientError(f"Could not delete {provider_id}: {e}")
    
    def _write(self, relative: Path, attributes: Dict[str, Any]) -> None:
        path = self.root / relative
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            with open(tmp, 'w', encoding='utf-8') as f:
                json.dump(attributes, f, indent=2, sort_keys=True, default=str)
            os.replace(tmp, path)
        except OSError as e:
            raise TransientError(f"Could not write {relative}: {e}")
    
    def _outputs(self, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return {**attributes, "id": provider_id, "path": str(self.root / provider_id)}

"""Tests for built-in providers and the registry."""

import json
import pytest
from converge.providers.local_file import LocalFileProvider
from converge.providers.registry import ProviderKind, build_provider, parse_kind
from converge.providers.simulated import SimulatedProvider
from converge.utils.errors import ConfigError, PermanentError, TransientError


class TestSimulatedProvider:
    """Test the in-process provider."""
    
    def test_ids_are_deterministic(self):
        """Same type and attributes give the same identifier."""
        first = SimulatedProvider().create("vpc", {"cidr": "10.0.0.0/16"})
        second = SimulatedProvider().create("vpc", {"cidr": "10.0.0.0/16"})
        other = SimulatedProvider().create("vpc", {"cidr": "10.1.0.0/16"})
        
        assert first.provider_id == second.provider_id
        assert first.provider_id != other.provider_id
        assert first.provider_id.startswith("vpc-")
        assert first.outputs == {"cidr": "10.0.0.0/16", "id": first.provider_id}
    
    def test_failure_injection(self):
        """Configured keys fail permanently or for a number of calls."""
        provider = SimulatedProvider({"fail_permanently": ["database"], "fail_transiently": {"queue": 1}})
        
        with pytest.raises(PermanentError):
            provider.create("database", {})
        with pytest.raises(TransientError):
            provider.create("queue", {})
        assert provider.create("queue", {}).provider_id.startswith("queue-")


class TestLocalFileProvider:
    """Test the file-backed provider."""
    
    def test_create_update_delete(self, tmp_path):
        """Files appear, change and disappear with the resource."""
        provider = LocalFileProvider(str(tmp_path), "dev")
        created = provider.create("bucket", {"name": "logs"})
        path = tmp_path / created.provider_id
        
        assert created.provider_id.startswith("dev/bucket/")
        assert json.loads(path.read_text(encoding="utf-8")) == {"name": "logs"}
        assert created.outputs["path"] == str(path)
        
        outputs = provider.update("bucket", created.provider_id, {"name": "logs", "versioning": True})
        assert outputs["versioning"] is True
        assert json.loads(path.read_text(encoding="utf-8"))["versioning"] is True
        
        provider.delete("bucket", created.provider_id)
        assert not path.exists()
    
    def test_update_missing_resource(self, tmp_path):
        """Updating a vanished resource cannot be fixed by retrying."""
        provider = LocalFileProvider(str(tmp_path), "dev")
        with pytest.raises(PermanentError, match="no longer exists"):
            provider.update("bucket", "dev/bucket/gone.json", {})
    
    def test_delete_missing_is_quiet(self, tmp_path):
        """Deleting something already gone succeeds."""
        LocalFileProvider(str(tmp_path), "dev").delete("bucket", "dev/bucket/gone.json")


class TestRegistry:
    """Test provider construction."""
    
    def test_build_known_kinds(self, tmp_path):
        """Each supported kind builds its provider."""
        assert isinstance(build_provider("simulated", "dev"), SimulatedProvider)
        local = build_provider("local_file", "dev", {"root": str(tmp_path)})
        assert isinstance(local, LocalFileProvider)
        assert local.environment == "dev"
    
    def test_unknown_kind(self):
        """Kinds outside the closed set are rejected."""
        with pytest.raises(ConfigError, match="Unsupported provider kind"):
            parse_kind("mainframe")
    
    def test_missing_required_option(self):
        """local_file needs a root directory."""
        with pytest.raises(ConfigError, match="root"):
            build_provider(ProviderKind.LOCAL_FILE.value, "dev", {})

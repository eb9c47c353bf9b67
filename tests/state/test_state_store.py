"""Tests for state stores."""

import json
import pytest
from converge.state.store import FileStateStore, InMemoryStateStore
from converge.utils.errors import StateError


@pytest.fixture
def file_store(tmp_path):
    return FileStateStore(str(tmp_path / "state"), "staging")


class TestFileStateStore:
    """Test the JSON-file store."""
    
    def test_first_load_is_empty(self, file_store):
        """No file yet means an empty snapshot."""
        snapshot = file_store.load()
        assert snapshot.records == {}
        assert snapshot.serial == 0
        assert snapshot.environment == "staging"
    
    def test_commit_then_load(self, file_store):
        """Committed attributes and provider id come back unchanged."""
        attributes = {"cidr": "10.0.0.0/16", "tags": {"team": "core"}, "azs": ["a", "b"], "multi_az": True}
        file_store.commit("network", "vpc", attributes, "vpc-123", outputs={"id": "vpc-123"}, dependencies=[])
        
        record = file_store.load().get("network")
        assert record.attributes == attributes
        assert record.provider_id == "vpc-123"
        assert record.outputs == {"id": "vpc-123"}
        assert record.type == "vpc"
    
    def test_survives_new_instance(self, file_store, tmp_path):
        """State persists across store instances."""
        file_store.commit("network", "vpc", {"cidr": "10.0.0.0/16"}, "vpc-123")
        reopened = FileStateStore(str(tmp_path / "state"), "staging")
        assert reopened.load().get("network").provider_id == "vpc-123"
    
    def test_environments_are_separate(self, tmp_path):
        """Each environment has its own file."""
        FileStateStore(str(tmp_path), "dev").commit("a", "t", {}, "id-a")
        assert FileStateStore(str(tmp_path), "prod").load().records == {}
        assert (tmp_path / "dev.json").exists()
    
    def test_serial_increments(self, file_store):
        """Every commit and remove bumps the serial."""
        file_store.commit("a", "t", {}, "id-a")
        file_store.commit("b", "t", {}, "id-b")
        file_store.remove("a")
        snapshot = file_store.load()
        assert snapshot.serial == 3
        assert snapshot.names() == ["b"]
    
    def test_remove_missing_is_noop(self, file_store):
        """Removing an unknown record changes nothing."""
        file_store.remove("ghost")
        assert file_store.load().serial == 0
    
    def test_no_temporary_files_left(self, file_store):
        """Atomic writes leave only the state file behind."""
        file_store.commit("a", "t", {}, "id-a")
        assert [p.name for p in file_store.directory.iterdir()] == ["staging.json"]
    
    def test_corrupt_file(self, file_store):
        """Unparsable state is an error, never silently empty."""
        file_store.directory.mkdir(parents=True)
        file_store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StateError, match="Corrupt"):
            file_store.load()
    
    def test_environment_mismatch(self, file_store):
        """A file belonging to another environment is rejected."""
        file_store.directory.mkdir(parents=True)
        file_store.path.write_text(json.dumps({"environment": "prod", "records": {}}), encoding="utf-8")
        with pytest.raises(StateError, match="prod"):
            file_store.load()


class TestInMemoryStateStore:
    """Test the in-memory store."""
    
    def test_loaded_snapshot_is_a_copy(self):
        """Mutating a loaded snapshot does not change the store."""
        store = InMemoryStateStore("dev")
        store.commit("a", "t", {"size": 1}, "id-a")
        snapshot = store.load()
        snapshot.records["a"].attributes["size"] = 99
        del snapshot.records["a"]
        assert store.load().get("a").attributes == {"size": 1}

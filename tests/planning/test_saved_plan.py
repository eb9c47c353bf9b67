"""Tests for saving and re-loading plans."""

import pytest
from converge.execution.context import DeploymentContext
from converge.graph.resource_graph import ResourceGraph
from converge.planning.planner import Planner
from converge.planning.saved_plan import ensure_plan_current, load_plan, save_plan
from converge.state.store import InMemoryStateStore
from converge.utils.errors import PlanError


@pytest.fixture
def saved(tmp_path):
    """A two-resource plan written to disk, plus its store."""
    store = InMemoryStateStore("test")
    graph = ResourceGraph()
    graph.add_resource("network", "vpc", {"cidr": "10.0.0.0/16"})
    graph.add_resource("subnet", "subnet", {"vpc": "${network.id}"})
    plan = Planner(DeploymentContext(environment="test")).plan(graph, store.load())
    path = tmp_path / "plans" / "plan.json"
    save_plan(plan, path)
    return plan, path, store


class TestSavedPlan:
    """Test plan files."""
    
    def test_reload_keeps_actions(self, saved):
        """A reloaded plan has the same ordered actions and edges."""
        plan, path, _ = saved
        loaded = load_plan(str(path))
        assert loaded == plan
        assert loaded.get("subnet").deferred_inputs == ["network.id"]
    
    def test_current_plan_accepted(self, saved):
        """Unchanged state passes the staleness check."""
        plan, _, store = saved
        ensure_plan_current(plan, store.load())
    
    def test_stale_plan_rejected(self, saved):
        """Any state change since planning invalidates the plan."""
        plan, _, store = saved
        store.commit("network", "vpc", {}, "vpc-1")
        with pytest.raises(PlanError, match="stale"):
            ensure_plan_current(plan, store.load())
    
    def test_other_environment_rejected(self, saved):
        """A plan cannot be applied to a different environment."""
        plan, _, _ = saved
        with pytest.raises(PlanError, match="environment"):
            ensure_plan_current(plan, InMemoryStateStore("prod").load())
    
    def test_not_a_plan(self, tmp_path):
        """Garbage files are rejected."""
        path = tmp_path / "plan.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(PlanError):
            load_plan(str(path))

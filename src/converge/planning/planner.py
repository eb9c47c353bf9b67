"""Diff the desired resource graph against the last-applied state and order the changes."""

from typing import Dict, List, Optional, Set
import networkx as nx
from .models import ActionType, Plan, PlannedAction
from ..graph.resource_graph import ResourceGraph
from ..ingest.models import ResourceDeclaration
from ..ingest.references import find_references
from ..providers.registry import parse_kind
from ..state.models import StateRecord, StateSnapshot
from ..utils.logging import get_logger

logger = get_logger("planning.planner")


class Planner:
    """
    Computes a Plan from a desired graph and a state snapshot.
    
    Ordering rules:
    - a dependency with a pending change runs before its dependent's change
    - a change whose previous dependencies include a deleted resource runs
      before that delete, so nothing still in use is destroyed
    - among deletes, dependents go before their dependencies
    - a replaced resource is destroyed only after the deletes of resources
      that depended on it in recorded state
    - an unchanged resource referencing a replaced one is updated after it,
      so it picks up the new identifiers
    Creates/updates follow the forward topological order of the desired
    graph and deletes the reverse order of the recorded state graph; the
    emitted list is a topological order of all the ordering edges.
    """
    
    def __init__(self, context):
        self.context = context
    
    def plan(self, graph: ResourceGraph, snapshot: StateSnapshot, destroy: bool = False) -> Plan:
        """
        Build a plan.
        
        Args:
            graph: Validated desired graph (ignored when ``destroy`` is set)
            snapshot: Current state
            destroy: Treat every declared resource as removed
            
        Returns:
            Plan (possibly empty)
            
        Raises:
            ConfigError: If a resource maps to an unsupported provider kind
        """
        if destroy:
            graph = ResourceGraph()
        
        changes: Dict[str, PlannedAction] = {}
        for name in graph.topological_order():
            resource = graph.get_resource(name)
            record = snapshot.get(name)
            planned = self._diff(resource, graph.dependencies(name), record)
            if planned is None:
                planned = self._rebind(resource, graph.dependencies(name), record, changes)
            if planned is not None:
                changes[name] = planned
        
        removed = [name for name in snapshot.names() if name not in graph]
        deletes: Dict[str, PlannedAction] = {}
        if removed:
            state_graph = ResourceGraph.from_records(snapshot.records.values())
            for name in state_graph.reverse_topological_order():
                if name in removed:
                    deletes[name] = self._delete(snapshot.get(name))
        
        self._link_changes(graph, changes)
        self._link_deletes(snapshot, changes, deletes)
        self._link_replaces(changes, deletes)
        
        plan = Plan(
            environment=self.context.environment,
            state_serial=snapshot.serial,
            destroy=destroy,
            actions=_ordered(list(changes.values()) + list(deletes.values())),
        )
        logger.info(f"Plan for {plan.environment}: {_describe_counts(plan)}")
        return plan
    
    def _diff(
        self,
        resource: ResourceDeclaration,
        dependencies: List[str],
        record: Optional[StateRecord],
    ) -> Optional[PlannedAction]:
        provider = parse_kind(
            self.context.settings.providers.kind_for(resource.type, resource.provider)
        ).value
        
        if record is None:
            return PlannedAction(
                name=resource.name,
                action=ActionType.CREATE,
                resource_type=resource.type,
                provider=provider,
                attributes=resource.attributes,
                dependencies=dependencies,
            )
        
        if record.type != resource.type or record.provider != provider:
            return PlannedAction(
                name=resource.name,
                action=ActionType.REPLACE,
                resource_type=resource.type,
                provider=provider,
                attributes=resource.attributes,
                prior_attributes=record.attributes,
                prior_type=record.type,
                prior_provider=record.provider,
                provider_id=record.provider_id,
                dependencies=dependencies,
                changed_keys=_changed_keys(record.attributes, resource.attributes),
            )
        
        changed = _changed_keys(record.attributes, resource.attributes)
        if changed or sorted(record.dependencies) != sorted(dependencies):
            return PlannedAction(
                name=resource.name,
                action=ActionType.UPDATE,
                resource_type=resource.type,
                provider=provider,
                attributes=resource.attributes,
                prior_attributes=record.attributes,
                provider_id=record.provider_id,
                dependencies=dependencies,
                changed_keys=changed,
            )
        return None
    
    def _rebind(
        self,
        resource: ResourceDeclaration,
        dependencies: List[str],
        record: StateRecord,
        changes: Dict[str, PlannedAction],
    ) -> Optional[PlannedAction]:
        """Update an unchanged resource whose references point at a replaced one."""
        replaced = {
            name for name, planned in changes.items()
            if ActionType(planned.action) == ActionType.REPLACE
        }
        keys = [
            key for key, value in resource.attributes.items()
            if any(target in replaced for target, _ in find_references(value))
        ]
        if not keys:
            return None
        logger.debug(f"{resource.name} references replaced resources through {keys}")
        return PlannedAction(
            name=resource.name,
            action=ActionType.UPDATE,
            resource_type=resource.type,
            provider=record.provider,
            attributes=resource.attributes,
            prior_attributes=record.attributes,
            provider_id=record.provider_id,
            dependencies=dependencies,
            changed_keys=keys,
        )
    
    def _delete(self, record: StateRecord) -> PlannedAction:
        return PlannedAction(
            name=record.name,
            action=ActionType.DELETE,
            resource_type=record.type,
            provider=record.provider,
            prior_attributes=record.attributes,
            provider_id=record.provider_id,
            dependencies=record.dependencies,
        )
    
    def _link_changes(self, graph: ResourceGraph, changes: Dict[str, PlannedAction]) -> None:
        for name, planned in changes.items():
            predecessors = [d for d in graph.dependencies(name) if d in changes]
            planned.depends_on = predecessors
            planned.deferred_inputs = [
                f"{target}.{key}" for target, key in find_references(planned.attributes)
                if target in changes
            ]
            if planned.deferred_inputs:
                logger.debug(f"{name} waits for unresolved inputs: {planned.deferred_inputs}")
    
    def _link_deletes(
        self,
        snapshot: StateSnapshot,
        changes: Dict[str, PlannedAction],
        deletes: Dict[str, PlannedAction],
    ) -> None:
        users: Dict[str, Set[str]] = {name: set() for name in deletes}
        for record in snapshot.records.values():
            for dependency in record.dependencies:
                if dependency in users and record.name != dependency:
                    users[dependency].add(record.name)
        
        order = list(changes) + list(deletes)
        for name, planned in deletes.items():
            predecessors = [
                user for user in users[name] if user in deletes or user in changes
            ]
            planned.depends_on = sorted(predecessors, key=order.index)
    
    def _link_replaces(self, changes: Dict[str, PlannedAction], deletes: Dict[str, PlannedAction]) -> None:
        order = _ordering_graph(list(changes.values()) + list(deletes.values()))
        for name, planned in changes.items():
            if ActionType(planned.action) != ActionType.REPLACE:
                continue
            for delete in deletes.values():
                if name not in delete.dependencies:
                    continue
                # The delete already waits (transitively) on this replace
                if nx.has_path(order, name, delete.name):
                    logger.warning(
                        f"Replacing {name} before deleting its former dependent {delete.name}"
                    )
                    continue
                planned.depends_on.append(delete.name)
                order.add_edge(delete.name, name)


def _ordering_graph(actions: List[PlannedAction]) -> nx.DiGraph:
    """Edges run from each action to the actions waiting for it."""
    order = nx.DiGraph()
    order.add_nodes_from(planned.name for planned in actions)
    for planned in actions:
        for predecessor in planned.depends_on:
            order.add_edge(predecessor, planned.name)
    return order


def _ordered(actions: List[PlannedAction]) -> List[PlannedAction]:
    """Topological order of the ordering edges, ties kept in the given order."""
    position = {planned.name: idx for idx, planned in enumerate(actions)}
    by_name = {planned.name: planned for planned in actions}
    order = _ordering_graph(actions)
    return [by_name[name] for name in nx.lexicographical_topological_sort(order, key=position.get)]


def _changed_keys(prior: Dict, desired: Dict) -> List[str]:
    """Top-level keys whose values differ (deep structural comparison)."""
    keys = list(desired) + [k for k in prior if k not in desired]
    return [k for k in keys if k not in prior or k not in desired or prior[k] != desired[k]]


def _describe_counts(plan: Plan) -> str:
    counts = plan.counts()
    return ", ".join(f"{count} to {action.lower()}" for action, count in counts.items())

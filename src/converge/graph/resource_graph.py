"""Directed resource graph: nodes=resources, edges=dependency -> dependent."""

import networkx as nx
from typing import Any, Dict, Iterable, List, Optional, Set
from ..ingest.models import ResourceDeclaration
from ..ingest.references import referenced_resources
from ..utils.errors import CycleError, DuplicateNameError, UnknownDependencyError
from ..utils.logging import get_logger

logger = get_logger("graph.resource_graph")

WHITE, GRAY, BLACK = 0, 1, 2


class ResourceGraph:
    """
    Declared resources and their dependency edges.
    
    An edge A -> B means A must exist (or be updated) before B is created,
    and B must be destroyed before A. Dependencies are the union of the explicit
    ``depends_on`` list and every resource referenced from the attributes.
    """
    
    def __init__(self):
        self.graph = nx.DiGraph()
        self._order: Dict[str, int] = {}
    
    def add_resource(
        self,
        name: str,
        type: str,
        attributes: Optional[Dict[str, Any]] = None,
        depends_on: Optional[Iterable[str]] = None,
        provider: Optional[str] = None,
    ) -> ResourceDeclaration:
        """
        Declare a resource whose dependencies are already declared.
        
        Raises:
            DuplicateNameError: If ``name`` is already in the graph
            UnknownDependencyError: If a dependency or reference is undeclared
        """
        resource = ResourceDeclaration(
            name=name,
            type=type,
            attributes=attributes or {},
            depends_on=list(depends_on or []),
            provider=provider,
        )
        self._check_dependencies_known(resource, self._order)
        self._add_node(resource)
        self._connect(resource)
        return resource
    
    def build_from_declarations(self, resources: List[ResourceDeclaration]) -> None:
        """
        Build the graph from declarations listed in any order.
        
        Raises:
            DuplicateNameError, UnknownDependencyError, CycleError
        """
        for resource in resources:
            self._add_node(resource)
        
        for resource in resources:
            self._check_dependencies_known(resource, self._order)
            self._connect(resource)
        
        self.validate()
        logger.info(
            f"Built resource graph with {self.graph.number_of_nodes()} nodes "
            f"and {self.graph.number_of_edges()} edges"
        )
    
    def _add_node(self, resource: ResourceDeclaration) -> None:
        if resource.name in self._order:
            raise DuplicateNameError(f"Duplicate resource name: {resource.name}")
        self._order[resource.name] = len(self._order)
        self.graph.add_node(resource.name, resource=resource)
    
    def _connect(self, resource: ResourceDeclaration) -> None:
        for dependency in self.declared_dependencies(resource):
            self.graph.add_edge(dependency, resource.name)
            logger.debug(f"Added dependency edge: {dependency} -> {resource.name}")
    
    @staticmethod
    def declared_dependencies(resource: ResourceDeclaration) -> List[str]:
        """Explicit dependencies followed by implicit reference dependencies."""
        names = list(dict.fromkeys(resource.depends_on))
        for name in referenced_resources(resource.attributes):
            if name not in names:
                names.append(name)
        return names
    
    def _check_dependencies_known(self, resource: ResourceDeclaration, known: Dict[str, int]) -> None:
        for dependency in resource.depends_on:
            if dependency not in known:
                raise UnknownDependencyError(
                    f"Resource '{resource.name}' depends on undeclared resource '{dependency}'"
                )
        for dependency in referenced_resources(resource.attributes):
            if dependency not in known:
                raise UnknownDependencyError(
                    f"Resource '{resource.name}' references undeclared resource '{dependency}'"
                )
    
    def validate(self) -> None:
        """
        Verify the dependency relation is a DAG.
        
        Iterative depth-first traversal with white/gray/black colouring; reaching
        a gray node closes a cycle, which is reported in traversal order.
        
        Raises:
            CycleError: Naming the resources on the first cycle found
        """
        color = {name: WHITE for name in self._order}
        for root in self.names():
            if color[root] != WHITE:
                continue
            color[root] = GRAY
            path = [root]
            stack = [iter(self._sorted(self.graph.successors(root)))]
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    color[path.pop()] = BLACK
                    continue
                if color[child] == GRAY:
                    cycle = path[path.index(child):] + [child]
                    raise CycleError(cycle)
                if color[child] == WHITE:
                    color[child] = GRAY
                    path.append(child)
                    stack.append(iter(self._sorted(self.graph.successors(child))))
    
    def _sorted(self, names: Iterable[str]) -> List[str]:
        return sorted(names, key=self._order.__getitem__)
    
    def topological_order(self) -> List[str]:
        """Dependencies first; ties broken by declaration order."""
        return list(nx.lexicographical_topological_sort(self.graph, key=self._order.__getitem__))
    
    def reverse_topological_order(self) -> List[str]:
        """Dependents first (teardown order)."""
        return list(reversed(self.topological_order()))
    
    def names(self) -> List[str]:
        """Resource names in declaration order."""
        return self._sorted(self._order)
    
    def dependencies(self, name: str) -> List[str]:
        """Direct dependencies of ``name``."""
        return self._sorted(self.graph.predecessors(name))
    
    def dependents(self, name: str) -> List[str]:
        """Resources that directly depend on ``name``."""
        return self._sorted(self.graph.successors(name))
    
    def transitive_dependents(self, name: str) -> Set[str]:
        """Everything that directly or indirectly depends on ``name``."""
        if name not in self.graph:
            return set()
        return set(nx.descendants(self.graph, name))
    
    def get_resource(self, name: str) -> Optional[ResourceDeclaration]:
        """Get declared resource by name."""
        if name not in self.graph:
            return None
        return self.graph.nodes[name]["resource"]
    
    def __contains__(self, name: str) -> bool:
        return name in self._order
    
    def __len__(self) -> int:
        return len(self._order)
    
    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "ResourceGraph":
        """
        Rebuild a graph from persisted state records.
        
        Edges to names missing from state are dropped; used to order deletes.
        """
        graph = cls()
        records = list(records)
        for record in records:
            graph._add_node(ResourceDeclaration(
                name=record.name,
                type=record.type,
                attributes=record.attributes,
                depends_on=[d for d in record.dependencies if d != record.name],
                provider=record.provider,
            ))
        for record in records:
            for dependency in record.dependencies:
                if dependency in graph and dependency != record.name:
                    graph.graph.add_edge(dependency, record.name)
        graph.validate()
        return graph

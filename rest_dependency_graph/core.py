import networkx as nx
from typing import Dict, List, Optional, Iterable
from .operation import OperationShape
from .dependency import Dependency
from .enums import DependencyKind, VerificationStatus

class DependencyGraph:
    """
    Operations plus the candidate dependency list.

    Dependencies are a multiset: several edges may join the same pair, so the
    networkx view is a MultiDiGraph with one edge per list entry. No ordering or
    cycle handling is done here.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self.operations: Dict[str, OperationShape] = {}
        self.dependencies: List[Dependency] = []

    def add_operation(self, operation: OperationShape):
        """Add an operation node to the graph with a lightweight summary."""
        if operation.id in self.operations:
            return
        self.operations[operation.id] = operation
        self.graph.add_node(operation.id, **operation.get_summary())

    def add_dependency(self, dependency: Dependency):
        self.dependencies.append(dependency)
        self.graph.add_edge(
            dependency.from_operation,
            dependency.to_operation,
            **dependency.get_graph_summary()
        )

    def replace_dependencies(self, dependencies: Iterable[Dependency]):
        """Swap in a new dependency list (e.g. annotated with verification)"""
        self.graph.remove_edges_from(list(self.graph.edges(keys=True)))
        self.dependencies = []
        for dep in dependencies:
            self.add_dependency(dep)

    def get_dependencies(self, operation_id: str,
                         kind: Optional[DependencyKind] = None) -> List[Dependency]:
        """Get all dependencies consumed by an operation"""
        deps = [d for d in self.dependencies if d.to_operation == operation_id]
        if kind:
            deps = [d for d in deps if d.kind == kind]
        return deps

    def get_dependents(self, operation_id: str) -> List[Dependency]:
        """Get all dependencies provided by an operation"""
        return [d for d in self.dependencies if d.from_operation == operation_id]

    def verified_dependencies(self) -> List[Dependency]:
        return [d for d in self.dependencies if d.verification == VerificationStatus.VERIFIED]

    def ordered_operations(self) -> List[OperationShape]:
        """Operations in document order"""
        return list(self.operations.values())

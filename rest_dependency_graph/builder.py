from collections import Counter
from typing import List
from .core import DependencyGraph
from .operation import OperationShape
from .parameter_analyzer import ParameterDependencyAnalyzer
from .auth_analyzer import AuthDependencyAnalyzer

class DependencyGraphBuilder:
    """Run every heuristic over the operation list and collect all of their candidates"""

    def __init__(self, operations: List[OperationShape]):
        self.operations = operations
        self.graph = DependencyGraph()

    def build(self) -> DependencyGraph:
        """Main method to build the candidate dependency graph"""
        print("\nAdding operations to graph...")
        for op in self.operations:
            self.graph.add_operation(op)
        print(f"  Added {len(self.graph.operations)} operations")

        print("\nAnalyzing dependencies...")

        print("  - Field and parameter dependencies...")
        param_deps = ParameterDependencyAnalyzer(self.operations).analyze()
        print(f"    Found {len(param_deps)} dependencies")

        print("  - Authentication dependencies...")
        auth_deps = AuthDependencyAnalyzer(self.operations).analyze()
        print(f"    Found {len(auth_deps)} dependencies")

        # Overlapping edges are kept; verification decides which ones hold
        for dep in param_deps + auth_deps:
            self.graph.add_dependency(dep)

        per_reason = Counter(dep.reason.value for dep in self.graph.dependencies)
        for reason, count in sorted(per_reason.items()):
            print(f"    {reason}: {count}")

        return self.graph

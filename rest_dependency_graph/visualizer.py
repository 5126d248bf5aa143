import networkx as nx
import pydot
from .core import DependencyGraph
from .dependency import Dependency
from .enums import HTTPMethod
from .operation import OperationShape

class GraphVisualizer:
    """Visualize the dependency graph"""

    def __init__(self, graph: DependencyGraph):
        self.graph = graph

    def export_dot(self, output_path: str):
        """Export graph to DOT format (Graphviz), one edge per dependency"""
        dot_graph = pydot.Dot(graph_type='digraph', rankdir='LR')

        for op_id, op in self.graph.operations.items():
            dot_graph.add_node(pydot.Node(
                op_id,
                label=f"{op.method.value} {op.path}",
                shape='box',
                style='filled',
                fillcolor=self._get_node_color(op)
            ))

        for dep in self.graph.dependencies:
            dot_graph.add_edge(pydot.Edge(
                dep.from_operation,
                dep.to_operation,
                label=f"{dep.field} ({dep.reason.value})",
                color=self._get_edge_color(dep),
                style='solid' if dep.is_verified else 'dashed'
            ))

        dot_graph.write_raw(output_path)
        print(f"Exported DOT graph to {output_path}")

    def export_graphml(self, output_path: str):
        """Export to GraphML format"""
        nx.write_graphml(self.graph.graph, output_path)
        print(f"Exported GraphML to {output_path}")

    def _get_node_color(self, operation: OperationShape) -> str:
        colors = {
            HTTPMethod.GET: '#4CAF50',
            HTTPMethod.POST: '#2196F3',
            HTTPMethod.PUT: '#FF9800',
            HTTPMethod.PATCH: '#FF9800',
            HTTPMethod.DELETE: '#F44336'
        }
        return colors.get(operation.method, '#9E9E9E')

    def _get_edge_color(self, dependency: Dependency) -> str:
        if dependency.verification is None:
            return '#607D8B'
        return '#2E7D32' if dependency.is_verified else '#B0BEC5'

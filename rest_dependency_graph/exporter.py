import copy
import json
import os
import yaml
from typing import Dict, Any, List, Optional
from .core import DependencyGraph
from .dependency import Dependency
from .operation import OperationShape
from .parser import iter_operations, operation_id_for
from .validator import ValidationResult

def format_dependency_line(dep: Dependency) -> str:
    status = f", {dep.verification.value}" if dep.verification else ""
    return (f"- {dep.from_operation} -> {dep.to_operation} [{dep.kind.value}] "
            f"{dep.field}:{dep.type} ({dep.reason.value}, {dep.confidence:.2f}{status})")

class ReportWriter:
    """Write JSON and Markdown reports for one run into `output_dir`"""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def _path(self, filename: str) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        return os.path.join(self.output_dir, filename)

    def write_json_report(self, operations: List[OperationShape], dependencies: List[Dependency],
                          refinement=None, validation: Optional[ValidationResult] = None) -> str:
        data: Dict[str, Any] = {
            'operations': [op.to_dict() for op in operations],
            'dependencies': [dep.to_dict() for dep in dependencies]
        }
        if validation is not None:
            data['validation'] = validation.to_dict()
        if refinement is not None:
            data['refinementChanges'] = [
                {'dependency': c.dependency.to_dict(), 'before': c.before.value, 'after': c.after.value}
                for c in refinement.changes
            ]
            data['operationResults'] = [
                {'id': op_id, 'status': r.status, 'ok': r.ok}
                for op_id, r in refinement.operation_results.items()
            ]
            data['iterations'] = [it.to_dict() for it in refinement.iterations]

        path = self._path('dependencies.json')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        print(f"Exported JSON report to {path}")
        return path

    def write_markdown_summary(self, operations: List[OperationShape],
                               dependencies: List[Dependency]) -> str:
        lines = ["# Dependency Summary", "", "## Operations", ""]
        for op in operations:
            lines.append(f"- {op.id} ({op.method.value} {op.path})")
        lines += ["", "## Dependencies", ""]
        if not dependencies:
            lines.append("No dependencies found.")
        lines += [format_dependency_line(dep) for dep in dependencies]
        lines.append("")
        return self._write_lines('summary.md', lines)

    def write_refinement_diff(self, refinement) -> str:
        dependencies = refinement.dependencies
        changed = [c for c in refinement.changes if c.changed]
        verified = [d for d in dependencies if d.is_verified]
        unverified = [d for d in dependencies if not d.is_verified]

        lines = [
            "# Refinement Diff", "",
            f"Total dependencies: {len(dependencies)}",
            f"Verified after refinement: {len(verified)}",
            f"Changed after refinement: {len(changed)}",
            "", "## Changes", ""
        ]
        if not changed:
            lines.append("No dependencies changed after refinement.")
        for change in changed:
            lines.append(f"- {change.before.value} -> {change.after.value}: "
                         f"{format_dependency_line(change.dependency)[2:]}")

        lines += ["", "## Verified Dependencies", ""]
        lines += [format_dependency_line(d) for d in verified]
        lines += ["", "## Unverified Dependencies", ""]
        if not unverified:
            lines.append("All dependencies verified.")
        lines += [format_dependency_line(d) for d in unverified]
        lines.append("")
        return self._write_lines('refinement-diff.md', lines)

    def write_iteration_report(self, refinement) -> str:
        lines = ["# Refinement Iterations", "",
                 f"Total dependencies: {len(refinement.dependencies)}", ""]
        for it in refinement.iterations:
            lines += [
                f"## Iteration {it.iteration} ({it.phase.value})", "",
                f"- operations ok: {it.ok_operations}/{it.total_operations}",
                f"- new outputs: {it.new_outputs}",
                f"- newly verified dependencies: {len(it.newly_verified)}",
                ""
            ]
            if not it.newly_verified:
                lines.append("No new dependencies verified in this iteration.")
            for dep in it.newly_verified:
                lines.append(f"- {dep.from_operation} -> {dep.to_operation} [{dep.kind.value}] "
                             f"{dep.field}:{dep.type} ({dep.reason.value})")
            lines.append("")
        return self._write_lines('refinement-iterations.md', lines)

    def _write_lines(self, filename: str, lines: List[str]) -> str:
        path = self._path(filename)
        with open(path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines))
        print(f"Exported {filename} to {path}")
        return path

class AnnotationExporter:
    """Export the API description back with an x-dependencies list per operation"""

    def __init__(self, graph: DependencyGraph, original_spec: Dict[str, Any]):
        self.graph = graph
        self.original_spec = original_spec

    def annotate(self) -> Dict[str, Any]:
        annotated_spec = copy.deepcopy(self.original_spec)
        for path, method, operation_spec, _ in iter_operations(annotated_spec):
            deps = self.graph.get_dependencies(operation_id_for(method, path, operation_spec))
            if deps:
                operation_spec['x-dependencies'] = [self._annotation(d) for d in deps]
        return annotated_spec

    def export_annotated_spec(self, output_path: str) -> str:
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.annotate(), f, default_flow_style=False, sort_keys=False)
        print(f"Exported annotated OpenAPI specification to {output_path}")
        return output_path

    @staticmethod
    def _annotation(dep: Dependency) -> Dict[str, Any]:
        annotation = {
            'operation': dep.from_operation,
            'field': dep.field,
            'kind': dep.kind.value,
            'reason': dep.reason.value,
            'confidence': dep.confidence
        }
        if dep.verification is not None:
            annotation['verification'] = dep.verification.value
        return annotation

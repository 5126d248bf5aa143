import os
import time
from collections import Counter
from datetime import datetime
from typing import Optional, Dict, Any, List
from .builder import DependencyGraphBuilder
from .core import DependencyGraph
from .exporter import ReportWriter, AnnotationExporter
from .operation import OperationShape
from .parser import OpenAPIParser
from .refinement import RuntimeRefiner, RefinementResult
from .validator import SpecValidator, ValidationResult
from .visualizer import GraphVisualizer

GENERIC_SPEC_DIRS = {'', '.', 'src', 'resources'}

def app_slug(spec_path: str) -> str:
    """Parent directory name, unless it is generic, else the file name without extension"""
    dir_name = os.path.basename(os.path.dirname(spec_path))
    if dir_name not in GENERIC_SPEC_DIRS:
        return dir_name
    name = os.path.basename(spec_path)
    for ext in ('.yaml', '.yml', '.json'):
        if name.lower().endswith(ext):
            return name[:-len(ext)]
    return name

def run_output_dir(base_dir: str, spec_path: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime('%Y%m%d-%H%M%S')
    return os.path.join(base_dir, f"{app_slug(spec_path)}-{stamp}")

class CompleteDependencyGraphBuilder:
    """
    End-to-end pipeline: load and validate the description, extract operation
    shapes, propose candidate dependencies, optionally refine them against a
    live service, and export reports.
    """

    def __init__(self, spec_path: Optional[str] = None, spec: Optional[Dict[str, Any]] = None,
                 base_url: Optional[str] = None, max_iterations: int = 5, transport=None):
        if spec_path is None and spec is None:
            raise ValueError("Either spec_path or spec is required")
        self.spec_path = spec_path
        self.base_url = base_url
        self.max_iterations = max_iterations
        self.transport = transport

        self.parser = OpenAPIParser(spec_path=spec_path, spec=spec)
        self.validation: Optional[ValidationResult] = None
        self.operations: List[OperationShape] = []
        self.graph: Optional[DependencyGraph] = None
        self.refinement: Optional[RefinementResult] = None

    def build_complete_graph(self) -> DependencyGraph:
        """
        Steps:
        1. Load the description
        2. Validate it (fatal problems raise SpecValidationError)
        3. Extract operation shapes
        4. Propose candidate dependencies
        """
        print("=" * 80)
        print("DEPENDENCY GRAPH BUILDER")
        print("=" * 80)
        start_time = time.time()

        print("\nStep 1: Loading API description...")
        if not self.parser.spec:
            self.parser.load()

        print("\nStep 2: Validating API description...")
        validator = SpecValidator(self.parser.spec)
        self.validation = validator.validate()
        for message in self.validation.errors:
            print(f"  Validation error: {message}")
        for message in self.validation.warnings:
            print(f"  Validation warning: {message}")
        validator.validate_or_raise()

        print("\nStep 3: Extracting operations...")
        self.operations = self.parser.parse()
        print(f"  Found {len(self.operations)} operations")

        print("\nStep 4: Proposing candidate dependencies...")
        self.graph = DependencyGraphBuilder(self.operations).build()
        print(f"  {len(self.graph.dependencies)} candidate dependencies")

        elapsed = time.time() - start_time
        print(f"\n✓ Graph building completed in {elapsed:.2f} seconds")
        return self.graph

    def refine(self) -> RefinementResult:
        """Verify the candidates against the live service at base_url"""
        if self.graph is None:
            self.build_complete_graph()
        if not self.base_url:
            raise RuntimeError("Runtime refinement needs a base_url")

        print("\n[REFINEMENT] Driving the live API")
        print("-" * 80)
        refiner = RuntimeRefiner(
            self.parser.spec,
            self.operations,
            list(self.graph.dependencies),
            base_url=self.base_url,
            max_iterations=self.max_iterations,
            transport=self.transport
        )
        self.refinement = refiner.refine()
        self.graph.replace_dependencies(self.refinement.dependencies)
        return self.refinement

    def export_all_formats(self, output_dir: str = './output') -> str:
        """Export reports and graph files into output_dir"""
        if self.graph is None:
            raise RuntimeError("Build the graph before exporting")
        os.makedirs(output_dir, exist_ok=True)
        print("\n[EXPORT] Exporting dependency graph...")

        writer = ReportWriter(output_dir)
        writer.write_json_report(self.operations, self.graph.dependencies,
                                 refinement=self.refinement, validation=self.validation)
        writer.write_markdown_summary(self.operations, self.graph.dependencies)
        if self.refinement is not None:
            writer.write_refinement_diff(self.refinement)
            writer.write_iteration_report(self.refinement)

        AnnotationExporter(self.graph, self.parser.spec).export_annotated_spec(
            os.path.join(output_dir, 'annotated_spec.yaml'))

        visualizer = GraphVisualizer(self.graph)
        visualizer.export_dot(os.path.join(output_dir, 'graph.dot'))
        visualizer.export_graphml(os.path.join(output_dir, 'graph.graphml'))

        print(f"\n✓ All exports completed in {output_dir}/")
        return output_dir

    def get_dependency_types_summary(self) -> Dict[str, int]:
        """Count dependencies per reason"""
        if self.graph is None:
            return {}
        return dict(Counter(dep.reason.value for dep in self.graph.dependencies))

"""
Infer and verify data-flow dependencies between the operations of a REST API.
"""

from typing import Optional
from .complete_builder import CompleteDependencyGraphBuilder, run_output_dir
from .builder import DependencyGraphBuilder
from .core import DependencyGraph
from .parser import OpenAPIParser, load_document
from .schema_flattener import SchemaFlattener, resolve_ref
from .validator import SpecValidator, SpecValidationError, ValidationResult
from .example_extractor import ExampleExtractor, ExampleInput
from .parameter_analyzer import ParameterDependencyAnalyzer
from .auth_analyzer import AuthDependencyAnalyzer
from .evidence import Evidence, EvidenceStore, OutputPool, RequestEvidence
from .refinement import RuntimeRefiner, RefinementResult, IterationSummary
from .verifier import verify_dependency
from .http_client import HTTPTransport
from .exporter import ReportWriter, AnnotationExporter
from .visualizer import GraphVisualizer
from .dependency import Dependency
from .operation import OperationShape
from .parameter import FieldDescriptor, ParamDescriptor
from .response import HttpResponse
from .enums import (DependencyKind, DependencyReason, HTTPMethod, ParameterLocation,
                    Phase, VerificationStatus)

def build_dependency_graph_from_openapi(
    spec_path: str,
    base_url: Optional[str] = None,
    max_iterations: int = 5,
    export_results: bool = True,
    output_dir: str = './output',
    transport=None
) -> DependencyGraph:
    """
    Build the candidate dependency graph and, when base_url is given,
    verify it against the live service.
    """
    builder = CompleteDependencyGraphBuilder(
        spec_path, base_url=base_url, max_iterations=max_iterations, transport=transport
    )
    graph = builder.build_complete_graph()
    if base_url:
        builder.refine()

    if export_results:
        builder.export_all_formats(run_output_dir(output_dir, spec_path))

    print("\nDependency Reasons Summary:")
    summary = builder.get_dependency_types_summary()
    for reason, count in sorted(summary.items(), key=lambda x: x[1], reverse=True):
        print(f"  {reason}: {count}")

    return graph

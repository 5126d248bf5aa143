"""
Infer operation dependencies from an OpenAPI description and verify them
against a running service.

Usage:
    python refine_dependencies.py --spec path/to/openapi.yaml [--base http://localhost:3000]
                                  [--out output] [--max-iterations 5] [--static-only]
"""

import sys
import argparse
from typing import Optional, List
from rest_dependency_graph import CompleteDependencyGraphBuilder, HTTPTransport, SpecValidationError
from rest_dependency_graph.complete_builder import run_output_dir


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Infer and verify data-flow dependencies between REST API operations"
    )
    parser.add_argument(
        '--spec', '-s',
        required=True,
        help='Path to the OpenAPI description (yaml/json)'
    )
    parser.add_argument(
        '--base', '-b',
        default='http://localhost:3000',
        help='Base URL of the running service (default: http://localhost:3000)'
    )
    parser.add_argument(
        '--out', '-o',
        default='output',
        help='Directory that receives one folder per run (default: output)'
    )
    parser.add_argument(
        '--max-iterations',
        type=int,
        default=5,
        help='Iteration cap for runtime refinement, example phase included (default: 5)'
    )
    parser.add_argument(
        '--static-only',
        action='store_true',
        help='Skip live refinement and only write the static reports'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Per-request timeout in seconds (default: none)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    transport = None if args.static_only else HTTPTransport(timeout=args.timeout)
    try:
        builder = CompleteDependencyGraphBuilder(
            args.spec,
            base_url=args.base,
            max_iterations=args.max_iterations,
            transport=transport
        )
        graph = builder.build_complete_graph()
        if not args.static_only:
            builder.refine()

        output_dir = builder.export_all_formats(run_output_dir(args.out, args.spec))
    except SpecValidationError as e:
        print(f"✗ Invalid API description: {e}")
        return 1
    except (ValueError, FileNotFoundError, RuntimeError) as e:
        print(f"✗ {e}")
        return 1
    finally:
        if transport is not None:
            transport.close()

    print()
    print("SUMMARY")
    print("-" * 50)
    print(f"  Operations:    {len(graph.operations)}")
    print(f"  Dependencies:  {len(graph.dependencies)}")
    print(f"  Reports in:    {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

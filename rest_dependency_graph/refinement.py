import copy
import requests
from dataclasses import dataclass, field, replace
from typing import Dict, Any, List, Optional, Tuple, Set
from urllib.parse import quote
from .operation import OperationShape
from .dependency import Dependency
from .enums import Phase, VerificationStatus
from .evidence import (Evidence, EvidenceStore, OutputPool, RequestEvidence,
                       extract_response_values, set_value_by_path)
from .example_extractor import ExampleExtractor, ExampleInput
from .http_client import HTTPTransport
from .naming import stringify_value
from .parser import iter_operations
from .response import HttpResponse
from .verifier import verify_dependency, BEARER_PREFIX
from .auth_analyzer import AUTH_HEADER

# Bare top-level markers produced by the flattener, not dotted body paths
BARE_FIELD_NAMES = {'[]', 'value'}

@dataclass
class IterationSummary:
    iteration: int
    phase: Phase
    ok_operations: int
    total_operations: int
    new_outputs: int
    newly_verified: List[Dependency] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'iteration': self.iteration,
            'phase': self.phase.value,
            'okOperations': self.ok_operations,
            'totalOperations': self.total_operations,
            'newOutputs': self.new_outputs,
            'newlyVerified': [d.to_dict() for d in self.newly_verified]
        }

@dataclass
class OperationResult:
    status: int
    ok: bool

@dataclass
class RefinementChange:
    dependency: Dependency
    before: VerificationStatus
    after: VerificationStatus

    @property
    def changed(self) -> bool:
        return self.before != self.after

@dataclass
class RefinementContext:
    """Everything one refinement run accumulates. Owned by that run only."""
    evidence: EvidenceStore = field(default_factory=EvidenceStore)
    pool: OutputPool = field(default_factory=OutputPool)
    operation_results: Dict[str, OperationResult] = field(default_factory=dict)

@dataclass
class RefinementResult:
    dependencies: List[Dependency]
    iterations: List[IterationSummary]
    operation_results: Dict[str, OperationResult]
    changes: List[RefinementChange]

    @property
    def verified_count(self) -> int:
        return sum(1 for d in self.dependencies if d.is_verified)

class RuntimeRefiner:
    """
    Drive the live API to confirm or reject candidate dependencies.

    Iteration 1 replays the literal examples of every operation. Later
    iterations fill inputs from the output pool. Operations run strictly
    sequentially in document order, so an operation can consume what an
    earlier one produced in the same iteration. The loop stops after a
    filled iteration with no successful call and no newly verified
    dependency, or at `max_iterations`.
    """

    def __init__(self, spec: Dict[str, Any], operations: List[OperationShape],
                 dependencies: List[Dependency], base_url: str,
                 max_iterations: int = 5, transport: Optional[Any] = None):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        self.spec = spec
        self.operations = operations
        self.dependencies = dependencies
        self.base_url = base_url.rstrip('/')
        self.max_iterations = max_iterations
        self.transport = transport or HTTPTransport()
        self.examples = self._extract_examples()

    def _extract_examples(self) -> Dict[Tuple[str, str], ExampleInput]:
        extractor = ExampleExtractor(self.spec)
        return {
            (path, method): extractor.extract(op_spec, parameters)
            for path, method, op_spec, parameters in iter_operations(self.spec)
        }

    def refine(self) -> RefinementResult:
        print(f"Refining {len(self.dependencies)} dependencies against {self.base_url}")
        ctx = RefinementContext()
        iterations = [self.run_iteration(ctx, Phase.EXAMPLE, 1)]

        for iteration in range(2, self.max_iterations + 1):
            summary = self.run_iteration(ctx, Phase.FILLED, iteration)
            iterations.append(summary)
            if summary.ok_operations == 0 and not summary.newly_verified:
                print("  No progress, stopping refinement")
                break

        refined = [replace(d, verification=verify_dependency(d, ctx.evidence)) for d in self.dependencies]
        changes = [RefinementChange(d, VerificationStatus.UNVERIFIED, d.verification) for d in refined]

        result = RefinementResult(
            dependencies=refined,
            iterations=iterations,
            operation_results=dict(ctx.operation_results),
            changes=changes
        )
        print(f"Verified {result.verified_count}/{len(refined)} dependencies.")
        return result

    def run_iteration(self, ctx: RefinementContext, phase: Phase, iteration: int) -> IterationSummary:
        previously_verified = self._verified_keys(ctx.evidence)
        previous_pool_size = ctx.pool.size()
        ok_count = 0

        for operation in self.operations:
            example = self.examples.get((operation.path, operation.method.value.lower()))
            if example is None:
                print(f"  ✗ Missing definition for {operation.id}")
                ctx.operation_results[operation.id] = OperationResult(status=0, ok=False)
                continue

            if phase == Phase.FILLED:
                # Earlier calls of this iteration are visible to later ones
                ctx.pool = OutputPool.build(ctx.evidence, self.operations)
                inputs = self.fill_inputs(operation, ctx.pool, example)
            else:
                inputs = copy.deepcopy(example)

            response = self.call_and_record(ctx, operation, inputs, phase)
            ctx.operation_results[operation.id] = OperationResult(status=response.status, ok=response.ok)
            if response.ok:
                ok_count += 1

        ctx.pool = OutputPool.build(ctx.evidence, self.operations)
        newly_verified = [
            d for d in self.dependencies
            if d.key() not in previously_verified
            and verify_dependency(d, ctx.evidence) == VerificationStatus.VERIFIED
        ]

        summary = IterationSummary(
            iteration=iteration,
            phase=phase,
            ok_operations=ok_count,
            total_operations=len(self.operations),
            new_outputs=max(0, ctx.pool.size() - previous_pool_size),
            newly_verified=newly_verified
        )
        print(f"  Iteration {iteration} ({phase.value}): {ok_count}/{len(self.operations)} ok, "
              f"+{summary.new_outputs} outputs, {len(newly_verified)} newly verified")
        return summary

    def _verified_keys(self, store: EvidenceStore) -> Set[Tuple[str, str, str, str]]:
        return {
            d.key() for d in self.dependencies
            if verify_dependency(d, store) == VerificationStatus.VERIFIED
        }

    def fill_inputs(self, operation: OperationShape, pool: OutputPool,
                    example: ExampleInput) -> ExampleInput:
        """Start from the example inputs and overwrite whatever the pool can provide"""
        body = copy.deepcopy(example.body) if example.body is not None else {}
        filled = ExampleInput(
            body=body,
            path=dict(example.path),
            query=dict(example.query),
            header=dict(example.header),
            cookie=dict(example.cookie)
        )

        if isinstance(filled.body, dict):
            for request_field in operation.request_fields:
                if request_field.name in BARE_FIELD_NAMES:
                    continue
                candidate = pool.resolve(request_field.name)
                if candidate is not None:
                    set_value_by_path(filled.body, request_field.name, candidate)

        for param in operation.path_params + operation.other_params:
            candidate = pool.resolve(param.name)
            if candidate is not None:
                filled.params_for(param.location)[param.name] = stringify_value(candidate) or ''

        if operation.requires_auth:
            token = stringify_value(pool.latest_token())
            if token:
                for name in [h for h in filled.header if h.lower() == AUTH_HEADER.lower()]:
                    del filled.header[name]
                filled.header[AUTH_HEADER] = token if token.startswith(BEARER_PREFIX) else f"{BEARER_PREFIX}{token}"

        return filled

    def call_and_record(self, ctx: RefinementContext, operation: OperationShape,
                        inputs: ExampleInput, phase: Phase) -> HttpResponse:
        """Execute one operation; a failed call becomes a failed Evidence entry"""
        path = operation.path
        for name, value in inputs.path.items():
            path = path.replace(f"{{{name}}}", quote(str(value), safe=''))
        url = f"{self.base_url}{path}"

        headers = dict(inputs.header)
        body = inputs.body if operation.method.allows_body else None
        if body is not None and not any(k.lower() == 'content-type' for k in headers):
            headers['Content-Type'] = 'application/json'

        try:
            response = self.transport.request(
                operation.method.value, url,
                headers=headers, body=body,
                params=inputs.query, cookies=inputs.cookie
            )
        except (requests.RequestException, ValueError, OSError) as e:
            print(f"  ✗ Execution failed for {operation.id} ({phase.value}): {e}")
            response = HttpResponse(status=0)

        ctx.evidence.record(operation.id, Evidence(
            request=RequestEvidence(
                body=body if body is not None else {},
                path=dict(inputs.path),
                query=dict(inputs.query),
                header={k.lower(): v for k, v in headers.items()},
                cookie=dict(inputs.cookie)
            ),
            response=extract_response_values(operation, response.data) if response.ok else {},
            status=response.status,
            ok=response.ok,
            phase=phase
        ))
        return response

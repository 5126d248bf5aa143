"""
Pre-flight validation of an API description.

Only three conditions are fatal (they make any verification impossible):
a missing `openapi` version marker, no declared operations, and no
operation exposing a 2xx response. Everything else degrades gracefully
and is reported as a warning.
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List
from .parser import iter_operations, pick_success_response, pick_media_type, deref, operation_id_for
from .example_extractor import pick_example

class SpecValidationError(ValueError):
    """Raised when the description cannot be analyzed at all"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

@dataclass
class ValidationStats:
    total_operations: int = 0
    operations_with_2xx: int = 0
    operations_with_response_schema: int = 0
    operations_with_request_schema: int = 0
    operations_with_request_examples: int = 0
    total_params: int = 0
    params_with_examples: int = 0
    params_missing_schema: int = 0
    auth_operations: int = 0

@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: ValidationStats = field(default_factory=ValidationStats)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {'errors': self.errors, 'warnings': self.warnings, 'stats': asdict(self.stats)}

class SpecValidator:
    """Decide whether dependency analysis can proceed on a document"""

    def __init__(self, spec: Dict[str, Any]):
        self.spec = spec or {}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        stats = result.stats

        if not self.spec.get('openapi'):
            result.errors.append("Missing openapi field.")
            return result

        if not self.spec.get('paths'):
            result.errors.append("No paths found in the OpenAPI spec.")
            return result

        schemes = (self.spec.get('components') or {}).get('securitySchemes') or {}

        for path, method, op, params in iter_operations(self.spec):
            stats.total_operations += 1
            op_id = operation_id_for(method, path, op)

            success = pick_success_response(self.spec, op.get('responses'))
            if success is not None:
                stats.operations_with_2xx += 1
                if self._media_schema(success) is not None:
                    stats.operations_with_response_schema += 1
                else:
                    result.warnings.append(f"Operation {op_id} has a 2xx response without a schema.")
            else:
                result.warnings.append(f"Operation {op_id} has no 2xx response.")

            request_body = deref(self.spec, op.get('requestBody'))
            if request_body:
                if self._media_schema(request_body) is not None:
                    stats.operations_with_request_schema += 1
                else:
                    result.warnings.append(f"Operation {op_id} has a request body without a schema.")

                if self._has_request_example(request_body):
                    stats.operations_with_request_examples += 1
                else:
                    result.warnings.append(f"Operation {op_id} has a request body without an example.")

            stats.total_params += len(params)
            for param in params:
                schema = param.get('schema')
                if not isinstance(schema, dict) or not (schema.get('type') or schema.get('$ref')):
                    stats.params_missing_schema += 1
                if self._has_param_example(param):
                    stats.params_with_examples += 1
                else:
                    result.warnings.append(f"Operation {op_id} parameter '{param.get('name')}' has no example.")

            security = op.get('security') or []
            if security:
                stats.auth_operations += 1
                for requirement in security:
                    for scheme_name in (requirement or {}):
                        if scheme_name not in schemes:
                            result.warnings.append(
                                f"Operation {op_id} references missing security scheme '{scheme_name}'."
                            )

        if stats.total_operations == 0:
            result.errors.append("No operations found in OpenAPI paths.")
        elif stats.operations_with_2xx == 0:
            result.errors.append("No operations expose a 2xx response; dependency extraction cannot proceed.")

        if stats.params_missing_schema > 0:
            result.warnings.append(f"Found {stats.params_missing_schema} parameters without schema/type.")

        return result

    def validate_or_raise(self) -> ValidationResult:
        result = self.validate()
        if result.errors:
            raise SpecValidationError(result.errors)
        return result

    @staticmethod
    def _media_schema(container: Dict[str, Any]):
        media = pick_media_type(container.get('content'))
        return media.get('schema') if media else None

    @staticmethod
    def _has_request_example(request_body: Dict[str, Any]) -> bool:
        media = pick_media_type(request_body.get('content'))
        if not media:
            return False
        if pick_example(media.get('example'), media.get('examples')) is not None:
            return True
        schema = media.get('schema') if isinstance(media.get('schema'), dict) else {}
        return pick_example(schema.get('example'), schema.get('examples')) is not None

    @staticmethod
    def _has_param_example(param: Dict[str, Any]) -> bool:
        schema = param.get('schema') if isinstance(param.get('schema'), dict) else {}
        return any([
            'example' in param,
            bool(param.get('examples')),
            'example' in schema,
            bool(schema.get('examples')),
        ])

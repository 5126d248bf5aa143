from typing import List, Optional
from .operation import OperationShape
from .dependency import Dependency
from .enums import DependencyKind, DependencyReason
from .naming import normalize_name

AUTH_HEADER = 'Authorization'
AUTH_CONFIDENCE = 0.85

def token_field_name(operation: OperationShape) -> Optional[str]:
    """First response field whose normalized name contains 'token'"""
    for field in operation.response_fields:
        if 'token' in normalize_name(field.name):
            return field.name
    return None

class AuthDependencyAnalyzer:
    """Token providers feed the bearer header of every operation that requires auth"""

    def __init__(self, operations: List[OperationShape]):
        self.operations = operations
        self.dependencies: List[Dependency] = []

    def analyze(self) -> List[Dependency]:
        dependencies = []
        consumers = [op for op in self.operations if op.requires_auth]

        for provider in self.operations:
            token_field = token_field_name(provider)
            if token_field is None:
                continue
            for consumer in consumers:
                if provider.id == consumer.id:
                    continue
                dependencies.append(Dependency(
                    from_operation=provider.id,
                    to_operation=consumer.id,
                    field=AUTH_HEADER,
                    type='string',
                    kind=DependencyKind.AUTH,
                    reason=DependencyReason.AUTH,
                    confidence=AUTH_CONFIDENCE,
                    source_field=token_field
                ))

        self.dependencies = dependencies
        return dependencies

from typing import List, Iterable, Tuple
from .operation import OperationShape
from .parameter import FieldDescriptor
from .dependency import Dependency
from .enums import DependencyKind, DependencyReason
from .naming import normalize_name, split_tokens, infer_entity

EXACT_NAME_CONFIDENCE = 0.9
EXACT_NAME_WITH_FORMAT_CONFIDENCE = 0.95
TOKEN_MATCH_CONFIDENCE = 0.7
ENTITY_ID_CONFIDENCE = 0.8

def types_compatible(a: FieldDescriptor, b: FieldDescriptor) -> bool:
    """Same primitive type; formats must agree only when both sides declare one"""
    if a.type != b.type:
        return False
    if a.format and b.format:
        return a.format == b.format
    return True

class ParameterDependencyAnalyzer:
    """Analyze producer-consumer dependencies between response fields and inputs"""

    def __init__(self, operations: List[OperationShape]):
        self.operations = operations
        self.dependencies: List[Dependency] = []

    def analyze(self) -> List[Dependency]:
        """Every ordered pair of distinct operations, every strategy, no deduplication"""
        dependencies = []
        for source in self.operations:
            if not source.response_fields:
                continue
            for target in self.operations:
                if source.id == target.id:
                    continue
                dependencies.extend(self._match_pair(source, target))

        self.dependencies = dependencies
        return dependencies

    def _match_pair(self, source: OperationShape, target: OperationShape) -> List[Dependency]:
        dependencies = []
        for target_field, kind in self._target_inputs(target):
            dependencies.extend(self._exact_name_matches(source, target, target_field, kind))
            dependencies.extend(self._token_matches(source, target, target_field, kind))
            dependencies.extend(self._entity_id_matches(source, target, target_field, kind))
        return dependencies

    @staticmethod
    def _target_inputs(target: OperationShape) -> Iterable[Tuple[FieldDescriptor, DependencyKind]]:
        for field in target.request_fields:
            yield field, DependencyKind.BODY
        for param in target.path_params:
            yield param, DependencyKind.PATH
        for param in target.other_params:
            yield param, DependencyKind(param.location.value)

    def _exact_name_matches(self, source, target, target_field, kind) -> List[Dependency]:
        key = normalize_name(target_field.name)
        if not key:
            return []

        matches = []
        for source_field in source.response_fields:
            if normalize_name(source_field.name) != key or not types_compatible(source_field, target_field):
                continue
            both_formats = bool(source_field.format and target_field.format)
            matches.append(self._dependency(
                source, target, source_field, target_field, kind,
                DependencyReason.EXACT_NAME,
                EXACT_NAME_WITH_FORMAT_CONFIDENCE if both_formats else EXACT_NAME_CONFIDENCE
            ))
        return matches

    def _token_matches(self, source, target, target_field, kind) -> List[Dependency]:
        tokens = split_tokens(target_field.name)
        if not tokens:
            return []

        key = normalize_name(target_field.name)
        matches = []
        for source_field in source.response_fields:
            if normalize_name(source_field.name) == key:
                continue
            if split_tokens(source_field.name) != tokens or not types_compatible(source_field, target_field):
                continue
            matches.append(self._dependency(
                source, target, source_field, target_field, kind,
                DependencyReason.TOKEN_MATCH, TOKEN_MATCH_CONFIDENCE
            ))
        return matches

    def _entity_id_matches(self, source, target, target_field, kind) -> List[Dependency]:
        entity = infer_entity(target_field.name)
        if not entity:
            return []

        id_field = next(
            (f for f in source.response_fields
             if f.name == 'id' and f.entity and normalize_name(f.entity) == entity),
            None
        )
        if id_field is None or not types_compatible(id_field, target_field):
            return []
        return [self._dependency(
            source, target, id_field, target_field, kind,
            DependencyReason.ENTITY_ID, ENTITY_ID_CONFIDENCE
        )]

    @staticmethod
    def _dependency(source: OperationShape, target: OperationShape,
                    source_field: FieldDescriptor, target_field: FieldDescriptor,
                    kind: DependencyKind, reason: DependencyReason, confidence: float) -> Dependency:
        return Dependency(
            from_operation=source.id,
            to_operation=target.id,
            field=target_field.name,
            type=target_field.type,
            kind=kind,
            reason=reason,
            confidence=confidence,
            source_field=source_field.name
        )

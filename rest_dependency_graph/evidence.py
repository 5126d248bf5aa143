"""
Evidence Store and Output Pool shared by the refinement iterations.

The store keeps at most one snapshot per phase per operation (a later run of
the same phase overwrites the earlier one). The pool is never updated in
place: it is rebuilt from the whole store whenever the loop needs it.
"""
import itertools
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Iterator, Tuple
from .enums import Phase
from .operation import OperationShape
from .naming import normalize_name, infer_entity

@dataclass
class RequestEvidence:
    """What was actually sent; header names are stored lowercased"""
    body: Any = field(default_factory=dict)
    path: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    header: Dict[str, str] = field(default_factory=dict)
    cookie: Dict[str, str] = field(default_factory=dict)

@dataclass
class Evidence:
    request: RequestEvidence
    response: Dict[str, Any]
    status: int
    ok: bool
    phase: Phase
    sequence: int = 0  # recording order within the store

@dataclass
class EvidenceBucket:
    example: Optional[Evidence] = None
    filled: Optional[Evidence] = None

    def record(self, evidence: Evidence):
        if evidence.phase == Phase.EXAMPLE:
            self.example = evidence
        else:
            self.filled = evidence

    def best_successful(self) -> Optional[Evidence]:
        """Successful filled snapshot, else successful example snapshot"""
        if self.filled is not None and self.filled.ok:
            return self.filled
        if self.example is not None and self.example.ok:
            return self.example
        return None

class EvidenceStore:
    def __init__(self):
        self._buckets: Dict[str, EvidenceBucket] = {}
        self._sequence = itertools.count(1)

    def record(self, operation_id: str, evidence: Evidence):
        evidence.sequence = next(self._sequence)
        self._buckets.setdefault(operation_id, EvidenceBucket()).record(evidence)

    def get(self, operation_id: str) -> Optional[EvidenceBucket]:
        return self._buckets.get(operation_id)

    def best_successful(self, operation_id: str) -> Optional[Evidence]:
        bucket = self._buckets.get(operation_id)
        return bucket.best_successful() if bucket else None

    def items(self) -> Iterator[Tuple[str, EvidenceBucket]]:
        return iter(self._buckets.items())

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)

def get_value_by_path(value: Any, path: str) -> Optional[Any]:
    """Dotted-path lookup; '[]' is a bare top-level array and 'value' a bare scalar"""
    if not path:
        return None
    if path == '[]':
        return value if isinstance(value, list) else None
    if path == 'value' and not isinstance(value, (dict, list)):
        return value

    current = value
    for segment in path.split('.'):
        if not isinstance(current, dict):
            return None
        current = current.get(segment)
    return current

def set_value_by_path(target: Dict[str, Any], path: str, value: Any):
    """Place a value at a dotted path, materializing intermediate objects"""
    segments = path.split('.')
    cursor = target
    for segment in segments[:-1]:
        if not isinstance(cursor.get(segment), dict):
            cursor[segment] = {}
        cursor = cursor[segment]
    cursor[segments[-1]] = value

def find_by_normalized_key(record: Dict[str, Any], name: str) -> Optional[Any]:
    wanted = normalize_name(name)
    for key, value in record.items():
        if normalize_name(key) == wanted:
            return value
    return None

def find_token_value(record: Dict[str, Any]) -> Optional[Any]:
    for key, value in record.items():
        if 'token' in normalize_name(key):
            return value
    return None

def extract_response_values(operation: OperationShape, data: Any) -> Dict[str, Any]:
    """Map every declared response field name to the value found in the body"""
    values = {}
    for response_field in operation.response_fields:
        value = get_value_by_path(data, response_field.name)
        if value is not None:
            values[response_field.name] = value
    return values

@dataclass
class OutputPool:
    """Observed response values by field name, oldest first, plus per-entity values"""
    values: Dict[str, List[Any]] = field(default_factory=dict)
    entities: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)

    @classmethod
    def build(cls, store: EvidenceStore, operations: List[OperationShape]) -> "OutputPool":
        pool = cls()
        by_id = {op.id: op for op in operations}

        chosen_snapshots = []
        for operation_id, bucket in store.items():
            chosen = bucket.best_successful()
            if chosen is not None:
                chosen_snapshots.append((operation_id, chosen))
        # Oldest recording first, so the last value of every list is the most recent one
        chosen_snapshots.sort(key=lambda item: item[1].sequence)

        for operation_id, chosen in chosen_snapshots:
            operation = by_id.get(operation_id)
            entity_of = {f.name: f.entity for f in operation.response_fields} if operation else {}

            for key, value in chosen.response.items():
                pool.add(key, value)
                if isinstance(value, list) and value and isinstance(value[0], dict):
                    for nested_key, nested_value in value[0].items():
                        pool.add(nested_key, nested_value)
                entity = entity_of.get(key)
                if entity:
                    pool.add_entity_value(entity, key, value)
        return pool

    def add(self, key: str, value: Any):
        self.values.setdefault(key, []).append(value)

    def add_entity_value(self, entity: str, key: str, value: Any):
        self.entities.setdefault(entity.lower(), {}).setdefault(key, []).append(value)

    def size(self) -> int:
        return sum(len(v) for v in self.values.values())

    def entity_values(self, entity: str, key: str) -> List[Any]:
        wanted = normalize_name(entity)
        for name, fields in self.entities.items():
            if normalize_name(name) == wanted and fields.get(key):
                return fields[key]
        return []

    def resolve(self, name: str) -> Optional[Any]:
        """
        Candidate value for an input named `name`, most recent first:
        entity id for <entity>Id names, then same normalized name, then any id.
        """
        entity = infer_entity(name)
        if entity:
            ids = self.entity_values(entity, 'id')
            if ids:
                return ids[-1]

        wanted = normalize_name(name)
        for key, values in self.values.items():
            if values and normalize_name(key) == wanted:
                return values[-1]

        if wanted.endswith('id'):
            if self.values.get('id'):
                return self.values['id'][-1]
            for key, values in self.values.items():
                if values and normalize_name(key).endswith('id'):
                    return values[-1]
        return None

    def latest_token(self) -> Optional[Any]:
        for key, values in self.values.items():
            if values and 'token' in normalize_name(key):
                return values[-1]
        return None

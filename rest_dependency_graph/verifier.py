from typing import Dict, Any, Optional
from .dependency import Dependency
from .enums import DependencyKind, DependencyReason, VerificationStatus
from .evidence import (EvidenceStore, RequestEvidence, get_value_by_path,
                       find_by_normalized_key, find_token_value)
from .naming import stringify_value

BEARER_PREFIX = 'Bearer '

def extract_bearer_token(value: Optional[str]) -> Optional[str]:
    if not value or not value.startswith(BEARER_PREFIX):
        return None
    return value[len(BEARER_PREFIX):]

def provider_value(dependency: Dependency, response: Dict[str, Any]) -> Optional[Any]:
    """The value the source operation actually returned for this edge"""
    if dependency.kind == DependencyKind.AUTH:
        return find_token_value(response)
    if dependency.reason == DependencyReason.ENTITY_ID:
        value = response.get('id')
        return value if value is not None else find_by_normalized_key(response, 'id')
    if dependency.source_field and response.get(dependency.source_field) is not None:
        return response[dependency.source_field]
    value = response.get(dependency.field)
    return value if value is not None else find_by_normalized_key(response, dependency.field)

def consumer_value(dependency: Dependency, request: RequestEvidence) -> Optional[Any]:
    """The value the target operation actually sent for this edge"""
    kind = dependency.kind
    if kind == DependencyKind.AUTH:
        return extract_bearer_token(request.header.get('authorization'))
    if kind == DependencyKind.BODY:
        return get_value_by_path(request.body, dependency.field)
    if kind == DependencyKind.HEADER:
        return request.header.get(dependency.field.lower())

    values = {DependencyKind.PATH: request.path,
              DependencyKind.QUERY: request.query,
              DependencyKind.COOKIE: request.cookie}[kind]
    value = values.get(dependency.field)
    return value if value is not None else find_by_normalized_key(values, dependency.field)

def verify_dependency(dependency: Dependency, store: EvidenceStore) -> VerificationStatus:
    """Verified iff both sides resolved to the same non-empty text"""
    source = store.best_successful(dependency.from_operation)
    target = store.best_successful(dependency.to_operation)
    if source is None or target is None:
        return VerificationStatus.UNVERIFIED

    provided = stringify_value(provider_value(dependency, source.response))
    consumed = stringify_value(consumer_value(dependency, target.request))
    if not provided or not consumed:
        return VerificationStatus.UNVERIFIED
    return VerificationStatus.VERIFIED if provided == consumed else VerificationStatus.UNVERIFIED

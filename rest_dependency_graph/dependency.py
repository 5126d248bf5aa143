from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple
from .enums import DependencyKind, DependencyReason, VerificationStatus

@dataclass(frozen=True)
class Dependency:
    """
    A candidate data-flow edge: a response field of `from_operation` feeds
    the input `field` of `to_operation`. The matcher never deduplicates these,
    so equal dependencies may appear several times in a list.
    """
    from_operation: str
    to_operation: str
    field: str
    type: str
    kind: DependencyKind
    reason: DependencyReason
    confidence: float
    source_field: Optional[str] = None
    verification: Optional[VerificationStatus] = None

    def key(self) -> Tuple[str, str, str, str]:
        return (self.from_operation, self.to_operation, self.field, self.kind.value)

    @property
    def is_verified(self) -> bool:
        return self.verification == VerificationStatus.VERIFIED

    def get_graph_summary(self) -> Dict[str, Any]:
        """
        Returns a lightweight dictionary summary for graph edge attributes.
        Includes verification info once refinement has set it.
        """
        summary = {
            "field": self.field,
            "kind": self.kind.value,
            "reason": self.reason.value,
            "confidence": self.confidence
        }
        if self.verification is not None:
            summary['verification'] = self.verification.value
        return summary

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "fromOperation": self.from_operation,
            "toOperation": self.to_operation,
            "field": self.field,
            "type": self.type,
            "kind": self.kind.value,
            "reason": self.reason.value,
            "confidence": self.confidence
        }
        if self.source_field is not None:
            data['sourceField'] = self.source_field
        if self.verification is not None:
            data['verification'] = self.verification.value
        return data

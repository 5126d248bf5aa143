from dataclasses import dataclass, field
from typing import Tuple, Dict, Any
from .enums import HTTPMethod
from .parameter import FieldDescriptor, ParamDescriptor

@dataclass(frozen=True)
class OperationShape:
    """Normalized view of one (method, path) operation. Built once per run."""
    id: str
    method: HTTPMethod
    path: str
    request_fields: Tuple[FieldDescriptor, ...] = field(default_factory=tuple)
    response_fields: Tuple[FieldDescriptor, ...] = field(default_factory=tuple)
    path_params: Tuple[ParamDescriptor, ...] = field(default_factory=tuple)
    other_params: Tuple[ParamDescriptor, ...] = field(default_factory=tuple)
    requires_auth: bool = False

    def get_summary(self) -> Dict[str, Any]:
        """Returns a lightweight dictionary summary for graph node attributes."""
        return {
            "method": self.method.value,
            "path": self.path,
            "requires_auth": self.requires_auth
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "method": self.method.value.lower(),
            "path": self.path,
            "requestFields": [f.to_dict() for f in self.request_fields],
            "responseFields": [f.to_dict() for f in self.response_fields],
            "pathParams": [p.to_dict() for p in self.path_params],
            "otherParams": [p.to_dict() for p in self.other_params],
            "requiresAuth": self.requires_auth
        }

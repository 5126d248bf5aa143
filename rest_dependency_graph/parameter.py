from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from .enums import ParameterLocation

@dataclass(frozen=True)
class FieldDescriptor:
    """A flattened schema field (dotted path, '[]' or 'value')"""
    name: str
    type: str
    format: Optional[str] = None
    entity: Optional[str] = None  # named schema the field was flattened from

    def with_entity(self, entity: Optional[str]) -> "FieldDescriptor":
        return FieldDescriptor(self.name, self.type, self.format, entity)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

@dataclass(frozen=True)
class ParamDescriptor(FieldDescriptor):
    """A declared parameter with its location"""
    location: ParameterLocation = ParameterLocation.QUERY

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['location'] = self.location.value
        return data

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
from .enums import ParameterLocation
from .naming import stringify_value
from .parser import deref, pick_media_type

@dataclass
class ExampleInput:
    """Literal inputs taken from the description for one operation"""
    body: Optional[Any] = None
    path: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    header: Dict[str, str] = field(default_factory=dict)
    cookie: Dict[str, str] = field(default_factory=dict)

    def params_for(self, location: ParameterLocation) -> Dict[str, str]:
        return getattr(self, location.value)

def pick_example(value: Any = None, examples: Any = None) -> Optional[Any]:
    """Explicit example first, then the first entry of a named-examples map"""
    if value is not None:
        return value
    if isinstance(examples, dict) and examples:
        first = next(iter(examples.values()))
        if isinstance(first, dict) and 'value' in first:
            return first['value']
        return first
    if isinstance(examples, list) and examples:
        return examples[0]
    return None

class ExampleExtractor:
    """Extract example request inputs for an operation definition"""

    def __init__(self, spec: Optional[Dict[str, Any]] = None):
        self.spec = spec or {}

    def extract(self, operation_spec: Dict[str, Any],
                parameters: Optional[List[Dict[str, Any]]] = None) -> ExampleInput:
        """Missing data yields absent values, never an error"""
        inputs = ExampleInput()
        if parameters is None:
            parameters = [deref(self.spec, p) for p in operation_spec.get('parameters') or []]

        for param in parameters:
            try:
                location = ParameterLocation(param.get('in'))
            except ValueError:
                continue
            example = self._param_example(param)
            inputs.params_for(location)[param.get('name')] = stringify_value(example) or ''

        request_body = deref(self.spec, operation_spec.get('requestBody'))
        media = pick_media_type(request_body.get('content')) if isinstance(request_body, dict) else None
        if media:
            body = pick_example(media.get('example'), media.get('examples'))
            if body is None:
                schema = deref(self.spec, media.get('schema'))
                if isinstance(schema, dict):
                    body = pick_example(schema.get('example'), schema.get('examples'))
            inputs.body = body

        return inputs

    def _param_example(self, param: Dict[str, Any]) -> Optional[Any]:
        direct = pick_example(param.get('example'), param.get('examples'))
        if direct is not None:
            return direct
        schema = deref(self.spec, param.get('schema')) if param.get('schema') else {}
        if not isinstance(schema, dict):
            return None
        return pick_example(schema.get('example'), schema.get('examples'))

import yaml
import json
from typing import Dict, Any, List, Optional, Iterator, Tuple
from .operation import OperationShape
from .parameter import FieldDescriptor, ParamDescriptor
from .enums import HTTPMethod, ParameterLocation
from .schema_flattener import SchemaFlattener, resolve_ref, ref_name

HTTP_METHODS = ('get', 'put', 'post', 'delete', 'patch', 'head', 'options', 'trace')
PARAM_LOCATIONS = {location.value for location in ParameterLocation}

def load_document(spec_path: str) -> Dict[str, Any]:
    """Read a JSON or YAML API description from disk"""
    with open(spec_path, 'r', encoding='utf-8') as f:
        try:
            if spec_path.lower().endswith('.json'):
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Could not parse API description {spec_path}: {e}") from e

    if not isinstance(document, dict):
        raise ValueError(f"API description {spec_path} is not a mapping")
    return document

def deref(document: Dict[str, Any], node: Any) -> Any:
    """Follow a chain of $ref objects (parameters, request bodies, responses, path items)"""
    seen = set()
    while isinstance(node, dict) and isinstance(node.get('$ref'), str) and node['$ref'] not in seen:
        seen.add(node['$ref'])
        target = resolve_ref(document, node['$ref'])
        if target is None:
            return {}
        node = target
    return node

def iter_operations(document: Dict[str, Any]) -> Iterator[Tuple[str, str, Dict[str, Any], List[Dict[str, Any]]]]:
    """Yield (path, method, operation definition, merged parameters) in declaration order"""
    paths = document.get('paths') or {}
    if not isinstance(paths, dict):
        return
    for path, path_item in paths.items():
        path_item = deref(document, path_item)
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get('parameters') or []
        for method, operation_spec in path_item.items():
            if str(method).lower() not in HTTP_METHODS or not isinstance(operation_spec, dict):
                continue
            parameters = merge_parameters(document, shared, operation_spec.get('parameters') or [])
            yield path, str(method).lower(), operation_spec, parameters

def merge_parameters(document: Dict[str, Any], shared: List[Any], own: List[Any]) -> List[Dict[str, Any]]:
    """Path-item parameters first, operation-level ones override the same (name, in)"""
    merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for raw in list(shared) + list(own):
        param = deref(document, raw)
        if isinstance(param, dict) and param.get('name') and param.get('in'):
            merged[(param['name'], param['in'])] = param
    return list(merged.values())

def pick_media_type(content: Any) -> Optional[Dict[str, Any]]:
    """application/json, else the first *json* media type, else the first declared one"""
    if not isinstance(content, dict) or not content:
        return None
    if isinstance(content.get('application/json'), dict):
        return content['application/json']
    for media_type, media_spec in content.items():
        if 'json' in str(media_type).lower() and isinstance(media_spec, dict):
            return media_spec
    first = next(iter(content.values()))
    return first if isinstance(first, dict) else None

def pick_success_response(document: Dict[str, Any], responses: Any) -> Optional[Dict[str, Any]]:
    """First response whose status code starts with '2'"""
    if not isinstance(responses, dict):
        return None
    for status_code, response_spec in responses.items():
        if str(status_code).startswith('2'):
            response = deref(document, response_spec)
            return response if isinstance(response, dict) else {}
    return None

def operation_id_for(method: str, path: str, operation_spec: Dict[str, Any]) -> str:
    return operation_spec.get('operationId') or f"{method.upper()} {path}"

class OpenAPIParser:
    """Parse an API description into normalized OperationShape objects"""

    def __init__(self, spec_path: Optional[str] = None, spec: Optional[Dict[str, Any]] = None):
        self.spec_path = spec_path
        self.spec: Dict[str, Any] = spec or {}
        self.operations: List[OperationShape] = []
        self.flattener = SchemaFlattener(self.spec)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "OpenAPIParser":
        return cls(spec=document)

    def load(self) -> Dict[str, Any]:
        if self.spec_path is None:
            raise ValueError("No API description path given")
        self.spec = load_document(self.spec_path)
        self.flattener = SchemaFlattener(self.spec)
        return self.spec

    def parse(self) -> List[OperationShape]:
        """Main parsing method. Pure transformation of the loaded document."""
        if not self.spec and self.spec_path:
            self.load()

        operations = []
        for path, method, operation_spec, parameters in iter_operations(self.spec):
            if not operation_spec.get('responses'):
                continue
            operations.append(self._parse_operation(path, method, operation_spec, parameters))

        self.operations = operations
        return operations

    def _parse_operation(self, path: str, method: str, spec: Dict[str, Any],
                         parameters: List[Dict[str, Any]]) -> OperationShape:
        """Parse a single operation"""
        params = [self._parse_parameter(p) for p in parameters if p.get('in') in PARAM_LOCATIONS]

        return OperationShape(
            id=operation_id_for(method, path, spec),
            method=HTTPMethod[method.upper()],
            path=path,
            request_fields=tuple(self._extract_request_fields(spec)),
            response_fields=tuple(self._extract_response_fields(spec)),
            path_params=tuple(p for p in params if p.location == ParameterLocation.PATH),
            other_params=tuple(p for p in params if p.location != ParameterLocation.PATH),
            requires_auth=self._has_bearer_auth(spec)
        )

    def _parse_parameter(self, spec: Dict[str, Any]) -> ParamDescriptor:
        """Project a declared parameter 1:1, default type string"""
        schema = self.flattener.resolve_schema(spec['schema']) if isinstance(spec.get('schema'), dict) else {}
        return ParamDescriptor(
            name=spec['name'],
            type=schema.get('type') or 'string',
            format=schema.get('format'),
            location=ParameterLocation(spec['in'])
        )

    def _extract_request_fields(self, spec: Dict[str, Any]) -> List[FieldDescriptor]:
        request_body = deref(self.spec, spec.get('requestBody'))
        media = pick_media_type(request_body.get('content')) if isinstance(request_body, dict) else None
        return self._flatten_tagged(media.get('schema') if media else None)

    def _extract_response_fields(self, spec: Dict[str, Any]) -> List[FieldDescriptor]:
        response = pick_success_response(self.spec, spec.get('responses'))
        if not response or not response.get('content'):
            return []
        media = pick_media_type(response.get('content'))
        return self._flatten_tagged(media.get('schema') if media else None)

    def _flatten_tagged(self, schema: Optional[Dict[str, Any]]) -> List[FieldDescriptor]:
        """Flatten a body schema and tag every field with the referenced schema name"""
        entity = ref_name(schema)
        return [f.with_entity(entity) for f in self.flattener.flatten_schema(schema)]

    def _has_bearer_auth(self, spec: Dict[str, Any]) -> bool:
        security = spec['security'] if 'security' in spec else self.spec.get('security')
        if not isinstance(security, list):
            return False
        return any(
            self._is_bearer_scheme(name)
            for requirement in security if isinstance(requirement, dict)
            for name in requirement
        )

    def _is_bearer_scheme(self, name: str) -> bool:
        schemes = (self.spec.get('components') or {}).get('securitySchemes') or {}
        scheme = deref(self.spec, schemes.get(name))
        if isinstance(scheme, dict) and scheme:
            return (str(scheme.get('type', '')).lower() == 'http'
                    and str(scheme.get('scheme', '')).lower() == 'bearer')
        return 'bearer' in name.lower()

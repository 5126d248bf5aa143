from typing import Dict, Any, List, Optional, Tuple, FrozenSet
from urllib.parse import unquote
from .parameter import FieldDescriptor

def resolve_ref(document: Dict[str, Any], ref: str) -> Optional[Any]:
    """Resolve an internal $ref pointer ('#/components/schemas/Cart') within the same document"""
    _, _, pointer = ref.partition('#')
    current: Any = document
    for raw in (s for s in pointer.split('/') if s):
        segment = unquote(raw).replace('~1', '/').replace('~0', '~')
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
    return current

def ref_name(schema: Optional[Dict[str, Any]]) -> Optional[str]:
    """Name of the schema definition a direct $ref points at"""
    if not isinstance(schema, dict) or not isinstance(schema.get('$ref'), str):
        return None
    return schema['$ref'].split('/')[-1] or None

class SchemaFlattener:
    """
    Turns a schema node into a flat list of FieldDescriptor.

    $ref and allOf are resolved eagerly; oneOf/anyOf are flattened branch by
    branch. Every resolution chain carries the set of references it has
    already followed; a reference seen twice resolves to an empty object.
    """

    def __init__(self, document: Dict[str, Any]):
        self.document = document or {}

    def resolve_schema(self, schema: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        resolved, _ = self._resolve(schema, frozenset())
        return resolved

    def flatten_schema(self, schema: Optional[Dict[str, Any]]) -> List[FieldDescriptor]:
        return self._flatten(schema, frozenset())

    def _resolve(self, schema: Optional[Dict[str, Any]],
                 seen: FrozenSet[str]) -> Tuple[Dict[str, Any], FrozenSet[str]]:
        if schema is None or not isinstance(schema, dict):
            return {'type': 'object'}, seen

        ref = schema.get('$ref')
        if isinstance(ref, str):
            if ref in seen:
                return {'type': 'object'}, seen
            target = resolve_ref(self.document, ref)
            if not isinstance(target, dict):
                return {'type': 'object'}, seen | {ref}
            return self._resolve(target, seen | {ref})

        if isinstance(schema.get('allOf'), list):
            return self._merge_all_of(schema, seen), seen

        return schema, seen

    def _merge_all_of(self, schema: Dict[str, Any], seen: FrozenSet[str]) -> Dict[str, Any]:
        """Union of branch properties and required lists, later branches win"""
        merged: Dict[str, Any] = {
            'type': 'object',
            'properties': dict(schema.get('properties') or {}),
            'required': list(schema.get('required') or [])
        }
        if 'discriminator' in schema:
            merged['discriminator'] = schema['discriminator']

        for sub in schema['allOf']:
            resolved, _ = self._resolve(sub, seen)
            merged['properties'].update(resolved.get('properties') or {})
            merged['required'].extend(resolved.get('required') or [])
        return merged

    def _flatten(self, schema: Optional[Dict[str, Any]], seen: FrozenSet[str]) -> List[FieldDescriptor]:
        resolved, seen = self._resolve(schema, seen)

        if resolved.get('oneOf') or resolved.get('anyOf'):
            return self._flatten_union(resolved, seen)

        if self._is_object(resolved):
            return self._add_discriminator_field(resolved, self._flatten_object(resolved, '', seen))

        if resolved.get('type') == 'array' and 'items' in resolved:
            items, _ = self._resolve(resolved['items'], seen)
            return [FieldDescriptor('[]', 'array', items.get('type'))]

        return [FieldDescriptor('value', resolved.get('type') or 'object', resolved.get('format'))]

    def _flatten_object(self, schema: Dict[str, Any], prefix: str,
                        seen: FrozenSet[str]) -> List[FieldDescriptor]:
        fields = []
        for name, prop in (schema.get('properties') or {}).items():
            path = f"{prefix}.{name}" if prefix else name
            resolved, prop_seen = self._resolve(prop, seen)

            if self._is_object(resolved) and resolved.get('properties'):
                fields.extend(self._flatten_object(resolved, path, prop_seen))
            elif resolved.get('type') == 'array' and 'items' in resolved:
                # Arrays are not expanded, the item type goes into `format`
                items, _ = self._resolve(resolved['items'], prop_seen)
                fields.append(FieldDescriptor(path, 'array', items.get('type')))
            else:
                fields.append(FieldDescriptor(path, resolved.get('type') or 'object', resolved.get('format')))
        return fields

    def _flatten_union(self, schema: Dict[str, Any], seen: FrozenSet[str]) -> List[FieldDescriptor]:
        variants = schema.get('oneOf') or schema.get('anyOf') or []
        by_name: Dict[str, FieldDescriptor] = {}
        for variant in variants:
            for field in self._flatten(variant, seen):
                by_name.setdefault(field.name, field)
        return self._add_discriminator_field(schema, list(by_name.values()))

    @staticmethod
    def _add_discriminator_field(schema: Dict[str, Any],
                                 fields: List[FieldDescriptor]) -> List[FieldDescriptor]:
        discriminator = schema.get('discriminator')
        name = discriminator.get('propertyName') if isinstance(discriminator, dict) else None
        if not name or any(f.name == name for f in fields):
            return fields
        return [FieldDescriptor(name, 'string')] + fields

    @staticmethod
    def _is_object(schema: Dict[str, Any]) -> bool:
        return schema.get('type') == 'object' or ('type' not in schema and 'properties' in schema)

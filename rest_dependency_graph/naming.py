"""
Name heuristics shared by the static matcher and the runtime refinement loop.
"""
import datetime
import json
import re
from typing import Any, List, Optional

STOPWORDS = {'a', 'an', 'the', 'of', 'for', 'by', 'to', 'in', 'on', 'and', 'or', 'with'}

_NON_ALNUM = re.compile(r'[^a-z0-9]')
_CAMEL_BOUNDARY = re.compile(r'([a-z0-9])([A-Z])')
_TOKEN_SPLIT = re.compile(r'[^a-z0-9]+')

def normalize_name(name: str) -> str:
    """Lowercase and strip everything that is not alphanumeric: user_id -> userid"""
    return _NON_ALNUM.sub('', (name or '').lower())

def split_tokens(name: str) -> List[str]:
    """
    camelCase / snake_case / dotted name -> lowercase tokens.
    A trailing 'ids' becomes 'id' and stopwords are dropped.
    """
    spaced = _CAMEL_BOUNDARY.sub(r'\1 \2', name or '')
    tokens = [t for t in _TOKEN_SPLIT.split(spaced.lower()) if t]
    if tokens and tokens[-1] == 'ids':
        tokens[-1] = 'id'
    return [t for t in tokens if t not in STOPWORDS]

def infer_entity(name: str) -> Optional[str]:
    """cartId / cart_id / cartIds -> 'cart'; plain 'id' has no entity"""
    last_segment = (name or '').split('.')[-1]
    tokens = split_tokens(last_segment)
    if len(tokens) >= 2 and tokens[-1] == 'id':
        return ''.join(tokens[:-1])
    return None

def is_id_like(name: str) -> bool:
    return normalize_name(name).endswith('id')

def json_default(value: Any) -> str:
    """YAML 1.1 loaders turn unquoted timestamps into date objects; send them as ISO text"""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

def stringify_value(value: Any) -> Optional[str]:
    """
    Text form used both when filling string inputs (path/query/header/cookie)
    and when comparing provider and consumer values. None stays None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return json.dumps(value, separators=(',', ':'), default=json_default)

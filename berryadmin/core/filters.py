from __future__ import annotations
from typing import Any, Callable, Dict

def _contains(col, v):
    # case-insensitive substring match; LIKE wildcards in v are escaped
    return col.icontains(str(v), autoescape=True)

# Global operator registry (extensible): predicate op name -> SQLAlchemy builder
OPERATOR_REGISTRY: Dict[str, Callable[[Any, Any], Any]] = {
    'eq': lambda col, v: col.is_(None) if v is None else col == v,
    'lte': lambda col, v: col <= v,
    'gte': lambda col, v: col >= v,
    'in': lambda col, v: col.in_(list(v) if isinstance(v, (list, tuple, set, frozenset)) else [v]),
    'contains': _contains,
}

def register_operator(name: str, fn: Callable[[Any, Any], Any]):
    OPERATOR_REGISTRY[name] = fn

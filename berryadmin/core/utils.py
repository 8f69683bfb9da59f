from __future__ import annotations
import re
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple
import strawberry

class _DirectionEnum(Enum):
    asc = 'asc'
    desc = 'desc'

Direction = strawberry.enum(_DirectionEnum, name="Direction")  # type: ignore

_WORD_SPLIT = re.compile(r'[_\s\-]+')

def dir_value(order_dir: Any) -> Optional[str]:
    """Normalize a sort direction to 'asc'/'desc'.

    ``None`` means ascending; anything unrecognized returns ``None`` so callers
    can decide whether to fall back or reject.
    """
    if order_dir is None:
        return 'asc'
    try:
        val = str(getattr(order_dir, 'value', order_dir)).strip().lower()
    except Exception:
        return None
    return val if val in ('asc', 'desc') else None

def identifier_of(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value if isinstance(value.value, str) else value.name
    return str(value)

def title_case(value: Any) -> str:
    """'inserted_at' -> 'Inserted At'. Enum members use their value (or name)."""
    words = [w for w in _WORD_SPLIT.split(identifier_of(value)) if w]
    return ' '.join(w.capitalize() for w in words)

def one_of_constraint(constraints: Optional[Mapping[str, Any]]) -> Optional[List[Any]]:
    """Enumerated values of an attribute, looking at array items first."""
    if not constraints:
        return None
    items = constraints.get('items')
    if isinstance(items, Mapping) and items.get('one_of') is not None:
        return list(items.get('one_of'))
    values = constraints.get('one_of')
    if values is None:
        return None
    return list(values)

def options_from_one_of(constraints: Optional[Mapping[str, Any]]) -> Tuple[Tuple[str, Any], ...]:
    values = one_of_constraint(constraints) or []
    return tuple((title_case(v), v) for v in values)

def normalize_options(options: Any) -> Tuple[Tuple[str, Any], ...]:
    """Accept ``[(label, value)]``, ``{label: value}`` or bare values."""
    if options is None:
        return ()
    if isinstance(options, Mapping):
        return tuple((str(k), v) for k, v in options.items())
    out: List[Tuple[str, Any]] = []
    for opt in options:
        if isinstance(opt, (list, tuple)) and len(opt) == 2:
            out.append((str(opt[0]), opt[1]))
        else:
            out.append((title_case(opt), opt))
    return tuple(out)

"""Attribute type tags.

A :data:`TypeTag` is one of three frozen variants:

- :class:`Scalar` - a single value of some kind (``Scalar('string')``)
- :class:`Array` - a list of an inner tag (``Array(Scalar('enum'))``)
- :class:`Relation` - an association (``Relation('belongs_to')``)

Built-in scalar kinds live in :class:`ScalarKind`; any other lowercase
identifier is a custom kind (e.g. the name of a ``TypeDecorator`` subclass) that
only custom mappings or explicit overrides can resolve.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ScalarKind(str, Enum):
    BOOLEAN = 'boolean'
    STRING = 'string'
    CI_STRING = 'ci_string'
    ENUM = 'enum'
    INTEGER = 'integer'
    FLOAT = 'float'
    DECIMAL = 'decimal'
    DATE = 'date'
    TIME = 'time'
    DATETIME = 'datetime'
    NAIVE_DATETIME = 'naive_datetime'
    UTC_DATETIME = 'utc_datetime'
    UUID = 'uuid'
    JSON = 'json'
    BINARY = 'binary'


class RelationKind(str, Enum):
    BELONGS_TO = 'belongs_to'
    HAS_ONE = 'has_one'
    HAS_MANY = 'has_many'
    MANY_TO_MANY = 'many_to_many'


TEXT_KINDS = frozenset({ScalarKind.STRING, ScalarKind.CI_STRING, ScalarKind.ENUM})
NUMBER_KINDS = frozenset({ScalarKind.INTEGER, ScalarKind.FLOAT, ScalarKind.DECIMAL})
DATETIME_KINDS = frozenset({ScalarKind.DATETIME, ScalarKind.NAIVE_DATETIME, ScalarKind.UTC_DATETIME})


def _normalize_kind(kind: Any):
    # str-based enums hash by member name, so keep one canonical form per kind
    if isinstance(kind, ScalarKind):
        return kind
    if not isinstance(kind, str) or not kind:
        raise TypeError(f"Scalar kind must be a non-empty string, got {kind!r}")
    try:
        return ScalarKind(kind)
    except ValueError:
        return kind


@dataclass(frozen=True)
class Scalar:
    kind: Union[ScalarKind, str]

    def __post_init__(self):
        object.__setattr__(self, 'kind', _normalize_kind(self.kind))

    def __str__(self) -> str:
        return getattr(self.kind, 'value', self.kind)


@dataclass(frozen=True)
class Array:
    inner: 'TypeTag'

    def __str__(self) -> str:
        return f"Array({self.inner})"


@dataclass(frozen=True)
class Relation:
    kind: RelationKind

    def __post_init__(self):
        object.__setattr__(self, 'kind', RelationKind(self.kind))

    def __str__(self) -> str:
        return f"Relation({self.kind.value})"


TypeTag = Union[Scalar, Array, Relation]


def parse_type_tag(raw: Any) -> TypeTag:
    """Normalize a mapping-table key into a :data:`TypeTag`.

    Accepted forms: a ``Scalar``/``Relation`` instance, ``Array`` of a
    well-formed scalar or array (recursively), a bare string identifier
    (relation kind names map to :class:`Relation`), or the tuple form
    ``("array", inner)``.

    Raises:
        TypeError: when ``raw`` is none of the above.
    """
    if isinstance(raw, (Scalar, Relation)):
        return raw
    if isinstance(raw, Array):
        return Array(_parse_array_inner(raw.inner))
    if isinstance(raw, (ScalarKind, RelationKind)):
        return Relation(raw) if isinstance(raw, RelationKind) else Scalar(raw)
    if isinstance(raw, str):
        if raw in RelationKind._value2member_map_:
            return Relation(raw)
        return Scalar(raw)
    if isinstance(raw, tuple) and len(raw) == 2 and raw[0] == 'array':
        return Array(_parse_array_inner(raw[1]))
    raise TypeError(f"Not a type tag: {raw!r}")


def _parse_array_inner(raw: Any) -> TypeTag:
    inner = parse_type_tag(raw)
    if isinstance(inner, Relation):
        raise TypeError(f"Array items must be scalar or array type tags, got {raw!r}")
    return inner


def scalar_kind(tag: TypeTag):
    """Return the scalar kind of ``tag`` or ``None`` for arrays/relations."""
    if isinstance(tag, Scalar):
        return tag.kind
    return None


def innermost(tag: TypeTag) -> TypeTag:
    while isinstance(tag, Array):
        tag = tag.inner
    return tag

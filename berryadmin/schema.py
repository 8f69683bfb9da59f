"""Attribute schema of a resource.

The rest of the package only sees :class:`ResourceSchema`: an ordered,
read-only table of :class:`AttributeDescriptor` entries. For SQLAlchemy models
it is produced by :func:`schema_from_model`; anything else can build one with
:meth:`ResourceSchema.from_attributes`.

Column type mapping used by :func:`type_tag_for`:

=====================================  ==============================================
SQLAlchemy type                        Type tag / constraints
=====================================  ==============================================
``Enum``                               ``Scalar('enum')``, ``one_of`` = storage values
``Boolean``                            ``Scalar('boolean')``
``String`` / ``Text`` / ``Unicode``    ``Scalar('string')``, ``max_length``
``Integer`` (all sizes)                ``Scalar('integer')``
``Float`` / ``Numeric``                ``Scalar('float')`` / ``Scalar('decimal')``
``Date`` / ``Time``                    ``Scalar('date')`` / ``Scalar('time')``
``DateTime``                           ``Scalar('datetime')`` (``utc_datetime`` if tz-aware)
``Uuid``                               ``Scalar('uuid')``
``JSON`` / ``LargeBinary``             ``Scalar('json')`` / ``Scalar('binary')``
``ARRAY(item)``                        ``Array(<item tag>)``, item constraints under ``items``
``TypeDecorator`` subclass             ``Scalar(<admin_kind or snake_case class name>)``
=====================================  ==============================================

Extra constraints can be attached per column through ``Column(info=...)``::

    category = Column(String(20), info={'constraints': {'one_of': ['news', 'blog']}})
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import RelationshipDirection
from sqlalchemy.sql import sqltypes
from sqlalchemy.types import TypeDecorator

from .core.types import Array, Relation, RelationKind, Scalar, ScalarKind, TypeTag, parse_type_tag
from .sql.enum_helpers import enum_values


class AttributeSource(str, Enum):
    ATTRIBUTE = 'attribute'
    RELATIONSHIP = 'relationship'
    CALCULATION = 'calculation'


@dataclass(frozen=True)
class AttributeDescriptor:
    name: str
    type: TypeTag
    constraints: Mapping[str, Any] = field(default_factory=dict)
    source: AttributeSource = AttributeSource.ATTRIBUTE

    def __post_init__(self):
        object.__setattr__(self, 'type', parse_type_tag(self.type))
        object.__setattr__(self, 'constraints', MappingProxyType(dict(self.constraints or {})))


@dataclass(frozen=True)
class ResourceSchema:
    name: str
    attributes: Mapping[str, AttributeDescriptor]
    primary_key: Tuple[str, ...] = ()

    @classmethod
    def from_attributes(cls, name: str, attributes: Iterable[AttributeDescriptor],
                        primary_key: Iterable[str] = ('id',)) -> 'ResourceSchema':
        table = {a.name: a for a in attributes}
        return cls(name=name, attributes=MappingProxyType(table), primary_key=tuple(primary_key))

    def get(self, name: str) -> Optional[AttributeDescriptor]:
        return self.attributes.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.attributes

    @property
    def identity(self) -> Optional[str]:
        return self.primary_key[0] if self.primary_key else None


_CAMEL = re.compile(r'(?<!^)(?=[A-Z])')


def _custom_kind(sa_type: Any) -> str:
    kind = getattr(sa_type, 'admin_kind', None)
    if kind:
        return str(kind)
    return _CAMEL.sub('_', type(sa_type).__name__).lower()


def type_tag_for(sa_type: Any) -> Tuple[TypeTag, Dict[str, Any]]:
    """Map a SQLAlchemy column type to ``(type_tag, constraints)``."""
    if isinstance(sa_type, TypeDecorator):
        return Scalar(_custom_kind(sa_type)), {}
    values = enum_values(sa_type)
    if values is not None:
        return Scalar(ScalarKind.ENUM), {'one_of': values}
    if isinstance(sa_type, sqltypes.Boolean):
        return Scalar(ScalarKind.BOOLEAN), {}
    if isinstance(sa_type, sqltypes.ARRAY):
        inner, inner_constraints = type_tag_for(sa_type.item_type)
        return Array(inner), ({'items': inner_constraints} if inner_constraints else {})
    if isinstance(sa_type, sqltypes.Uuid):
        return Scalar(ScalarKind.UUID), {}
    if isinstance(sa_type, sqltypes.String):
        length = getattr(sa_type, 'length', None)
        return Scalar(ScalarKind.STRING), ({'max_length': length} if length else {})
    if isinstance(sa_type, sqltypes.Integer):
        return Scalar(ScalarKind.INTEGER), {}
    if isinstance(sa_type, sqltypes.Float):
        return Scalar(ScalarKind.FLOAT), {}
    if isinstance(sa_type, sqltypes.Numeric):
        constraints = {k: getattr(sa_type, k) for k in ('precision', 'scale') if getattr(sa_type, k, None) is not None}
        return Scalar(ScalarKind.DECIMAL), constraints
    if isinstance(sa_type, sqltypes.DateTime):
        tz = bool(getattr(sa_type, 'timezone', False))
        return Scalar(ScalarKind.UTC_DATETIME if tz else ScalarKind.DATETIME), {}
    if isinstance(sa_type, sqltypes.Date):
        return Scalar(ScalarKind.DATE), {}
    if isinstance(sa_type, sqltypes.Time):
        return Scalar(ScalarKind.TIME), {}
    if isinstance(sa_type, sqltypes.JSON):
        return Scalar(ScalarKind.JSON), {}
    if isinstance(sa_type, sqltypes._Binary):
        return Scalar(ScalarKind.BINARY), {}
    return Scalar(_custom_kind(sa_type)), {}


def _relation_kind(rel: Any) -> RelationKind:
    if rel.direction is RelationshipDirection.MANYTOONE:
        return RelationKind.BELONGS_TO
    if rel.direction is RelationshipDirection.MANYTOMANY:
        return RelationKind.MANY_TO_MANY
    return RelationKind.HAS_MANY if rel.uselist else RelationKind.HAS_ONE


def schema_from_model(model_cls: Any) -> ResourceSchema:
    """Introspect a mapped SQLAlchemy class into a :class:`ResourceSchema`.

    Table columns become attributes, other ``column_property`` expressions
    become calculations, and relationships become relations.
    """
    mapper = sa_inspect(model_cls)
    tables = set(mapper.tables)
    attributes: Dict[str, AttributeDescriptor] = {}
    for prop in mapper.column_attrs:
        col = prop.columns[0]
        tag, constraints = type_tag_for(col.type)
        extra = (getattr(col, 'info', None) or {}).get('constraints') or {}
        constraints = {**constraints, **extra}
        is_table_column = getattr(col, 'table', None) in tables
        source = AttributeSource.ATTRIBUTE if is_table_column else AttributeSource.CALCULATION
        attributes[prop.key] = AttributeDescriptor(prop.key, tag, constraints, source)
    for rel in mapper.relationships:
        attributes[rel.key] = AttributeDescriptor(
            rel.key, Relation(_relation_kind(rel)), {}, AttributeSource.RELATIONSHIP,
        )
    primary_key = tuple(mapper.get_property_by_column(c).key for c in mapper.primary_key)
    return ResourceSchema(
        name=getattr(model_cls, '__name__', str(model_cls)),
        attributes=MappingProxyType(attributes),
        primary_key=primary_key,
    )

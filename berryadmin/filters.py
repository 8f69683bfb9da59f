"""Filter predicate compilers.

Every filter turns an untyped UI value into a predicate or ``None`` ("don't
filter on this attribute"). Compilers are stateless classmethods, so a filter
class is used as-is without instantiation::

    BooleanFilter.compile('published', ['true'], {})
    # Condition(attribute='published', op='eq', value=True)

Wire formats:

==============  ==========================================  ==============================
Filter          Value                                       Example
==============  ==========================================  ==============================
Boolean         list of strings within {"true", "false"}    ``["true"]``
Select          single string or enum member                ``"draft"``
MultiSelect     list of strings                             ``["tag1", "tag2"]``
Range           mapping with "start" / "end"                ``{"start": "10", "end": ""}``
==============  ==========================================  ==============================

Custom filters subclass :class:`Filter` (or a built-in) and override
:meth:`Filter.to_predicate`; raising :class:`PredicateCompilationFailure`
from there or from :meth:`Filter.validate_value` means "no filter".
"""
from __future__ import annotations
import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional

from .core import predicates as P
from .core.predicates import Predicate
from .errors import PredicateCompilationFailure


class RangeKind(str, Enum):
    NUMBER = 'number'
    DATE = 'date'
    DATETIME = 'datetime'


class Filter:
    """Base class for filter compilers."""

    #: Short identifier exposed in UI metadata (defaults to the class name)
    name: ClassVar[str] = 'Filter'

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'name' not in cls.__dict__:
            cls.name = cls.__name__

    @classmethod
    def validate_value(cls, value: Any, context: Mapping[str, Any]) -> Any:
        """Normalize ``value`` before compilation.

        Raise :class:`PredicateCompilationFailure` to reject it.
        """
        return value

    @classmethod
    def to_predicate(cls, attribute: str, value: Any, context: Mapping[str, Any]) -> Optional[Predicate]:
        raise NotImplementedError

    @classmethod
    def compile(cls, attribute: str, value: Any, context: Optional[Mapping[str, Any]] = None) -> Optional[Predicate]:
        ctx = context if context is not None else {}
        try:
            return cls.to_predicate(attribute, cls.validate_value(value, ctx), ctx)
        except PredicateCompilationFailure:
            return None


class BooleanFilter(Filter):
    """Checkbox filter over ``"true"`` / ``"false"``.

    Exactly one checked flag filters; none or both mean "show everything". A
    bare ``"true"``/``"false"`` string is accepted as an alias for the
    one-element list.
    """

    _FLAGS = {'true': True, 'false': False}

    @classmethod
    def validate_value(cls, value, context):
        if value is None:
            return frozenset()
        if isinstance(value, (str, bool)):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise PredicateCompilationFailure(f"boolean filter expects a list, got {value!r}")
        flags = set()
        for v in value:
            if isinstance(v, bool):
                flags.add(v)
            elif isinstance(v, str) and v.strip().lower() in cls._FLAGS:
                flags.add(cls._FLAGS[v.strip().lower()])
        return frozenset(flags)

    @classmethod
    def to_predicate(cls, attribute, value, context):
        if len(value) != 1:
            return None
        (flag,) = value
        return P.eq(attribute, flag)


class SelectFilter(Filter):
    """Single value dropdown; the empty prompt value disables the filter."""

    @classmethod
    def to_predicate(cls, attribute, value, context):
        if value is None or value == '':
            return None
        if isinstance(value, (str, Enum)):
            return P.eq(attribute, value)
        return None


class MultiSelectFilter(Filter):
    """Checkbox group compiled to a membership test."""

    @classmethod
    def to_predicate(cls, attribute, value, context):
        if not isinstance(value, (list, tuple)) or not value:
            return None
        return P.in_(attribute, value)


_INT_RE = re.compile(r'^[+-]?\d+$')
_FLOAT_RE = re.compile(r'^[+-]?\d+(\.\d+)?([eE][+-]?\d+)?$')
_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_DATETIME_RE = re.compile(
    r'^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:?\d{2})?$'
)
_COMPACT_OFFSET = re.compile(r'([+-]\d{2})(\d{2})$')


def parse_number(value: Any):
    if isinstance(value, bool):
        raise PredicateCompilationFailure(f"not a number: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        return value
    if not isinstance(value, str):
        raise PredicateCompilationFailure(f"not a number: {value!r}")
    s = value.strip()
    try:
        if _INT_RE.match(s):
            return int(s)
        if _FLOAT_RE.match(s):
            return float(s)
    except ValueError as e:
        # int() refuses very long digit strings
        raise PredicateCompilationFailure(str(e)) from e
    raise PredicateCompilationFailure(f"not a number: {value!r}")


def parse_date(value: Any):
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DATE_RE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise PredicateCompilationFailure(str(e)) from e
    raise PredicateCompilationFailure(f"not a date: {value!r}")


def parse_datetime(value: Any):
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and _DATETIME_RE.match(value.strip()):
        s = value.strip()
        if s.endswith('Z'):
            s = s[:-1] + '+00:00'
        # fromisoformat only takes +HH:MM before 3.11
        s = _COMPACT_OFFSET.sub(r'\1:\2', s)
        try:
            return datetime.fromisoformat(s)
        except ValueError as e:
            raise PredicateCompilationFailure(str(e)) from e
    raise PredicateCompilationFailure(f"not a datetime: {value!r}")


_PARSERS = {
    RangeKind.NUMBER: parse_number,
    RangeKind.DATE: parse_date,
    RangeKind.DATETIME: parse_datetime,
}


class RangeFilter(Filter):
    """Min/max filter for numbers, dates and datetimes.

    Each side parses on its own and an unparsable side counts as absent, so
    ``{"start": "10", "end": "abc"}`` still filters ``>= 10``.

    The range kind comes from the ``range_kind`` context entry (set by the
    resource's filter config), then the class attribute, then ``number``::

        class PublishedRange(RangeFilter):
            range_kind = RangeKind.DATETIME
    """

    range_kind: ClassVar[Optional[RangeKind]] = None

    @classmethod
    def kind_for(cls, context: Mapping[str, Any]) -> RangeKind:
        kind = context.get('range_kind') or cls.range_kind or RangeKind.NUMBER
        return RangeKind(kind)

    @classmethod
    def parse_side(cls, raw: Any, kind: RangeKind):
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        try:
            return _PARSERS[kind](raw)
        except PredicateCompilationFailure:
            return None

    @classmethod
    def validate_value(cls, value, context):
        if not isinstance(value, Mapping):
            raise PredicateCompilationFailure(f"range filter expects a mapping, got {value!r}")
        kind = cls.kind_for(context)
        return {
            'start': cls.parse_side(value.get('start'), kind),
            'end': cls.parse_side(value.get('end'), kind),
        }

    @classmethod
    def to_predicate(cls, attribute, value, context):
        start, end = value.get('start'), value.get('end')
        lower = P.gte(attribute, start) if start is not None else None
        upper = P.lte(attribute, end) if end is not None else None
        return P.and_(lower, upper)


def is_filter(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, Filter)

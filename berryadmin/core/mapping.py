"""Type tag -> widget / filter derivation.

Precedence for widgets (first hit wins):

1. explicit ``widget=`` on the field declaration
2. scope-specific custom mapping source
3. global custom mapping source
4. the built-in table below

Filters skip the custom sources: an explicit ``module=`` wins, otherwise the
filter is derived from the attribute type by :func:`derive_filter`.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping, Optional, Tuple, Type

from ..config import MappingConfig
from ..errors import ConfigurationError
from ..filters import (
    BooleanFilter,
    Filter,
    MultiSelectFilter,
    RangeFilter,
    RangeKind,
    SelectFilter,
    is_filter,
)
from ..widgets import (
    BelongsToWidget,
    BooleanWidget,
    DateTimeWidget,
    DateWidget,
    HasManyWidget,
    MultiSelectWidget,
    NumberWidget,
    SelectWidget,
    TextWidget,
    TimeWidget,
    Widget,
    is_widget,
    widget_name,
)
from .types import (
    DATETIME_KINDS,
    NUMBER_KINDS,
    TEXT_KINDS,
    Array,
    Relation,
    RelationKind,
    Scalar,
    ScalarKind,
    TypeTag,
)
from .utils import one_of_constraint

_logger = logging.getLogger("berryadmin")

# Scalar kinds with a fixed widget regardless of constraints
_SCALAR_WIDGETS = {
    ScalarKind.BOOLEAN: BooleanWidget,
    ScalarKind.DATE: DateWidget,
    ScalarKind.TIME: TimeWidget,
    ScalarKind.DATETIME: DateTimeWidget,
    ScalarKind.NAIVE_DATETIME: DateTimeWidget,
    ScalarKind.UTC_DATETIME: DateTimeWidget,
    ScalarKind.UUID: TextWidget,
}

_RELATION_WIDGETS = {
    RelationKind.BELONGS_TO: BelongsToWidget,
    RelationKind.HAS_MANY: HasManyWidget,
}


def _has_one_of(constraints: Optional[Mapping[str, Any]]) -> bool:
    return one_of_constraint(constraints) is not None


def _unmatched(attribute: str, type_tag: TypeTag, resource: Optional[str]) -> ConfigurationError:
    where = f" in {resource}" if resource else ''
    return ConfigurationError(
        f"\nUnable to derive the widget for the {attribute!r} field{where} "
        f"(type {type_tag}).\n\n"
        "To debug:\n\n"
        f"  * Ensure {attribute!r} is spelled correctly and is an attribute, relation or\n"
        "    calculation of the model.\n\n"
        "  * If a default widget still cannot be derived, specify it explicitly, e.g.:\n\n"
        f"        {attribute} = field(widget=TextWidget)\n\n"
        "    or register a custom field type mapping for this type.\n",
        attribute=attribute, type_tag=type_tag, resource=resource,
    )


def _builtin_widget(type_tag: TypeTag, constraints: Mapping[str, Any]) -> Optional[Type[Widget]]:
    if isinstance(type_tag, Scalar):
        kind = type_tag.kind
        if kind in _SCALAR_WIDGETS:
            return _SCALAR_WIDGETS[kind]
        if kind in TEXT_KINDS:
            return SelectWidget if _has_one_of(constraints) else TextWidget
        if kind in NUMBER_KINDS:
            return SelectWidget if _has_one_of(constraints) else NumberWidget
        return None
    if isinstance(type_tag, Relation):
        return _RELATION_WIDGETS.get(type_tag.kind)
    if isinstance(type_tag, Array):
        if _has_one_of(constraints):
            return MultiSelectWidget
        items = constraints.get('items')
        return _builtin_widget(type_tag.inner, items if isinstance(items, Mapping) else {})
    return None


def default_widget(attribute: str, type_tag: TypeTag, constraints: Optional[Mapping[str, Any]] = None,
                   *, resource: Optional[str] = None) -> Type[Widget]:
    """Built-in widget for ``type_tag``; raises :class:`ConfigurationError` when none applies."""
    widget = _builtin_widget(type_tag, constraints or {})
    if widget is None:
        raise _unmatched(attribute, type_tag, resource)
    return widget


class WidgetResolver:
    """Resolves a field's widget through override, custom sources and defaults."""

    def __init__(self, config: Optional[MappingConfig] = None):
        self.config = config or MappingConfig()

    def _from_source(self, scope: str, source, attribute: str, type_tag: TypeTag,
                     constraints: Mapping[str, Any], resource: Optional[str]):
        try:
            widget = source.lookup(type_tag, constraints)
        except Exception as e:
            raise ConfigurationError(
                f"Custom field type mapping ({scope} {source.describe()}) raised for the "
                f"{attribute!r} field (type {type_tag}): {type(e).__name__}: {e}",
                attribute=attribute, type_tag=type_tag, resource=resource, cause=e,
            ) from e
        if widget is None:
            return None
        if not is_widget(widget):
            raise ConfigurationError(
                f"Custom field type mapping ({scope} {source.describe()}) returned {widget!r} "
                f"for the {attribute!r} field (type {type_tag}); expected a Widget subclass or None",
                attribute=attribute, type_tag=type_tag, resource=resource,
            )
        return widget

    def resolve(self, attribute: str, type_tag: TypeTag, constraints: Optional[Mapping[str, Any]] = None,
                *, override: Any = None, resource: Optional[str] = None) -> Tuple[Type[Widget], str]:
        """Return ``(widget, origin)`` where origin is override/scoped/global/default."""
        constraints = constraints or {}
        if override is not None:
            if not is_widget(override):
                raise ConfigurationError(
                    f"Widget for the {attribute!r} field must be a Widget subclass, got {override!r}",
                    attribute=attribute, type_tag=type_tag, resource=resource,
                )
            return override, 'override'
        for scope, source in self.config.sources():
            widget = self._from_source(scope, source, attribute, type_tag, constraints, resource)
            if widget is not None:
                return widget, scope
        return default_widget(attribute, type_tag, constraints, resource=resource), 'default'


_FILTER_DERIVATIONS = """
Supported automatic filter derivations:

  boolean                                   -> BooleanFilter
  string / ci_string / enum with one_of     -> SelectFilter
  integer / float / decimal                 -> RangeFilter (number)
  date                                      -> RangeFilter (date)
  datetime / naive_datetime / utc_datetime  -> RangeFilter (datetime)
  array of string / ci_string / enum with one_of -> MultiSelectFilter
"""


def range_kind_for(type_tag: TypeTag) -> Optional[RangeKind]:
    if not isinstance(type_tag, Scalar):
        return None
    kind = type_tag.kind
    if kind in NUMBER_KINDS:
        return RangeKind.NUMBER
    if kind == ScalarKind.DATE:
        return RangeKind.DATE
    if kind in DATETIME_KINDS:
        return RangeKind.DATETIME
    return None


def derive_filter(attribute: str, type_tag: TypeTag, constraints: Optional[Mapping[str, Any]] = None,
                  *, resource: Optional[str] = None) -> Type[Filter]:
    constraints = constraints or {}
    if isinstance(type_tag, Scalar):
        kind = type_tag.kind
        if kind == ScalarKind.BOOLEAN:
            return BooleanFilter
        if kind in TEXT_KINDS and _has_one_of(constraints):
            return SelectFilter
        if range_kind_for(type_tag) is not None:
            return RangeFilter
    if isinstance(type_tag, Array) and isinstance(type_tag.inner, Scalar):
        if type_tag.inner.kind in TEXT_KINDS and _has_one_of(constraints):
            return MultiSelectFilter
    where = f" in {resource}" if resource else ''
    raise ConfigurationError(
        f"\nUnable to derive a filter for the {attribute!r} attribute{where} (type {type_tag}).\n"
        f"{_FILTER_DERIVATIONS}\n"
        "Specify the filter explicitly, e.g.:\n\n"
        f"    {attribute}_filter = filter_({attribute!r}, module=MyFilter)\n",
        attribute=attribute, type_tag=type_tag, resource=resource,
    )


def resolve_filter(attribute: str, type_tag: TypeTag, constraints: Optional[Mapping[str, Any]] = None,
                   *, override: Any = None, range_hint: Any = None,
                   resource: Optional[str] = None) -> Tuple[Type[Filter], Optional[RangeKind]]:
    """Return ``(filter_class, range_kind)`` for a filter declaration."""
    if override is not None:
        if not is_filter(override):
            raise ConfigurationError(
                f"Filter module for {attribute!r} must be a Filter subclass, got {override!r}",
                attribute=attribute, type_tag=type_tag, resource=resource,
            )
        module = override
    else:
        module = derive_filter(attribute, type_tag, constraints, resource=resource)
    range_kind = None
    if issubclass(module, RangeFilter):
        hint = range_hint or module.range_kind or range_kind_for(type_tag) or RangeKind.NUMBER
        try:
            range_kind = RangeKind(hint)
        except ValueError:
            raise ConfigurationError(
                f"Invalid range type {hint!r} for the {attribute!r} filter; "
                f"expected one of {[k.value for k in RangeKind]}",
                attribute=attribute, type_tag=type_tag, resource=resource,
            ) from None
    _logger.debug("berryadmin: filter %s -> %s (range=%s)", attribute, widget_name(module), range_kind)
    return module, range_kind

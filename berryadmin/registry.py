from __future__ import annotations
import logging
from dataclasses import dataclass, field as dc_field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Type

from .config import MappingConfig
from .core.fields import VIEWS, FieldDef, FieldDescriptor
from .core.mapping import WidgetResolver, resolve_filter
from .core.selection import resolve_loads
from .core.utils import normalize_options, options_from_one_of, title_case
from .errors import ConfigurationError
from .filters import Filter, MultiSelectFilter, RangeKind, SelectFilter
from .query import DEFAULT_PAGE_SIZE, QueryDescriptor, SortSpec, assemble_query, coerce_sort
from .schema import AttributeDescriptor, AttributeSource, ResourceSchema, schema_from_model
from .widgets import HasManyWidget, MultiSelectWidget, SelectWidget, Widget, is_text_widget, widget_name

# Project logger
_logger = logging.getLogger("berryadmin")

DEFAULT_PROMPT = "Select..."
DEFAULT_PAGE_SIZES = (15, 50, 100)


@dataclass(frozen=True)
class FieldConfig:
    """Frozen configuration of one displayed field."""

    attribute: str
    widget: Type[Widget]
    label: str
    options: Optional[Tuple[Tuple[str, Any], ...]] = None
    only: Optional[Tuple[str, ...]] = None
    except_: Optional[Tuple[str, ...]] = None
    searchable: bool = False
    orderable: bool = True
    panel: Optional[str] = None
    display_field: Optional[str] = None
    help_text: Optional[str] = None
    default: Any = None
    link_assocs: Optional[bool] = None
    extra: Mapping[str, Any] = dc_field(default_factory=lambda: MappingProxyType({}))
    #: where the widget came from: override, scoped, global or default
    widget_origin: str = 'default'

    def visible_in(self, view: str) -> bool:
        if self.only is not None and view not in self.only:
            return False
        if self.except_ is not None and view in self.except_:
            return False
        return True


@dataclass(frozen=True)
class FilterConfig:
    """Frozen configuration of one filter."""

    attribute: str
    module: Type[Filter]
    label: str
    range_kind: Optional[RangeKind] = None
    options: Tuple[Tuple[str, Any], ...] = ()
    prompt: Optional[str] = None

    def to_predicate(self, value: Any, context: Optional[Mapping[str, Any]] = None):
        ctx = dict(context or {})
        if self.range_kind is not None:
            ctx['range_kind'] = self.range_kind
        return self.module.compile(self.attribute, value, ctx)


@dataclass(frozen=True)
class ResourceConfig:
    """Everything derived for one resource, frozen after registration."""

    name: str
    schema: ResourceSchema
    fields: Mapping[str, FieldConfig]
    filters: Mapping[str, FilterConfig]
    model: Any = None
    singular_name: str = ''
    plural_name: str = ''
    init_order: Any = None
    order_fn: Optional[Callable[[Mapping[str, Any]], Any]] = None
    per_page_default: int = DEFAULT_PAGE_SIZE
    per_page_options: Tuple[int, ...] = DEFAULT_PAGE_SIZES
    loads: Tuple[str, ...] = ()
    selects: Tuple[str, ...] = ()
    searchable_fields: Tuple[str, ...] = ()
    orderable_fields: Tuple[str, ...] = ()

    @property
    def identity(self) -> Optional[str]:
        return self.schema.identity

    def fields_for(self, view: str) -> List[FieldConfig]:
        return [f for f in self.fields.values() if f.visible_in(view)]

    def query(self, criteria: Optional[Mapping[str, Any]] = None,
              context: Optional[Mapping[str, Any]] = None) -> QueryDescriptor:
        """Assemble a query from request criteria.

        ``criteria`` keys: ``filters`` ({attribute: raw value}), ``search``
        (term), ``order`` ({by, direction}) and ``pagination`` ({page, size}).
        Filter values for attributes without a configured filter are ignored.
        """
        criteria = criteria or {}
        raw_filters = criteria.get('filters') or {}
        triples = []
        for attribute, cfg in self.filters.items():
            if attribute in raw_filters:
                triples.append((attribute, cfg, raw_filters[attribute]))
        unknown = [k for k in raw_filters if k not in self.filters]
        if unknown:
            _logger.debug("berryadmin: %s ignoring unconfigured filters %s", self.name, unknown)
        return assemble_query(
            triples,
            search=criteria.get('search'),
            searchable=self.searchable_fields,
            sort=criteria.get('order'),
            page=criteria.get('pagination'),
            context=context,
            order_fn=self.order_fn,
            init_order=self.init_order,
            identity=self.identity,
            orderable=self.orderable_fields,
            default_page_size=self.per_page_default,
            page_sizes=self.per_page_options,
        )


def _collect_defs(cls: type) -> List[FieldDef]:
    found: Dict[str, FieldDescriptor] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).items():
            if isinstance(value, FieldDescriptor):
                if value.name is None:
                    value.name = name
                found.pop(name, None)
                found[name] = value
    return [d.build() for d in found.values()]


def _check_views(resource: str, attribute: str, key: str, views: Optional[Tuple[str, ...]]):
    if views is None:
        return
    bad = [v for v in views if v not in VIEWS]
    if bad:
        raise ConfigurationError(
            f"Invalid {key} views {bad} for the {attribute!r} field in {resource}; "
            f"expected any of {list(VIEWS)}",
            attribute=attribute, resource=resource,
        )


class AdminRegistry:
    """Builds and holds frozen :class:`ResourceConfig` objects.

    Create one registry at startup with an explicit mapping configuration and
    register resource classes on it::

        admin = AdminRegistry(MappingConfig(global_={'money': MoneyWidget}))

        @admin.resource(Post, init_order={'by': 'created_at', 'direction': 'desc'})
        class PostAdmin:
            title = field(searchable=True)
            status = field()
            status_filter = filter_('status')

        PostAdmin.__admin_config__.query({'filters': {'status': 'draft'}})

    Building runs once per resource and raises :class:`ConfigurationError`
    for anything that cannot be resolved.
    """

    def __init__(self, config: Optional[MappingConfig] = None):
        self.config = config or MappingConfig()
        self._resolver = WidgetResolver(self.config)
        self._resources: Dict[str, ResourceConfig] = {}

    # --- public API -------------------------------------------------------------
    def resource(self, model: Any = None, **options: Any):
        """Class decorator registering a resource declaration.

        Args:
            model: Mapped SQLAlchemy class; its schema is introspected unless
                ``schema`` is given.
            **options: ``schema``, ``name``, ``singular_name``,
                ``plural_name``, ``init_order``, ``order_fn``,
                ``per_page_default``, ``per_page_options``, ``load``.
        """
        def decorator(cls):
            cfg = self.build(cls, model, **options)
            if cfg.name in self._resources:
                raise ConfigurationError(f"Resource {cfg.name!r} is already registered", resource=cfg.name)
            self._resources[cfg.name] = cfg
            setattr(cls, '__admin_config__', cfg)
            return cls
        return decorator

    def get(self, name: str) -> Optional[ResourceConfig]:
        return self._resources.get(name)

    def __getitem__(self, name: str) -> ResourceConfig:
        return self._resources[name]

    def __iter__(self) -> Iterator[ResourceConfig]:
        return iter(list(self._resources.values()))

    def __len__(self) -> int:
        return len(self._resources)

    # --- building ---------------------------------------------------------------
    def build(
        self,
        cls: type,
        model: Any = None,
        *,
        schema: Optional[ResourceSchema] = None,
        name: Optional[str] = None,
        singular_name: Optional[str] = None,
        plural_name: Optional[str] = None,
        init_order: Any = None,
        order_fn: Optional[Callable[[Mapping[str, Any]], Any]] = None,
        per_page_default: int = DEFAULT_PAGE_SIZE,
        per_page_options: Tuple[int, ...] = DEFAULT_PAGE_SIZES,
        load: Tuple[str, ...] = (),
    ) -> ResourceConfig:
        resource = name or cls.__name__
        if schema is None:
            if model is None:
                raise ConfigurationError(f"{resource} needs a model or an explicit schema", resource=resource)
            schema = schema_from_model(model)
        if order_fn is not None and not callable(order_fn):
            raise ConfigurationError(f"order_fn of {resource} must be callable, got {order_fn!r}", resource=resource)
        per_page_options = tuple(per_page_options)
        if per_page_default not in per_page_options:
            raise ConfigurationError(
                f"per_page_default {per_page_default} of {resource} is not one of {list(per_page_options)}",
                resource=resource,
            )

        defs = _collect_defs(cls)
        fields: Dict[str, FieldConfig] = {}
        filters: Dict[str, FilterConfig] = {}
        for d in defs:
            attr = self._attribute(schema, d, resource)
            if d.kind == 'field':
                if d.attribute in fields:
                    raise ConfigurationError(
                        f"Duplicate field for {d.attribute!r} in {resource}", attribute=d.attribute, resource=resource,
                    )
                fields[d.attribute] = self._build_field(d, attr, resource)
            else:
                if d.attribute in filters:
                    raise ConfigurationError(
                        f"Duplicate filter for {d.attribute!r} in {resource}", attribute=d.attribute, resource=resource,
                    )
                filters[d.attribute] = self._build_filter(d, attr, resource)

        searchable = []
        for f in fields.values():
            if not f.searchable:
                continue
            if is_text_widget(f.widget) and schema.get(f.attribute).source is not AttributeSource.RELATIONSHIP:
                searchable.append(f.attribute)
            else:
                _logger.warning(
                    "berryadmin: %s.%s is marked searchable but uses %s; search only applies to text fields",
                    resource, f.attribute, widget_name(f.widget),
                )
        not_orderable = {f.attribute for f in fields.values() if not f.orderable}
        orderable = tuple(
            a.name for a in schema.attributes.values()
            if a.source is not AttributeSource.RELATIONSHIP and a.name not in not_orderable
        )
        default_sort = self._init_order(init_order, orderable, resource)
        loads, selects = resolve_loads(schema, list(fields) + [n for n in load if n not in fields])
        for pk in reversed(schema.primary_key):
            if pk not in selects:
                selects.insert(0, pk)

        base_name = getattr(model, '__name__', None) or schema.name
        cfg = ResourceConfig(
            name=resource,
            schema=schema,
            fields=MappingProxyType(fields),
            filters=MappingProxyType(filters),
            model=model,
            singular_name=singular_name or base_name,
            plural_name=plural_name or base_name + 's',
            init_order=default_sort,
            order_fn=order_fn,
            per_page_default=per_page_default,
            per_page_options=per_page_options,
            loads=tuple(loads),
            selects=tuple(selects),
            searchable_fields=tuple(searchable),
            orderable_fields=orderable,
        )
        _logger.info("berryadmin: registered %s (%d fields, %d filters)", resource, len(fields), len(filters))
        return cfg

    @staticmethod
    def _init_order(init_order: Any, orderable: Tuple[str, ...], resource: str) -> Optional[SortSpec]:
        if init_order is None:
            return None
        # a bare attribute name sorts ascending
        raw = (init_order, 'asc') if isinstance(init_order, str) else init_order
        sort = coerce_sort(raw, None)
        if sort is None:
            raise ConfigurationError(
                f"init_order of {resource} must be an attribute name, a (by, direction) pair "
                f"or a {{'by': ..., 'direction': ...}} mapping, got {init_order!r}",
                resource=resource,
            )
        if sort.by not in orderable:
            raise ConfigurationError(
                f"init_order of {resource} sorts by {sort.by!r}, which is not an orderable attribute",
                attribute=sort.by, resource=resource,
            )
        return sort

    def _attribute(self, schema: ResourceSchema, d: FieldDef, resource: str) -> AttributeDescriptor:
        attr = schema.get(d.attribute)
        if attr is None:
            what = 'field' if d.kind == 'field' else 'filter'
            raise ConfigurationError(
                f"\nUnable to resolve the {d.attribute!r} {what} in {resource}: "
                f"{schema.name} has no attribute, relationship or calculation named {d.attribute!r}.\n"
                f"Known names: {sorted(schema.attributes)}",
                attribute=d.attribute, resource=resource,
            )
        return attr

    def _build_field(self, d: FieldDef, attr: AttributeDescriptor, resource: str) -> FieldConfig:
        m = d.meta
        widget, origin = self._resolver.resolve(
            attr.name, attr.type, attr.constraints, override=m.get('widget'), resource=resource,
        )
        _check_views(resource, attr.name, 'only', m.get('only'))
        _check_views(resource, attr.name, 'except_', m.get('except_'))
        if m.get('options') is not None:
            options = normalize_options(m['options'])
        elif issubclass(widget, (SelectWidget, MultiSelectWidget)):
            options = options_from_one_of(attr.constraints)
        else:
            options = None
        link_assocs = m.get('link_assocs')
        if link_assocs is None and issubclass(widget, HasManyWidget):
            link_assocs = True
        _logger.debug("berryadmin: field %s.%s -> %s (%s)", resource, attr.name, widget_name(widget), origin)
        return FieldConfig(
            attribute=attr.name,
            widget=widget,
            label=m.get('label') or title_case(attr.name),
            options=options,
            only=m.get('only'),
            except_=m.get('except_'),
            searchable=bool(m.get('searchable')),
            orderable=bool(m.get('orderable', True)) and attr.source is not AttributeSource.RELATIONSHIP,
            panel=m.get('panel'),
            display_field=m.get('display_field'),
            help_text=m.get('help_text'),
            default=m.get('default'),
            link_assocs=link_assocs,
            extra=MappingProxyType(dict(m.get('extra') or {})),
            widget_origin=origin,
        )

    def _build_filter(self, d: FieldDef, attr: AttributeDescriptor, resource: str) -> FilterConfig:
        m = d.meta
        module, range_kind = resolve_filter(
            attr.name, attr.type, attr.constraints,
            override=m.get('module'), range_hint=m.get('type'), resource=resource,
        )
        choice = issubclass(module, (SelectFilter, MultiSelectFilter))
        if m.get('options') is not None:
            options = normalize_options(m['options'])
        elif choice:
            options = options_from_one_of(attr.constraints)
        else:
            options = ()
        return FilterConfig(
            attribute=attr.name,
            module=module,
            label=m.get('label') or title_case(attr.name),
            range_kind=range_kind,
            options=options,
            prompt=m.get('prompt') or (DEFAULT_PROMPT if choice else None),
        )

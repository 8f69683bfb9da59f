from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

VIEWS = ('index', 'show', 'new', 'edit')

@dataclass
class FieldDef:
    """Internal, normalized declaration collected by the registry.

    Attributes:
        name: The class attribute name on the resource (e.g. "status_filter").
        kind: "field" or "filter".
        attribute: Model attribute the declaration refers to (e.g. "status").
        meta: Options captured by the descriptor factory; interpreted by the
            registry when building the frozen field/filter configs.
    """

    name: str
    kind: str
    attribute: str
    meta: Dict[str, Any]

class FieldDescriptor:
    """Descriptor placed on resource classes to declare fields and filters.

    Users normally go through :func:`field` or :func:`filter_`. The registry
    walks the class body in declaration order and converts each descriptor to
    a :class:`FieldDef`.
    """

    def __init__(self, *, kind: str, attribute: Optional[str] = None, **meta):
        self.kind = kind
        self.attribute = attribute
        self.meta = dict(meta)
        self.name: str | None = None

    def __set_name__(self, owner, name):  # pragma: no cover - simple
        self.name = name

    def build(self) -> FieldDef:
        name = self.name or ''
        return FieldDef(name=name, kind=self.kind, attribute=self.attribute or name, meta=self.meta)

def _views(value: Optional[Iterable[str]]):
    return tuple(value) if value is not None else None

def field(
    attribute: Optional[str] = None,
    /,
    *,
    widget: Any = None,
    label: Optional[str] = None,
    options: Any = None,
    only: Optional[Iterable[str]] = None,
    except_: Optional[Iterable[str]] = None,
    searchable: bool = False,
    orderable: bool = True,
    panel: Optional[str] = None,
    display_field: Optional[str] = None,
    help_text: Optional[str] = None,
    default: Any = None,
    link_assocs: Optional[bool] = None,
    **extra,
) -> FieldDescriptor:
    """Declare a field shown in the admin.

    The widget is derived from the attribute's type unless ``widget`` is
    given; an explicit widget always wins over custom mappings and defaults.

    Common options:
    - attribute: model attribute to bind (defaults to the class attribute
      name); pass it positionally, e.g. ``author_name = field('name')``.
    - label: defaults to the title-cased attribute name.
    - options: select options as ``[(label, value)]``; derived from the
      attribute's ``one_of`` constraint when omitted.
    - only / except_: views (index, show, new, edit) the field appears in or
      is hidden from.
    - searchable: include the field in free-text search (text widgets only).
    - extra keyword arguments are passed through to the widget untouched
      (e.g. ``rows=10``, ``format="%Y-%m-%d"``).

    Examples:
        class PostAdmin:
            title = field(searchable=True)
            content = field(widget=TextareaWidget, rows=10)
            status = field(label="Post status")
            author = field(display_field='name', only=['index', 'show'])
    """
    return FieldDescriptor(
        kind='field',
        attribute=attribute,
        widget=widget,
        label=label,
        options=options,
        only=_views(only),
        except_=_views(except_),
        searchable=bool(searchable),
        orderable=bool(orderable),
        panel=panel,
        display_field=display_field,
        help_text=help_text,
        default=default,
        link_assocs=link_assocs,
        extra=dict(extra),
    )

def filter_(
    attribute: Optional[str] = None,
    /,
    *,
    module: Any = None,
    label: Optional[str] = None,
    options: Any = None,
    prompt: Optional[str] = None,
    type: Any = None,
) -> FieldDescriptor:
    """Declare a filter on the index view.

    The filter class is derived from the attribute type when ``module`` is
    omitted (boolean -> BooleanFilter, enum/string with one_of -> SelectFilter,
    numbers/dates -> RangeFilter, arrays with one_of -> MultiSelectFilter).

    Options:
    - attribute: model attribute to filter on; defaults to the class
      attribute name, so ``status = filter_()`` and
      ``status_filter = filter_('status')`` are equivalent.
    - options / prompt: for Select and MultiSelect filters.
    - type: range kind hint ('number', 'date', 'datetime') for RangeFilter.

    Example:
        class PostAdmin:
            status_filter = filter_('status', label="Post status")
            views_filter = filter_('view_count')
            featured = filter_(module=FeaturedFilter)
    """
    return FieldDescriptor(
        kind='filter',
        attribute=attribute,
        module=module,
        label=label,
        options=options,
        prompt=prompt,
        type=type,
    )

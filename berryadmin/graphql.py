"""Read-only GraphQL view of registered resource metadata.

Front-ends use it to render index/show/form views without importing Python
classes::

    schema = build_metadata_schema(admin)
    await schema.execute('{ resource(name: "PostAdmin") { fields { attribute widget } } }')
"""
from typing import List, Optional

import strawberry

from .core.fields import VIEWS
from .core.utils import Direction
from .query import resolve_sort
from .registry import AdminRegistry, FieldConfig, FilterConfig, ResourceConfig


@strawberry.type
class OptionInfo:
    label: str
    value: str


@strawberry.type
class FieldInfo:
    attribute: str
    widget: str
    label: str
    options: List[OptionInfo]
    views: List[str]
    searchable: bool
    orderable: bool
    panel: Optional[str] = None
    help_text: Optional[str] = None
    display_field: Optional[str] = None
    link_assocs: Optional[bool] = None


@strawberry.type
class FilterInfo:
    attribute: str
    module: str
    label: str
    options: List[OptionInfo]
    prompt: Optional[str] = None
    range_kind: Optional[str] = None


@strawberry.type
class ResourceInfo:
    name: str
    singular_name: str
    plural_name: str
    identity: Optional[str]
    per_page_default: int
    per_page_options: List[int]
    searchable_fields: List[str]
    fields: List[FieldInfo]
    filters: List[FilterInfo]
    default_sort_by: Optional[str] = None
    default_sort_direction: Optional[Direction] = None


def _options(options) -> List[OptionInfo]:
    out = []
    for label, value in options or ():
        out.append(OptionInfo(label=label, value=str(getattr(value, 'value', value))))
    return out


def _field_info(f: FieldConfig) -> FieldInfo:
    return FieldInfo(
        attribute=f.attribute,
        widget=f.widget.name,
        label=f.label,
        options=_options(f.options),
        views=[v for v in VIEWS if f.visible_in(v)],
        searchable=f.searchable,
        orderable=f.orderable,
        panel=f.panel,
        help_text=f.help_text,
        display_field=f.display_field,
        link_assocs=f.link_assocs,
    )


def _filter_info(f: FilterConfig) -> FilterInfo:
    return FilterInfo(
        attribute=f.attribute,
        module=f.module.name,
        label=f.label,
        options=_options(f.options),
        prompt=f.prompt,
        range_kind=f.range_kind.value if f.range_kind is not None else None,
    )


def resource_info(r: ResourceConfig) -> ResourceInfo:
    # order_fn depends on the request, so only the static default is exported
    sort = resolve_sort(None, init_order=r.init_order, identity=r.identity)
    return ResourceInfo(
        name=r.name,
        singular_name=r.singular_name,
        plural_name=r.plural_name,
        identity=r.identity,
        per_page_default=r.per_page_default,
        per_page_options=list(r.per_page_options),
        searchable_fields=list(r.searchable_fields),
        fields=[_field_info(f) for f in r.fields.values()],
        filters=[_filter_info(f) for f in r.filters.values()],
        default_sort_by=sort.by if sort else None,
        default_sort_direction=Direction(sort.direction) if sort else None,
    )


def build_metadata_schema(registry: AdminRegistry) -> strawberry.Schema:
    """Build a schema exposing ``resources`` and ``resource(name)`` queries."""

    @strawberry.type
    class Query:
        @strawberry.field
        def resources(self) -> List[ResourceInfo]:
            return [resource_info(r) for r in registry]

        @strawberry.field
        def resource(self, name: str) -> Optional[ResourceInfo]:
            r = registry.get(name)
            return resource_info(r) if r is not None else None

    return strawberry.Schema(query=Query)

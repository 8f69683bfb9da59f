"""BerryAdmin public API and lightweight lazy exports.

Foundational layers (models importing ``enum_column``, custom widgets
importing ``Widget``) must not pull in the registry or SQL builders at import
time, so most names are resolved lazily.

Exposes:
- AdminRegistry, ResourceConfig, FieldConfig, FilterConfig (registry)
- field, filter_ (declarations)
- MappingConfig (custom field type mappings)
- widgets and filters: Widget, TextWidget, ..., Filter, BooleanFilter, ...
- ConfigurationError
- SQLAlchemyAdapter, build_metadata_schema
- enum_column
"""
from __future__ import annotations

from .errors import ConfigurationError

_LAZY = {
    'AdminRegistry': 'registry',
    'ResourceConfig': 'registry',
    'FieldConfig': 'registry',
    'FilterConfig': 'registry',
    'field': 'core.fields',
    'filter_': 'core.fields',
    'MappingConfig': 'config',
    'QueryDescriptor': 'query',
    'SortSpec': 'query',
    'PageSpec': 'query',
    'assemble_query': 'query',
    'ResourceSchema': 'schema',
    'AttributeDescriptor': 'schema',
    'AttributeSource': 'schema',
    'SQLAlchemyAdapter': 'adapter',
    'DataAdapter': 'adapter',
    'build_metadata_schema': 'graphql',
    'enum_column': 'sql.enum_helpers',
    'Widget': 'widgets',
    'TextWidget': 'widgets',
    'TextareaWidget': 'widgets',
    'NumberWidget': 'widgets',
    'BooleanWidget': 'widgets',
    'SelectWidget': 'widgets',
    'MultiSelectWidget': 'widgets',
    'DateWidget': 'widgets',
    'TimeWidget': 'widgets',
    'DateTimeWidget': 'widgets',
    'BelongsToWidget': 'widgets',
    'HasManyWidget': 'widgets',
    'Filter': 'filters',
    'BooleanFilter': 'filters',
    'SelectFilter': 'filters',
    'MultiSelectFilter': 'filters',
    'RangeFilter': 'filters',
    'RangeKind': 'filters',
}


def __getattr__(name: str):  # PEP 562 lazy exports
    import importlib as _importlib
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(_importlib.import_module(f"{__name__}.{module}"), name)


__all__ = ['ConfigurationError', *_LAZY]

"""Custom field type mapping configuration.

A mapping source overrides the built-in type -> widget table. Two forms are
accepted and validated once, when the source is created:

1. A table keyed by type tags::

       {
           'money': MoneyWidget,                          # custom scalar kind
           Scalar(ScalarKind.STRING): TextareaWidget,
           ('array', 'string'): MultiSelectWidget,        # == Array(Scalar('string'))
       }

2. A function ``(type_tag, constraints) -> Widget subclass | None``::

       def mappings(type_tag, constraints):
           if type_tag == Scalar('string') and constraints.get('max_length', 0) > 255:
               return TextareaWidget
           return None

Sources come in two scopes: a scope-specific one (per application) and a
global fallback. Both live in a :class:`MappingConfig` which is passed to
:class:`berryadmin.registry.AdminRegistry` explicitly.
"""
from __future__ import annotations
import importlib
import inspect
import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from dotenv import dotenv_values

from .core.types import TypeTag, parse_type_tag
from .errors import ConfigurationError
from .widgets import is_widget

_logger = logging.getLogger("berryadmin")

ENV_GLOBAL = 'BERRYADMIN_FIELD_TYPE_MAPPINGS'
ENV_SCOPED = 'BERRYADMIN_{scope}_FIELD_TYPE_MAPPINGS'

_FUNCTION_HELP = """
The function should have the signature:

    def mappings(type_tag, constraints):
        return SomeWidget  # or None to fall through
"""

_TABLE_HELP = """
Valid key examples:
- 'string', 'money'                    (scalar kind identifiers)
- Scalar(ScalarKind.INTEGER)
- Array(Scalar('string')) or ('array', 'string')
- 'belongs_to', Relation(RelationKind.HAS_MANY)
"""


@dataclass(frozen=True)
class TableSource:
    table: Mapping[TypeTag, type] = field(default_factory=dict)

    def lookup(self, type_tag: TypeTag, constraints: Mapping[str, Any]):
        return self.table.get(type_tag)

    def describe(self) -> str:
        return 'mapping table'


@dataclass(frozen=True)
class FunctionSource:
    fn: Callable[[TypeTag, Mapping[str, Any]], Optional[type]]

    def lookup(self, type_tag: TypeTag, constraints: Mapping[str, Any]):
        return self.fn(type_tag, constraints)

    def describe(self) -> str:
        return f"mapping function {getattr(self.fn, '__qualname__', self.fn)!r}"


MappingSource = Union[TableSource, FunctionSource]


def _positional_arity(fn: Callable) -> Optional[int]:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    positional = 0
    for p in sig.parameters.values():
        if p.kind == p.VAR_POSITIONAL:
            return None
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            positional += 1
        elif p.kind == p.KEYWORD_ONLY and p.default is p.empty:
            return None
    return positional


def mapping_source(value: Any) -> Optional[MappingSource]:
    """Validate a raw mapping configuration value and wrap it.

    Returns ``None`` for ``None``; raises :class:`ConfigurationError` for
    callables whose arity is not exactly 2, for malformed table keys, for table
    values that are not widgets, and for anything else.
    """
    if value is None:
        return None
    if isinstance(value, (TableSource, FunctionSource)):
        return value
    if isinstance(value, Mapping):
        table = {}
        for key, widget in value.items():
            try:
                tag = parse_type_tag(key)
            except TypeError:
                raise ConfigurationError(
                    "Invalid key in field type mappings configuration.\n\n"
                    f"Expected a type tag, but got: {key!r}\n{_TABLE_HELP}"
                ) from None
            if not is_widget(widget):
                raise ConfigurationError(
                    f"Invalid value for {tag} in field type mappings configuration: "
                    f"expected a Widget subclass, got {widget!r}",
                    type_tag=tag,
                )
            table[tag] = widget
        return TableSource(MappingProxyType(table))
    if callable(value):
        arity = _positional_arity(value)
        if arity != 2:
            got = 'an unknown number of' if arity is None else str(arity)
            raise ConfigurationError(
                "Invalid field type mappings configuration.\n\n"
                "Expected a function with arity 2 (type_tag, constraints), "
                f"but got a function taking {got} positional arguments.\n{_FUNCTION_HELP}"
            )
        return FunctionSource(value)
    raise ConfigurationError(
        "Invalid field type mappings configuration.\n\n"
        f"Expected a mapping or a function with arity 2, but got: {value!r}"
    )


def import_object(path: str) -> Any:
    """Import ``'package.module:attr'`` or ``'package.module.attr'``."""
    module_name, sep, attr = path.partition(':')
    if not sep:
        module_name, _, attr = path.rpartition('.')
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid import path for field type mappings: {path!r}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import field type mappings from {path!r}: {e}", cause=e) from e


@dataclass(frozen=True)
class MappingConfig:
    """Custom mapping sources consulted before the built-in defaults.

    ``scoped`` wins over ``global_`` for the same type; both accept raw values
    (mapping or function) and validate them on construction.
    """

    scoped: Optional[MappingSource] = None
    global_: Optional[MappingSource] = None

    def __post_init__(self):
        object.__setattr__(self, 'scoped', mapping_source(self.scoped))
        object.__setattr__(self, 'global_', mapping_source(self.global_))

    def sources(self):
        if self.scoped is not None:
            yield 'scoped', self.scoped
        if self.global_ is not None:
            yield 'global', self.global_

    @classmethod
    def from_env(cls, scope: Optional[str] = None, *, env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> 'MappingConfig':
        """Build a config from import paths found in the environment.

        ``BERRYADMIN_<SCOPE>_FIELD_TYPE_MAPPINGS`` names the scope-specific
        source and ``BERRYADMIN_FIELD_TYPE_MAPPINGS`` the global one. Values
        from ``env_file`` (dotenv format) are read first and overridden by the
        process environment.
        """
        env = {}
        if env_file:
            env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        env.update(os.environ if environ is None else environ)
        scoped_path = env.get(ENV_SCOPED.format(scope=scope.upper())) if scope else None
        global_path = env.get(ENV_GLOBAL)
        if scoped_path or global_path:
            _logger.info("berryadmin: field type mappings scoped=%s global=%s", scoped_path, global_path)
        return cls(
            scoped=import_object(scoped_path) if scoped_path else None,
            global_=import_object(global_path) if global_path else None,
        )

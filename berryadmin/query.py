"""Per-request query assembly.

:func:`assemble_query` turns already-configured filters plus the raw request
values into a frozen :class:`QueryDescriptor`. It reads only its arguments:
nothing is cached between requests and inputs are never mutated, so it is
safe to call from any number of concurrent requests.

Sort resolution, first match wins:

1. the request's explicit ``{by, direction}`` (when ``by`` is orderable)
2. the resource's ``order_fn(context)``
3. the resource's static ``init_order``
4. the identity field ascending
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple

from .core import predicates as P
from .core.predicates import Predicate
from .core.utils import dir_value

_logger = logging.getLogger("berryadmin")

DEFAULT_PAGE_SIZE = 15


@dataclass(frozen=True)
class SortSpec:
    by: str
    direction: str = 'asc'


@dataclass(frozen=True)
class PageSpec:
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    @property
    def limit(self) -> int:
        return self.size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True)
class QueryDescriptor:
    """Everything the data-access layer needs for one list/count request.

    Attributes:
        predicates: Compiled filter predicates, combined with AND.
        search_predicate: OR group of ``contains`` conditions over the
            searchable fields, or ``None`` without a search term.
        sort: Resolved sort, or ``None`` when nothing could be resolved.
        page: Resolved page.
    """

    predicates: Tuple[Predicate, ...] = ()
    search_predicate: Optional[Predicate] = None
    sort: Optional[SortSpec] = None
    page: PageSpec = PageSpec()

    @property
    def where(self) -> Optional[Predicate]:
        return P.and_(*self.predicates, self.search_predicate)


def compile_filters(filters: Iterable[Tuple[str, Any, Any]], context: Optional[Mapping[str, Any]] = None) -> Tuple[Predicate, ...]:
    """Compile ``(attribute, filter_config, raw_value)`` triples, dropping ``None`` results."""
    out = []
    for attribute, filter_cfg, raw_value in filters:
        pred = filter_cfg.to_predicate(raw_value, context)
        if pred is None:
            _logger.debug("berryadmin: filter %s ignored value %r", attribute, raw_value)
            continue
        out.append(pred)
    return tuple(out)


def search_predicate(term: Any, fields: Sequence[str]) -> Optional[Predicate]:
    if term is None:
        return None
    text = str(term).strip()
    if not text or not fields:
        return None
    return P.or_(*(P.contains(f, text) for f in fields))


def coerce_sort(raw: Any, orderable: Optional[Iterable[str]]) -> Optional[SortSpec]:
    """Read a ``{by, direction}`` mapping, a pair or a SortSpec; ``None`` if unusable."""
    if raw is None:
        return None
    if isinstance(raw, SortSpec):
        by, direction = raw.by, raw.direction
    elif isinstance(raw, Mapping):
        by, direction = raw.get('by'), raw.get('direction')
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        by, direction = raw
    else:
        return None
    if not by:
        return None
    by = str(getattr(by, 'value', by))
    if orderable is not None and by not in orderable:
        _logger.debug("berryadmin: ignoring sort on non-orderable %r", by)
        return None
    dv = dir_value(direction)
    if dv is None:
        _logger.debug("berryadmin: ignoring sort with invalid direction %r", direction)
        return None
    return SortSpec(by, dv)


def resolve_sort(
    requested: Any = None,
    *,
    order_fn: Optional[Callable[[Mapping[str, Any]], Any]] = None,
    init_order: Any = None,
    identity: Optional[str] = None,
    orderable: Optional[Iterable[str]] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> Optional[SortSpec]:
    allowed = set(orderable) if orderable is not None else None
    sort = coerce_sort(requested, allowed)
    if sort is None and order_fn is not None:
        sort = coerce_sort(order_fn(context if context is not None else {}), None)
    if sort is None:
        sort = coerce_sort(init_order, None)
    if sort is None and identity:
        sort = SortSpec(identity, 'asc')
    return sort


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return n if n >= 1 else None


def resolve_page(requested: Any = None, *, default_size: int = DEFAULT_PAGE_SIZE,
                 allowed_sizes: Optional[Iterable[int]] = None) -> PageSpec:
    """Resolve ``{page, size}``; bad or missing parts fall back to defaults."""
    if isinstance(requested, PageSpec):
        requested = {'page': requested.page, 'size': requested.size}
    requested = requested if isinstance(requested, Mapping) else {}
    page = _positive_int(requested.get('page')) or 1
    size = _positive_int(requested.get('size')) or default_size
    if allowed_sizes is not None and size not in tuple(allowed_sizes):
        size = default_size
    return PageSpec(page, size)


def assemble_query(
    filters: Iterable[Tuple[str, Any, Any]] = (),
    *,
    search: Any = None,
    searchable: Sequence[str] = (),
    sort: Any = None,
    page: Any = None,
    context: Optional[Mapping[str, Any]] = None,
    order_fn: Optional[Callable[[Mapping[str, Any]], Any]] = None,
    init_order: Any = None,
    identity: Optional[str] = None,
    orderable: Optional[Iterable[str]] = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    page_sizes: Optional[Iterable[int]] = None,
) -> QueryDescriptor:
    """Build a :class:`QueryDescriptor` from raw request parts.

    Args:
        filters: Ordered ``(attribute, filter_config, raw_value)`` triples;
            ``filter_config`` only needs a ``to_predicate(value, context)``
            method (see :class:`berryadmin.registry.FilterConfig`).
        search: Free-text search term; blank terms are ignored.
        searchable: Attributes searched with ``contains``.
        sort: Request sort as ``{'by': ..., 'direction': ...}``,
            a ``(by, direction)`` pair or a :class:`SortSpec`.
        page: Request page as ``{'page': ..., 'size': ...}``.
        context: Request context handed to filter compilers and ``order_fn``.
    """
    return QueryDescriptor(
        predicates=compile_filters(filters, context),
        search_predicate=search_predicate(search, searchable),
        sort=resolve_sort(
            sort, order_fn=order_fn, init_order=init_order, identity=identity,
            orderable=orderable, context=context,
        ),
        page=resolve_page(page, default_size=default_page_size, allowed_sizes=page_sizes),
    )

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import DateTime, and_, false, func, inspect as sa_inspect, or_, select
from sqlalchemy.orm import load_only, selectinload
from sqlalchemy.orm.exc import UnmappedColumnError

from ..core import predicates as P
from ..core.filters import OPERATOR_REGISTRY
from ..errors import ConfigurationError

# Turns predicates and query descriptors into SQLAlchemy statements.

_logger = logging.getLogger("berryadmin")


def to_expression(predicate: Optional[P.Predicate], model_cls: Any):
    """Translate a predicate tree to a SQLAlchemy boolean expression.

    Returns ``None`` for a ``None`` predicate. Unknown attributes or
    operators raise :class:`ConfigurationError`.
    """
    if predicate is None:
        return None
    if isinstance(predicate, P.And):
        return and_(*(to_expression(p, model_cls) for p in predicate.items))
    if isinstance(predicate, P.Or):
        return or_(*(to_expression(p, model_cls) for p in predicate.items))
    col = getattr(model_cls, predicate.attribute, None)
    if col is None:
        raise ConfigurationError(
            f"{getattr(model_cls, '__name__', model_cls)} has no attribute {predicate.attribute!r}",
            attribute=predicate.attribute,
        )
    op_fn = OPERATOR_REGISTRY.get(predicate.op)
    if op_fn is None:
        raise ConfigurationError(f"Unknown operator {predicate.op!r}", attribute=predicate.attribute)
    if predicate.op == P.IN and not predicate.value:
        return false()
    return op_fn(col, coerce_value(col, predicate.value))


def coerce_value(col: Any, value: Any) -> Any:
    """Fit a predicate value to the column type.

    Aware datetimes lose their tzinfo on ``DateTime(timezone=False)``
    columns; drivers such as asyncpg reject them there.
    """
    if isinstance(value, (list, tuple)):
        return type(value)(coerce_value(col, v) for v in value)
    ctype = getattr(col, 'type', None)
    if (isinstance(ctype, DateTime) and not getattr(ctype, 'timezone', False)
            and isinstance(value, datetime) and value.tzinfo is not None):
        return value.replace(tzinfo=None)
    return value


class ResourceSQLBuilders:
    """Statement builders for one registered resource."""

    def __init__(self, resource):
        if resource.model is None:
            raise ConfigurationError(
                f"{resource.name} has no mapped model; SQL statements need one", resource=resource.name,
            )
        self.resource = resource
        self.model = resource.model

    # --- helpers -------------------------------------------------------------
    def _pk_cols(self) -> List[Any]:
        return [getattr(self.model, name) for name in self.resource.schema.primary_key]

    def _where(self, sel, query):
        expr = to_expression(query.where, self.model)
        return sel.where(expr) if expr is not None else sel

    def _apply_ordering_sqla(self, sel, sort):
        ordered_by = None
        if sort is not None:
            col = getattr(self.model, sort.by, None)
            if col is not None:
                sel = sel.order_by(col.desc() if sort.direction == 'desc' else col.asc())
                ordered_by = sort.by
            else:
                _logger.debug("berryadmin: %s cannot order by %r", self.resource.name, sort.by)
        # primary key keeps pages stable
        for name, col in zip(self.resource.schema.primary_key, self._pk_cols()):
            if name != ordered_by:
                sel = sel.order_by(col.asc())
        return sel

    @staticmethod
    def _apply_pagination_sqla(sel, page):
        if page is None:
            return sel
        return sel.offset(page.offset).limit(page.limit)

    def _load_options(self, loads: Iterable[str], selects: Iterable[str]) -> list:
        mapper = sa_inspect(self.model)
        columns = [n for n in selects if n in mapper.column_attrs]
        for name in loads:
            rel = mapper.relationships.get(name)
            if rel is None:
                continue
            # local foreign keys are needed to load many-to-one targets
            for col in rel.local_columns:
                try:
                    key = mapper.get_property_by_column(col).key
                except UnmappedColumnError:
                    continue
                if key not in columns:
                    columns.append(key)
        for name in self.resource.schema.primary_key:
            if name not in columns:
                columns.insert(0, name)
        opts: list = []
        if columns:
            opts.append(load_only(*(getattr(self.model, n) for n in columns)))
        for name in loads:
            if name in mapper.relationships:
                opts.append(selectinload(getattr(self.model, name)))
        return opts

    def _select_entities(self, loads, selects):
        # rows always reflect the database, even for instances already in the session
        sel = select(self.model).options(*self._load_options(loads, selects))
        return sel.execution_options(populate_existing=True)

    # --- statements ----------------------------------------------------------
    def list_statement(self, query, *, loads: Optional[Iterable[str]] = None,
                       selects: Optional[Iterable[str]] = None):
        loads = self.resource.loads if loads is None else tuple(loads)
        selects = self.resource.selects if selects is None else tuple(selects)
        sel = self._select_entities(loads, selects)
        sel = self._where(sel, query)
        sel = self._apply_ordering_sqla(sel, query.sort)
        return self._apply_pagination_sqla(sel, query.page)

    def count_statement(self, query):
        sel = select(func.count()).select_from(self.model)
        return self._where(sel, query)

    def get_statement(self, identity_value: Any):
        pks = self._pk_cols()
        if len(pks) != 1:
            raise ConfigurationError(
                f"{self.resource.name} has a composite primary key; fetch by identity is not supported",
                resource=self.resource.name,
            )
        sel = self._select_entities(self.resource.loads, self.resource.selects)
        return sel.where(pks[0] == identity_value)

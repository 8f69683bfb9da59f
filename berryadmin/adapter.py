"""
Data-access boundary.

The engine never talks to a database itself: it hands a
:class:`~berryadmin.query.QueryDescriptor` plus the resource's load/select
lists to a :class:`DataAdapter`. :class:`SQLAlchemyAdapter` is the bundled
implementation for async SQLAlchemy sessions.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .query import QueryDescriptor
from .registry import ResourceConfig
from .sql.builders import ResourceSQLBuilders

logger = logging.getLogger("berryadmin")


class DataAdapter(ABC):
    """Abstract base class for fetching resource records."""

    @abstractmethod
    async def list_items(self, resource: ResourceConfig, query: QueryDescriptor) -> List[Any]:
        """Return one page of records matching ``query``."""
        pass

    @abstractmethod
    async def count_items(self, resource: ResourceConfig, query: QueryDescriptor) -> int:
        """Count records matching ``query``'s predicates (sort and page are ignored)."""
        pass

    @abstractmethod
    async def get_item(self, resource: ResourceConfig, identity_value: Any) -> Optional[Any]:
        """Fetch one record by its identity field, or ``None``."""
        pass


class SQLAlchemyAdapter(DataAdapter):
    """Runs resource queries through an ``AsyncSession``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_items(self, resource: ResourceConfig, query: QueryDescriptor) -> List[Any]:
        stmt = ResourceSQLBuilders(resource).list_statement(query)
        logger.debug("berryadmin: list %s where=%s sort=%s page=%s", resource.name, query.where, query.sort, query.page)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_items(self, resource: ResourceConfig, query: QueryDescriptor) -> int:
        stmt = ResourceSQLBuilders(resource).count_statement(query)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_item(self, resource: ResourceConfig, identity_value: Any) -> Optional[Any]:
        stmt = ResourceSQLBuilders(resource).get_statement(identity_value)
        result = await self.session.execute(stmt)
        return result.scalars().first()

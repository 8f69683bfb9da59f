"""Enum columns whose database values match select option values.

Select and MultiSelect filters compare the column against the strings shown
in their options, which are derived from the enum's storage values. Storing
``member.value`` (not the member name) keeps both sides identical.
"""

from __future__ import annotations

import enum as _enum
from typing import Any, List, Optional, Type

from sqlalchemy import Column
from sqlalchemy import Enum as SAEnum


def storage_values(members) -> List[str]:
    """``member.value`` for str-valued members, the member name otherwise."""
    return [m.value if isinstance(m.value, str) else m.name for m in members]


def enum_column(
    enum_cls: Type[_enum.Enum],
    *,
    nullable: bool = True,
    default: Optional[_enum.Enum] = None,
    constraint_name: Optional[str] = None,
    native_enum: bool = False,
    **column_kwargs,
) -> Column:
    """Enum column storing (and filtered by) string values.

    Example:

        class Post(Base):
            status = enum_column(PostStatus, default=PostStatus.DRAFT, constraint_name="ck_post_status")
    """
    sa_type = SAEnum(
        enum_cls,
        name=constraint_name,
        native_enum=native_enum,
        create_constraint=True,
        validate_strings=True,
        values_callable=storage_values,
    )
    return Column(sa_type, nullable=nullable, default=default, **column_kwargs)


def enum_values(sa_type: Any) -> Optional[List[Any]]:
    """Storage values of a SQLAlchemy Enum type in declaration order, ``None`` for other types."""
    if not isinstance(sa_type, SAEnum):
        return None
    return list(sa_type.enums or [])

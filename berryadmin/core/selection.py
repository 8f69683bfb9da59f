from __future__ import annotations
from typing import Iterable, List, Tuple

from ..errors import ConfigurationError
from ..schema import AttributeSource, ResourceSchema

def resolve_loads(schema: ResourceSchema, field_names: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split displayed fields into ``(loads, selects)``.

    Attributes and calculations are selected with the row; relationships must
    be loaded separately. Names unknown to the schema raise
    :class:`ConfigurationError`.

    Example:
        resolve_loads(post_schema, ['title', 'author', 'comment_count'])
        # (['author'], ['title', 'comment_count'])
    """
    loads: List[str] = []
    selects: List[str] = []
    for name in field_names:
        attr = schema.get(name)
        if attr is None:
            raise ConfigurationError(
                f"Unrecognized field. {name!r} is not a known attribute, relationship or "
                f"calculation on {schema.name}",
                attribute=name, resource=schema.name,
            )
        if attr.source is AttributeSource.RELATIONSHIP:
            if name not in loads:
                loads.append(name)
        elif name not in selects:
            selects.append(name)
    return loads, selects

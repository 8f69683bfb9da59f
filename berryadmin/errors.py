from __future__ import annotations
from typing import Any, Optional


class ConfigurationError(ValueError):
    """Raised while building a resource configuration.

    Carries enough structure for callers (and test assertions) to tell which
    attribute failed and why, without parsing the message:

    Attributes:
        attribute: Attribute name the failure relates to, when known.
        type_tag: Resolved :class:`~berryadmin.core.types.TypeTag` of that
            attribute, when known.
        resource: Name of the resource class being built, when known.
        cause: Underlying exception raised by a user supplied mapping function.
    """

    def __init__(
        self,
        message: str,
        *,
        attribute: Optional[str] = None,
        type_tag: Any = None,
        resource: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.attribute = attribute
        self.type_tag = type_tag
        self.resource = resource
        self.cause = cause


class PredicateCompilationFailure(Exception):
    """Malformed filter input.

    Raised by filter value parsers and always absorbed by
    :meth:`berryadmin.filters.Filter.compile`, which turns it into "no filter".
    """

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

# Operators understood by the data-access layer (see berryadmin.core.filters)
EQ = 'eq'
IN = 'in'
GTE = 'gte'
LTE = 'lte'
CONTAINS = 'contains'


@dataclass(frozen=True)
class Condition:
    """A single comparison ``<attribute> <op> <value>``.

    Conditions are plain values: two conditions built from the same input
    compare equal, which is what makes compiled filters easy to assert on.
    """

    attribute: str
    op: str
    value: Any

    def __str__(self) -> str:
        return f"{self.attribute} {self.op} {self.value!r}"


@dataclass(frozen=True)
class And:
    items: Tuple['Predicate', ...]

    def __str__(self) -> str:
        return '(' + ' AND '.join(str(i) for i in self.items) + ')'


@dataclass(frozen=True)
class Or:
    items: Tuple['Predicate', ...]

    def __str__(self) -> str:
        return '(' + ' OR '.join(str(i) for i in self.items) + ')'


Predicate = Union[Condition, And, Or]


def eq(attribute: str, value: Any) -> Condition:
    return Condition(attribute, EQ, value)


def in_(attribute: str, values: Iterable[Any]) -> Condition:
    return Condition(attribute, IN, tuple(values))


def gte(attribute: str, value: Any) -> Condition:
    return Condition(attribute, GTE, value)


def lte(attribute: str, value: Any) -> Condition:
    return Condition(attribute, LTE, value)


def contains(attribute: str, value: str) -> Condition:
    return Condition(attribute, CONTAINS, value)


def and_(*items: Optional[Predicate]) -> Optional[Predicate]:
    """Conjunction of the non-None ``items``; a single item is returned as-is."""
    kept = tuple(i for i in items if i is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return And(kept)


def or_(*items: Optional[Predicate]) -> Optional[Predicate]:
    """Disjunction of the non-None ``items``; a single item is returned as-is."""
    kept = tuple(i for i in items if i is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Or(kept)

"""Query model for StandardAPI requests.

A :class:`Query` describes what to fetch from a StandardAPI resource:
pagination (``limit``/``offset``), ordering, a predicate tree for the
``where`` clause and the relations to eager-load (``include``).

Example:
    >>> from standardapi.query import Query, Include, and_, eq, gte
    >>> query = Query(
    ...     limit=10,
    ...     order=[("created_at", "desc")],
    ...     where=and_(eq("name", "standardapi"), gte("version", 1)),
    ...     includes=[Include("author")],
    ... )
"""

import enum
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Union


class Direction(enum.Enum):
    """Sort direction of an ``order`` entry."""

    ASC = "asc"
    DESC = "desc"


class Operator(enum.Enum):
    """Comparison operators understood by the ``where`` parameter."""

    ILIKE = "ilike"
    IN = "in"
    NOT_IN = "not_in"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    NULL = "null"
    SET = "set"
    OVERLAPS = "overlaps"
    CONTAINS = "contains"

    @property
    def is_multi_valued(self) -> bool:
        return self in MULTI_VALUED_OPERATORS

    @property
    def is_valueless(self) -> bool:
        return self in VALUELESS_OPERATORS


MULTI_VALUED_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN, Operator.OVERLAPS})
VALUELESS_OPERATORS = frozenset({Operator.NULL, Operator.SET})
# An empty list would encode to no parameters at all, dropping the condition.
NON_EMPTY_OPERATORS = frozenset({Operator.IN, Operator.OVERLAPS})

# Scalar or nested-map values usable in a comparison.
Value = Union[int, str, float, bool, datetime, Mapping[str, Any]]

_SCALAR_TYPES = (bool, int, float, str, datetime)


def _check_value(value: Any) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Comparison values must be finite, got {value!r}")
    if isinstance(value, _SCALAR_TYPES):
        return
    if isinstance(value, Mapping):
        if not value:
            raise ValueError("Nested comparison values may not be empty")
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Nested value keys must be strings, not {type(key).__name__}")
            _check_value(item)
        return
    raise TypeError(f"Unsupported comparison value type: {type(value).__name__}")


def _column_path(column: str | Sequence[str]) -> tuple[str, ...]:
    path = (column,) if isinstance(column, str) else tuple(column)
    if not path:
        raise ValueError("Comparison column path may not be empty")
    for segment in path:
        if not isinstance(segment, str) or not segment:
            raise ValueError(f"Invalid column path segment: {segment!r}")
    return path


@dataclass(frozen=True)
class Comparison:
    """A single condition: ``column operator value``.

    ``column`` addresses an attribute, or a sub-field of a JSON attribute when
    given as a path (``("metadata", "key")``).
    """

    column: tuple[str, ...]
    operator: Operator
    value: Any = None

    def __post_init__(self):
        object.__setattr__(self, "column", _column_path(self.column))
        operator = Operator(self.operator)
        object.__setattr__(self, "operator", operator)

        if operator.is_valueless:
            if self.value is not None:
                raise ValueError(f"Operator '{operator.value}' does not take a value")
        elif operator.is_multi_valued:
            if self.value is None or isinstance(self.value, (str, Mapping)):
                raise ValueError(f"Operator '{operator.value}' expects a sequence of values")
            values = tuple(self.value)
            if not values and operator in NON_EMPTY_OPERATORS:
                raise ValueError(f"Operator '{operator.value}' needs at least one value")
            for value in values:
                _check_value(value)
            object.__setattr__(self, "value", values)
        else:
            if self.value is None:
                raise ValueError(f"Operator '{operator.value}' requires a value")
            _check_value(self.value)


@dataclass(frozen=True)
class Conjunction:
    """Both operands must hold (``AND``)."""

    left: "Operation"
    right: "Operation"


@dataclass(frozen=True)
class Disjunction:
    """Either operand must hold (``OR``)."""

    left: "Operation"
    right: "Operation"


Operation = Union[Comparison, Conjunction, Disjunction]


def _order_entry(entry: tuple[str, Direction | str]) -> tuple[str, Direction]:
    column, direction = entry
    if not isinstance(direction, Direction):
        direction = Direction(str(direction).lower())
    return column, direction


@dataclass(frozen=True)
class Query:
    """Pagination, ordering, filtering and includes for a resource request."""

    limit: int | None = None
    offset: int | None = None
    order: tuple[tuple[str, Direction], ...] = ()
    where: Operation | None = None
    includes: tuple["Include", ...] = ()

    def __post_init__(self):
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")
        if self.offset is not None and self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")
        object.__setattr__(self, "order", tuple(_order_entry(entry) for entry in self.order))
        object.__setattr__(self, "includes", tuple(self.includes))

    def replace(self, **changes: Any) -> "Query":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_QUERY


@dataclass(frozen=True)
class Include:
    """Eager-load a relation, optionally with its own query and sub-includes."""

    relation: str
    query: Query = field(default_factory=Query)
    children: tuple["Include", ...] = ()

    def __post_init__(self):
        if not self.relation:
            raise ValueError("Include relation name may not be empty")
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def all_children(self) -> tuple["Include", ...]:
        """Child includes, both the explicit ones and those of the nested query."""
        return self.children + self.query.includes


EMPTY_QUERY = Query()


def eq(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.EQ, value)


def lt(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.LT, value)


def lte(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.LTE, value)


def gt(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.GT, value)


def gte(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.GTE, value)


def ilike(column: str | Sequence[str], pattern: str) -> Comparison:
    return Comparison(column, Operator.ILIKE, pattern)


def in_(column: str | Sequence[str], values: Iterable[Value]) -> Comparison:
    """Match any of ``values``; an empty sequence raises ``ValueError``."""
    return Comparison(column, Operator.IN, values)


def not_in(column: str | Sequence[str], values: Iterable[Value]) -> Comparison:
    """Exclude ``values``; an empty sequence excludes nothing and encodes no parameters."""
    return Comparison(column, Operator.NOT_IN, values)


def overlaps(column: str | Sequence[str], values: Iterable[Value]) -> Comparison:
    """Match arrays sharing an element with ``values``, which may not be empty."""
    return Comparison(column, Operator.OVERLAPS, values)


def contains(column: str | Sequence[str], value: Value) -> Comparison:
    return Comparison(column, Operator.CONTAINS, value)


def is_null(column: str | Sequence[str]) -> Comparison:
    return Comparison(column, Operator.NULL)


def is_set(column: str | Sequence[str]) -> Comparison:
    return Comparison(column, Operator.SET)


def _fold(cls, operations: tuple[Operation, ...]) -> Operation:
    if not operations:
        raise ValueError(f"{cls.__name__} needs at least one operand")
    result = operations[0]
    for operation in operations[1:]:
        result = cls(result, operation)
    return result


def and_(*operations: Operation) -> Operation:
    """Combine operations into a left-leaning chain of conjunctions."""
    return _fold(Conjunction, operations)


def or_(*operations: Operation) -> Operation:
    """Combine operations into a left-leaning chain of disjunctions."""
    return _fold(Disjunction, operations)

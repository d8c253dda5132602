"""Encode a :class:`~standardapi.query.Query` into query-string parameters.

StandardAPI servers read their parameters with nested bracket keys, for example::

    limit=10&order[created_at]=desc&where[][name][eq]=x&include[author]=true

The encoder produces an ordered list of ``(key, value)`` pairs. Duplicate keys
are legal and their position matters, so the pairs are never collapsed into a
mapping. Percent-encoding is left to the URL layer (see :func:`query_string`).
"""

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from decimal import Decimal

import httpx

from .query import (
    Comparison,
    Conjunction,
    Disjunction,
    Include,
    Operation,
    Operator,
    Query,
    Value,
)

# Namespace segment for an unindexed array position, appended without brackets.
ARRAY_MARKER = "[]"

# Marker emitted between the branches of a disjunction.
OR_MARKER = "OR"

Pair = tuple[str, str]

OPERATOR_SUFFIXES = {
    Operator.ILIKE: ("ilike",),
    Operator.LT: ("lt",),
    Operator.LTE: ("lte",),
    Operator.EQ: ("eq",),
    Operator.GT: ("gt",),
    Operator.GTE: ("gte",),
    Operator.NOT_IN: ("not_in",),
    Operator.OVERLAPS: ("overlaps", ARRAY_MARKER),
    Operator.CONTAINS: ("contains",),
    Operator.IN: (ARRAY_MARKER,),
}


def attr_key(segments: Sequence[str]) -> str:
    """Join namespace segments into a bracket key.

    ``["include", "author", "where"]`` becomes ``include[author][where]``,
    while ``[]`` segments are appended as they are: ``["where", "[]", "name"]``
    becomes ``where[][name]``.
    """
    parts = []
    for index, segment in enumerate(segments):
        if index == 0 or segment == ARRAY_MARKER:
            parts.append(segment)
        else:
            parts.append(f"[{segment}]")
    return "".join(parts)


def format_value(value: Value) -> str:
    """Render a scalar comparison value the way the server parses it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, int):
        return str(value)
    elif isinstance(value, float):
        # shortest round-trip digits, always positional
        return format(Decimal(repr(value)), "f")
    elif isinstance(value, datetime):
        return format_timestamp(value)
    else:
        return str(value)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC timestamp with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def encode_value(namespace: Sequence[str], value: Value) -> list[Pair]:
    """Encode a value at the namespace; nested maps become one pair per leaf."""
    if isinstance(value, Mapping):
        pairs = []
        for key, item in value.items():
            pairs.extend(encode_value([*namespace, key], item))
        return pairs
    return [(attr_key(namespace), format_value(value))]


def encode_order(namespace: Sequence[str], query: Query) -> list[Pair]:
    return [
        (attr_key([*namespace, "order", column]), direction.value)
        for column, direction in query.order
    ]


def encode_limit(namespace: Sequence[str], query: Query) -> list[Pair]:
    if query.limit is None:
        return []
    return [(attr_key([*namespace, "limit"]), str(query.limit))]


def encode_offset(namespace: Sequence[str], query: Query) -> list[Pair]:
    if query.offset is None:
        return []
    return [(attr_key([*namespace, "offset"]), str(query.offset))]


def encode_predicate(namespace: Sequence[str], operation: Operation | None) -> list[Pair]:
    """Flatten a predicate tree into ``where`` pairs.

    The namespace is the full prefix, normally ``[..., "where"]``. Logical
    nodes put their operands in an anonymous group (``where[]``); chains of the
    same kind share that group, so ``and_(a, b, c)`` encodes as three
    ``where[][...]`` pairs regardless of how the binary tree leans. A
    disjunction emits an ``OR`` marker between its branches.
    """
    pairs: list[Pair] = []
    if operation is not None:
        _encode_operation(tuple(namespace), operation, pairs)
    return pairs


def _encode_operation(namespace: tuple[str, ...], operation: Operation, pairs: list[Pair]) -> None:
    if isinstance(operation, (Conjunction, Disjunction)):
        _encode_group((*namespace, ARRAY_MARKER), operation, pairs)
    elif isinstance(operation, Comparison):
        pairs.extend(_encode_comparison(namespace, operation))
    else:
        raise TypeError(f"Not a predicate operation: {operation!r}")


def _encode_group(
    group: tuple[str, ...], operation: Conjunction | Disjunction, pairs: list[Pair]
) -> None:
    kind = type(operation)
    for index, operand in enumerate((operation.left, operation.right)):
        if index and kind is Disjunction:
            pairs.append((attr_key(group), OR_MARKER))
        if type(operand) is kind:
            _encode_group(group, operand, pairs)
        else:
            _encode_operation(group, operand, pairs)


def _encode_comparison(namespace: tuple[str, ...], comparison: Comparison) -> list[Pair]:
    path = (*namespace, *comparison.column)
    operator = comparison.operator

    if operator is Operator.NULL:
        return [(attr_key(path), "false")]
    elif operator is Operator.SET:
        return [(attr_key(path), "true")]

    path = (*path, *OPERATOR_SUFFIXES[operator])
    if operator.is_multi_valued:
        pairs = []
        for value in comparison.value:
            pairs.extend(encode_value(path, value))
        return pairs
    return encode_value(path, comparison.value)


def encode_includes(
    namespace: Sequence[str], includes: Sequence[Include], nested: bool = False
) -> list[Pair]:
    """Encode relation includes.

    Top-level includes live under ``include[relation]``. Inside an include the
    ``include`` segment is not repeated, so a child lands at
    ``include[relation][child]``.
    """
    pairs = []
    for include in includes:
        if nested:
            include_namespace = (*namespace, include.relation)
        else:
            include_namespace = (*namespace, "include", include.relation)
        pairs.extend(_encode_include(include_namespace, include))
    return pairs


def _encode_include(namespace: tuple[str, ...], include: Include) -> list[Pair]:
    options = _encode_options(namespace, include.query)
    children = include.all_children
    if not options and not children:
        return [(attr_key(namespace), "true")]
    return options + encode_includes(namespace, children, nested=True)


def _encode_options(namespace: Sequence[str], query: Query) -> list[Pair]:
    return (
        encode_order(namespace, query)
        + encode_limit(namespace, query)
        + encode_offset(namespace, query)
        + encode_predicate([*namespace, "where"], query.where)
    )


def encode(namespace: Sequence[str], query: Query) -> list[Pair]:
    """Encode a query into ordered ``(key, value)`` pairs.

    Pairs are emitted as order, limit, offset, where and finally includes.
    An empty namespace encodes at the root (``limit``, ``order[id]``, ...).
    """
    return _encode_options(namespace, query) + encode_includes(namespace, query.includes)


def query_string(query: Query, namespace: Sequence[str] = ()) -> str:
    """Encode a query into a percent-encoded query string (without ``?``)."""
    return str(httpx.QueryParams(encode(namespace, query)))


"""Parse StandardAPI query strings back into a :class:`~standardapi.query.Query`.

Only ``limit``, ``offset`` and ``order`` are reconstructed. The flattened
``where`` pairs do not record the shape of the predicate tree, so they are
exposed as raw grouped paths by :func:`where_parameters` instead of being
guessed back into an operation. ``include`` parameters are ignored.

Decoding is permissive: malformed fragments are dropped, never raised.
"""

import logging
import re
from urllib.parse import unquote_plus

from .query import Direction, Query

logger = logging.getLogger(__name__)

RE_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
RE_NON_NEGATIVE_INT = re.compile(r"[0-9]+")


def percent_decode(text: str) -> str:
    """Decode a form-encoded component, rejecting broken escapes.

    :raises ValueError: for a ``%`` not followed by two hex digits,
        or escapes that do not form valid UTF-8.
    """
    if RE_INVALID_ESCAPE.search(text):
        raise ValueError(f"Invalid percent-escape in {text!r}")
    return unquote_plus(text, errors="strict")


def group_parameters(raw: str | None) -> dict[str, list[str]]:
    """Group the parameters of a query string by key, keeping value order.

    Segments without ``=`` or with undecodable escapes are skipped.
    """
    groups: dict[str, list[str]] = {}
    if not raw:
        return groups

    for segment in raw.removeprefix("?").split("&"):
        if not segment:
            continue

        key, sep, value = segment.partition("=")
        if not sep:
            logger.debug("Dropped query parameter without value: %r", segment)
            continue

        try:
            key = percent_decode(key)
            value = percent_decode(value)
        except ValueError as e:
            logger.debug("Dropped undecodable query parameter %r: %s", segment, e)
            continue

        groups.setdefault(key, []).append(value)
    return groups


def tokenize_key(key: str) -> list[str]:
    """Split a bracket key into its path segments.

    ``where[][name][eq]`` becomes ``["where", "", "name", "eq"]``.
    """
    start = key.find("[")
    if start == -1:
        return [key]

    segments = [key[:start]]
    position = start
    while position < len(key):
        if key[position] != "[":
            # stray text between brackets
            position += 1
            continue

        end = key.find("]", position + 1)
        if end == -1:
            logger.debug("Unterminated bracket in query key %r", key)
            break
        segments.append(key[position + 1 : end])
        position = end + 1
    return segments


def _parse_count(values: list[str]) -> int | None:
    if len(values) != 1 or not RE_NON_NEGATIVE_INT.fullmatch(values[0]):
        logger.debug("Ignored invalid count value: %r", values)
        return None
    return int(values[0])


def decode(raw: str | None) -> Query:
    """Rebuild the pagination and ordering of a query string."""
    limit = None
    offset = None
    order = []

    for key, values in group_parameters(raw).items():
        head, *rest = tokenize_key(key)
        if head == "limit" and not rest:
            limit = _parse_count(values)
        elif head == "offset" and not rest:
            offset = _parse_count(values)
        elif head == "order" and rest:
            column = ".".join(rest)
            for value in values:
                direction = Direction.DESC if value == "desc" else Direction.ASC
                order.append((column, direction))

    return Query(limit=limit, offset=offset, order=order)


def where_parameters(raw: str | None) -> list[tuple[list[str], list[str]]]:
    """Return the grouped ``where`` parameters as ``(path, values)`` pairs.

    The leading ``where`` segment is stripped from each path, anonymous array
    positions show up as empty segments.
    """
    result = []
    for key, values in group_parameters(raw).items():
        head, *rest = tokenize_key(key)
        if head == "where":
            result.append((rest, values))
    return result

"""StandardAPI Python Client.

Build, encode and decode queries for StandardAPI servers, and talk to them
over HTTP.

Usage:
    from standardapi import Include, Query, StandardAPIClient, and_, decode, encode, eq, gte

    query = Query(
        limit=10,
        order=[("created_at", "desc")],
        where=and_(eq("name", "standardapi"), gte("version", 1)),
        includes=[Include("author")],
    )

    # Encode into query-string pairs
    encode([], query)
    # [('order[created_at]', 'desc'), ('limit', '10'),
    #  ('where[][name][eq]', 'standardapi'), ('where[][version][gte]', '1'),
    #  ('include[author]', 'true')]

    # Parse pagination and ordering back
    decode("limit=10&order%5Bcreated_at%5D=desc")

    # Fetch records and the schema
    with StandardAPIClient("http://localhost:3000") as client:
        projects = client.query("/projects", query)
        schema = client.get_schema()
"""

from .client import AsyncStandardAPIClient, Request, StandardAPIClient
from .decoding import decode, group_parameters, tokenize_key, where_parameters
from .encoding import attr_key, encode, query_string
from .exceptions import BadBody, BadStatus, BadUrl, NetworkError, StandardAPIError, Timeout
from .query import (
    Comparison,
    Conjunction,
    Direction,
    Disjunction,
    Include,
    Operator,
    Query,
    and_,
    contains,
    eq,
    gt,
    gte,
    ilike,
    in_,
    is_null,
    is_set,
    lt,
    lte,
    not_in,
    or_,
    overlaps,
)
from .types import Attribute, Model, Route, Schema

__version__ = "0.1.0"
__all__ = [
    "StandardAPIClient",
    "AsyncStandardAPIClient",
    "Request",
    "StandardAPIError",
    "BadUrl",
    "Timeout",
    "NetworkError",
    "BadStatus",
    "BadBody",
    "Query",
    "Include",
    "Direction",
    "Operator",
    "Comparison",
    "Conjunction",
    "Disjunction",
    "and_",
    "or_",
    "eq",
    "lt",
    "lte",
    "gt",
    "gte",
    "ilike",
    "in_",
    "not_in",
    "overlaps",
    "contains",
    "is_null",
    "is_set",
    "attr_key",
    "encode",
    "query_string",
    "decode",
    "group_parameters",
    "tokenize_key",
    "where_parameters",
    "Schema",
    "Model",
    "Attribute",
    "Route",
]

from datetime import datetime, timedelta, timezone

import pytest

from standardapi.encoding import (
    attr_key,
    encode,
    encode_predicate,
    format_value,
    query_string,
)
from standardapi.query import (
    Conjunction,
    Direction,
    Disjunction,
    Include,
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


class TestAttrKey:
    @pytest.mark.parametrize(
        "segments,expect",
        [
            (["limit"], "limit"),
            (["include", "author", "where"], "include[author][where]"),
            (["where", "[]", "name", "eq"], "where[][name][eq]"),
            (["where", "[]", "[]", "name"], "where[][][name]"),
            (["tags", "overlaps", "[]"], "tags[overlaps][]"),
            ([], ""),
        ],
    )
    def test_attr_key(self, segments, expect):
        assert attr_key(segments) == expect


class TestEncodeOptions:
    def test_empty(self):
        assert encode([], Query()) == []

    def test_limit(self):
        assert encode([], Query(limit=1)) == [("limit", "1")]

    def test_offset(self):
        assert encode([], Query(offset=0)) == [("offset", "0")]

    @pytest.mark.parametrize("direction,expect", [(Direction.ASC, "asc"), (Direction.DESC, "desc")])
    def test_order(self, direction, expect):
        assert encode([], Query(order=[("id", direction)])) == [("order[id]", expect)]

    def test_order_keeps_sequence(self):
        query = Query(order=[("name", "desc"), ("id", "asc")])
        assert encode([], query) == [("order[name]", "desc"), ("order[id]", "asc")]

    def test_options_sequence(self):
        """Prove that order, limit and offset are emitted in that sequence."""
        query = Query(offset=10, limit=5, order=[("created_at", "desc")])
        assert encode([], query) == [
            ("order[created_at]", "desc"),
            ("limit", "5"),
            ("offset", "10"),
        ]

    def test_namespace(self):
        query = Query(limit=2, order=[("id", "asc")])
        assert encode(["include", "author"], query) == [
            ("include[author][order][id]", "asc"),
            ("include[author][limit]", "2"),
        ]

    def test_where_after_options(self):
        query = Query(where=eq("name", "x"), limit=1)
        assert encode([], query) == [("limit", "1"), ("where[name][eq]", "x")]


class TestEncodePredicate:
    def test_none(self):
        assert encode_predicate(["where"], None) == []

    def test_comparison(self):
        assert encode_predicate(["where"], eq("name", "standardapi")) == [
            ("where[name][eq]", "standardapi")
        ]

    def test_conjunction(self):
        operation = Conjunction(eq("name", "standardapi"), eq("version", 1))
        assert encode_predicate(["where"], operation) == [
            ("where[][name][eq]", "standardapi"),
            ("where[][version][eq]", "1"),
        ]

    def test_disjunction(self):
        operation = Disjunction(eq("name", "a"), eq("name", "b"))
        assert encode_predicate(["where"], operation) == [
            ("where[][name][eq]", "a"),
            ("where[]", "OR"),
            ("where[][name][eq]", "b"),
        ]

    def test_chain_shape_is_irrelevant(self):
        """Prove that left and right leaning chains give the same flat output."""
        a, b, c = eq("a", 1), eq("b", 2), eq("c", 3)
        expect = [("where[][a][eq]", "1"), ("where[][b][eq]", "2"), ("where[][c][eq]", "3")]
        assert encode_predicate(["where"], Conjunction(Conjunction(a, b), c)) == expect
        assert encode_predicate(["where"], Conjunction(a, Conjunction(b, c))) == expect

    def test_disjunction_chain(self):
        operation = or_(eq("a", 1), eq("b", 2), eq("c", 3))
        assert encode_predicate(["where"], operation) == [
            ("where[][a][eq]", "1"),
            ("where[]", "OR"),
            ("where[][b][eq]", "2"),
            ("where[]", "OR"),
            ("where[][c][eq]", "3"),
        ]

    def test_mixed_nesting(self):
        """Prove that an OR inside an AND becomes a nested group."""
        operation = and_(eq("a", 1), or_(eq("b", 2), eq("c", 3)))
        assert encode_predicate(["where"], operation) == [
            ("where[][a][eq]", "1"),
            ("where[][][b][eq]", "2"),
            ("where[][]", "OR"),
            ("where[][][c][eq]", "3"),
        ]

    def test_include_namespace(self):
        operation = and_(eq("name", "elon"), gt("age", 30))
        assert encode_predicate(["include", "contributors", "where"], operation) == [
            ("include[contributors][where][][name][eq]", "elon"),
            ("include[contributors][where][][age][gt]", "30"),
        ]

    @pytest.mark.parametrize(
        "operation,expect",
        [
            (lt("age", 1), [("where[age][lt]", "1")]),
            (lte("age", 1), [("where[age][lte]", "1")]),
            (gt("age", 1), [("where[age][gt]", "1")]),
            (gte("age", 1), [("where[age][gte]", "1")]),
            (ilike("name", "%std%"), [("where[name][ilike]", "%std%")]),
            (in_("id", [1, 2]), [("where[id][]", "1"), ("where[id][]", "2")]),
            (not_in("id", [1, 2]), [("where[id][not_in]", "1"), ("where[id][not_in]", "2")]),
            (
                overlaps("tags", ["a", "b"]),
                [("where[tags][overlaps][]", "a"), ("where[tags][overlaps][]", "b")],
            ),
            (contains("tags", "a"), [("where[tags][contains]", "a")]),
            (is_null("deleted_at"), [("where[deleted_at]", "false")]),
            (is_set("deleted_at"), [("where[deleted_at]", "true")]),
            (not_in("id", []), []),
        ],
        ids=[
            "lt",
            "lte",
            "gt",
            "gte",
            "ilike",
            "in",
            "not_in",
            "overlaps",
            "contains",
            "null",
            "set",
            "not_in_empty",
        ],
    )
    def test_operators(self, operation, expect):
        assert encode_predicate(["where"], operation) == expect

    def test_json_column_path(self):
        assert encode_predicate(["where"], eq(["metadata", "key"], "v")) == [
            ("where[metadata][key][eq]", "v")
        ]

    def test_nested_map_value(self):
        operation = contains("metadata", {"a": 1, "b": {"c": "x", "d": True}})
        assert encode_predicate(["where"], operation) == [
            ("where[metadata][contains][a]", "1"),
            ("where[metadata][contains][b][c]", "x"),
            ("where[metadata][contains][b][d]", "true"),
        ]

    def test_not_an_operation(self):
        with pytest.raises(TypeError):
            encode_predicate(["where"], "name = 1")


class TestFormatValue:
    @pytest.mark.parametrize(
        "value,expect",
        [
            (1, "1"),
            (-42, "-42"),
            (1.5, "1.5"),
            (0.1, "0.1"),
            (1e16, "10000000000000000"),
            (1e20, "100000000000000000000"),
            (1e-05, "0.00001"),
            (-2.5e-07, "-0.00000025"),
            (1.0, "1.0"),
            (True, "true"),
            (False, "false"),
            ("text", "text"),
            ("", ""),
        ],
    )
    def test_scalars(self, value, expect):
        assert format_value(value) == expect

    def test_timestamp_utc(self):
        value = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert format_value(value) == "2020-01-02T03:04:05Z"

    def test_timestamp_naive(self):
        """Prove that naive datetimes are taken as UTC."""
        assert format_value(datetime(2020, 1, 2, 3, 4, 5)) == "2020-01-02T03:04:05Z"

    def test_timestamp_offset(self):
        value = datetime(2020, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_value(value) == "2020-01-02T03:04:05Z"

    def test_timestamp_fraction(self):
        value = datetime(2020, 1, 2, 3, 4, 5, 123000, tzinfo=timezone.utc)
        assert format_value(value) == "2020-01-02T03:04:05.123000Z"

    def test_large_and_small_floats(self):
        """Prove that floats never use scientific notation on the wire."""
        assert encode_predicate(["where"], in_("score", [1e16, 0.00001])) == [
            ("where[score][]", "10000000000000000"),
            ("where[score][]", "0.00001"),
        ]

    def test_timestamp_comparison(self):
        operation = gte("created_at", datetime(2021, 6, 1, tzinfo=timezone.utc))
        assert encode_predicate(["where"], operation) == [
            ("where[created_at][gte]", "2021-06-01T00:00:00Z")
        ]


class TestEncodeIncludes:
    def test_leaf(self):
        query = Query(includes=[Include("author")])
        assert encode([], query) == [("include[author]", "true")]

    def test_nested_leaf(self):
        """Prove that a parent with children gets no ``true`` marker of its own."""
        include = Include("author", Query(includes=[Include("organization")]))
        assert encode([], Query(includes=[include])) == [("include[author][organization]", "true")]

    def test_explicit_children(self):
        include = Include("author", children=[Include("organization", Query(limit=1))])
        assert encode([], Query(includes=[include])) == [("include[author][organization][limit]", "1")]

    def test_options(self):
        include = Include("contributors", Query(where=and_(eq("name", "elon"), eq("admin", True))))
        assert encode([], Query(includes=[include])) == [
            ("include[contributors][where][][name][eq]", "elon"),
            ("include[contributors][where][][admin][eq]", "true"),
        ]

    def test_options_and_children(self):
        include = Include(
            "author",
            Query(order=[("name", "asc")], includes=[Include("photos")]),
        )
        assert encode([], Query(includes=[include])) == [
            ("include[author][order][name]", "asc"),
            ("include[author][photos]", "true"),
        ]

    def test_deep_nesting(self):
        include = Include(
            "author",
            Query(includes=[Include("organization", Query(includes=[Include("country")]))]),
        )
        assert encode([], Query(includes=[include])) == [
            ("include[author][organization][country]", "true")
        ]

    def test_siblings(self):
        query = Query(includes=[Include("author"), Include("comments", Query(limit=5))])
        assert encode([], query) == [
            ("include[author]", "true"),
            ("include[comments][limit]", "5"),
        ]

    def test_includes_last(self):
        query = Query(includes=[Include("author")], where=eq("id", 1), limit=1)
        assert encode([], query) == [
            ("limit", "1"),
            ("where[id][eq]", "1"),
            ("include[author]", "true"),
        ]


class TestQueryString:
    def test_empty(self):
        assert query_string(Query()) == ""

    def test_percent_encoded(self):
        query = Query(limit=10, order=[("id", "asc")], where=eq("name", "a b&c"))
        assert query_string(query) == "order%5Bid%5D=asc&limit=10&where%5Bname%5D%5Beq%5D=a+b%26c"

"""Tests for the store filter language: parsing, SQL compilation and in-memory evaluation."""

import pytest

from tasukun.core.db_client import (
    BoolOp,
    Comparison,
    DatabaseError,
    casefold_text,
    compile_filter,
    compile_sort,
    connect,
    evaluate_filter,
    parse_filter,
    sanitize_param,
)


class TestParseFilter:
    """Test filter parsing."""

    def test_empty_filter(self) -> None:
        """Blank filters mean no restriction."""
        assert parse_filter("") is None
        assert parse_filter("   ") is None

    def test_single_comparison(self) -> None:
        """A single comparison parses to a Comparison node."""
        assert parse_filter('status = "todo"') == Comparison(field="status", op="=", value="todo")

    def test_and_binds_tighter_than_or(self) -> None:
        """`a || b && c` groups as `a || (b && c)`."""
        node = parse_filter('a = "1" || b = "2" && c = "3"')

        assert isinstance(node, BoolOp)
        assert node.op == "||"
        assert node.operands[0] == Comparison("a", "=", "1")
        assert node.operands[1] == BoolOp("&&", (Comparison("b", "=", "2"), Comparison("c", "=", "3")))

    def test_parentheses(self) -> None:
        """Parentheses override precedence."""
        node = parse_filter('(a = "1" || b = "2") && c = "3"')

        assert isinstance(node, BoolOp)
        assert node.op == "&&"
        assert isinstance(node.operands[0], BoolOp)

    def test_escaped_quotes_stay_in_literal(self) -> None:
        """Sanitized values cannot break out of their literal."""
        hostile = 'x" || owner_id != "'
        node = parse_filter(f'title ~ "{sanitize_param(hostile)}"')

        assert node == Comparison(field="title", op="~", value=hostile)

    def test_single_quoted_literal(self) -> None:
        """Single-quoted literals are accepted."""
        assert parse_filter("status = 'done'") == Comparison("status", "=", "done")

    @pytest.mark.parametrize(
        "filter_query",
        [
            'status = "todo" &&',
            'status "todo"',
            '(status = "todo"',
            "status = todo",
            'status = "todo"; DROP TABLE tasks',
        ],
    )
    def test_invalid_syntax_raises(self, filter_query: str) -> None:
        """Malformed filters are store errors."""
        with pytest.raises(DatabaseError):
            parse_filter(filter_query)


class TestCompileFilter:
    """Test SQL compilation."""

    def test_no_filter(self) -> None:
        """No filter compiles to no WHERE clause."""
        assert compile_filter(None) == ("", [])

    def test_values_are_parameters(self) -> None:
        """Values never appear in the SQL text."""
        sql, params = compile_filter(parse_filter('owner_id = "u1" && status != "done"'))

        assert sql == "(owner_id = ? AND status != ?)"
        assert params == ["u1", "done"]

    def test_contains_is_casefolded_substring(self) -> None:
        """`~` compiles to a casefolded substring search with the raw value as parameter."""
        sql, params = compile_filter(parse_filter('title ~ "50%_off"'))

        assert sql == "instr(casefold(title), casefold(?)) > 0"
        assert params == ["50%_off"]


class TestContainsAgreement:
    """SQL and in-memory evaluation of `~` give the same answers."""

    @pytest.mark.parametrize(
        ("value", "search"),
        [
            ("Write REPORT", "report"),
            ("Ärger melden", "ärger"),
            ("Задача отчёт", "задача"),
            ("Straße fegen", "STRASSE"),
            ("50% off", "0%"),
            ("500 items", "0%"),
            ("owner_id", "r_i"),
            ("Groceries", "report"),
        ],
    )
    async def test_sqlite_matches_in_memory(self, tmp_path, value: str, search: str) -> None:
        """The registered casefold function agrees with evaluate_filter."""
        node = parse_filter(f'title ~ "{sanitize_param(search)}"')
        sql, params = compile_filter(node)

        async with connect(db_path=str(tmp_path / "agree.db")) as client:
            await client.apply_schema(statements=["CREATE TABLE notes (id TEXT PRIMARY KEY, title TEXT)"])
            await client.create_record(collection="notes", data={"title": value})
            rows = await client.list_all_records(collection="notes", filter_query=f'title ~ "{sanitize_param(search)}"')

        assert sql.startswith("instr(casefold(")
        assert params == [search]
        assert (len(rows) == 1) is evaluate_filter(node, {"title": value})

    def test_casefold_text(self) -> None:
        """Folding handles non-ASCII letters and passes NULL through."""
        assert casefold_text("ÄRGER") == "ärger"
        assert casefold_text("Straße") == "strasse"
        assert casefold_text(None) is None


class TestEvaluateFilter:
    """Test in-memory evaluation."""

    def test_contains_is_case_insensitive(self) -> None:
        """`~` matches substrings regardless of case."""
        node = parse_filter('title ~ "report"')

        assert evaluate_filter(node, {"title": "Write REPORT"}) is True
        assert evaluate_filter(node, {"title": "Groceries"}) is False

    def test_null_never_matches(self) -> None:
        """Missing values fail every comparison."""
        assert evaluate_filter(parse_filter('description ~ "x"'), {"description": None}) is False
        assert evaluate_filter(parse_filter('description != "x"'), {"description": None}) is False

    def test_or_and_combination(self) -> None:
        """Boolean structure is honoured."""
        node = parse_filter('owner_id = "u1" && (status = "todo" || status = "done")')

        assert evaluate_filter(node, {"owner_id": "u1", "status": "done"}) is True
        assert evaluate_filter(node, {"owner_id": "u1", "status": "in_progress"}) is False
        assert evaluate_filter(node, {"owner_id": "u2", "status": "todo"}) is False

    def test_ordering_operators_compare_strings(self) -> None:
        """ISO timestamps compare chronologically as strings."""
        node = parse_filter('due_date < "2025-01-02T00:00:00+00:00"')

        assert evaluate_filter(node, {"due_date": "2025-01-01T00:00:00+00:00"}) is True
        assert evaluate_filter(node, {"due_date": "2025-01-03T00:00:00+00:00"}) is False


class TestCompileSort:
    """Test sort parsing."""

    def test_directions(self) -> None:
        """`-` means descending, `+` or no prefix ascending."""
        assert compile_sort("-created_at,+title,priority") == [
            ("created_at", True),
            ("title", False),
            ("priority", False),
        ]

    def test_empty(self) -> None:
        """Empty sort yields no ordering."""
        assert compile_sort("") == []

    def test_rejects_injection(self) -> None:
        """Only identifiers are accepted."""
        with pytest.raises(DatabaseError):
            compile_sort("created_at; DROP TABLE tasks")

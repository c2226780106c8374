"""SQLite store adapter with CRUD operations and PocketBase-style filters."""

import json
import logging
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from tasukun.core.config import settings
from tasukun.core.errors import DatabaseError, RecordNotFoundError


__all__ = [
    "BoolOp",
    "Comparison",
    "DBClient",
    "DatabaseError",
    "RecordNotFoundError",
    "casefold_text",
    "compile_filter",
    "compile_sort",
    "connect",
    "evaluate_filter",
    "get_db_client",
    "parse_filter",
    "sanitize_param",
]

logger = logging.getLogger(__name__)


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding inside a double-quoted filter literal."""
    return json.dumps(str(value), ensure_ascii=False)[1:-1]


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


# Filter expressions
#
#   expr       := and_expr ("||" and_expr)*
#   and_expr   := atom ("&&" atom)*
#   atom       := "(" expr ")" | IDENT OP STRING
#
# STRING is a JSON double-quoted literal or a single-quoted literal with backslash escapes.


@dataclass(frozen=True)
class Comparison:
    """A single `field op "value"` condition."""

    field: str
    op: str
    value: str


@dataclass(frozen=True)
class BoolOp:
    """Conjunction (`&&`) or disjunction (`||`) of sub-expressions."""

    op: str
    operands: tuple["Comparison | BoolOp", ...]


FilterNode = Comparison | BoolOp

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<and>&&)
      | (?P<or>\|\|)
      | (?P<op>!=|>=|<=|=|>|<|~)
      | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<dstring>"(?:[^"\\]|\\.)*")
      | (?P<sstring>'(?:[^'\\]|\\.)*')
    )""",
    re.VERBOSE,
)

_SQL_OPERATORS = {"=": "=", "!=": "!=", ">": ">", "<": "<", ">=": ">=", "<=": "<="}


def _tokenize(filter_query: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    length = len(filter_query)
    while pos < length:
        if filter_query[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(filter_query, pos)
        if not match or match.end() == pos:
            msg = f"Invalid filter syntax near position {pos}: {filter_query!r}"
            raise DatabaseError(msg)
        kind = match.lastgroup
        assert kind is not None
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _decode_string(kind: str, raw: str) -> str:
    if kind == "dstring":
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DatabaseError(f"Invalid string literal in filter: {raw}") from e
    return re.sub(r"\\(.)", r"\1", raw[1:-1])


class _FilterParser:
    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos][0] if self._pos < len(self._tokens) else None

    def _take(self, *kinds: str) -> tuple[str, str]:
        if self._pos >= len(self._tokens) or self._tokens[self._pos][0] not in kinds:
            found = self._tokens[self._pos][1] if self._pos < len(self._tokens) else "end of filter"
            raise DatabaseError(f"Invalid filter syntax: expected {' or '.join(kinds)}, found {found!r}")
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def parse(self) -> FilterNode:
        node = self._expr()
        if self._pos != len(self._tokens):
            raise DatabaseError(f"Invalid filter syntax: unexpected {self._tokens[self._pos][1]!r}")
        return node

    def _expr(self) -> FilterNode:
        operands = [self._and_expr()]
        while self._peek() == "or":
            self._take("or")
            operands.append(self._and_expr())
        return operands[0] if len(operands) == 1 else BoolOp("||", tuple(operands))

    def _and_expr(self) -> FilterNode:
        operands = [self._atom()]
        while self._peek() == "and":
            self._take("and")
            operands.append(self._atom())
        return operands[0] if len(operands) == 1 else BoolOp("&&", tuple(operands))

    def _atom(self) -> FilterNode:
        if self._peek() == "lparen":
            self._take("lparen")
            node = self._expr()
            self._take("rparen")
            return node
        _, field = self._take("ident")
        _, op = self._take("op")
        kind, raw = self._take("dstring", "sstring")
        return Comparison(field=field, op=op, value=_decode_string(kind, raw))


def parse_filter(filter_query: str) -> FilterNode | None:
    """Parse a filter expression into a tree; an empty filter yields None."""
    if not filter_query or not filter_query.strip():
        return None
    return _FilterParser(_tokenize(filter_query)).parse()


def casefold_text(value: Any) -> str | None:
    """SQL `casefold()`: full Unicode case folding, as `~` applies in memory."""
    return None if value is None else str(value).casefold()


def compile_filter(node: FilterNode | None) -> tuple[str, list[str]]:
    """Compile a filter tree into a SQL WHERE fragment and its parameters."""
    if node is None:
        return "", []

    if isinstance(node, Comparison):
        if node.op == "~":
            return f"instr(casefold({node.field}), casefold(?)) > 0", [node.value]
        return f"{node.field} {_SQL_OPERATORS[node.op]} ?", [node.value]

    parts = []
    params: list[str] = []
    for operand in node.operands:
        sql, operand_params = compile_filter(operand)
        parts.append(sql)
        params.extend(operand_params)
    joiner = " AND " if node.op == "&&" else " OR "
    return f"({joiner.join(parts)})", params


def evaluate_filter(node: FilterNode | None, record: dict[str, Any]) -> bool:
    """Evaluate a filter tree against an in-memory record."""
    if node is None:
        return True

    if isinstance(node, BoolOp):
        results = (evaluate_filter(operand, record) for operand in node.operands)
        return all(results) if node.op == "&&" else any(results)

    raw = record.get(node.field)
    # NULL never satisfies a comparison, as in SQL
    if raw is None:
        return False
    actual = raw.isoformat() if isinstance(raw, datetime) else str(raw.value if isinstance(raw, Enum) else raw)

    match node.op:
        case "~":
            return node.value.casefold() in actual.casefold()
        case "=":
            return actual == node.value
        case "!=":
            return actual != node.value
        case ">":
            return actual > node.value
        case "<":
            return actual < node.value
        case ">=":
            return actual >= node.value
        case "<=":
            return actual <= node.value
    raise DatabaseError(f"Unsupported operator: {node.op}")


def compile_sort(sort: str) -> list[tuple[str, bool]]:
    """Parse a sort expression like "-created_at,+title" into (field, descending) pairs."""
    fields: list[tuple[str, bool]] = []
    for raw_part in sort.split(","):
        part = raw_part.strip()
        if not part:
            continue
        descending = part.startswith("-")
        field = part.lstrip("+-")
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", field):
            raise DatabaseError(f"Invalid sort field: {field}")
        fields.append((field, descending))
    return fields


def _serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


class DBClient:
    """Store access bound to one open connection for the lifetime of a request."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def _execute(self, query: str, params: list[Any] | tuple[Any, ...], *, collection: str) -> aiosqlite.Cursor:
        try:
            return await self._conn.execute(query, params)
        except aiosqlite.OperationalError as e:
            if "no such table" in str(e):
                logger.error("Table not found", extra={"collection": collection})
                raise DatabaseError(f"Table '{collection}' does not exist. Call init_db() first.") from e
            raise DatabaseError(f"Query on {collection} failed: {e}") from e
        except aiosqlite.Error as e:
            raise DatabaseError(f"Query on {collection} failed: {e}") from e

    async def apply_schema(self, *, statements: list[str]) -> None:
        """Run DDL statements and commit them together."""
        for statement in statements:
            await self._conn.execute(statement)
        await self._conn.commit()

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it with its assigned id."""
        _validate_collection_name(collection)
        payload = {"id": uuid.uuid4().hex, **data}

        columns = list(payload.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_serialize_value(payload[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        try:
            await self._execute(query, values, collection=collection)
            await self._conn.commit()
        except DatabaseError as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            raise

        logger.info("Created record", extra={"collection": collection, "record_id": payload["id"]})
        return await self.get_record(collection=collection, record_id=payload["id"])

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single record by ID, raising RecordNotFoundError if not found."""
        _validate_collection_name(collection)
        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await self._execute(query, (record_id,), collection=collection)
        row = await cursor.fetchone()

        if row is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

        return dict(row)

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated record."""
        if not data:
            raise DatabaseError("Empty update payload")

        _validate_collection_name(collection)
        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_serialize_value(val) for val in data.values()]
        values.append(record_id)

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await self._execute(query, values, collection=collection)
        await self._conn.commit()

        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await self.get_record(collection=collection, record_id=record_id)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by ID, raising RecordNotFoundError if not found."""
        _validate_collection_name(collection)
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await self._execute(query, (record_id,), collection=collection)
        await self._conn.commit()

        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})

    async def _select(
        self,
        *,
        collection: str,
        filter_query: str,
        sort: str,
        limit: int,
        offset: int,
    ) -> list[dict[str, Any]]:
        _validate_collection_name(collection)
        where_clause, params = compile_filter(parse_filter(filter_query))
        where_sql = f"WHERE {where_clause}" if where_clause else ""

        order = compile_sort(sort) or [("rowid", False)]
        order_sql = ", ".join(f"{field} {'DESC' if descending else 'ASC'}" for field, descending in order)

        query = f"SELECT * FROM {collection} {where_sql} ORDER BY {order_sql} LIMIT ? OFFSET ?"  # noqa: S608 - collection and fields are validated
        cursor = await self._execute(query, [*params, limit, offset], collection=collection)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        records = await self._select(
            collection=collection,
            filter_query=filter_query,
            sort=sort,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        logger.info("Listed records", extra={"collection": collection, "count": len(records)})
        return records

    async def list_all_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List every record matching the filter, in sort order."""
        records = await self._select(collection=collection, filter_query=filter_query, sort=sort, limit=-1, offset=0)
        logger.info("Listed all records", extra={"collection": collection, "count": len(records)})
        return records

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        records = await self._select(collection=collection, filter_query=filter_query, sort="", limit=1, offset=0)
        return records[0] if records else None

    async def upsert_record(self, *, collection: str, data: dict[str, Any], conflict_field: str) -> dict[str, Any]:
        """Insert a record or replace the fields of the one sharing `conflict_field`."""
        _validate_collection_name(collection)
        if conflict_field not in data:
            raise DatabaseError(f"Upsert payload for {collection} is missing {conflict_field}")

        payload = {"id": uuid.uuid4().hex, **data}
        columns = list(payload.keys())
        for column in columns:
            _validate_collection_name(column)

        update_columns = [column for column in columns if column not in ("id", conflict_field)]
        update_sql = ", ".join(f"{column} = excluded.{column}" for column in update_columns)
        conflict_action = f"DO UPDATE SET {update_sql}" if update_sql else "DO NOTHING"

        query = (
            f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "  # noqa: S608 - collection and columns are validated
            f"ON CONFLICT({conflict_field}) {conflict_action}"
        )
        await self._execute(query, [_serialize_value(payload[key]) for key in columns], collection=collection)
        await self._conn.commit()

        record = await self.get_first_record(
            collection=collection,
            filter_query=f'{conflict_field} = "{sanitize_param(data[conflict_field])}"',
        )
        assert record is not None
        logger.info("Upserted record", extra={"collection": collection, "record_id": record["id"]})
        return record


@asynccontextmanager
async def connect(*, db_path: str | None = None) -> AsyncIterator[DBClient]:
    """Open a connection to the store and close it on exit."""
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(str(path))
    conn.row_factory = aiosqlite.Row
    try:
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.create_function("casefold", 1, casefold_text, deterministic=True)
        yield DBClient(conn)
    finally:
        await conn.close()


async def get_db_client() -> AsyncIterator[DBClient]:
    """FastAPI dependency yielding a request-scoped store client."""
    async with connect() as client:
        yield client

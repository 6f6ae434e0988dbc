"""
In-memory stand-in for the supabase-py client.

Implements the part of the fluent PostgREST builder the repositories use and
raises real postgrest APIError objects, with Postgres error codes, for missing
tables and columns.
"""
import copy
from typing import Any, Dict, List, Optional, Set, Tuple

from postgrest.exceptions import APIError


def api_error(code: str, message: str) -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, store: "FakeSupabaseClient", table: str, operation: str, payload: Any = None):
        self.store = store
        self.table = table
        self.operation = operation
        self.payload = payload
        self.filters: List[Tuple[str, Any]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.row_limit: Optional[int] = None

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.row_limit = size
        return self

    def _check_columns(self, columns):
        missing = self.store.missing_columns.get(self.table, set())
        for column in columns:
            if column in missing:
                raise api_error("42703", f'column {self.table}.{column} does not exist')

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> FakeResponse:
        self.store.calls.append((self.table, self.operation))

        if self.table in self.store.missing_tables:
            raise api_error("42P01", f'relation "public.{self.table}" does not exist')

        failure = self.store.failures.get((self.table, self.operation))
        if failure:
            raise api_error(failure, f"{self.operation} on {self.table} failed")

        self._check_columns([column for column, _ in self.filters])
        if self.order_by:
            self._check_columns([self.order_by[0]])

        rows = self.store.tables.setdefault(self.table, [])
        handler = getattr(self, f"_{self.operation}")
        return FakeResponse(copy.deepcopy(handler(rows)))

    def _select(self, rows):
        result = [row for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.row_limit is not None:
            result = result[:self.row_limit]
        return result

    def _insert(self, rows):
        new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
        existing_ids = {row["id"] for row in rows}
        for new_row in new_rows:
            if new_row["id"] in existing_ids:
                raise api_error("23505", f'duplicate key value violates unique constraint "{self.table}_pkey"')
        rows.extend(copy.deepcopy(new_rows))
        return new_rows

    def _upsert(self, rows):
        new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
        for new_row in new_rows:
            for index, row in enumerate(rows):
                if row["id"] == new_row["id"]:
                    rows[index] = copy.deepcopy(new_row)
                    break
            else:
                rows.append(copy.deepcopy(new_row))
        return new_rows

    def _update(self, rows):
        self._check_columns(self.payload.keys())
        updated = []
        for row in rows:
            if self._matches(row):
                row.update(copy.deepcopy(self.payload))
                updated.append(row)
        return updated

    def _delete(self, rows):
        removed = [row for row in rows if self._matches(row)]
        rows[:] = [row for row in rows if not self._matches(row)]
        return removed


class FakeTable:
    def __init__(self, store: "FakeSupabaseClient", name: str):
        self.store = store
        self.name = name

    def select(self, columns: str = "*", count: Optional[str] = None) -> FakeQuery:
        return FakeQuery(self.store, self.name, "select")

    def insert(self, payload) -> FakeQuery:
        return FakeQuery(self.store, self.name, "insert", payload)

    def upsert(self, payload, on_conflict: str = "id") -> FakeQuery:
        return FakeQuery(self.store, self.name, "upsert", payload)

    def update(self, payload) -> FakeQuery:
        return FakeQuery(self.store, self.name, "update", payload)

    def delete(self) -> FakeQuery:
        return FakeQuery(self.store, self.name, "delete")


class FakeSupabaseClient:
    """
    Attributes tests can tweak:
        tables: {table: [row, ...]}
        missing_tables: tables that answer 42P01
        missing_columns: {table: {column}} answering 42703 when filtered, ordered or updated
        failures: {(table, operation): code} for arbitrary store errors
        calls: log of (table, operation) in execution order
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"conversations": [], "messages": []}
        self.missing_tables: Set[str] = set()
        self.missing_columns: Dict[str, Set[str]] = {}
        self.failures: Dict[Tuple[str, str], str] = {}
        self.calls: List[Tuple[str, str]] = []

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)

    def writes(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[1] != "select"]

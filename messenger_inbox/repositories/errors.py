"""
Store error kinds raised by the repositories.

PostgREST reports problems as `postgrest.exceptions.APIError` with a Postgres
or PostgREST error code. Callers only ever see the kinds below.
"""
from typing import Optional

from postgrest.exceptions import APIError

# undefined_table, and PostgREST's "table not in schema cache"
TABLE_NOT_FOUND_CODES = {"42P01", "PGRST205"}
# undefined_column, and PostgREST's "column not in schema cache"
COLUMN_NOT_FOUND_CODES = {"42703", "PGRST204"}


class StoreError(Exception):
    """A Supabase request failed"""

    def __init__(self, message: str, table: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.code = code


class TableNotFoundError(StoreError):
    """The referenced table does not exist yet (store not provisioned)"""


class ColumnNotFoundError(StoreError):
    """A referenced column does not exist"""


def translate_api_error(error: APIError, table: str) -> StoreError:
    """Map a PostgREST APIError to the matching StoreError kind"""
    code = error.code
    message = error.message or str(error)

    if code in TABLE_NOT_FOUND_CODES:
        return TableNotFoundError(f"Table '{table}' does not exist: {message}", table=table, code=code)
    if code in COLUMN_NOT_FOUND_CODES:
        return ColumnNotFoundError(f"Column missing on '{table}': {message}", table=table, code=code)
    return StoreError(f"Request on '{table}' failed: {message}", table=table, code=code)

# fibr_gen/report_generator/fetchers/sql_fetcher.py
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from ..errors import DataFetchError, ViewNotFoundError
from .base import DataFetcher, Row

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class SqlDataFetcher(DataFetcher):
    """
    Fetches a view as `SELECT * FROM <table>` over any DB-API 2.0 connection.

    The view name is the table name unless table_map says otherwise. Only
    parameters whose key is a column of the table become equality conditions;
    values are always bound, never interpolated.
    """

    def __init__(self, connection: Any, table_map: Optional[Dict[str, str]] = None,
                 placeholder: str = "?"):
        self.connection = connection
        self.table_map: Dict[str, str] = dict(table_map or {})
        self.placeholder = placeholder
        self._columns: Dict[str, List[str]] = {}
        self._db_error = getattr(connection, "Error", Exception)

    def fetch(self, view_name: str, params: Mapping[str, str]) -> List[Row]:
        table = self.table_map.get(view_name, view_name)
        if not IDENTIFIER_RE.match(table):
            raise DataFetchError("invalid table identifier", view=view_name, table=table)

        columns = self._table_columns(view_name, table)
        conditions = [key for key in params if key in columns]

        query = f"SELECT * FROM {table}"
        if conditions:
            query += " WHERE " + " AND ".join(f"{col} = {self.placeholder}" for col in conditions)
        args = [params[col] for col in conditions]

        logger.debug(f"SQL fetch for view '{view_name}': {query} {args}")
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, args)
            names = [desc[0] for desc in cursor.description or []]
            result = [self._to_row(names, values) for values in cursor.fetchall()]
        except self._db_error as e:
            raise DataFetchError(f"query failed: {e}", view=view_name, table=table) from e
        finally:
            cursor.close()
        return result

    def _table_columns(self, view_name: str, table: str) -> List[str]:
        if table in self._columns:
            return self._columns[table]
        cursor = self.connection.cursor()
        try:
            cursor.execute(f"SELECT * FROM {table} WHERE 1 = 0")
            columns = [desc[0] for desc in cursor.description or []]
        except self._db_error as e:
            raise ViewNotFoundError(f"table not available: {e}", view=view_name, table=table) from e
        finally:
            cursor.close()
        self._columns[table] = columns
        return columns

    @staticmethod
    def _to_row(names: List[str], values) -> Row:
        row: Row = {}
        for name, value in zip(names, values):
            if isinstance(value, (bytes, bytearray)):
                value = bytes(value).decode("utf-8", errors="replace")
            row[name] = value
        return row

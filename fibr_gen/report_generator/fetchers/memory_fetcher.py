# fibr_gen/report_generator/fetchers/memory_fetcher.py
from typing import Dict, List, Mapping, Optional

from ..errors import ViewNotFoundError
from .base import DataFetcher, Row, matches_params


class InMemoryDataFetcher(DataFetcher):
    """Serves rows from a dict of view name -> rows. Used by tests and embedding callers."""

    def __init__(self, data: Optional[Dict[str, List[Row]]] = None, prefilter: bool = True):
        self.data: Dict[str, List[Row]] = dict(data or {})
        self.prefilter = prefilter
        self.calls: List[str] = []

    def add_view(self, view_name: str, rows: List[Row]) -> None:
        self.data[view_name] = list(rows)

    def fetch(self, view_name: str, params: Mapping[str, str]) -> List[Row]:
        self.calls.append(view_name)
        if view_name not in self.data:
            raise ViewNotFoundError("view not found", view=view_name)
        rows = self.data[view_name]
        if self.prefilter and params:
            rows = [row for row in rows if matches_params(row, params)]
        return [dict(row) for row in rows]

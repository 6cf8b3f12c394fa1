# fibr_gen/report_generator/fetchers/base.py
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping

from ..utils.text import stringify

Row = Dict[str, Any]


class DataFetcher(ABC):
    """
    Source of rows for a named view.

    Implementations return every row of the view, optionally pre-filtered by
    string equality on parameters whose key is a column name. An unknown
    view must raise ViewNotFoundError.
    """

    @abstractmethod
    def fetch(self, view_name: str, params: Mapping[str, str]) -> List[Row]:
        pass


def matches_params(row: Row, params: Mapping[str, str]) -> bool:
    """Parameters whose key is not a column of the row do not constrain it."""
    for key, expected in params.items():
        if key in row and stringify(row[key]) != expected:
            return False
    return True

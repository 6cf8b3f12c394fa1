# fibr_gen/report_generator/fetchers/csv_fetcher.py
import csv
import logging
from pathlib import Path
from typing import List, Mapping, Union

from ..errors import DataFetchError, ViewNotFoundError
from .base import DataFetcher, Row, matches_params

logger = logging.getLogger(__name__)


class CsvDataFetcher(DataFetcher):
    """
    Reads `<root_dir>/<view_name>.csv`.

    The header row supplies column names and every value is a string. Rows
    are pre-filtered on parameters whose key is one of the columns.
    """

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)

    def fetch(self, view_name: str, params: Mapping[str, str]) -> List[Row]:
        path = self.root_dir / f"{view_name}.csv"
        if not path.is_file():
            raise ViewNotFoundError("csv file not found", view=view_name, path=str(path))

        try:
            with open(path, "r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                rows = [self._clean(row) for row in reader]
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise DataFetchError(f"failed to read csv content: {e}", view=view_name, path=str(path)) from e

        result = [row for row in rows if matches_params(row, params)]
        logger.debug(f"CSV '{path.name}': {len(rows)} rows read, {len(result)} after parameter filter")
        return result

    @staticmethod
    def _clean(row: Row) -> Row:
        # DictReader stores surplus fields under None and pads short rows with None
        return {k: v for k, v in row.items() if k is not None and v is not None}

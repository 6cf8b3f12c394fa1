# fibr_gen/report_generator/data/generation_context.py
import datetime
import logging
from typing import Dict, List, Mapping, Optional

from ..config.models import BlockConfig, BlockType, DataViewConfig, WorkbookConfig
from ..config.provider import ConfigRegistry
from ..errors import DataFetchError, DynamicDateError, ReportGenerationError
from ..fetchers.base import DataFetcher, Row
from ..utils.text import stringify
from .data_view import DataView
from .dynamic_date import is_dynamic_date, parse_dynamic_date

logger = logging.getLogger(__name__)

ARCHIVE_DATE_PARAM = "archive_date"


class GenerationContext:
    """
    Per-run state for one workbook generation.

    Holds the merged parameters (workbook defaults < caller overrides, with
    dynamic dates already resolved), the fetcher, the config registry and a
    cache of loaded views. A context belongs to exactly one generate() call
    and must not be shared between concurrent runs.
    """

    def __init__(self, workbook_config: WorkbookConfig, provider: ConfigRegistry, fetcher: DataFetcher,
                 params: Optional[Mapping[str, str]] = None, now: Optional[datetime.datetime] = None):
        self.workbook_config = workbook_config
        self.provider = provider
        self.fetcher = fetcher
        self.now = now or datetime.datetime.now()
        self.loaded_views: Dict[str, DataView] = {}
        self.parameters: Dict[str, str] = self._merge_parameters(params or {})

    def _merge_parameters(self, overrides: Mapping[str, str]) -> Dict[str, str]:
        merged: Dict[str, str] = dict(self.workbook_config.parameters)
        merged.update({k: str(v) for k, v in overrides.items()})

        if self.workbook_config.archive_rule:
            merged[ARCHIVE_DATE_PARAM] = self.workbook_config.archive_rule

        for key, value in merged.items():
            if not is_dynamic_date(value):
                continue
            try:
                merged[key] = parse_dynamic_date(value, self.now)
            except DynamicDateError as e:
                logger.warning(f"Parameter '{key}' keeps its raw value: {e}")

        logger.debug(f"Run parameters: {merged}")
        return merged

    def resolve_view(self, name: str) -> DataView:
        """
        Independent copy of the named view, fetching it on first use.

        Raises:
            UnknownViewError: no configuration for the name.
            DataFetchError: the fetcher failed.
        """
        cached = self.loaded_views.get(name)
        if cached is None:
            config = self.provider.get_data_view_config(name)
            try:
                rows = self.fetcher.fetch(config.name, dict(self.parameters))
            except ReportGenerationError as e:
                raise e.with_context(view=name)
            except Exception as e:
                raise DataFetchError(f"fetch failed: {e}", view=name) from e
            cached = DataView(config, rows or [])
            self.loaded_views[name] = cached
            logger.debug(f"Loaded view '{name}' with {cached.row_count} rows")
        return cached.copy()

    def resolve_block_data(self, block: BlockConfig, params: Optional[Mapping[str, str]] = None) -> List[Row]:
        """
        Rows for a block under the given parameters (defaults to the run parameters).

        Header blocks are reduced to the first row of each distinct key value,
        and rowLimit is applied last. A block without a data view has no rows.
        """
        if not block.data_view:
            return []
        if params is None:
            params = self.parameters

        view = self.resolve_view(block.data_view)
        view.filter(params)

        rows = view.data
        if block.type == BlockType.HEADER:
            rows = distinct_rows(rows, key_label(block, view.config), view)

        if block.row_limit > 0:
            rows = rows[:block.row_limit]

        kind = " (Header)" if block.type == BlockType.HEADER else ""
        logger.debug(f"Block fetched: block='{block.name}{kind}' view='{block.data_view}' "
                     f"params={dict(params)} rows={len(rows)}")
        if rows:
            logger.debug(f"Sample row: {rows[0]}")
        return rows


def key_label(block: BlockConfig, view_config: DataViewConfig) -> Optional[str]:
    """labelVariable if set, else the first label the view declares."""
    return block.label_variable or view_config.first_label()


def distinct_rows(rows: List[Row], label: Optional[str], view: DataView) -> List[Row]:
    """First row for each distinct value of label; rows lacking the column are dropped."""
    if label is None:
        return rows
    column = view.column_for(label)
    if column is None:
        return rows

    seen = set()
    result: List[Row] = []
    for row in rows:
        if column not in row:
            continue
        value = stringify(row[column])
        if value not in seen:
            seen.add(value)
            result.append(row)
    return result


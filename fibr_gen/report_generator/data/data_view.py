# fibr_gen/report_generator/data/data_view.py
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..config.models import DataViewConfig
from ..errors import UnknownLabelError
from ..utils.text import stringify

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class DataView:
    """
    In-memory table for one named view plus its label -> column mapping.

    Rows are plain dicts keyed by column name. The label mapping is derived
    once from the view configuration and never changes afterwards; only the
    row list is replaced by filter().
    """

    def __init__(self, config: DataViewConfig, data: Optional[List[Row]] = None,
                 label_mapping: Optional[Dict[str, str]] = None):
        self.config = config
        self.data: List[Row] = list(data or [])
        self.label_mapping: Dict[str, str] = (
            label_mapping if label_mapping is not None else config.label_mapping()
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def row_count(self) -> int:
        return len(self.data)

    def column_for(self, label: str) -> Optional[str]:
        return self.label_mapping.get(label)

    def filter(self, params: Mapping[str, str]) -> None:
        """
        Keep only rows whose labelled columns equal the given parameters.

        Parameters that are not labels of this view are ignored. A row that
        lacks the column entirely is not excluded by that parameter.
        Comparison is done on stringified values.
        """
        if not params:
            return

        criteria = [
            (self.label_mapping[key], str(value))
            for key, value in params.items()
            if key in self.label_mapping
        ]
        if not criteria:
            return

        before = len(self.data)
        self.data = [
            row for row in self.data
            if all(column not in row or stringify(row[column]) == expected
                   for column, expected in criteria)
        ]
        logger.debug(f"View '{self.name}' filtered {before} -> {len(self.data)} rows by {dict(criteria)}")

    def distinct_label_values(self, label: str) -> List[str]:
        """Sorted, de-duplicated, non-empty string values of a label's column."""
        column = self.label_mapping.get(label)
        if column is None:
            raise UnknownLabelError(f"label '{label}' not found in view", view=self.name, label=label)

        values = set()
        for row in self.data:
            if column not in row:
                continue
            text = stringify(row[column])
            if text:
                values.add(text)
        return sorted(values)

    def copy(self) -> "DataView":
        """Independent copy of the rows; config and label mapping are shared."""
        return DataView(self.config, [dict(row) for row in self.data], self.label_mapping)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"DataView(name={self.name!r}, rows={len(self.data)})"

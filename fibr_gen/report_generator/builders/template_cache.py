# fibr_gen/report_generator/builders/template_cache.py
import datetime
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from ..config.models import BlockConfig
from ..utils.cell_range import CellRange, parse_range
from ..utils.text import LABEL_PLACEHOLDER_RE, replace_label_placeholders
from .workbook_adapter import SheetAdapter

logger = logging.getLogger(__name__)

# Values written with their own type when they fill a cell on their own
TYPED_VALUE_TYPES = (int, float, Decimal, datetime.date)


class CapturedCell(NamedTuple):
    value: Any
    style_id: int


class TemplateCache:
    """
    Read-once snapshot of a block's cells, styles and merges.

    Capture must happen before anything overwrites the source cells (the
    first stamp at the original origin does exactly that). Afterwards the
    cache is only read, so it can be stamped any number of times.
    """

    def __init__(self, block: BlockConfig, origin_row: int, origin_col: int,
                 cells: List[List[CapturedCell]], merges: List[CellRange],
                 labels: Optional[Mapping[str, str]] = None):
        self.block = block
        self.origin_row = origin_row
        self.origin_col = origin_col
        self.cells = cells
        self.merges = merges
        self.labels: Dict[str, str] = dict(labels or {})

    @property
    def height(self) -> int:
        return len(self.cells)

    @property
    def width(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @classmethod
    def capture(cls, sheet: SheetAdapter, block: BlockConfig,
                labels: Optional[Mapping[str, str]] = None) -> "TemplateCache":
        """
        Snapshot the block's range. labels (label -> column) are the
        bindings used for placeholder substitution when stamping.
        """
        bounds = parse_range(block.range)
        cells = [
            [CapturedCell(sheet.get_value(row, col), sheet.get_style_id(row, col))
             for col in range(bounds.min_col, bounds.max_col + 1)]
            for row in range(bounds.min_row, bounds.max_row + 1)
        ]
        merges = [
            merged.shifted(rows=-bounds.min_row, cols=-bounds.min_col)
            for merged in sheet.merged_ranges()
            if bounds.contains(merged)
        ]
        logger.debug(f"[{sheet.title}] captured '{block.name}' {bounds.coord} "
                     f"({bounds.height}x{bounds.width}, {len(merges)} merges)")
        return cls(block, bounds.min_row, bounds.min_col, cells, merges, labels)

    def replacements_for(self, data_row: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if data_row is None:
            return {}
        return {label: data_row[column] for label, column in self.labels.items() if column in data_row}

    def stamp(self, sheet: SheetAdapter, target_row: int, target_col: int,
              data_row: Optional[Mapping[str, Any]] = None) -> None:
        """
        Write the captured cells at (target_row, target_col) with placeholders
        bound from data_row, then recreate the captured merges there.

        Without a data_row the cached contents are written back unchanged.
        """
        replacements = self.replacements_for(data_row)
        for r, captured_row in enumerate(self.cells):
            for c, captured in enumerate(captured_row):
                row, col = target_row + r, target_col + c
                sheet.set_value(row, col, self._render(captured.value, replacements))
                sheet.set_style_id(row, col, captured.style_id)

        for merged in self.merges:
            sheet.merge(target_row + merged.min_row, target_col + merged.min_col,
                        target_row + merged.max_row, target_col + merged.max_col)

    @staticmethod
    def _render(value: Any, replacements: Mapping[str, Any]) -> Any:
        if not replacements or not isinstance(value, str):
            return value
        # A cell holding nothing but one placeholder keeps the bound value's type
        match = LABEL_PLACEHOLDER_RE.fullmatch(value)
        if match and match.group(1) in replacements:
            bound = replacements[match.group(1)]
            if isinstance(bound, TYPED_VALUE_TYPES) and not isinstance(bound, bool):
                return bound
        return replace_label_placeholders(value, replacements)

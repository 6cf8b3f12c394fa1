# fibr_gen/report_generator/builders/workbook_adapter.py
import logging
import zipfile
from copy import copy
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import openpyxl
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import DocumentError, SheetNotFoundError
from ..utils.cell_range import CellRange

logger = logging.getLogger(__name__)


class SheetAdapter:
    """
    Cell-grid primitives over one openpyxl worksheet.

    Coordinates are 1-indexed (row, col). openpyxl's own insert_rows /
    insert_cols move cell contents only; merged ranges and row/column
    dimensions are shifted here so the sheet stays consistent.
    """

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet

    @property
    def title(self) -> str:
        return self.worksheet.title

    # === Cells ===

    def get_value(self, row: int, col: int) -> Any:
        return self.worksheet.cell(row=row, column=col).value

    def set_value(self, row: int, col: int, value: Any) -> None:
        cell = self.worksheet.cell(row=row, column=col)
        if isinstance(cell, MergedCell):
            # Hidden part of a merge; the top-left cell owns the value
            return
        cell.value = value

    def get_style_id(self, row: int, col: int) -> int:
        return self.worksheet.cell(row=row, column=col).style_id

    def set_style_id(self, row: int, col: int, style_id: int) -> None:
        if not style_id:
            return
        cell = self.worksheet.cell(row=row, column=col)
        cell._style = copy(self.worksheet.parent._cell_styles[style_id])

    # === Structure ===

    def insert_rows(self, idx: int, amount: int) -> None:
        """Insert amount rows before row idx, shifting merges and row heights with them."""
        if amount <= 0:
            return
        affected = self._detach_merges(lambda r: r.max_row >= idx)
        self.worksheet.insert_rows(idx, amount)
        self._shift_row_dimensions(idx, amount)
        for rng in affected:
            if rng.min_row >= idx:
                rng = rng.shifted(rows=amount)
            else:
                rng = CellRange(rng.min_col, rng.min_row, rng.max_col, rng.max_row + amount)
            self._merge_range(rng)
        logger.debug(f"[{self.title}] inserted {amount} rows at {idx} ({len(affected)} merges moved)")

    def insert_cols(self, idx: int, amount: int) -> None:
        """Insert amount columns before column idx, shifting merges and column widths with them."""
        if amount <= 0:
            return
        affected = self._detach_merges(lambda r: r.max_col >= idx)
        self.worksheet.insert_cols(idx, amount)
        self._shift_column_dimensions(idx, amount)
        for rng in affected:
            if rng.min_col >= idx:
                rng = rng.shifted(cols=amount)
            else:
                rng = CellRange(rng.min_col, rng.min_row, rng.max_col + amount, rng.max_row)
            self._merge_range(rng)
        logger.debug(f"[{self.title}] inserted {amount} columns at {get_column_letter(idx)} "
                     f"({len(affected)} merges moved)")

    def merge(self, min_row: int, min_col: int, max_row: int, max_col: int) -> None:
        """
        Merge the rectangle. An identical merge is left alone; merges that
        partially overlap it are removed first.
        """
        target = CellRange(min_col, min_row, max_col, max_row)
        if target.width == 1 and target.height == 1:
            return
        for existing in self.merged_ranges():
            if existing == target:
                return
            if existing.intersects(target):
                logger.debug(f"[{self.title}] unmerging {existing.coord} overlapping {target.coord}")
                self.worksheet.unmerge_cells(existing.coord)
        self._merge_range(target)

    def merged_ranges(self) -> List[CellRange]:
        return [CellRange(*merged.bounds) for merged in self.worksheet.merged_cells.ranges]

    def dimension(self) -> Tuple[int, int]:
        """(max_row, max_col) in use."""
        return self.worksheet.max_row, self.worksheet.max_column

    # === Internals ===

    def _merge_range(self, rng: CellRange) -> None:
        self.worksheet.merge_cells(start_row=rng.min_row, start_column=rng.min_col,
                                   end_row=rng.max_row, end_column=rng.max_col)

    def _detach_merges(self, predicate) -> List[CellRange]:
        detached = []
        for rng in self.merged_ranges():
            if predicate(rng):
                self.worksheet.unmerge_cells(rng.coord)
                detached.append(rng)
        return detached

    def _shift_row_dimensions(self, idx: int, amount: int) -> None:
        dims = self.worksheet.row_dimensions
        for row in sorted((r for r in list(dims.keys()) if r >= idx), reverse=True):
            dim = dims.pop(row)
            dim.index = row + amount
            dims[row + amount] = dim

    def _shift_column_dimensions(self, idx: int, amount: int) -> None:
        dims = self.worksheet.column_dimensions
        keys = [k for k in list(dims.keys()) if column_index_from_string(k) >= idx]
        for key in sorted(keys, key=column_index_from_string, reverse=True):
            dim = dims.pop(key)
            new_key = get_column_letter(column_index_from_string(key) + amount)
            dim.index = new_key
            if dim.min:
                dim.min += amount
            if dim.max:
                dim.max += amount
            dims[new_key] = dim


class WorkbookAdapter:
    """Document-level operations: sheets, selection and persistence."""

    def __init__(self, workbook: Workbook, source: Optional[Path] = None):
        self.workbook = workbook
        self.source = source

    @classmethod
    def open(cls, path: Union[str, Path]) -> "WorkbookAdapter":
        path = Path(path)
        try:
            workbook = openpyxl.load_workbook(path)
        except FileNotFoundError as e:
            raise DocumentError("template not found", path=str(path)) from e
        except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as e:
            raise DocumentError(f"failed to open template: {e}", path=str(path)) from e
        logger.info(f"Opened template '{path.name}' with sheets {workbook.sheetnames}")
        return cls(workbook, path)

    def sheet_names(self) -> List[str]:
        return list(self.workbook.sheetnames)

    def sheet(self, name: str) -> SheetAdapter:
        if name not in self.workbook.sheetnames:
            raise SheetNotFoundError("sheet not found in template", sheet=name)
        return SheetAdapter(self.workbook[name])

    def copy_sheet(self, source: str, new_title: str, after: Optional[str] = None) -> SheetAdapter:
        """
        Clone a sheet (values, styles, merges, dimensions) under a new title.

        The clone is placed right after the `after` sheet (default: the source).
        openpyxl de-duplicates clashing titles, so the returned adapter's title
        may differ from new_title.
        """
        template = self.sheet(source).worksheet
        clone = self.workbook.copy_worksheet(template)
        try:
            clone.title = new_title
        except ValueError as e:
            self.workbook.remove(clone)
            raise DocumentError(f"invalid sheet title: {e}", sheet=source, title=new_title) from e

        anchor = self.workbook.sheetnames.index(after or source)
        offset = (anchor + 1) - self.workbook.sheetnames.index(clone.title)
        if offset:
            self.workbook.move_sheet(clone, offset=offset)

        if clone.title != new_title:
            logger.warning(f"Sheet title '{new_title}' already taken, clone named '{clone.title}'")
        return SheetAdapter(clone)

    def delete_sheet(self, name: str) -> None:
        self.workbook.remove(self.sheet(name).worksheet)

    def reset_selection(self) -> None:
        """Select A1 on every sheet and make the first sheet active."""
        for index, worksheet in enumerate(self.workbook.worksheets):
            view = worksheet.sheet_view
            view.tabSelected = index == 0
            for selection in view.selection:
                selection.activeCell = "A1"
                selection.sqref = "A1"
        if self.workbook.worksheets:
            self.workbook.active = 0

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(path)
        except (OSError, ValueError, TypeError) as e:
            raise DocumentError(f"failed to save output: {e}", path=str(path)) from e
        logger.info(f"Saved workbook: {path}")
        return path

    def close(self) -> None:
        self.workbook.close()

# fibr_gen/report_generator/utils/cell_range.py
from typing import NamedTuple

from openpyxl.utils.cell import (
    column_index_from_string,
    coordinate_from_string,
    get_column_letter,
)
from openpyxl.utils.exceptions import CellCoordinatesException

from ..errors import InvalidRangeError


class CellRange(NamedTuple):
    """Inclusive, 1-indexed rectangle. Field order follows openpyxl's range_boundaries."""
    min_col: int
    min_row: int
    max_col: int
    max_row: int

    @property
    def width(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def height(self) -> int:
        return self.max_row - self.min_row + 1

    def contains(self, other: "CellRange") -> bool:
        return (self.min_col <= other.min_col and self.min_row <= other.min_row
                and other.max_col <= self.max_col and other.max_row <= self.max_row)

    def intersects(self, other: "CellRange") -> bool:
        return not (other.max_col < self.min_col or other.min_col > self.max_col
                    or other.max_row < self.min_row or other.min_row > self.max_row)

    def shifted(self, rows: int = 0, cols: int = 0) -> "CellRange":
        return CellRange(self.min_col + cols, self.min_row + rows,
                         self.max_col + cols, self.max_row + rows)

    @property
    def coord(self) -> str:
        return (f"{get_column_letter(self.min_col)}{self.min_row}:"
                f"{get_column_letter(self.max_col)}{self.max_row}")


def parse_range(ref: str) -> CellRange:
    """
    Parse a "TopLeft:BottomRight" reference such as "A2:C3".

    A single cell must still be written as a degenerate range ("A1:A1").

    Raises:
        InvalidRangeError: not exactly two cell references, a malformed
            reference, or a bottom-right corner above/left of the top-left one.
    """
    if not isinstance(ref, str):
        raise InvalidRangeError("range must be a string", range=ref)

    parts = ref.split(":")
    if len(parts) != 2:
        raise InvalidRangeError("range must be two cell references joined by ':'", range=ref)

    try:
        min_row, min_col = _to_row_col(parts[0])
        max_row, max_col = _to_row_col(parts[1])
    except (CellCoordinatesException, ValueError) as e:
        raise InvalidRangeError(f"invalid cell reference: {e}", range=ref) from e

    if max_row < min_row or max_col < min_col:
        raise InvalidRangeError("range corners are reversed", range=ref)

    return CellRange(min_col, min_row, max_col, max_row)


def _to_row_col(cell_ref: str):
    column_letters, row = coordinate_from_string(cell_ref.strip())
    return row, column_index_from_string(column_letters)

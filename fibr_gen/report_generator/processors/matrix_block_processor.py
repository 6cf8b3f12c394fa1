# fibr_gen/report_generator/processors/matrix_block_processor.py
import logging
from typing import Dict, List, Optional, Tuple

from ..config.models import BlockConfig, BlockType, Direction
from ..data.generation_context import key_label
from ..errors import MissingAxisError, UnknownLabelError
from ..fetchers.base import Row
from ..utils.cell_range import parse_range
from ..utils.text import stringify
from .base_processor import BlockProcessor

logger = logging.getLogger(__name__)


class MatrixBlockProcessor(BlockProcessor):
    """
    Cross-tabulation of two header axes.

    The vertical axis supplies rows, the horizontal axis supplies columns and
    every other sub-block is a cell template stamped once per (row, column)
    pair with both axis values injected into its parameters.

    The axis whose header has insertAfter set (vertical) or the horizontal
    axis otherwise is the primary axis. Expansion always runs in the order:
        1. resolve + insert for the primary axis
        2. resolve + insert for the secondary axis
        3. copy the template slice along the secondary axis
        4. copy the template slice along the primary axis
    so the slice copied last already has the width/height produced by the
    other axis.
    """

    def process(self) -> None:
        v_axis, h_axis = self.find_axes()

        if v_axis.insert_after:
            v_rows, h_rows = self.expand_axes(primary=v_axis, secondary=h_axis)
        else:
            h_rows, v_rows = self.expand_axes(primary=h_axis, secondary=v_axis)

        self.fill_block_data(v_axis, v_rows)
        self.fill_block_data(h_axis, h_rows)
        self.fill_cells(v_axis, h_axis, v_rows, h_rows)

    def find_axes(self) -> Tuple[BlockConfig, BlockConfig]:
        v_axis: Optional[BlockConfig] = None
        h_axis: Optional[BlockConfig] = None
        for sub in self.block.sub_blocks:
            if sub.type != BlockType.HEADER:
                continue
            if sub.direction == Direction.HORIZONTAL:
                h_axis = sub
            elif sub.is_vertical:
                v_axis = sub

        if v_axis is None or h_axis is None:
            raise MissingAxisError("matrix block must have both vertical and horizontal axes",
                                   block=self.block.name)
        return v_axis, h_axis

    def template_blocks(self) -> List[BlockConfig]:
        return [sub for sub in self.block.sub_blocks if sub.template or sub.type != BlockType.HEADER]

    # === Expansion ===

    def expand_axes(self, primary: BlockConfig, secondary: BlockConfig) -> Tuple[List[Row], List[Row]]:
        primary_rows = self.context.resolve_block_data(primary, self.params)
        primary_inserted = self._make_room(primary, len(primary_rows))

        secondary_rows = self.context.resolve_block_data(secondary, self.params)
        secondary_inserted = self._make_room(secondary, len(secondary_rows))

        if secondary_inserted:
            self.copy_template_slice(secondary, skip=primary, count=secondary_inserted)
        if primary_inserted:
            self.copy_template_slice(primary, skip=secondary, count=primary_inserted)

        logger.debug(f"[{self.sheet.title}] matrix '{self.block.name}': primary '{primary.name}' "
                     f"x{len(primary_rows)}, secondary '{secondary.name}' x{len(secondary_rows)}")
        return primary_rows, secondary_rows

    def _make_room(self, axis: BlockConfig, count: int) -> int:
        """Insert rows (vertical axis) or columns (horizontal axis) for count items; returns the amount."""
        if count <= 1:
            return 0
        bounds = parse_range(axis.range)
        if axis.is_vertical:
            amount = (count - 1) * bounds.height
            self.sheet.insert_rows(bounds.max_row + 1, amount)
        else:
            amount = (count - 1) * bounds.width
            self.sheet.insert_cols(bounds.max_col + 1, amount)
        return amount

    def copy_template_slice(self, axis: BlockConfig, skip: BlockConfig, count: int) -> None:
        """
        Replicate the matrix's rows (vertical axis) or columns (horizontal
        axis) into the space inserted after the axis. The source span is the
        bounding box of every sub-block except `skip`, the other axis header.
        """
        along_rows = axis.is_vertical
        spans = []
        for sub in self.block.sub_blocks:
            if sub.name == skip.name:
                continue
            bounds = parse_range(sub.range)
            spans.append((bounds.min_row, bounds.max_row) if along_rows else (bounds.min_col, bounds.max_col))
        if not spans:
            return

        axis_bounds = parse_range(axis.range)
        dest_start = (axis_bounds.max_row if along_rows else axis_bounds.max_col) + 1
        self.copy_slice(along_rows, min(s[0] for s in spans), max(s[1] for s in spans), dest_start, count)

    def copy_slice(self, along_rows: bool, src_start: int, src_end: int, dest_start: int, count: int) -> None:
        """
        Copy whole rows (along_rows) or columns [src_start, src_end] into
        count rows/columns starting at dest_start, cycling through the source.
        Only the part of each row/column inside the sheet dimension is copied.
        """
        max_row, max_col = self.sheet.dimension()
        limit = max_col if along_rows else max_row
        src_size = src_end - src_start + 1

        def coords(primary: int, secondary: int) -> Tuple[int, int]:
            return (primary, secondary) if along_rows else (secondary, primary)

        snapshot: Dict[Tuple[int, int], Tuple[object, int]] = {}
        for p in range(src_start, src_end + 1):
            for s in range(1, limit + 1):
                row, col = coords(p, s)
                snapshot[(p - src_start, s)] = (self.sheet.get_value(row, col), self.sheet.get_style_id(row, col))

        for i in range(count):
            offset = i % src_size
            for s in range(1, limit + 1):
                value, style_id = snapshot[(offset, s)]
                row, col = coords(dest_start + i, s)
                self.sheet.set_value(row, col, value)
                self.sheet.set_style_id(row, col, style_id)

        kind = "rows" if along_rows else "columns"
        logger.debug(f"[{self.sheet.title}] copied {kind} {src_start}-{src_end} into {count} {kind} at {dest_start}")

    # === Cell templates ===

    def axis_param_key(self, axis: BlockConfig) -> str:
        """Parameter name an axis value is injected under."""
        view_config = self.context.provider.get_data_view_config(axis.data_view)
        label = key_label(axis, view_config)
        if not label:
            raise UnknownLabelError("cannot determine parameter key for axis",
                                    block=self.block.name, axis=axis.name, view=axis.data_view)
        return label

    def fill_cells(self, v_axis: BlockConfig, h_axis: BlockConfig,
                   v_rows: List[Row], h_rows: List[Row]) -> None:
        caches = [self.capture(template) for template in self.template_blocks()]

        v_key = self.axis_param_key(v_axis)
        h_key = self.axis_param_key(h_axis)
        v_column = self.labels_for(v_axis).get(v_key)
        h_column = self.labels_for(h_axis).get(h_key)

        v_step = parse_range(v_axis.range).height
        h_step = parse_range(h_axis.range).width

        for r, row_item in enumerate(v_rows):
            for c, col_item in enumerate(h_rows):
                cell_params = dict(self.params)
                if v_column and v_column in row_item:
                    cell_params[v_key] = stringify(row_item[v_column])
                if h_column and h_column in col_item:
                    cell_params[h_key] = stringify(col_item[h_column])

                for cache in caches:
                    cell_data = self.context.resolve_block_data(cache.block, cell_params)
                    cache.stamp(self.sheet, cache.origin_row + r * v_step, cache.origin_col + c * h_step,
                                cell_data[0] if cell_data else None)

        logger.debug(f"[{self.sheet.title}] matrix '{self.block.name}' filled "
                     f"{len(v_rows)}x{len(h_rows)} grid with {len(caches)} templates")

# fibr_gen/report_generator/processors/value_block_processor.py
import logging

from ..utils.cell_range import parse_range
from .base_processor import BlockProcessor

logger = logging.getLogger(__name__)


class ValueBlockProcessor(BlockProcessor):
    """
    Repeats a block once per data row.

    Used for `value` blocks and for standalone `header` blocks, whose data
    arrives already reduced to one row per distinct key.
    """

    def process(self) -> None:
        rows = self.context.resolve_block_data(self.block, self.params)
        if not rows:
            logger.debug(f"[{self.sheet.title}] block '{self.block.name}' has no data, template left as is")
            return

        bounds = parse_range(self.block.range)
        extra = len(rows) - 1
        if extra > 0:
            if self.block.is_vertical:
                self.sheet.insert_rows(bounds.max_row + 1, extra * bounds.height)
            else:
                self.sheet.insert_cols(bounds.max_col + 1, extra * bounds.width)

        self.fill_block_data(self.block, rows)

# fibr_gen/report_generator/processors/base_processor.py
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping

from ..builders.template_cache import TemplateCache
from ..builders.workbook_adapter import SheetAdapter
from ..config.models import BlockConfig
from ..data.generation_context import GenerationContext
from ..fetchers.base import Row

logger = logging.getLogger(__name__)


class BlockProcessor(ABC):
    """
    Abstract base class for expanding and filling one block on one sheet.

    A processor is created per block use: it holds the sheet it writes to and
    the parameters in force (run parameters, possibly overridden by a dynamic
    sheet value).
    """

    def __init__(self, context: GenerationContext, sheet: SheetAdapter,
                 block: BlockConfig, params: Mapping[str, str]):
        self.context = context
        self.sheet = sheet
        self.block = block
        self.params: Dict[str, str] = dict(params)

    @abstractmethod
    def process(self) -> None:
        """Expand the sheet for this block's data and stamp it."""
        pass

    def labels_for(self, block: BlockConfig) -> Dict[str, str]:
        """label -> column bindings used when stamping the block."""
        if not block.data_view:
            return {}
        return self.context.provider.get_data_view_config(block.data_view).label_mapping()

    def capture(self, block: BlockConfig) -> TemplateCache:
        return TemplateCache.capture(self.sheet, block, self.labels_for(block))

    def fill_block_data(self, block: BlockConfig, rows: List[Row]) -> None:
        """
        Stamp one copy of the block per row, stepping by the block's height
        (vertical) or width (horizontal). Room must already have been made.
        """
        cache = self.capture(block)
        for i, row in enumerate(rows):
            if block.is_vertical:
                cache.stamp(self.sheet, cache.origin_row + i * cache.height, cache.origin_col, row)
            else:
                cache.stamp(self.sheet, cache.origin_row, cache.origin_col + i * cache.width, row)
        logger.debug(f"[{self.sheet.title}] block '{block.name}' stamped {len(rows)} times")

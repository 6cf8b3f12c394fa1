# fibr_gen/report_generator/config/validator.py
import logging
from typing import Optional

from ..errors import ConfigError, ConfigValidationError, InvalidRangeError
from ..utils.cell_range import parse_range
from .models import (
    BlockConfig,
    BlockType,
    DataSourceConfig,
    DataViewConfig,
    Direction,
    SheetConfig,
    WorkbookConfig,
)
from .provider import ConfigRegistry

logger = logging.getLogger(__name__)

KNOWN_BLOCK_TYPES = {t.value for t in BlockType}


class ConfigValidator:
    """
    Structural checks for loaded configuration.

    Every check raises ConfigValidationError naming the offending item; the
    first problem found stops validation. Cross references (data views, data
    sources) are only checked when a registry is supplied.
    """

    def __init__(self, provider: Optional[ConfigRegistry] = None):
        self.provider = provider

    def validate_workbook(self, workbook: WorkbookConfig) -> None:
        if not workbook.name:
            raise ConfigValidationError("workbook name is required", workbook=workbook.id)
        if not workbook.template:
            raise ConfigValidationError("workbook template is required", workbook=workbook.name)
        if not workbook.output_dir:
            raise ConfigValidationError("workbook output directory is required", workbook=workbook.name)
        if not workbook.sheets:
            raise ConfigValidationError("workbook must have at least one sheet", workbook=workbook.name)

        for sheet in workbook.sheets:
            try:
                self.validate_sheet(sheet)
            except ConfigValidationError as e:
                raise e.with_context(workbook=workbook.name)
        logger.debug(f"Workbook '{workbook.name}' passed validation ({len(workbook.sheets)} sheets)")

    def validate_sheet(self, sheet: SheetConfig) -> None:
        if not sheet.name:
            raise ConfigValidationError("sheet name is required")
        if sheet.dynamic:
            if not sheet.data_view:
                raise ConfigValidationError("dynamic sheet requires a dataView", sheet=sheet.name)
            if not sheet.param_label:
                raise ConfigValidationError("dynamic sheet requires a paramLabel", sheet=sheet.name)
            self._require_view(sheet.data_view, sheet=sheet.name)

        for block in sheet.blocks:
            try:
                self.validate_block(block)
            except ConfigValidationError as e:
                raise e.with_context(sheet=sheet.name)

    def validate_block(self, block: BlockConfig) -> None:
        if not block.name:
            raise ConfigValidationError("block name is required")
        if not block.type:
            raise ConfigValidationError("block type is required", block=block.name)
        if block.type not in KNOWN_BLOCK_TYPES:
            raise ConfigValidationError(f"invalid block type '{block.type}'", block=block.name)
        if not block.range:
            raise ConfigValidationError("block range is required", block=block.name)
        try:
            parse_range(block.range)
        except InvalidRangeError as e:
            raise ConfigValidationError(e.message, block=block.name, range=block.range) from e

        if block.data_view:
            self._require_view(block.data_view, block=block.name)

        if block.type == BlockType.MATRIX:
            if not block.sub_blocks:
                raise ConfigValidationError("matrix block must have sub-blocks", block=block.name)
            has_vertical = has_horizontal = False
            for sub in block.sub_blocks:
                self._validate_sub_block(block, sub)
                if sub.type == BlockType.HEADER:
                    if sub.direction == Direction.HORIZONTAL:
                        has_horizontal = True
                    elif sub.is_vertical:
                        has_vertical = True
            if not (has_vertical and has_horizontal):
                raise ConfigValidationError(
                    "matrix block must have both vertical and horizontal header blocks", block=block.name)
        else:
            for sub in block.sub_blocks:
                self._validate_sub_block(block, sub)

    def validate_data_view(self, view: DataViewConfig) -> None:
        if not view.name:
            raise ConfigValidationError("data view name is required")
        if view.data_source and self.provider is not None:
            try:
                self.provider.get_data_source_config(view.data_source)
            except ConfigError:
                raise ConfigValidationError("data view references unknown data source",
                                            view=view.name, data_source=view.data_source) from None
        for index, label in enumerate(view.labels):
            if not label.name:
                raise ConfigValidationError(f"label {index} name is required", view=view.name)
            if not label.column:
                raise ConfigValidationError(f"label {index} column is required", view=view.name)

    def validate_data_source(self, source: DataSourceConfig) -> None:
        if not source.name:
            raise ConfigValidationError("data source name is required")
        if not source.driver:
            raise ConfigValidationError("data source driver is required", data_source=source.name)
        if not source.dsn:
            raise ConfigValidationError("data source DSN is required", data_source=source.name)

    def _validate_sub_block(self, parent: BlockConfig, sub: BlockConfig) -> None:
        try:
            self.validate_block(sub)
        except ConfigValidationError as e:
            raise e.with_context(parent_block=parent.name)

    def _require_view(self, view_name: str, **context) -> None:
        if self.provider is None:
            return
        if not self.provider.has_data_view(view_name):
            raise ConfigValidationError("references unknown data view", view=view_name, **context)

# fibr_gen/report_generator/generator.py
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Type, Union

from .builders.workbook_adapter import SheetAdapter, WorkbookAdapter
from .config.models import BlockConfig, BlockType, SheetConfig
from .data.generation_context import GenerationContext
from .errors import ReportGenerationError, UnknownParamLabelError, UnsupportedBlockTypeError
from .processors.base_processor import BlockProcessor
from .processors.matrix_block_processor import MatrixBlockProcessor
from .processors.value_block_processor import ValueBlockProcessor
from .utils.generation_session import GenerationSession
from .utils.text import replace_param_placeholders, stringify

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BLOCK_PROCESSORS: Dict[str, Type[BlockProcessor]] = {
    BlockType.VALUE.value: ValueBlockProcessor,
    BlockType.HEADER.value: ValueBlockProcessor,
    BlockType.MATRIX.value: MatrixBlockProcessor,
}


class ReportGenerator:
    """
    Fills a workbook template according to its configuration.

    Sheets are processed in configuration order. Nothing is written to disk
    unless every sheet succeeds.
    """

    def __init__(self, context: GenerationContext, session: Optional[GenerationSession] = None):
        self.context = context
        self.session = session

    @property
    def workbook_config(self):
        return self.context.workbook_config

    def resolve_output_path(self, output_root: PathLike) -> Path:
        """
        output_root / outputDir with ${param} placeholders substituted; a path
        without a file suffix gets "<name>.xlsx" appended.
        """
        params = self.context.parameters
        output_path = Path(output_root) / replace_param_placeholders(self.workbook_config.output_dir, params)
        if not output_path.suffix:
            name = replace_param_placeholders(self.workbook_config.name, params)
            output_path = output_path / f"{name}.xlsx"
        return output_path

    def generate(self, template_root: PathLike, output_root: PathLike) -> Path:
        template_path = Path(template_root) / self.workbook_config.template
        output_path = self.resolve_output_path(output_root)
        logger.info(f"Generating '{self.workbook_config.name}' from {template_path}")

        workbook = WorkbookAdapter.open(template_path)
        try:
            for sheet_config in self.workbook_config.sheets:
                try:
                    self.process_sheet(workbook, sheet_config)
                except ReportGenerationError as e:
                    if self.session:
                        self.session.log_failure(sheet_config.name, e)
                    raise e.with_context(sheet=sheet_config.name)
                if self.session:
                    self.session.log_success(sheet_config.name)

            workbook.reset_selection()
            return workbook.save(output_path)
        finally:
            workbook.close()

    def process_sheet(self, workbook: WorkbookAdapter, sheet_config: SheetConfig) -> None:
        logger.info(f"Processing sheet '{sheet_config.name}'" + (" (dynamic)" if sheet_config.dynamic else ""))
        if sheet_config.dynamic:
            self.process_dynamic_sheet(workbook, sheet_config)
            return

        sheet = workbook.sheet(sheet_config.name)
        for block in sheet_config.blocks:
            self.process_block(sheet, block, self.context.parameters)

    def dynamic_sheet_values(self, sheet_config: SheetConfig) -> List[str]:
        """
        Distinct values of the sheet's paramLabel column, in first-seen order.

        Empty values are kept: each value becomes a sheet title, so an empty
        one surfaces as an invalid-title error rather than silently vanishing.
        """
        view = self.context.resolve_view(sheet_config.data_view)
        column = view.column_for(sheet_config.param_label)
        if column is None:
            raise UnknownParamLabelError("param label not found in data view",
                                         label=sheet_config.param_label, view=sheet_config.data_view)

        values: List[str] = []
        seen = set()
        for row in view.data:
            if column not in row:
                continue
            value = stringify(row[column])
            if value not in seen:
                seen.add(value)
                values.append(value)

        if "" in seen:
            logger.warning(f"Dynamic sheet '{sheet_config.name}': column '{column}' contains empty values")
        return values

    def process_dynamic_sheet(self, workbook: WorkbookAdapter, sheet_config: SheetConfig) -> None:
        """
        Clone the template sheet once per distinct paramLabel value and
        process every block of each clone with that value as a parameter.
        The template sheet is removed once at least one clone exists.
        """
        values = self.dynamic_sheet_values(sheet_config)
        template_name = workbook.sheet(sheet_config.name).title

        previous = template_name
        for value in values:
            clone = workbook.copy_sheet(template_name, value, after=previous)
            previous = clone.title
            sheet_params = dict(self.context.parameters)
            sheet_params[sheet_config.param_label] = value
            logger.info(f"  Sheet '{clone.title}' cloned from '{template_name}' "
                        f"({sheet_config.param_label}={value!r})")
            for block in sheet_config.blocks:
                try:
                    self.process_block(clone, block, sheet_params)
                except ReportGenerationError as e:
                    raise e.with_context(clone=clone.title)

        if values:
            workbook.delete_sheet(template_name)
        else:
            logger.warning(f"Dynamic sheet '{sheet_config.name}' produced no clones; template kept")

    def process_block(self, sheet: SheetAdapter, block: BlockConfig, params: Mapping[str, str]) -> None:
        processor_cls = BLOCK_PROCESSORS.get(block.type)
        if processor_cls is None:
            raise UnsupportedBlockTypeError(f"unsupported block type: {block.type!r}", block=block.name)

        logger.debug(f"[{sheet.title}] block '{block.name}' ({block.type}) range {block.range}")
        try:
            processor_cls(self.context, sheet, block, params).process()
        except ReportGenerationError as e:
            raise e.with_context(block=block.name)

# fibr_gen/report_generator/builders/__init__.py
from .workbook_adapter import SheetAdapter, WorkbookAdapter
from .template_cache import CapturedCell, TemplateCache

__all__ = [
    'SheetAdapter',
    'WorkbookAdapter',
    'CapturedCell',
    'TemplateCache',
]

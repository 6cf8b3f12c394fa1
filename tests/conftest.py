"""
Shared fixtures for the report generator tests.

Workbooks are built with openpyxl in tmp_path; data comes from the
in-memory fetcher unless a test exercises a concrete fetcher.
"""

import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from openpyxl import Workbook
from openpyxl.styles import Font

from fibr_gen.report_generator.config.models import (
    BlockConfig,
    DataViewConfig,
    LabelConfig,
    SheetConfig,
    WorkbookConfig,
)
from fibr_gen.report_generator.config.provider import ConfigRegistry
from fibr_gen.report_generator.data.generation_context import GenerationContext
from fibr_gen.report_generator.fetchers.memory_fetcher import InMemoryDataFetcher

FIXED_NOW = datetime.datetime(2023, 5, 15, 9, 30, 0)


def view_config(name: str, labels: Dict[str, str]) -> DataViewConfig:
    return DataViewConfig(name=name, labels=[LabelConfig(name=k, column=v) for k, v in labels.items()])


def make_registry(views: Dict[str, Dict[str, str]]) -> ConfigRegistry:
    return ConfigRegistry({name: view_config(name, labels) for name, labels in views.items()})


def make_context(sheets: List[SheetConfig], views: Dict[str, Dict[str, str]], data: Dict[str, list],
                 params: Optional[Dict[str, str]] = None, **workbook_fields) -> GenerationContext:
    workbook_fields.setdefault("name", "Report")
    workbook_fields.setdefault("template", "template.xlsx")
    workbook_fields.setdefault("output_dir", "out")
    workbook = WorkbookConfig(sheets=sheets, **workbook_fields)
    return GenerationContext(workbook, make_registry(views), InMemoryDataFetcher(data), params, now=FIXED_NOW)


# =============================================================================
# Data fixtures
# =============================================================================

PEOPLE = [{"NAME": "Alice"}, {"NAME": "Bob"}]
MONTHS = [{"MONTH": "Jan"}, {"MONTH": "Feb"}]
SALES = [
    {"NAME": "Alice", "MONTH": "Jan", "REVENUE": 100},
    {"NAME": "Alice", "MONTH": "Feb", "REVENUE": 110},
    {"NAME": "Bob", "MONTH": "Jan", "REVENUE": 200},
    {"NAME": "Bob", "MONTH": "Feb", "REVENUE": 210},
]

MATRIX_VIEWS = {
    "people": {"name": "NAME"},
    "months": {"month": "MONTH"},
    "sales": {"name": "NAME", "month": "MONTH", "revenue": "REVENUE"},
}


@pytest.fixture
def matrix_data() -> Dict[str, list]:
    return {"people": list(PEOPLE), "months": list(MONTHS), "sales": list(SALES)}


def matrix_block(insert_after: bool = True) -> BlockConfig:
    return BlockConfig(
        name="SalesMatrix",
        type="matrix",
        range="A1:B2",
        sub_blocks=[
            BlockConfig(name="People", type="header", range="A2:A2", data_view="people",
                        direction="vertical", insert_after=insert_after),
            BlockConfig(name="Months", type="header", range="B1:B1", data_view="months",
                        direction="horizontal"),
            BlockConfig(name="Revenue", type="value", range="B2:B2", data_view="sales", template=True),
        ],
    )


# =============================================================================
# Workbook fixtures
# =============================================================================

@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    path = tmp_path / "templates"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


def save_workbook(wb: Workbook, path: Path) -> Path:
    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def value_template(template_dir: Path) -> Path:
    """Sheet 'Report': header row, one templated data row, then a footer."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"
    ws["A1"] = "Name"
    ws["B1"] = "Age"
    ws["A2"] = "{name}"
    ws["B2"] = "{age}"
    ws["A2"].font = Font(bold=True)
    ws["A3"] = "Total"
    return save_workbook(wb, template_dir / "template.xlsx")


@pytest.fixture
def matrix_template(template_dir: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Matrix"
    ws["A1"] = "Name"
    ws["B1"] = "{month}"
    ws["A2"] = "{name}"
    ws["B2"] = "{revenue}"
    return save_workbook(wb, template_dir / "template.xlsx")

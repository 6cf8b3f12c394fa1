import pytest

from fibr_gen.report_generator.config.models import BlockConfig, WorkbookConfig
from fibr_gen.report_generator.data.generation_context import ARCHIVE_DATE_PARAM, GenerationContext
from fibr_gen.report_generator.errors import DataFetchError, UnknownViewError, ViewNotFoundError
from fibr_gen.report_generator.fetchers.base import DataFetcher

from conftest import FIXED_NOW, MATRIX_VIEWS, SALES, make_context, make_registry


class ExplodingFetcher(DataFetcher):
    def fetch(self, view_name, params):
        raise RuntimeError("connection reset")


@pytest.fixture
def context():
    return make_context([], MATRIX_VIEWS, {"sales": list(SALES), "people": [{"NAME": "Alice"}]})


# === Parameters ===

def test_overrides_win_over_workbook_parameters():
    ctx = make_context([], {}, {}, params={"env": "prod"},
                       parameters={"env": "dev", "region": "north"})
    assert ctx.parameters == {"env": "prod", "region": "north"}


def test_dynamic_dates_resolved_against_now():
    ctx = make_context([], {}, {}, parameters={"month": "$date:month:month:-1"})
    assert ctx.parameters["month"] == "2023-04"


def test_archive_rule_sets_archive_date():
    ctx = make_context([], {}, {}, archive_rule="$date:day:day:-1")
    assert ctx.parameters[ARCHIVE_DATE_PARAM] == "2023-05-14"


def test_malformed_dynamic_date_keeps_raw_value():
    ctx = make_context([], {}, {}, parameters={"day": "$date:day:day:soon"})
    assert ctx.parameters["day"] == "$date:day:day:soon"


# === Views ===

def test_view_fetched_once_and_copied(context):
    first = context.resolve_view("sales")
    first.filter({"name": "Alice"})
    second = context.resolve_view("sales")

    assert context.fetcher.calls == ["sales"]
    assert first.row_count == 2
    assert second.row_count == 4


def test_unconfigured_view(context):
    with pytest.raises(UnknownViewError):
        context.resolve_view("missing")


def test_configured_view_without_data(context):
    with pytest.raises(ViewNotFoundError) as exc_info:
        context.resolve_view("months")
    assert exc_info.value.context["view"] == "months"


def test_unexpected_fetcher_failure_is_wrapped():
    ctx = GenerationContext(WorkbookConfig(name="Report"), make_registry({"sales": {"name": "NAME"}}),
                            ExplodingFetcher(), now=FIXED_NOW)
    with pytest.raises(DataFetchError) as exc_info:
        ctx.resolve_view("sales")
    assert "connection reset" in str(exc_info.value)
    assert exc_info.value.context["view"] == "sales"


# === Block data ===

def test_value_block_rows_filtered_by_params(context):
    block = BlockConfig(name="Rows", type="value", range="A1:A1", data_view="sales")
    rows = context.resolve_block_data(block, {"name": "Bob"})
    assert [r["REVENUE"] for r in rows] == [200, 210]


def test_header_block_keeps_first_row_per_key(context):
    block = BlockConfig(name="Names", type="header", range="A1:A1", data_view="sales", label_variable="name")
    rows = context.resolve_block_data(block)
    assert rows == [SALES[0], SALES[2]]


def test_header_block_defaults_to_first_label(context):
    block = BlockConfig(name="Names", type="header", range="A1:A1", data_view="sales")
    assert [r["NAME"] for r in context.resolve_block_data(block)] == ["Alice", "Bob"]


def test_header_block_with_unmapped_label_returns_rows_unchanged(context):
    block = BlockConfig(name="Names", type="header", range="A1:A1", data_view="sales", label_variable="city")
    assert len(context.resolve_block_data(block)) == 4


def test_row_limit_applied_last(context):
    block = BlockConfig(name="Top", type="value", range="A1:A1", data_view="sales", row_limit=1)
    assert context.resolve_block_data(block) == [SALES[0]]


def test_block_without_view_has_no_rows(context):
    assert context.resolve_block_data(BlockConfig(name="Static", type="value", range="A1:A1")) == []

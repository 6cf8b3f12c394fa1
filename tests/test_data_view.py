import pytest

from fibr_gen.report_generator.data.data_view import DataView
from fibr_gen.report_generator.errors import UnknownLabelError

from conftest import view_config

ROWS = [
    {"DEPT": "D1", "AGE": 20},
    {"DEPT": "D1", "AGE": 30},
    {"DEPT": "D2", "AGE": 20},
]


@pytest.fixture
def view() -> DataView:
    return DataView(view_config("staff", {"dept": "DEPT", "age": "AGE"}), [dict(r) for r in ROWS])


def test_label_mapping_is_derived_from_config(view):
    assert view.label_mapping == {"dept": "DEPT", "age": "AGE"}


def test_filter_by_one_label(view):
    view.filter({"dept": "D1"})
    assert view.row_count == 2


def test_filter_compares_stringified_values(view):
    view.filter({"dept": "D1", "age": "20"})
    assert view.data == [{"DEPT": "D1", "AGE": 20}]


def test_filter_ignores_unknown_params(view):
    view.filter({"region": "north", "dept": "D2"})
    assert view.data == [{"DEPT": "D2", "AGE": 20}]


def test_filter_with_empty_params_is_noop(view):
    view.filter({})
    assert view.row_count == 3


def test_filter_keeps_rows_missing_the_column():
    view = DataView(view_config("staff", {"dept": "DEPT"}), [{"DEPT": "D1"}, {"OTHER": 1}, {"DEPT": "D2"}])
    view.filter({"dept": "D1"})
    assert view.data == [{"DEPT": "D1"}, {"OTHER": 1}]


def test_copy_isolates_filtering(view):
    copy = view.copy()
    copy.filter({"dept": "D2"})
    copy.data[0]["AGE"] = 99

    assert view.row_count == 3
    assert view.data == ROWS
    assert copy.label_mapping is view.label_mapping


def test_distinct_label_values_sorted_and_unique():
    view = DataView(view_config("v", {"city": "CITY"}),
                    [{"CITY": "Paris"}, {"CITY": "Berlin"}, {"CITY": ""}, {"CITY": "Paris"},
                     {"CITY": None}, {"OTHER": "x"}, {"CITY": 7}])
    assert view.distinct_label_values("city") == ["7", "Berlin", "Paris"]


def test_distinct_label_values_unknown_label(view):
    with pytest.raises(UnknownLabelError) as exc_info:
        view.distinct_label_values("salary")
    assert exc_info.value.context["label"] == "salary"
    assert exc_info.value.context["view"] == "staff"

import pytest

from chart_core.errors import ConfigurationError
from chart_core.query import ChartQuery, FilterPredicate, normalize_query


def test_defaults_to_raw_table():
    q = normalize_query({"datasetId": 3})
    assert q == ChartQuery(dataset_id=3)
    assert q.is_raw
    assert q.key_columns == ()


def test_wire_keys():
    q = normalize_query(
        {
            "datasetId": "7",
            "xAxis": "region",
            "yAxis": "sales",
            "aggregation": " SUM ",
            "groupBy": ["region", "", None],
            "filters": [{"column": "sales", "operator": "GT", "value": 8}],
        }
    )
    assert q.dataset_id == 7
    assert q.aggregation == "sum"
    assert q.group_by == ("region",)
    assert q.filters == (FilterPredicate("sales", "gt", "8"),)


def test_snake_case_keys():
    q = normalize_query({"dataset_id": 1, "x_axis": "a", "y_axis": "b", "aggregation": "avg", "group_by": "c"})
    assert (q.x_axis, q.y_axis, q.group_by) == ("a", "b", ("c",))
    assert q.key_columns == ("c",)


def test_blank_filter_columns_are_dropped():
    q = normalize_query({"filters": [{"column": "", "operator": "eq", "value": "x"}, {"column": "a", "operator": "eq"}]})
    assert q.filters == (FilterPredicate("a", "eq", ""),)


def test_round_trip_through_chart_query():
    q = normalize_query({"datasetId": 1, "xAxis": "a", "yAxis": "b", "aggregation": "count"})
    assert normalize_query(q) == q
    assert q.to_dict()["aggregation"] == "count"


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"aggregation": "median", "xAxis": "a", "yAxis": "b"}, "aggregation"),
        ({"filters": [{"column": "a", "operator": "like", "value": "x"}]}, "filters[0].operator"),
        ({"filters": ["a > 1"]}, "filters[0]"),
        ({"groupBy": ["a"]}, "groupBy"),
        ({"aggregation": "sum", "yAxis": "b"}, "xAxis"),
        ({"aggregation": "count", "xAxis": "a"}, "yAxis"),
        ({"datasetId": "abc"}, "datasetId"),
    ],
)
def test_configuration_errors_name_the_field(raw, field):
    with pytest.raises(ConfigurationError) as excinfo:
        normalize_query(raw)
    assert excinfo.value.field == field

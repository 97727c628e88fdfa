import pytest
from conftest import make_suggestion, make_table

from chart_advisor.config import Settings
from chart_advisor.models.suggestion import ChartType
from chart_advisor.visualization.chart_generators.base import COLOR_PALETTE, PLACEHOLDER_LABEL
from chart_advisor.visualization.chart_generators.registry import (
    CHART_BUILDERS,
    SUBSTITUTIONS,
    is_substituted,
    resolve_builder,
)
from chart_advisor.visualization.config_synthesizer import ChartConfigSynthesizer
from chart_advisor.visualization.recommendation_engine import generate_local_suggestions


@pytest.fixture
def synthesizer(local_settings):
    return ChartConfigSynthesizer(local_settings)


def _assert_renderable(config):
    assert config["series"]
    for series in config["series"]:
        assert isinstance(series["type"], str) and series["type"]
        assert series["data"] is not None


def _is_placeholder(config):
    return (
        len(config["series"]) == 1
        and config["series"][0]["type"] == "bar"
        and config["series"][0]["name"] == PLACEHOLDER_LABEL
        and config["series"][0]["data"] == [0]
    )


def test_every_chart_type_is_covered():
    for chart_type in ChartType:
        assert chart_type in CHART_BUILDERS or chart_type in SUBSTITUTIONS


@pytest.mark.parametrize("chart_type", list(ChartType))
def test_every_type_produces_a_renderable_config(synthesizer, metrics_table, chart_type):
    config = synthesizer.synthesize(make_suggestion(chart_type), metrics_table)

    _assert_renderable(config)
    assert config["color"] == COLOR_PALETTE
    assert config["meta"]["requestedType"] == chart_type.value
    assert config["meta"]["source"] == "local"


@pytest.mark.parametrize("chart_type", list(ChartType))
def test_every_type_degrades_on_empty_table(synthesizer, chart_type):
    config = synthesizer.synthesize(make_suggestion(chart_type), make_table([], []))
    _assert_renderable(config)


@pytest.mark.parametrize(
    "requested, series_type",
    [
        (ChartType.SANKEY, "bar"),
        (ChartType.GRAPH, "scatter"),
        (ChartType.BOXPLOT, "bar"),
        (ChartType.CANDLESTICK, "line"),
        (ChartType.THEME_RIVER, "line"),
    ],
)
def test_substitutions_are_flagged(synthesizer, metrics_table, requested, series_type):
    config = synthesizer.synthesize(make_suggestion(requested), metrics_table)

    assert config["series"][0]["type"] == series_type
    assert config["meta"]["substituted"] is True
    assert config["meta"]["renderedType"] == SUBSTITUTIONS[requested].value
    assert is_substituted(requested)


def test_theme_river_renders_as_area(synthesizer, dated_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.THEME_RIVER), dated_table)

    assert config["meta"]["renderedType"] == "area"
    assert config["series"][0]["areaStyle"]["opacity"] == 0.6


def test_native_types_are_not_substituted(synthesizer, sales_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.BAR), sales_table)

    assert config["meta"]["substituted"] is False
    assert config["meta"]["placeholder"] is False
    assert resolve_builder(ChartType.BAR)[0] == ChartType.BAR


def test_radar_without_numeric_columns_is_placeholder(synthesizer, string_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.RADAR), string_table)

    assert _is_placeholder(config)
    assert config["meta"]["placeholder"] is True
    assert config["meta"]["renderedType"] == "bar"
    assert config["title"]["text"] == "radar chart"


@pytest.mark.parametrize(
    "chart_type",
    [ChartType.BAR, ChartType.PIE, ChartType.SCATTER, ChartType.HEATMAP, ChartType.GAUGE, ChartType.PARALLEL],
)
def test_missing_numeric_columns_yield_placeholder(synthesizer, string_table, chart_type):
    config = synthesizer.synthesize(make_suggestion(chart_type), string_table)
    assert _is_placeholder(config)


def test_bar_from_local_suggestion(synthesizer, sales_table):
    bar = generate_local_suggestions(sales_table)[0]
    config = synthesizer.synthesize(bar, sales_table, title="Sales by product")

    assert config["title"]["text"] == "Sales by product"
    assert config["xAxis"]["data"] == ["A", "B"]
    assert config["series"][0]["data"] == [10, 20]
    assert config["series"][0]["name"] == "Sales"


def test_explicit_columns_take_precedence(synthesizer, metrics_table):
    suggestion = make_suggestion(ChartType.LINE, x_axis="Team", y_axis=["Cost"])
    config = synthesizer.synthesize(suggestion, metrics_table)

    assert config["xAxis"]["data"][0] == "Red"
    assert config["series"][0]["data"][0] == 120


def test_unknown_columns_fall_back_to_positional_defaults(synthesizer, sales_table):
    suggestion = make_suggestion(ChartType.BAR, x_axis="Nope", y_axis=["Missing"])
    config = synthesizer.synthesize(suggestion, sales_table)

    assert config["xAxis"]["data"] == ["A", "B"]
    assert config["series"][0]["name"] == "Sales"


def test_scatter_uses_two_distinct_columns(synthesizer, metrics_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.SCATTER), metrics_table)

    assert config["xAxis"]["name"] == "Speed"
    assert config["yAxis"]["name"] == "Quality"
    assert config["series"][0]["data"][0] == [7, 9]


def test_radar_caps_rows_and_scales_indicators(synthesizer, metrics_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.RADAR), metrics_table)

    data = config["series"][0]["data"]
    assert len(data) == 5
    assert data[0]["name"] == "Red"
    indicator = {item["name"]: item["max"] for item in config["radar"]["indicator"]}
    assert indicator["Cost"] == pytest.approx(130 * 1.2)


def test_radar_row_cap_is_configurable(metrics_table):
    synthesizer = ChartConfigSynthesizer(Settings(radar_max_rows=2, suggestion_cache_enabled=False))
    config = synthesizer.synthesize(make_suggestion(ChartType.RADAR), metrics_table)
    assert len(config["series"][0]["data"]) == 2


def test_parallel_caps_rows():
    rows = [[f"r{i}", i, i * 2] for i in range(80)]
    table = make_table([("id", "string"), ("a", "number"), ("b", "number")], rows)

    config = ChartConfigSynthesizer(Settings()).synthesize(make_suggestion(ChartType.PARALLEL), table)

    assert len(config["series"][0]["data"]) == 50
    assert config["parallelAxis"][1] == {"dim": 1, "name": "b", "min": 0.0, "max": 158.0}


def test_non_finite_values_are_coerced_before_ranges(synthesizer):
    table = make_table(
        [("k", "string"), ("v", "number")],
        [["a", float("nan")], ["b", "oops"], ["c", float("inf")], ["d", None]],
    )

    radar = synthesizer.synthesize(make_suggestion(ChartType.RADAR), table)
    gauge = synthesizer.synthesize(make_suggestion(ChartType.GAUGE), table)
    parallel = synthesizer.synthesize(make_suggestion(ChartType.PARALLEL), table)

    assert radar["radar"]["indicator"][0]["max"] == 100.0
    assert gauge["series"][0]["max"] == 100.0
    assert gauge["series"][0]["data"][0]["value"] == 0.0
    assert parallel["parallelAxis"][0]["min"] == 0.0
    assert parallel["parallelAxis"][0]["max"] == 0.0


def test_gauge_shows_mean(synthesizer, sales_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.GAUGE), sales_table)

    series = config["series"][0]
    assert series["data"][0]["value"] == 15.0
    assert series["max"] == pytest.approx(24.0)


def test_funnel_is_sorted_descending(synthesizer, sales_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.FUNNEL), sales_table)

    assert [item["name"] for item in config["series"][0]["data"]] == ["B", "A"]
    assert config["series"][0]["max"] == 20.0


def test_heatmap_visual_map_includes_negative_values(synthesizer):
    table = make_table([("k", "string"), ("v", "number")], [["a", -5], ["b", 7]])
    config = synthesizer.synthesize(make_suggestion(ChartType.HEATMAP), table)

    assert config["visualMap"]["min"] == -5.0
    assert config["visualMap"]["max"] == 7.0


def test_sunburst_caps_children(synthesizer):
    rows = [[f"item{i}", i] for i in range(15)]
    table = make_table([("name", "string"), ("value", "number")], rows)

    config = synthesizer.synthesize(make_suggestion(ChartType.SUNBURST), table)

    root = config["series"][0]["data"][0]
    assert root["name"] == "Root"
    assert len(root["children"]) == 10


def test_tree_groups_rows_by_category(synthesizer, string_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.TREE), string_table)

    root = config["series"][0]["data"][0]
    children = {child["name"]: child for child in root["children"]}
    assert set(children) == {"Paris", "Lyon", "Berlin"}
    assert children["Paris"]["value"] == 1.0
    assert children["Paris"]["children"] == [{"name": "France", "value": 1.0}]


def test_tree_sums_numeric_values(synthesizer):
    table = make_table(
        [("Region", "string"), ("Sales", "number")],
        [["North", 5], ["South", 3], ["North", 2]],
    )
    config = synthesizer.synthesize(make_suggestion(ChartType.TREE), table)

    root = config["series"][0]["data"][0]
    assert root["name"] == "Sales"
    assert root["children"] == [{"name": "North", "value": 7.0}, {"name": "South", "value": 3.0}]


def test_builder_failure_falls_back_to_bar(synthesizer, sales_table, monkeypatch):
    def broken(ctx):
        raise RuntimeError("boom")

    monkeypatch.setitem(CHART_BUILDERS, ChartType.LINE, broken)
    config = synthesizer.synthesize(make_suggestion(ChartType.LINE), sales_table)

    assert config["series"][0]["type"] == "bar"
    assert config["meta"]["renderedType"] == "bar"
    assert config["meta"]["substituted"] is True
    assert config["meta"]["placeholder"] is False


def test_gauge_bands_use_palette_colors(synthesizer, sales_table):
    config = synthesizer.synthesize(make_suggestion(ChartType.GAUGE), sales_table)

    bands = config["series"][0]["axisLine"]["lineStyle"]["color"]
    assert [stop for stop, _ in bands] == [0.25, 0.5, 0.75, 1]
    assert all(color in COLOR_PALETTE for _, color in bands)

"""
Chart builder registry.

Maps every chart type to the builder that configures it. Chart types whose
data shape cannot be derived from a flat table are listed in SUBSTITUTIONS
and are served by a structurally compatible builder instead.
"""

from typing import Callable, Dict, Tuple

from chart_advisor.models.suggestion import ChartType
from chart_advisor.visualization.chart_generators.base import BuildContext, RenderConfig
from chart_advisor.visualization.chart_generators.cartesian import (
    build_area_chart,
    build_bar_chart,
    build_line_chart,
    build_scatter_chart,
)
from chart_advisor.visualization.chart_generators.hierarchy import (
    build_sunburst_chart,
    build_tree_chart,
    build_treemap_chart,
)
from chart_advisor.visualization.chart_generators.matrix import (
    build_heatmap_chart,
    build_parallel_chart,
    build_radar_chart,
)
from chart_advisor.visualization.chart_generators.proportion import (
    build_funnel_chart,
    build_gauge_chart,
    build_pie_chart,
)

ChartBuilder = Callable[[BuildContext], RenderConfig]

CHART_BUILDERS: Dict[ChartType, ChartBuilder] = {
    ChartType.BAR: build_bar_chart,
    ChartType.LINE: build_line_chart,
    ChartType.PIE: build_pie_chart,
    ChartType.SCATTER: build_scatter_chart,
    ChartType.AREA: build_area_chart,
    ChartType.RADAR: build_radar_chart,
    ChartType.HEATMAP: build_heatmap_chart,
    ChartType.FUNNEL: build_funnel_chart,
    ChartType.GAUGE: build_gauge_chart,
    ChartType.TREE: build_tree_chart,
    ChartType.TREEMAP: build_treemap_chart,
    ChartType.SUNBURST: build_sunburst_chart,
    ChartType.PARALLEL: build_parallel_chart,
}

# Requested type -> type whose builder stands in for it
SUBSTITUTIONS: Dict[ChartType, ChartType] = {
    ChartType.SANKEY: ChartType.BAR,  # needs a source/target flow graph
    ChartType.GRAPH: ChartType.SCATTER,  # needs nodes and edges
    ChartType.BOXPLOT: ChartType.BAR,  # needs quartile statistics
    ChartType.CANDLESTICK: ChartType.LINE,  # needs open/high/low/close
    ChartType.THEME_RIVER: ChartType.AREA,  # needs categorized time series
}


def resolve_builder(chart_type: ChartType) -> Tuple[ChartType, ChartBuilder]:
    """
    Find the builder for a chart type.

    Args:
        chart_type: Requested chart type

    Returns:
        (rendered chart type, builder); the rendered type differs from the
        requested one when a substitution applies

    Raises:
        KeyError: if the type has neither a builder nor a substitution
    """
    rendered = SUBSTITUTIONS.get(chart_type, chart_type)
    return rendered, CHART_BUILDERS[rendered]


def is_substituted(chart_type: ChartType) -> bool:
    return chart_type in SUBSTITUTIONS

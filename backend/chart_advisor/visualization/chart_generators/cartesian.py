"""
Cartesian chart builders: bar, line, area and scatter.
"""

from chart_advisor.visualization.chart_generators.base import (
    AXIS_LINE_STYLE,
    SPLIT_LINE_STYLE,
    BuildContext,
    RenderConfig,
    base_option,
    category_axis,
    clean_value,
    first,
    require_column,
    value_axis,
)


def build_bar_chart(ctx: BuildContext) -> RenderConfig:
    """
    Bar chart of one numeric column over a category column.

    Categories fall back to the first date column when the table has no
    string columns.
    """
    summary = ctx.table.summary
    x_column = require_column(
        ctx.table, ctx.suggestion.x_axis, first(summary.string_columns), first(summary.date_columns)
    )
    y_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    option = base_option(ctx.title)
    option.update(
        {
            "xAxis": category_axis(ctx.table.column_values(x_column), axisLine=dict(AXIS_LINE_STYLE)),
            "yAxis": value_axis(axisLine=dict(AXIS_LINE_STYLE), splitLine=dict(SPLIT_LINE_STYLE)),
            "series": [
                {
                    "name": y_column,
                    "type": "bar",
                    "data": [clean_value(v) for v in ctx.table.column_values(y_column)],
                    "itemStyle": {"borderRadius": [4, 4, 0, 0]},
                    "emphasis": {
                        "itemStyle": {
                            "shadowBlur": 10,
                            "shadowOffsetX": 0,
                            "shadowColor": "rgba(0, 0, 0, 0.2)",
                        }
                    },
                }
            ],
        }
    )
    return option


def _time_axis_columns(ctx: BuildContext):
    summary = ctx.table.summary
    x_column = require_column(
        ctx.table, ctx.suggestion.x_axis, first(summary.date_columns), first(summary.string_columns)
    )
    y_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))
    return x_column, y_column


def build_line_chart(ctx: BuildContext) -> RenderConfig:
    """Smoothed line of one numeric column over a date (or category) axis."""
    x_column, y_column = _time_axis_columns(ctx)

    option = base_option(ctx.title)
    option.update(
        {
            "xAxis": category_axis(ctx.table.column_values(x_column)),
            "yAxis": value_axis(),
            "series": [
                {
                    "name": y_column,
                    "type": "line",
                    "data": [clean_value(v) for v in ctx.table.column_values(y_column)],
                    "smooth": True,
                    "symbol": "circle",
                    "symbolSize": 6,
                    "lineStyle": {"width": 3},
                    "areaStyle": {"opacity": 0.1},
                }
            ],
        }
    )
    return option


def build_area_chart(ctx: BuildContext) -> RenderConfig:
    """Filled line; renders as an ECharts line series with a strong area style."""
    x_column, y_column = _time_axis_columns(ctx)

    option = base_option(ctx.title)
    option.update(
        {
            "xAxis": category_axis(ctx.table.column_values(x_column), boundaryGap=False),
            "yAxis": value_axis(),
            "series": [
                {
                    "name": y_column,
                    "type": "line",
                    "data": [clean_value(v) for v in ctx.table.column_values(y_column)],
                    "smooth": True,
                    "areaStyle": {"opacity": 0.6},
                    "lineStyle": {"width": 2},
                }
            ],
        }
    )
    return option


def build_scatter_chart(ctx: BuildContext) -> RenderConfig:
    """Scatter of two numeric columns against each other."""
    summary = ctx.table.summary
    x_column = require_column(ctx.table, ctx.suggestion.x_axis, first(summary.numeric_columns))
    y_candidates = [ctx.suggestion.primary_y_axis] + [
        name for name in summary.numeric_columns if name != x_column
    ]
    y_column = require_column(ctx.table, *y_candidates)

    points = [
        [clean_value(x), clean_value(y)]
        for x, y in zip(ctx.table.column_values(x_column), ctx.table.column_values(y_column))
    ]

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item"},
            "xAxis": value_axis(name=x_column),
            "yAxis": value_axis(name=y_column),
            "series": [
                {
                    "name": f"{x_column} vs {y_column}",
                    "type": "scatter",
                    "data": points,
                    "symbolSize": 8,
                    "emphasis": {
                        "itemStyle": {"shadowBlur": 10, "shadowColor": "rgba(0, 0, 0, 0.3)"}
                    },
                }
            ],
        }
    )
    return option

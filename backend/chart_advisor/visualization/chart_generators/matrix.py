"""
Multi-dimensional chart builders: radar, heatmap and parallel coordinates.

Axis ranges are derived from the data with non-numeric values treated as 0,
and fall back to a fixed range when a column has no values at all. Radar
and parallel charts only draw the first rows of the table.
"""

from typing import List

from chart_advisor.visualization.chart_generators.base import (
    FALLBACK_MAX,
    BuildContext,
    ColumnResolutionError,
    RenderConfig,
    as_label,
    base_option,
    first,
    require_column,
    resolve_column,
    safe_max,
    safe_min,
    to_numbers,
)


def _metric_columns(ctx: BuildContext, limit: int) -> List[str]:
    """Numeric columns to plot: the suggestion's y-axis list if it resolves, else the table's."""
    numeric = ctx.table.summary.numeric_columns
    requested = [name for name in (ctx.suggestion.y_axis or []) if name in numeric]
    metrics = (requested or list(numeric))[:limit]
    if not metrics:
        raise ColumnResolutionError("No numeric columns available")
    return metrics


def build_radar_chart(ctx: BuildContext) -> RenderConfig:
    metrics = _metric_columns(ctx, ctx.radar_max_metrics)
    columns = {name: to_numbers(ctx.table.column_values(name)) for name in metrics}

    indicator = []
    for name in metrics:
        peak = safe_max(columns[name])
        indicator.append({"name": name, "max": peak * 1.2 if peak > 0 else FALLBACK_MAX})

    category_column = resolve_column(
        ctx.table, ctx.suggestion.series, first(ctx.table.summary.string_columns)
    )
    labels = ctx.table.column_values(category_column) if category_column else []

    series_data = []
    for row_index in range(min(ctx.radar_max_rows, len(ctx.table.rows))):
        label = labels[row_index] if row_index < len(labels) else None
        series_data.append(
            {
                "name": as_label(label, f"Item {row_index + 1}"),
                "value": [columns[name][row_index] for name in metrics],
            }
        )

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item"},
            "legend": {"data": [item["name"] for item in series_data], "bottom": 0},
            "radar": {"indicator": indicator},
            "series": [
                {
                    "name": ctx.title,
                    "type": "radar",
                    "data": series_data,
                    "areaStyle": {"opacity": 0.3},
                }
            ],
        }
    )
    return option


def build_heatmap_chart(ctx: BuildContext) -> RenderConfig:
    """Heatmap of a numeric column over two category axes."""
    summary = ctx.table.summary
    x_column = require_column(
        ctx.table, ctx.suggestion.x_axis, first(summary.string_columns), first(summary.date_columns)
    )
    y_column = require_column(
        ctx.table, first(summary.string_columns, 1), first(summary.string_columns), x_column
    )
    value_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    x_labels = ctx.table.column_values(x_column)
    y_labels = ctx.table.column_values(y_column)
    values = to_numbers(ctx.table.column_values(value_column))

    cells = [
        [as_label(x, f"X{i}"), as_label(y, f"Y{i}"), value]
        for i, (x, y, value) in enumerate(zip(x_labels, y_labels, values))
    ]

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"position": "top"},
            "visualMap": {
                "min": min(0.0, safe_min(values)),
                "max": safe_max(values),
                "calculable": True,
                "orient": "horizontal",
                "left": "center",
                "bottom": "5%",
            },
            "xAxis": {
                "type": "category",
                "name": x_column,
                "data": list(dict.fromkeys(cell[0] for cell in cells)),
                "splitArea": {"show": True},
            },
            "yAxis": {
                "type": "category",
                "name": y_column,
                "data": list(dict.fromkeys(cell[1] for cell in cells)),
                "splitArea": {"show": True},
            },
            "series": [
                {
                    "name": value_column,
                    "type": "heatmap",
                    "data": cells,
                    "label": {"show": True},
                }
            ],
        }
    )
    return option


def build_parallel_chart(ctx: BuildContext) -> RenderConfig:
    metrics = _metric_columns(ctx, ctx.parallel_max_axes)
    columns = {name: to_numbers(ctx.table.column_values(name)) for name in metrics}

    parallel_axis = [
        {
            "dim": index,
            "name": name,
            "min": safe_min(columns[name]),
            "max": safe_max(columns[name]),
        }
        for index, name in enumerate(metrics)
    ]

    row_count = min(ctx.parallel_max_rows, len(ctx.table.rows))
    lines = [[columns[name][row_index] for name in metrics] for row_index in range(row_count)]

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item"},
            "parallelAxis": parallel_axis,
            "parallel": {"left": "5%", "right": "18%", "bottom": "10%", "top": "20%"},
            "series": [
                {
                    "name": ctx.title,
                    "type": "parallel",
                    "lineStyle": {"width": 2, "opacity": 0.8},
                    "data": lines,
                }
            ],
        }
    )
    return option

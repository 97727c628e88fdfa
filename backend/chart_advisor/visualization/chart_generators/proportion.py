"""
Part-of-whole chart builders: pie, funnel and gauge.
"""

from chart_advisor.visualization.chart_generators.base import (
    COLOR_PALETTE,
    FALLBACK_MAX,
    BuildContext,
    RenderConfig,
    as_label,
    base_option,
    clean_value,
    first,
    require_column,
    safe_max,
    to_numbers,
)


def build_pie_chart(ctx: BuildContext) -> RenderConfig:
    """Donut-style pie of one numeric column split by a category column."""
    summary = ctx.table.summary
    category_column = require_column(
        ctx.table, ctx.suggestion.series, ctx.suggestion.x_axis, first(summary.string_columns)
    )
    value_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    pie_data = [
        {"name": as_label(name, f"Item {i + 1}"), "value": clean_value(value)}
        for i, (name, value) in enumerate(
            zip(ctx.table.column_values(category_column), ctx.table.column_values(value_column))
        )
    ]

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item", "formatter": "{a} <br/>{b}: {c} ({d}%)"},
            "legend": {"orient": "vertical", "left": "left", "textStyle": {"color": "#6b7280"}},
            "series": [
                {
                    "name": category_column,
                    "type": "pie",
                    "radius": ["40%", "70%"],
                    "center": ["60%", "50%"],
                    "data": pie_data,
                    "emphasis": {
                        "itemStyle": {
                            "shadowBlur": 10,
                            "shadowOffsetX": 0,
                            "shadowColor": "rgba(0, 0, 0, 0.5)",
                        }
                    },
                }
            ],
        }
    )
    return option


def build_funnel_chart(ctx: BuildContext) -> RenderConfig:
    """Funnel of stages, sorted by value descending."""
    summary = ctx.table.summary
    name_column = require_column(ctx.table, ctx.suggestion.x_axis, first(summary.string_columns))
    value_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    values = to_numbers(ctx.table.column_values(value_column))
    names = ctx.table.column_values(name_column)
    funnel_data = sorted(
        (
            {"name": as_label(name, f"Stage {i + 1}"), "value": value}
            for i, (name, value) in enumerate(zip(names, values))
        ),
        key=lambda item: item["value"],
        reverse=True,
    )

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item", "formatter": "{b}: {c}"},
            "series": [
                {
                    "name": value_column,
                    "type": "funnel",
                    "left": "10%",
                    "top": 60,
                    "bottom": 60,
                    "width": "80%",
                    "min": 0,
                    "max": safe_max(values),
                    "minSize": "0%",
                    "maxSize": "100%",
                    "sort": "descending",
                    "gap": 2,
                    "label": {"show": True, "position": "inside"},
                    "labelLine": {"length": 10, "lineStyle": {"width": 1, "type": "solid"}},
                    "itemStyle": {"borderColor": "#fff", "borderWidth": 1},
                    "data": funnel_data,
                }
            ],
        }
    )
    return option


def build_gauge_chart(ctx: BuildContext) -> RenderConfig:
    """Half-circle gauge showing the mean of a numeric column."""
    summary = ctx.table.summary
    value_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    values = to_numbers(ctx.table.column_values(value_column))
    average = sum(values) / len(values) if values else 0.0
    peak = safe_max(values)
    scale_max = peak * 1.2 if peak > 0 else FALLBACK_MAX

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item", "formatter": "{a}: {c}"},
            "series": [
                {
                    "name": value_column,
                    "type": "gauge",
                    "startAngle": 180,
                    "endAngle": 0,
                    "center": ["50%", "75%"],
                    "radius": "90%",
                    "min": 0,
                    "max": scale_max,
                    "splitNumber": 8,
                    "axisLine": {
                        "lineStyle": {
                            "width": 6,
                            "color": [
                                [0.25, COLOR_PALETTE[5]],
                                [0.5, COLOR_PALETTE[4]],
                                [0.75, COLOR_PALETTE[2]],
                                [1, COLOR_PALETTE[3]],
                            ],
                        }
                    },
                    "pointer": {
                        "icon": "path://M12.8,0.7l12,40.1H0.7L12.8,0.7z",
                        "length": "12%",
                        "width": 20,
                        "offsetCenter": [0, "-60%"],
                        "itemStyle": {"color": "auto"},
                    },
                    "axisTick": {"length": 12, "lineStyle": {"color": "auto", "width": 2}},
                    "splitLine": {"length": 20, "lineStyle": {"color": "auto", "width": 5}},
                    "title": {"offsetCenter": [0, "-10%"], "fontSize": 20},
                    "detail": {
                        "fontSize": 30,
                        "offsetCenter": [0, "-35%"],
                        "valueAnimation": True,
                        "formatter": "{value}",
                        "color": "auto",
                    },
                    "data": [{"value": round(average, 2), "name": value_column}],
                }
            ],
        }
    )
    return option

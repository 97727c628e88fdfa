"""
Hierarchical chart builders: treemap, sunburst and tree.

A flat table is turned into a hierarchy by treating the first category
column as the top level (and, for trees, the second category column as the
next level) under a single root.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from chart_advisor.visualization.chart_generators.base import (
    BuildContext,
    RenderConfig,
    as_label,
    base_option,
    first,
    require_column,
    resolve_column,
    to_numbers,
)


def _named_values(ctx: BuildContext, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    summary = ctx.table.summary
    name_column = require_column(ctx.table, ctx.suggestion.x_axis, first(summary.string_columns))
    value_column = require_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    names = ctx.table.column_values(name_column)
    values = to_numbers(ctx.table.column_values(value_column))
    items = [
        {"name": as_label(name, f"Item {i + 1}"), "value": value}
        for i, (name, value) in enumerate(zip(names, values))
    ]
    return items[:limit] if limit is not None else items


def build_treemap_chart(ctx: BuildContext) -> RenderConfig:
    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item", "formatter": "{b}: {c}"},
            "series": [
                {
                    "name": ctx.title,
                    "type": "treemap",
                    "data": _named_values(ctx),
                    "label": {"show": True, "formatter": "{b}\n{c}"},
                    "itemStyle": {"borderColor": "#fff"},
                }
            ],
        }
    )
    return option


def build_sunburst_chart(ctx: BuildContext) -> RenderConfig:
    root = {"name": "Root", "children": _named_values(ctx, limit=ctx.sunburst_max_rows)}

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item"},
            "series": [
                {
                    "name": ctx.title,
                    "type": "sunburst",
                    "data": [root],
                    "radius": [0, "95%"],
                    "sort": None,
                    "emphasis": {"focus": "ancestor"},
                    "levels": [
                        {},
                        {
                            "r0": "15%",
                            "r": "35%",
                            "itemStyle": {"borderWidth": 2},
                            "label": {"rotate": "tangential"},
                        },
                        {"r0": "35%", "r": "70%", "label": {"align": "right"}},
                    ],
                }
            ],
        }
    )
    return option


def build_tree_chart(ctx: BuildContext) -> RenderConfig:
    """
    Collapsible tree grouping rows by one or two category columns.

    Node values are the sum of the first numeric column, or row counts when
    the table has no numeric column.
    """
    summary = ctx.table.summary
    top_column = require_column(ctx.table, ctx.suggestion.x_axis, first(summary.string_columns))
    sub_column = resolve_column(
        ctx.table, *[name for name in summary.string_columns if name != top_column][:1]
    )
    value_column = resolve_column(ctx.table, ctx.suggestion.primary_y_axis, first(summary.numeric_columns))

    frame = pd.DataFrame(
        {
            "top": [as_label(v, "Unknown") for v in ctx.table.column_values(top_column)],
            "sub": [as_label(v, "Unknown") for v in ctx.table.column_values(sub_column)]
            if sub_column
            else [None] * len(ctx.table.rows),
            "value": to_numbers(ctx.table.column_values(value_column))
            if value_column
            else [1.0] * len(ctx.table.rows),
        }
    )

    children = []
    for top_name, group in frame.groupby("top", sort=False):
        node: Dict[str, Any] = {"name": top_name, "value": float(group["value"].sum())}
        if sub_column:
            node["children"] = [
                {"name": sub_name, "value": float(sub_group["value"].sum())}
                for sub_name, sub_group in group.groupby("sub", sort=False)
            ]
        children.append(node)

    root = {"name": value_column or top_column, "children": children}

    option = base_option(ctx.title)
    option.update(
        {
            "tooltip": {"trigger": "item", "triggerOn": "mousemove"},
            "series": [
                {
                    "name": ctx.title,
                    "type": "tree",
                    "data": [root],
                    "top": "5%",
                    "left": "10%",
                    "bottom": "5%",
                    "right": "20%",
                    "symbolSize": 8,
                    "initialTreeDepth": 2,
                    "label": {"position": "left", "verticalAlign": "middle", "align": "right"},
                    "leaves": {"label": {"position": "right", "verticalAlign": "middle", "align": "left"}},
                    "expandAndCollapse": True,
                }
            ],
        }
    )
    return option

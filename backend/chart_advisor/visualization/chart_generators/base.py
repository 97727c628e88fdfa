"""
Shared building blocks for chart configuration builders.

Builders produce ECharts-style option dictionaries. This module holds the
fixed colour palette, the base option every builder starts from, column
resolution, numeric coercion and the placeholder chart used when a table
cannot satisfy a chart type.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from chart_advisor.models.suggestion import ChartSuggestion
from chart_advisor.models.tabular import Table

RenderConfig = Dict[str, Any]

# Indigo/purple theme, attached to every synthesized configuration
COLOR_PALETTE: List[str] = [
    "#6366f1",  # indigo-500
    "#8b5cf6",  # purple-500
    "#06b6d4",  # cyan-500
    "#10b981",  # emerald-500
    "#f59e0b",  # amber-500
    "#ef4444",  # red-500
    "#ec4899",  # pink-500
    "#6d28d9",  # violet-700
]

PLACEHOLDER_LABEL = "No Data"
FALLBACK_MAX = 100.0

AXIS_LABEL_STYLE = {"color": "#6b7280", "fontSize": 12}
AXIS_LINE_STYLE = {"lineStyle": {"color": "#d1d5db"}}
SPLIT_LINE_STYLE = {"lineStyle": {"color": "#f3f4f6"}}


class ColumnResolutionError(Exception):
    """Raised by a builder when the columns it needs are not in the table."""


@dataclass(frozen=True)
class BuildContext:
    """Everything a builder needs to produce a configuration."""

    suggestion: ChartSuggestion
    table: Table
    title: str
    radar_max_rows: int = 5
    radar_max_metrics: int = 6
    parallel_max_rows: int = 50
    parallel_max_axes: int = 6
    sunburst_max_rows: int = 10


def base_option(title: str) -> RenderConfig:
    """Title block and tooltip shared by all charts."""
    return {
        "title": {"text": title, "left": "center"},
        "tooltip": {
            "trigger": "axis",
            "backgroundColor": "rgba(255, 255, 255, 0.95)",
            "borderColor": "#e5e7eb",
            "textStyle": {"color": "#374151"},
        },
        "color": list(COLOR_PALETTE),
        "series": [],
    }


def placeholder_series() -> Dict[str, Any]:
    """A single zero-valued bar, always a valid series."""
    return {
        "type": "bar",
        "name": PLACEHOLDER_LABEL,
        "data": [0],
        "itemStyle": {"color": COLOR_PALETTE[0]},
    }


def placeholder_option(title: str) -> RenderConfig:
    """A visibly empty bar chart labelled as having no data."""
    option = base_option(title)
    option.update(
        {
            "xAxis": {"type": "category", "data": [PLACEHOLDER_LABEL]},
            "yAxis": {"type": "value"},
            "series": [placeholder_series()],
        }
    )
    return option


def resolve_column(table: Table, *candidates: Optional[str]) -> Optional[str]:
    """
    Pick the first candidate that names an existing column.

    Args:
        table: Table to look columns up in
        candidates: Column names in order of preference (None entries skipped)

    Returns:
        Column name, or None when no candidate resolves
    """
    for name in candidates:
        if name is not None and table.column_index(name) >= 0:
            return name
    return None


def require_column(table: Table, *candidates: Optional[str]) -> str:
    name = resolve_column(table, *candidates)
    if name is None:
        raise ColumnResolutionError(f"None of {[c for c in candidates if c]} found in table")
    return name


def first(names: List[str], position: int = 0) -> Optional[str]:
    return names[position] if len(names) > position else None


def to_numbers(values: List[Any]) -> List[float]:
    """
    Coerce raw values to finite floats.

    Non-numeric, NaN and infinite values become 0.
    """
    if not values:
        return []
    numbers = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce").astype(float)
    numbers = numbers.where(np.isfinite(numbers), 0.0)
    return [float(v) for v in numbers]


def safe_max(values: List[float], fallback: float = FALLBACK_MAX) -> float:
    return max(values) if values else fallback


def safe_min(values: List[float], fallback: float = 0.0) -> float:
    return min(values) if values else fallback


def as_label(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, float) and np.isnan(value):
        return default
    return str(value)


def clean_value(value: Any) -> Any:
    """Make a raw cell JSON-friendly (NaN and infinities become None)."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not np.isfinite(value):
        return None
    return value


def category_axis(values: List[Any], **extra: Any) -> Dict[str, Any]:
    axis = {"type": "category", "data": [clean_value(v) for v in values], "axisLabel": dict(AXIS_LABEL_STYLE)}
    axis.update(extra)
    return axis


def value_axis(**extra: Any) -> Dict[str, Any]:
    axis = {"type": "value", "axisLabel": dict(AXIS_LABEL_STYLE)}
    axis.update(extra)
    return axis

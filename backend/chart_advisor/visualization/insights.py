"""
Descriptive insights about a table.

Used on its own and as the fallback when the enhancement service cannot
provide chart insights.
"""

from typing import List

from chart_advisor.models.tabular import Table
from chart_advisor.visualization.pattern_analyzer import analyze_patterns


def generate_data_insights(table: Table) -> List[str]:
    """
    Describe a table in a few sentences.

    Args:
        table: Parsed table

    Returns:
        List of insight strings
    """
    summary = table.summary
    patterns = analyze_patterns(summary)

    insights = [
        f"Dataset contains {summary.total_rows} records across {summary.total_columns} variables"
    ]

    if summary.numeric_columns:
        insights.append(f"Numeric columns: {', '.join(summary.numeric_columns)}")
        for name in summary.numeric_columns:
            stats = table.describe_column(name)
            if stats is not None and stats.mean is not None:
                insights.append(
                    f"{name} ranges from {stats.min:g} to {stats.max:g} (mean {stats.mean:.2f})"
                )

    if summary.string_columns:
        insights.append(f"Text columns: {', '.join(summary.string_columns)}")

    if summary.date_columns:
        insights.append(f"Date columns: {', '.join(summary.date_columns)}")

    # Chart families suited to the detected structure
    if patterns.numeric_count >= 2:
        insights.append("Good for: Scatter plots, bubble charts")
    if patterns.has_categorical and patterns.has_numeric:
        insights.append("Good for: Bar charts, pie charts, line charts")
    if patterns.has_temporal and patterns.has_numeric:
        insights.append("Good for: Time series, trend analysis")

    return insights

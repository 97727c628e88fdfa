"""
Data pattern analysis.

Classifies which structural patterns a table's summary exhibits. The
suggestion rules are evaluated against these facts only.
"""

from dataclasses import dataclass

from chart_advisor.models.tabular import TableSummary


@dataclass(frozen=True)
class DataPatterns:
    """Structural facts about a table."""

    has_categorical: bool = False
    has_numeric: bool = False
    has_temporal: bool = False
    numeric_count: int = 0
    categorical_count: int = 0
    temporal_count: int = 0


def analyze_patterns(summary: TableSummary) -> DataPatterns:
    """
    Analyze a table summary.

    Args:
        summary: Summary of the table to analyze

    Returns:
        DataPatterns; an empty table yields all-false/zero facts
    """
    numeric_count = len(summary.numeric_columns)
    categorical_count = len(summary.string_columns)
    temporal_count = len(summary.date_columns)

    return DataPatterns(
        has_categorical=categorical_count > 0,
        has_numeric=numeric_count > 0,
        has_temporal=temporal_count > 0,
        numeric_count=numeric_count,
        categorical_count=categorical_count,
        temporal_count=temporal_count,
    )

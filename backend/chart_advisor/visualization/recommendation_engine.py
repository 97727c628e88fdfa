"""
Chart recommendation engine.

This module recommends chart types for a table by evaluating a fixed set
of independent rules against the table's structural patterns, and ranks
and merges suggestion lists.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from chart_advisor.config import DEFAULT_RULE_CONFIDENCE
from chart_advisor.models.suggestion import ChartSuggestion, ChartType, Complexity
from chart_advisor.models.tabular import Table, TableSummary
from chart_advisor.utils.logger import get_logger
from chart_advisor.visualization.pattern_analyzer import DataPatterns, analyze_patterns

# Initialize logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class SuggestionRule:
    """A precondition over data patterns plus the suggestion it yields."""

    name: str
    chart_type: ChartType
    title: str
    description: str
    reasoning: str
    use_case: str
    complexity: Complexity
    precondition: Callable[[DataPatterns], bool]
    bind_columns: Callable[[TableSummary], Dict[str, object]]


def _first(names: List[str]) -> Optional[str]:
    return names[0] if names else None


# Rules are independent; a table may trigger any number of them.
SUGGESTION_RULES: List[SuggestionRule] = [
    SuggestionRule(
        name="category_comparison",
        chart_type=ChartType.BAR,
        title="Category Comparison",
        description="Compare values across different categories with clear visual bars",
        reasoning="Categorical data with numeric values - ideal for comparison visualization",
        use_case="Comparing sales by product, performance by team, or values by category",
        complexity=Complexity.SIMPLE,
        precondition=lambda p: p.has_categorical and p.has_numeric,
        bind_columns=lambda s: {
            "x_axis": _first(s.string_columns),
            "y_axis": [s.numeric_columns[0]],
        },
    ),
    SuggestionRule(
        name="time_trend",
        chart_type=ChartType.LINE,
        title="Time Series Trends",
        description="Track changes and trends over time with connected data points",
        reasoning="Time-based data perfect for trend analysis and forecasting",
        use_case="Stock prices, website traffic, sales over time, or any temporal data",
        complexity=Complexity.SIMPLE,
        precondition=lambda p: p.has_temporal and p.has_numeric,
        bind_columns=lambda s: {
            "x_axis": _first(s.date_columns),
            "y_axis": [s.numeric_columns[0]],
        },
    ),
    SuggestionRule(
        name="proportion",
        chart_type=ChartType.PIE,
        title="Proportion Analysis",
        description="Show how parts relate to the whole with intuitive slices",
        reasoning="Categorical data suitable for showing parts of a whole relationship",
        use_case="Market share, budget allocation, survey responses, or composition analysis",
        complexity=Complexity.SIMPLE,
        precondition=lambda p: p.has_categorical and p.has_numeric,
        bind_columns=lambda s: {
            "series": _first(s.string_columns),
            "y_axis": [s.numeric_columns[0]],
        },
    ),
    SuggestionRule(
        name="correlation",
        chart_type=ChartType.SCATTER,
        title="Correlation Explorer",
        description="Discover relationships and patterns between two numeric variables",
        reasoning="Multiple numeric variables enable correlation and pattern analysis",
        use_case="Height vs weight, advertising spend vs sales, or any two-variable relationship",
        complexity=Complexity.INTERMEDIATE,
        precondition=lambda p: p.numeric_count >= 2,
        bind_columns=lambda s: {
            "x_axis": s.numeric_columns[0],
            "y_axis": [s.numeric_columns[1]],
        },
    ),
    SuggestionRule(
        name="cumulative_timeline",
        chart_type=ChartType.AREA,
        title="Cumulative Timeline",
        description="Emphasize volume and cumulative values over time with filled areas",
        reasoning="Time series data with emphasis on cumulative values and volume",
        use_case="Revenue accumulation, user growth, inventory levels, or volume over time",
        complexity=Complexity.SIMPLE,
        precondition=lambda p: p.has_temporal and p.has_numeric,
        bind_columns=lambda s: {
            "x_axis": _first(s.date_columns),
            "y_axis": [s.numeric_columns[0]],
        },
    ),
    SuggestionRule(
        name="multi_metric",
        chart_type=ChartType.RADAR,
        title="Multi-Metric Comparison",
        description="Compare multiple metrics simultaneously with spider web visualization",
        reasoning="Multiple numeric dimensions perfect for comprehensive comparison",
        use_case="Performance evaluation, skill assessment, product comparison across features",
        complexity=Complexity.INTERMEDIATE,
        precondition=lambda p: p.numeric_count >= 3,
        bind_columns=lambda s: {
            "series": _first(s.string_columns),
            "y_axis": list(s.numeric_columns),
        },
    ),
    SuggestionRule(
        name="dense_pattern",
        chart_type=ChartType.HEATMAP,
        title="Pattern Heatmap",
        description="Reveal patterns in dense data using color intensity",
        reasoning="Dense data structure ideal for pattern recognition through color coding",
        use_case="Website activity, correlation matrices, time-based patterns, or density visualization",
        complexity=Complexity.ADVANCED,
        precondition=lambda p: p.numeric_count >= 2 and p.has_categorical,
        bind_columns=lambda s: {
            "x_axis": _first(s.string_columns),
            "y_axis": [s.numeric_columns[0]],
        },
    ),
]


class ChartRecommendationEngine:
    """
    Recommends chart types from a table's structure.

    Each rule in SUGGESTION_RULES yields one suggestion with its baseline
    confidence when its precondition holds. Baselines default to
    DEFAULT_RULE_CONFIDENCE and can be overridden per rule.
    """

    def __init__(
        self,
        rule_confidence: Optional[Dict[str, int]] = None,
        rules: Optional[List[SuggestionRule]] = None,
    ):
        """
        Initialize the chart recommendation engine.

        Args:
            rule_confidence: Optional mapping of rule name to baseline confidence
            rules: Optional rule set, defaults to SUGGESTION_RULES
        """
        self.rule_confidence = dict(DEFAULT_RULE_CONFIDENCE)
        if rule_confidence:
            self.rule_confidence.update(rule_confidence)
        self.rules = rules if rules is not None else SUGGESTION_RULES

    def generate_suggestions(self, table: Table) -> List[ChartSuggestion]:
        """
        Generate local chart suggestions for a table.

        Args:
            table: Parsed table

        Returns:
            Suggestions in rule order (unranked); empty when no rule applies
        """
        summary = table.summary
        patterns = analyze_patterns(summary)

        suggestions = []
        for rule in self.rules:
            if not rule.precondition(patterns):
                continue
            suggestions.append(
                ChartSuggestion(
                    type=rule.chart_type,
                    title=rule.title,
                    description=rule.description,
                    confidence=self.rule_confidence.get(rule.name, 50),
                    reasoning=rule.reasoning,
                    use_case=rule.use_case,
                    complexity=rule.complexity,
                    **rule.bind_columns(summary),
                )
            )

        logger.debug(
            f"Generated {len(suggestions)} local suggestions "
            f"({patterns.categorical_count} categorical, {patterns.numeric_count} numeric, "
            f"{patterns.temporal_count} temporal columns)"
        )
        return suggestions


def rank_suggestions(suggestions: Iterable[ChartSuggestion]) -> List[ChartSuggestion]:
    """
    Order suggestions by confidence, highest first.

    The sort is stable: suggestions with equal confidence keep their
    relative order. Nothing is dropped.
    """
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


def merge_suggestions(
    local: Iterable[ChartSuggestion],
    enhanced: Iterable[ChartSuggestion],
) -> List[ChartSuggestion]:
    """
    Merge local and enhanced suggestions, one entry per chart type.

    Enhanced entries win over local entries of the same type. Enhanced
    entries come first so that they also win confidence ties after ranking.

    Args:
        local: Suggestions from the local rule engine
        enhanced: Suggestions from the enhancement service

    Returns:
        Merged, unranked list
    """
    merged: List[ChartSuggestion] = []
    seen_types = set()

    for suggestion in list(enhanced) + list(local):
        if suggestion.type in seen_types:
            continue
        seen_types.add(suggestion.type)
        merged.append(suggestion)

    return merged


def generate_local_suggestions(
    table: Table,
    rule_confidence: Optional[Dict[str, int]] = None,
) -> List[ChartSuggestion]:
    """Generate and rank local suggestions for a table."""
    engine = ChartRecommendationEngine(rule_confidence=rule_confidence)
    return rank_suggestions(engine.generate_suggestions(table))

"""
Chart configuration synthesis.

Turns a selected suggestion and its table into a complete render
configuration. The synthesizer never raises for a chart the table cannot
support: it substitutes a compatible chart type or, as a last resort, a
placeholder chart, and records what happened in the configuration's
``meta`` block.
"""

from typing import Optional

from chart_advisor.config import Settings, get_settings
from chart_advisor.models.suggestion import ChartSuggestion, ChartType
from chart_advisor.models.tabular import Table
from chart_advisor.utils.logger import get_logger
from chart_advisor.visualization.chart_generators.base import (
    BuildContext,
    ColumnResolutionError,
    RenderConfig,
    placeholder_option,
)
from chart_advisor.visualization.chart_generators.registry import CHART_BUILDERS, resolve_builder
from chart_advisor.visualization.validator import validate_config

# Initialize logger
logger = get_logger(__name__)


class ChartConfigSynthesizer:
    """Builds render configurations from suggestions."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _context(self, suggestion: ChartSuggestion, table: Table, title: str) -> BuildContext:
        return BuildContext(
            suggestion=suggestion,
            table=table,
            title=title,
            radar_max_rows=self.settings.radar_max_rows,
            radar_max_metrics=self.settings.radar_max_metrics,
            parallel_max_rows=self.settings.parallel_max_rows,
            parallel_max_axes=self.settings.parallel_max_axes,
            sunburst_max_rows=self.settings.sunburst_max_rows,
        )

    def synthesize(
        self,
        suggestion: ChartSuggestion,
        table: Table,
        title: Optional[str] = None,
    ) -> RenderConfig:
        """
        Create a render configuration for a suggestion.

        Args:
            suggestion: Selected chart suggestion
            table: Table the suggestion refers to
            title: Optional title overriding the suggestion's title

        Returns:
            Validated configuration with a ``meta`` block describing the
            requested type, the rendered type and whether a substitute or
            placeholder was used
        """
        chart_title = title or suggestion.title
        ctx = self._context(suggestion, table, chart_title)
        requested = suggestion.type

        rendered, builder = resolve_builder(requested)
        substituted = rendered != requested
        placeholder = False

        if substituted:
            logger.warning(
                f"Chart type '{requested.value}' cannot be built from a flat table, "
                f"substituting '{rendered.value}'"
            )

        try:
            option = builder(ctx)
        except ColumnResolutionError as e:
            logger.info(f"Cannot resolve columns for {rendered.value} chart ({e}), using placeholder")
            option = placeholder_option(chart_title)
            placeholder = True
        except Exception as e:
            logger.error(f"Error creating {rendered.value} chart: {str(e)}, falling back to bar chart")
            option, placeholder = self._fallback_bar(ctx)
            rendered = ChartType.BAR
            substituted = requested != ChartType.BAR

        if placeholder:
            rendered = ChartType.BAR

        option["meta"] = {
            "requestedType": requested.value,
            "renderedType": rendered.value,
            "substituted": substituted,
            "placeholder": placeholder,
            "source": "local",
        }
        return validate_config(option)

    def _fallback_bar(self, ctx: BuildContext):
        try:
            return CHART_BUILDERS[ChartType.BAR](ctx), False
        except Exception as e:
            logger.warning(f"Bar chart fallback failed ({str(e)}), using placeholder")
            return placeholder_option(ctx.title), True

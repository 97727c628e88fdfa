"""
Chart suggestion model.

A suggestion names a chart type, explains why it fits the data, and binds
columns of the table to the chart's axes by name.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChartType(str, Enum):
    """Chart kinds the synthesizer knows how to configure."""

    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    SCATTER = "scatter"
    AREA = "area"
    RADAR = "radar"
    HEATMAP = "heatmap"
    FUNNEL = "funnel"
    GAUGE = "gauge"
    TREE = "tree"
    TREEMAP = "treemap"
    SUNBURST = "sunburst"
    PARALLEL = "parallel"
    SANKEY = "sankey"
    GRAPH = "graph"
    BOXPLOT = "boxplot"
    CANDLESTICK = "candlestick"
    THEME_RIVER = "themeRiver"


class Complexity(str, Enum):
    SIMPLE = "simple"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ChartSuggestion(BaseModel):
    """
    A recommended chart.

    Column references (``x_axis``, ``y_axis``, ``series``) are plain names
    looked up in the table at synthesis time. Serialized with camelCase
    aliases (``xAxis``, ``yAxis``, ``aiEnhanced``, ``useCase``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: ChartType
    title: str
    description: str = ""
    confidence: int = Field(ge=0, le=100)
    x_axis: Optional[str] = Field(None, alias="xAxis")
    y_axis: Optional[List[str]] = Field(None, alias="yAxis")
    series: Optional[str] = None
    reasoning: str = ""
    use_case: Optional[str] = Field(None, alias="useCase")
    complexity: Optional[Complexity] = None
    ai_enhanced: Optional[bool] = Field(None, alias="aiEnhanced")
    preview: Optional[str] = None

    @property
    def primary_y_axis(self) -> Optional[str]:
        """First y-axis column, if any."""
        return self.y_axis[0] if self.y_axis else None

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary for serialization."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

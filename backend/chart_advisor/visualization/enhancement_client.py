"""
Client for the optional chart enhancement service.

The enhancement service can return higher-quality suggestions, complete
chart configurations and insight text. It is strictly optional: every
public method of EnhancementClient falls back to the local implementation
when the service is disabled, unreachable, slow, or answers with something
that does not match the expected shape.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chart_advisor.config import Settings, get_settings
from chart_advisor.models.suggestion import ChartSuggestion, ChartType, Complexity
from chart_advisor.models.tabular import Table
from chart_advisor.utils.logger import get_logger, log_with_context
from chart_advisor.visualization.chart_generators.base import (
    COLOR_PALETTE,
    RenderConfig,
    clean_value,
)
from chart_advisor.visualization.config_synthesizer import ChartConfigSynthesizer
from chart_advisor.visualization.insights import generate_data_insights
from chart_advisor.visualization.recommendation_engine import (
    ChartRecommendationEngine,
    rank_suggestions,
)
from chart_advisor.visualization.validator import is_valid_render_config, validate_config

# Initialize logger
logger = get_logger(__name__)

DEFAULT_ENHANCED_CONFIDENCE = 85
FONT_FAMILY = '-apple-system, BlinkMacSystemFont, "SF Pro Display", sans-serif'


class EnhancementError(Exception):
    """Base class for enhancement failures; always recovered by the client."""


class EnhancementUnavailableError(EnhancementError):
    """The service is disabled, unreachable or answered with an error status."""


class EnhancementTimeoutError(EnhancementError):
    """The service did not answer within the configured timeout."""


class EnhancementResponseError(EnhancementError):
    """The service answered with a body that does not have the expected shape."""


@dataclass(frozen=True)
class EnhancementPreferences:
    color_scheme: str = "indigo-purple"
    style: str = "modern"
    accessibility: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "colorScheme": self.color_scheme,
            "style": self.style,
            "accessibility": self.accessibility,
        }


@dataclass(frozen=True)
class EnhancementConfig:
    """Connection and behaviour settings for one EnhancementClient."""

    enabled: bool = False
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 5.0
    max_retries: int = 0
    sample_size: int = 5
    confidence_bonus: int = 15
    preferences: EnhancementPreferences = field(default_factory=EnhancementPreferences)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnhancementConfig":
        return cls(
            enabled=settings.enhancement_enabled,
            endpoint=settings.enhancement_url,
            api_key=settings.enhancement_api_key,
            timeout=settings.enhancement_timeout,
            max_retries=settings.enhancement_max_retries,
            sample_size=settings.enhancement_sample_size,
            confidence_bonus=settings.enhancement_confidence_bonus,
            preferences=EnhancementPreferences(
                color_scheme=settings.enhancement_color_scheme,
                style=settings.enhancement_style,
                accessibility=settings.enhancement_accessibility,
            ),
        )


# Wire models for service responses

class ExternalSuggestion(BaseModel):
    """One suggestion as returned by the service; only ``type`` is required."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    title: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[float] = Field(None, allow_inf_nan=False)
    x_axis: Optional[str] = Field(None, alias="xAxis")
    y_axis: Optional[Union[str, List[str]]] = Field(None, alias="yAxis")
    series: Optional[str] = None
    reasoning: Optional[str] = None
    preview: Optional[str] = None
    use_case: Optional[str] = Field(None, alias="useCase")
    complexity: Optional[str] = None


class EnhancementData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    suggestions: Optional[List[Any]] = None
    chart_config: Optional[Dict[str, Any]] = Field(None, alias="chartConfig")
    insights: Optional[List[str]] = None


class EnhancementResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    data: Optional[EnhancementData] = None
    error: Optional[str] = None


def _parse_envelope(body: Any) -> EnhancementData:
    try:
        response = EnhancementResponse.model_validate(body)
    except ValidationError as e:
        raise EnhancementResponseError(f"Malformed response envelope: {e.error_count()} errors") from e

    if not response.success:
        raise EnhancementResponseError(response.error or "Service reported failure")
    if response.data is None:
        raise EnhancementResponseError("Response has no data")
    return response.data


def to_chart_suggestion(item: ExternalSuggestion, index: int, confidence_bonus: int = 0) -> ChartSuggestion:
    """
    Map an external suggestion onto a ChartSuggestion tagged as enhanced.

    Raises:
        ValueError: if the chart type is not supported
    """
    chart_type = ChartType(item.type)

    confidence = item.confidence if item.confidence is not None else DEFAULT_ENHANCED_CONFIDENCE
    confidence = max(0, min(100, int(round(confidence)) + confidence_bonus))

    if isinstance(item.y_axis, str):
        y_axis = [item.y_axis]
    else:
        y_axis = item.y_axis or None

    try:
        complexity = Complexity(item.complexity) if item.complexity else Complexity.SIMPLE
    except ValueError:
        complexity = Complexity.SIMPLE

    return ChartSuggestion(
        type=chart_type,
        title=item.title or f"AI Suggested Chart {index + 1}",
        description=item.description or "AI-generated chart suggestion",
        confidence=confidence,
        x_axis=item.x_axis,
        y_axis=y_axis,
        series=item.series,
        reasoning=item.reasoning or "Generated by AI enhancement analysis",
        preview=item.preview,
        use_case=item.use_case,
        complexity=complexity,
        ai_enhanced=True,
    )


def parse_suggestions(body: Any, confidence_bonus: int = 0) -> List[ChartSuggestion]:
    """
    Parse a suggestions response.

    Individual entries that fail validation are dropped with a warning.

    Raises:
        EnhancementResponseError: if the envelope is malformed or no entry survives
    """
    data = _parse_envelope(body)
    if not data.suggestions:
        raise EnhancementResponseError("Response contains no suggestions")

    suggestions = []
    for index, raw in enumerate(data.suggestions):
        try:
            item = ExternalSuggestion.model_validate(raw)
            suggestions.append(to_chart_suggestion(item, index, confidence_bonus))
        except (ValidationError, ValueError, OverflowError) as e:
            logger.warning(f"Discarding malformed enhanced suggestion at index {index}: {e}")

    if not suggestions:
        raise EnhancementResponseError("No usable suggestions in response")
    return suggestions


def parse_chart_config(body: Any) -> RenderConfig:
    """
    Parse a chart configuration response.

    Raises:
        EnhancementResponseError: if the configuration lacks a title, a tooltip
            or a non-empty series list
    """
    data = _parse_envelope(body)
    if not is_valid_render_config(data.chart_config):
        raise EnhancementResponseError("Chart configuration failed the shape check")
    return dict(data.chart_config)


def parse_insights(body: Any) -> List[str]:
    data = _parse_envelope(body)
    if not data.insights:
        raise EnhancementResponseError("Response contains no insights")
    return list(data.insights)


def _jsonable(value: Any) -> Any:
    value = clean_value(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def prepare_table_projection(table: Table, sample_size: int = 5) -> Dict[str, Any]:
    """
    Reduce a table to what the service needs: column names, types, a few
    sample values per column, the summary and the row count.
    """
    return {
        "columns": [
            {
                "name": column.name,
                "type": column.type,
                "sampleValues": [_jsonable(v) for v in table.column_values(column.name)[:sample_size]],
            }
            for column in table.columns
        ],
        "summary": table.summary.model_dump(by_alias=True),
        "rowCount": len(table.rows),
    }


class EnhancementClient:
    """
    Adapter to the enhancement service.

    Call ``initialize()`` before use; until it succeeds the client is
    unavailable and every method returns the local result.
    """

    def __init__(
        self,
        config: EnhancementConfig,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the enhancement client.

        Args:
            config: Service connection settings
            settings: Application settings for the local fallbacks
            session: Optional aiohttp session; the client closes only
                sessions it created itself
        """
        self.config = config
        self.settings = settings or get_settings()
        self.engine = ChartRecommendationEngine(rule_confidence=self.settings.rule_confidence)
        self.synthesizer = ChartConfigSynthesizer(self.settings)

        self._session = session
        self._owns_session = session is None
        self._available = False

    @property
    def available(self) -> bool:
        return self._available

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self._session is None or self._session.closed:
            headers = {"Content-Type": "application/json"}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._session = aiohttp.ClientSession(
                headers=headers,
                json_serialize=lambda obj: json.dumps(obj, default=str),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "EnhancementClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def initialize(self) -> bool:
        """
        Check whether the enhancement service can be used.

        Returns:
            True if the service answered its health check; never raises
        """
        if not self.config.enabled or not self.config.endpoint:
            logger.info("Enhancement service is disabled, using local suggestions")
            self._available = False
            return False

        try:
            self._available = await self._check_availability()
        except EnhancementError as e:
            logger.warning(f"Enhancement service not available, using fallback: {e}")
            self._available = False

        if self._available:
            logger.info(f"Enhancement service connected at {self.config.endpoint}")
        return self._available

    async def _check_availability(self) -> bool:
        session = await self._get_session()
        url = f"{self.config.endpoint.rstrip('/')}/health"
        try:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.config.timeout)) as response:
                if response.status != 200:
                    raise EnhancementUnavailableError(f"Health check returned HTTP {response.status}")
                return True
        except asyncio.TimeoutError as e:
            raise EnhancementTimeoutError("Health check timed out") from e
        except aiohttp.ClientError as e:
            raise EnhancementUnavailableError(str(e)) from e

    async def _call_service(self, tool: str, params: Dict[str, Any]) -> Any:
        """
        Call one service tool, retrying on failure.

        Args:
            tool: Tool name (generate_suggestions, generate_chart, analyze_chart)
            params: JSON request body

        Returns:
            Decoded JSON response body

        Raises:
            EnhancementError: when every attempt failed
        """
        session = await self._get_session()
        url = f"{self.config.endpoint.rstrip('/')}/tools/{tool}"
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        attempts = self.config.max_retries + 1
        last_error: EnhancementError = EnhancementUnavailableError("No attempt made")

        for attempt in range(attempts):
            try:
                async with session.post(url, json=params, timeout=timeout) as response:
                    if response.status == 200:
                        try:
                            return await response.json(content_type=None)
                        except ValueError as e:
                            raise EnhancementResponseError(f"Response is not JSON: {e}") from e

                    error_text = await response.text(errors="replace")
                    last_error = EnhancementUnavailableError(f"HTTP {response.status}: {error_text[:200]}")
                    logger.warning(f"Enhancement API error (attempt {attempt + 1}/{attempts}): {last_error}")

                    # Check for rate limiting
                    if response.status == 429 and attempt + 1 < attempts:
                        await asyncio.sleep(0.5 * 2 ** attempt)

            except asyncio.TimeoutError:
                last_error = EnhancementTimeoutError(f"{tool} timed out after {self.config.timeout}s")
                logger.warning(f"Enhancement API timeout (attempt {attempt + 1}/{attempts})")

            except aiohttp.ClientError as e:
                last_error = EnhancementUnavailableError(str(e))
                logger.warning(f"Enhancement API error (attempt {attempt + 1}/{attempts}): {last_error}")

            except UnicodeDecodeError as e:
                last_error = EnhancementResponseError(f"Undecodable response body: {e}")
                logger.warning(f"Enhancement API error (attempt {attempt + 1}/{attempts}): {last_error}")

        raise last_error

    def _local_suggestions(self, table: Table) -> List[ChartSuggestion]:
        return rank_suggestions(self.engine.generate_suggestions(table))

    async def generate_enhanced_suggestions(self, table: Table) -> List[ChartSuggestion]:
        """
        Get enhanced chart suggestions for a table.

        Args:
            table: Parsed table

        Returns:
            Enhanced suggestions tagged ``aiEnhanced``, or the local
            suggestions when the service cannot provide any
        """
        if not self._available:
            logger.info("Enhancement service not connected, falling back to local suggestions")
            return self._local_suggestions(table)

        try:
            body = await self._call_service(
                "generate_suggestions",
                {
                    "data": prepare_table_projection(table, self.config.sample_size),
                    "preferences": self.config.preferences.to_dict(),
                },
            )
            suggestions = parse_suggestions(body, self.config.confidence_bonus)
        except EnhancementError as e:
            log_with_context(
                logger,
                "warning",
                f"Enhanced suggestions unavailable, using local suggestions: {e}",
                {"error_type": e.__class__.__name__, "row_count": len(table.rows)},
            )
            return self._local_suggestions(table)

        logger.info(f"Received {len(suggestions)} enhanced suggestions")
        return suggestions

    async def generate_enhanced_config(
        self,
        suggestion: ChartSuggestion,
        table: Table,
        title: Optional[str] = None,
    ) -> RenderConfig:
        """
        Get a render configuration for a suggestion from the service.

        Args:
            suggestion: Selected suggestion
            table: Table the suggestion refers to
            title: Optional title override

        Returns:
            Validated configuration; locally synthesized when the service
            fails or returns a configuration that fails the shape check
        """
        if not self._available:
            return self.synthesizer.synthesize(suggestion, table, title)

        try:
            body = await self._call_service(
                "generate_chart",
                {
                    "type": suggestion.type.value,
                    "data": prepare_table_projection(table, self.config.sample_size),
                    "config": {
                        "title": title or suggestion.title,
                        "xAxis": suggestion.x_axis,
                        "yAxis": suggestion.y_axis,
                        "theme": self.config.preferences.color_scheme,
                        "responsive": True,
                        "animation": True,
                    },
                },
            )
            config = parse_chart_config(body)
        except EnhancementError as e:
            logger.warning(f"Enhanced configuration unavailable, using local synthesis: {e}")
            return self.synthesizer.synthesize(suggestion, table, title)

        return validate_config(self._apply_theme(config, suggestion))

    def _apply_theme(self, config: RenderConfig, suggestion: ChartSuggestion) -> RenderConfig:
        themed = dict(config)
        themed.update(
            {
                "backgroundColor": "transparent",
                "textStyle": {"fontFamily": FONT_FAMILY},
                "color": list(COLOR_PALETTE),
            }
        )
        first_series = config["series"][0]
        rendered = first_series.get("type") if isinstance(first_series, dict) else None
        themed["meta"] = {
            "requestedType": suggestion.type.value,
            "renderedType": rendered or suggestion.type.value,
            "substituted": bool(rendered) and rendered != suggestion.type.value,
            "placeholder": False,
            "source": "enhanced",
        }
        return themed

    async def get_chart_insights(self, config: RenderConfig, table: Table) -> List[str]:
        """
        Get insight text about a chart.

        Returns:
            Service insights, or descriptive local insights on any failure
        """
        if not self._available:
            return generate_data_insights(table)

        try:
            body = await self._call_service(
                "analyze_chart",
                {
                    "chartConfig": config,
                    "data": prepare_table_projection(table, self.config.sample_size),
                },
            )
            return parse_insights(body)
        except EnhancementError as e:
            logger.warning(f"Enhanced insights unavailable, using local insights: {e}")
            return generate_data_insights(table)

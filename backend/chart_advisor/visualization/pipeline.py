"""
Suggestion pipeline.

Joins the local rule engine and the optional enhancement service into one
analysis request:

- local suggestions are computed first and are always available;
- the enhancement call runs concurrently, bounded by a deadline, and
  upgrades the list when it succeeds in time;
- a newer request cancels the enhancement of an older one, whose result is
  then local-only and flagged as superseded.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from chart_advisor.cache.suggestion_cache import SuggestionCache
from chart_advisor.config import Settings, get_settings
from chart_advisor.models.suggestion import ChartSuggestion
from chart_advisor.models.tabular import Table
from chart_advisor.utils.logger import get_logger
from chart_advisor.visualization.chart_generators.base import RenderConfig
from chart_advisor.visualization.config_synthesizer import ChartConfigSynthesizer
from chart_advisor.visualization.enhancement_client import EnhancementClient, EnhancementConfig
from chart_advisor.visualization.insights import generate_data_insights
from chart_advisor.visualization.recommendation_engine import (
    ChartRecommendationEngine,
    merge_suggestions,
    rank_suggestions,
)

# Initialize logger
logger = get_logger(__name__)


@dataclass
class SuggestionResult:
    """Outcome of one analysis request."""

    request_id: int
    suggestions: List[ChartSuggestion]
    enhanced: bool = False
    superseded: bool = False
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "enhanced": self.enhanced,
            "superseded": self.superseded,
            "insights": self.insights,
        }


class SuggestionPipeline:
    """
    Orchestrates suggestion generation and configuration synthesis.

    One pipeline serves one user session; requests made through it follow
    last-request-wins.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[EnhancementClient] = None,
        cache: Optional[SuggestionCache] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Application settings (defaults to get_settings())
            client: Enhancement client; one is built from settings if omitted
            cache: Suggestion cache; one is built from settings if omitted
                and caching is enabled
        """
        self.settings = settings or get_settings()
        self.engine = ChartRecommendationEngine(rule_confidence=self.settings.rule_confidence)
        self.synthesizer = ChartConfigSynthesizer(self.settings)
        self.client = client or EnhancementClient(
            EnhancementConfig.from_settings(self.settings), settings=self.settings
        )

        if cache is None and self.settings.suggestion_cache_enabled:
            cache = SuggestionCache(
                max_cache_size=self.settings.suggestion_cache_size,
                ttl_seconds=self.settings.suggestion_cache_ttl,
            )
        self.cache = cache

        self._request_counter = 0
        self._inflight: Optional[asyncio.Task] = None

    async def initialize(self) -> bool:
        return await self.client.initialize()

    async def close(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        await self.client.close()

    async def __aenter__(self) -> "SuggestionPipeline":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def local_suggestions(self, table: Table) -> List[ChartSuggestion]:
        """
        Ranked local suggestions for a table.

        Args:
            table: Parsed table

        Returns:
            Suggestions ordered by confidence
        """
        fingerprint = table.fingerprint() if self.cache is not None else None
        if fingerprint is not None:
            cached = self.cache.get(fingerprint)
            if cached is not None:
                return cached

        suggestions = rank_suggestions(self.engine.generate_suggestions(table))

        if fingerprint is not None:
            self.cache.set(fingerprint, suggestions)
        return suggestions

    async def suggest(
        self,
        table: Table,
        deadline: Optional[float] = None,
        on_local: Optional[Callable[[SuggestionResult], None]] = None,
    ) -> SuggestionResult:
        """
        Analyze a table and produce ranked suggestions.

        Args:
            table: Parsed table
            deadline: Seconds to wait for the enhancement upgrade
                (defaults to the configured enhancement deadline)
            on_local: Optional callback receiving the local result before
                the enhancement call is awaited

        Returns:
            SuggestionResult; ``enhanced`` tells whether the upgrade was applied
        """
        self._request_counter += 1
        request_id = self._request_counter

        if self._inflight is not None and not self._inflight.done():
            logger.info(f"Request {request_id} supersedes an in-flight enhancement call")
            self._inflight.cancel()

        local = self.local_suggestions(table)
        result = SuggestionResult(
            request_id=request_id,
            suggestions=local,
            insights=generate_data_insights(table),
        )

        if on_local is not None:
            on_local(result)

        if not self.client.available:
            return result

        task = asyncio.create_task(self.client.generate_enhanced_suggestions(table))
        self._inflight = task
        timeout = deadline if deadline is not None else self.settings.effective_enhancement_deadline

        try:
            enhanced = await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Enhancement missed the {timeout}s deadline, keeping local suggestions")
            return result
        except asyncio.CancelledError:
            if request_id != self._request_counter:
                logger.info(f"Discarding enhancement for superseded request {request_id}")
                result.superseded = True
                return result
            raise
        except Exception as e:
            logger.error(f"Enhancement failed unexpectedly, keeping local suggestions: {str(e)}")
            return result
        finally:
            if self._inflight is task:
                self._inflight = None

        if request_id != self._request_counter:
            logger.info(f"Discarding enhancement for superseded request {request_id}")
            result.superseded = True
            return result

        upgrades = [s for s in enhanced if s.ai_enhanced]
        if not upgrades:
            return result

        result.suggestions = rank_suggestions(merge_suggestions(local, upgrades))
        result.enhanced = True
        return result

    async def build_config(
        self,
        suggestion: ChartSuggestion,
        table: Table,
        title: Optional[str] = None,
    ) -> RenderConfig:
        """
        Build the render configuration for a selected suggestion.

        Enhanced suggestions are configured by the enhancement service when
        it is available; everything else is synthesized locally.
        """
        if suggestion.ai_enhanced and self.client.available:
            return await self.client.generate_enhanced_config(suggestion, table, title)
        return self.synthesizer.synthesize(suggestion, table, title)

    async def insights(self, config: RenderConfig, table: Table) -> List[str]:
        return await self.client.get_chart_insights(config, table)

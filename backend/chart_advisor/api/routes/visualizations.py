from functools import lru_cache
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from chart_advisor.cache.suggestion_cache import SuggestionCache
from chart_advisor.config import Settings, get_settings
from chart_advisor.models.suggestion import ChartSuggestion
from chart_advisor.models.tabular import Table
from chart_advisor.utils.logger import get_logger
from chart_advisor.visualization.insights import generate_data_insights
from chart_advisor.visualization.pipeline import SuggestionPipeline

# Initialize logger
logger = get_logger(__name__)

# Router
router = APIRouter(
    prefix="/visualizations",
    tags=["visualizations"],
    responses={422: {"description": "Invalid request data"}}
)


# Models
class SuggestionsRequest(BaseModel):
    """Table to analyze"""
    table: Table


class SuggestionsResponse(BaseModel):
    """Ranked suggestions for a table"""
    request_id: int
    suggestions: List[Dict[str, Any]]
    enhanced: bool
    superseded: bool
    insights: List[str]


class ConfigRequest(BaseModel):
    """Selected suggestion and the table it refers to"""
    suggestion: ChartSuggestion
    table: Table
    title: Optional[str] = None


class InsightsRequest(BaseModel):
    """Table, and optionally the chart configuration it is shown with"""
    model_config = ConfigDict(populate_by_name=True)

    table: Table
    chart_config: Optional[Dict[str, Any]] = Field(None, alias="chartConfig")


class InsightsResponse(BaseModel):
    insights: List[str]


# Dependencies
def get_app_settings() -> Settings:
    return get_settings()


@lru_cache()
def _shared_cache(max_cache_size: int, ttl_seconds: int) -> SuggestionCache:
    return SuggestionCache(max_cache_size=max_cache_size, ttl_seconds=ttl_seconds)


def get_suggestion_cache(settings: Settings = Depends(get_app_settings)) -> Optional[SuggestionCache]:
    """Process-wide suggestion cache, or None when caching is disabled"""
    if not settings.suggestion_cache_enabled:
        return None
    return _shared_cache(settings.suggestion_cache_size, settings.suggestion_cache_ttl)


async def get_pipeline(
    settings: Settings = Depends(get_app_settings),
    cache: Optional[SuggestionCache] = Depends(get_suggestion_cache),
) -> AsyncIterator[SuggestionPipeline]:
    """Build a pipeline for one request and close it afterwards"""
    pipeline = SuggestionPipeline(settings, cache=cache)
    await pipeline.initialize()
    try:
        yield pipeline
    finally:
        await pipeline.close()


# Routes
@router.post("/suggestions", response_model=SuggestionsResponse)
async def suggest_charts(
    request: SuggestionsRequest,
    pipeline: SuggestionPipeline = Depends(get_pipeline),
):
    """Suggest chart types for a table, ranked by confidence"""
    result = await pipeline.suggest(request.table)
    logger.info(
        f"Generated {len(result.suggestions)} suggestions for "
        f"{request.table.summary.total_rows} rows (enhanced={result.enhanced})"
    )
    return result.to_dict()


@router.post("/config", response_model=Dict[str, Any])
async def build_chart_config(
    request: ConfigRequest,
    pipeline: SuggestionPipeline = Depends(get_pipeline),
):
    """Build the render configuration for a selected suggestion"""
    config = await pipeline.build_config(request.suggestion, request.table, request.title)
    meta = config.get("meta", {})
    logger.info(
        f"Built {meta.get('renderedType')} config for requested "
        f"{meta.get('requestedType')} chart (source={meta.get('source')})"
    )
    return config


@router.post("/insights", response_model=InsightsResponse)
async def chart_insights(
    request: InsightsRequest,
    pipeline: SuggestionPipeline = Depends(get_pipeline),
):
    """Describe a table, or a chart built from it"""
    if request.chart_config is None:
        return {"insights": generate_data_insights(request.table)}
    return {"insights": await pipeline.insights(request.chart_config, request.table)}

import asyncio
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from chart_advisor.models.suggestion import ChartType
from chart_advisor.visualization.enhancement_client import (
    EnhancementClient,
    EnhancementConfig,
    EnhancementResponseError,
    parse_chart_config,
    parse_suggestions,
    prepare_table_projection,
)
from chart_advisor.visualization.insights import generate_data_insights
from chart_advisor.visualization.recommendation_engine import generate_local_suggestions

VALID_CONFIG = {
    "title": {"text": "Enhanced"},
    "tooltip": {"trigger": "axis"},
    "xAxis": {"type": "category", "data": ["A", "B"]},
    "yAxis": {"type": "value"},
    "series": [{"type": "bar", "data": [10, 20]}],
}


def json_handler(body, status=200, delay=0.0, calls=None):
    async def handler(request):
        if calls is not None:
            calls.append(
                {"body": await request.json(), "authorization": request.headers.get("Authorization")}
            )
        if delay:
            await asyncio.sleep(delay)
        return web.json_response(body, status=status)

    return handler


@asynccontextmanager
async def fake_service(**tools):
    """Run a local enhancement service answering the given tool handlers."""

    async def health(request):
        return web.json_response({"status": "ok"})

    app = web.Application()
    app.router.add_get("/health", health)
    for tool, handler in tools.items():
        app.router.add_post(f"/tools/{tool}", handler)

    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/"))
    finally:
        await server.close()


@asynccontextmanager
async def connected_client(endpoint, settings, **overrides):
    options = {"enabled": True, "endpoint": endpoint, "timeout": 2.0}
    options.update(overrides)
    client = EnhancementClient(EnhancementConfig(**options), settings=settings)
    try:
        assert await client.initialize()
        yield client
    finally:
        await client.close()


def _types(suggestions):
    return {s.type for s in suggestions}


def _as_dicts(suggestions):
    return {s.type: s.to_dict() for s in suggestions}


@pytest.mark.asyncio
async def test_disabled_client_returns_local_suggestions(sales_table, local_settings):
    client = EnhancementClient(EnhancementConfig(enabled=False), settings=local_settings)

    assert await client.initialize() is False
    suggestions = await client.generate_enhanced_suggestions(sales_table)

    local = generate_local_suggestions(sales_table)
    assert _as_dicts(suggestions) == _as_dicts(local)
    assert not any(s.ai_enhanced for s in suggestions)
    await client.close()


@pytest.mark.asyncio
async def test_unreachable_service_is_unavailable(sales_table, local_settings):
    config = EnhancementConfig(enabled=True, endpoint="http://127.0.0.1:1", timeout=1.0)
    async with EnhancementClient(config, settings=local_settings) as client:
        assert await client.initialize() is False
        assert client.available is False
        suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}


@pytest.mark.asyncio
async def test_enhanced_suggestions_are_tagged_and_boosted(sales_table, local_settings):
    calls = []
    body = {
        "success": True,
        "data": {
            "suggestions": [
                {"type": "funnel", "confidence": 70, "xAxis": "Product", "yAxis": "Sales"},
                {"type": "treemap", "title": "Share"},
                {"type": "hologram"},
                "junk",
            ]
        },
    }

    async with fake_service(generate_suggestions=json_handler(body, calls=calls)) as endpoint:
        async with connected_client(endpoint, local_settings, api_key="secret") as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert [s.type for s in suggestions] == [ChartType.FUNNEL, ChartType.TREEMAP]
    assert all(s.ai_enhanced for s in suggestions)
    funnel, treemap = suggestions
    assert funnel.confidence == 85
    assert funnel.y_axis == ["Sales"]
    assert treemap.confidence == 100
    assert treemap.title == "Share"

    request = calls[0]
    assert request["authorization"] == "Bearer secret"
    assert request["body"]["preferences"] == {
        "colorScheme": "indigo-purple",
        "style": "modern",
        "accessibility": True,
    }
    columns = request["body"]["data"]["columns"]
    assert columns[0] == {"name": "Product", "type": "string", "sampleValues": ["A", "B"]}
    assert request["body"]["data"]["rowCount"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, status",
    [
        ({"success": True, "data": {"suggestions": []}}, 200),
        ({"success": False, "error": "model offline"}, 200),
        ({"unexpected": "shape"}, 200),
        ({"success": True, "data": {"suggestions": [{"type": "hologram"}]}}, 200),
        ({"error": "internal"}, 500),
    ],
)
async def test_bad_responses_fall_back_to_local(sales_table, local_settings, body, status):
    async with fake_service(generate_suggestions=json_handler(body, status=status)) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}
    assert not any(s.ai_enhanced for s in suggestions)


@pytest.mark.asyncio
async def test_non_json_response_falls_back_to_local(sales_table, local_settings):
    async def handler(request):
        return web.Response(text="<html>gateway</html>", content_type="text/html")

    async with fake_service(generate_suggestions=handler) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}


@pytest.mark.asyncio
async def test_slow_service_times_out(sales_table, local_settings):
    body = {"success": True, "data": {"suggestions": [{"type": "funnel"}]}}

    async with fake_service(generate_suggestions=json_handler(body, delay=0.5)) as endpoint:
        async with connected_client(endpoint, local_settings, timeout=0.1) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}


@pytest.mark.asyncio
async def test_failed_attempt_is_retried(sales_table, local_settings):
    attempts = []

    async def flaky(request):
        attempts.append(request.path)
        if len(attempts) == 1:
            return web.json_response({"error": "busy"}, status=503)
        return web.json_response({"success": True, "data": {"suggestions": [{"type": "gauge"}]}})

    async with fake_service(generate_suggestions=flaky) as endpoint:
        async with connected_client(endpoint, local_settings, max_retries=1) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert len(attempts) == 2
    assert [s.type for s in suggestions] == [ChartType.GAUGE]


@pytest.mark.asyncio
async def test_enhanced_config_is_themed(sales_table, local_settings):
    suggestion = generate_local_suggestions(sales_table)[0]
    body = {"success": True, "data": {"chartConfig": VALID_CONFIG}}

    async with fake_service(generate_chart=json_handler(body)) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            config = await client.generate_enhanced_config(suggestion, sales_table)

    assert config["title"] == {"text": "Enhanced"}
    assert config["backgroundColor"] == "transparent"
    assert config["meta"]["source"] == "enhanced"
    assert config["meta"]["renderedType"] == "bar"
    assert config["meta"]["substituted"] is False


@pytest.mark.asyncio
async def test_config_failing_shape_check_is_synthesized_locally(sales_table, local_settings):
    suggestion = generate_local_suggestions(sales_table)[0]
    broken = {key: value for key, value in VALID_CONFIG.items() if key != "tooltip"}
    body = {"success": True, "data": {"chartConfig": broken}}

    async with fake_service(generate_chart=json_handler(body)) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            config = await client.generate_enhanced_config(suggestion, sales_table, title="Local")

    assert config["meta"]["source"] == "local"
    assert config["title"]["text"] == "Local"
    assert config["series"][0]["data"] == [10, 20]


@pytest.mark.asyncio
async def test_insights(sales_table, local_settings):
    body = {"success": True, "data": {"insights": ["B sells twice as much as A"]}}

    async with fake_service(analyze_chart=json_handler(body)) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            insights = await client.get_chart_insights(VALID_CONFIG, sales_table)

    assert insights == ["B sells twice as much as A"]


@pytest.mark.asyncio
async def test_insights_fall_back_to_data_description(sales_table, local_settings):
    async with fake_service(analyze_chart=json_handler({"error": "down"}, status=502)) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            insights = await client.get_chart_insights(VALID_CONFIG, sales_table)

    assert insights == generate_data_insights(sales_table)
    assert insights[0] == "Dataset contains 2 records across 2 variables"


def test_parse_suggestions_rejects_failed_envelope():
    with pytest.raises(EnhancementResponseError):
        parse_suggestions({"success": False, "error": "nope"})
    with pytest.raises(EnhancementResponseError):
        parse_suggestions({"success": True})
    with pytest.raises(EnhancementResponseError):
        parse_suggestions([1, 2, 3])


def test_parse_suggestions_clamps_confidence():
    body = {"success": True, "data": {"suggestions": [{"type": "bar", "confidence": 95}]}}
    assert parse_suggestions(body, confidence_bonus=15)[0].confidence == 100


def test_parse_chart_config_requires_series():
    with pytest.raises(EnhancementResponseError):
        parse_chart_config({"success": True, "data": {"chartConfig": {"title": {}, "tooltip": {}, "series": []}}})


def test_projection_samples_values(metrics_table):
    projection = prepare_table_projection(metrics_table, sample_size=3)

    assert projection["rowCount"] == 7
    assert projection["summary"]["numericColumns"] == ["Speed", "Quality", "Cost"]
    assert projection["columns"][1]["sampleValues"] == [7, 8, 5]


@pytest.mark.asyncio
async def test_infinite_confidence_falls_back_to_local(sales_table, local_settings):
    raw = '{"success": true, "data": {"suggestions": [{"type": "bar", "confidence": Infinity}]}}'

    async def handler(request):
        return web.Response(text=raw, content_type="application/json")

    async with fake_service(generate_suggestions=handler) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}
    assert not any(s.ai_enhanced for s in suggestions)


@pytest.mark.parametrize("confidence", [float("inf"), float("-inf"), float("nan"), 1e400])
def test_non_finite_confidence_entries_are_dropped(confidence):
    body = {
        "success": True,
        "data": {"suggestions": [{"type": "bar", "confidence": confidence}, {"type": "pie", "confidence": 60}]},
    }

    suggestions = parse_suggestions(body, confidence_bonus=15)

    assert [s.type for s in suggestions] == [ChartType.PIE]
    assert suggestions[0].confidence == 75


@pytest.mark.asyncio
async def test_undecodable_error_body_falls_back_to_local(sales_table, local_settings):
    async def handler(request):
        return web.Response(body=b"\xff\xfe\xfa oops", status=500, content_type="text/plain", charset="utf-8")

    async with fake_service(generate_suggestions=handler, analyze_chart=handler) as endpoint:
        async with connected_client(endpoint, local_settings) as client:
            suggestions = await client.generate_enhanced_suggestions(sales_table)
            insights = await client.get_chart_insights(VALID_CONFIG, sales_table)

    assert _types(suggestions) == {ChartType.BAR, ChartType.PIE}
    assert insights == generate_data_insights(sales_table)

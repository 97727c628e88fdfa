"""
Render configuration validation.

The downstream renderer treats a configuration without series as fatal,
so every configuration leaving the pipeline goes through validate_config.
"""

from typing import Any, Dict, List

from chart_advisor.utils.logger import get_logger
from chart_advisor.visualization.chart_generators.base import RenderConfig, placeholder_series

# Initialize logger
logger = get_logger(__name__)


def sanitize_series(series: Any) -> List[Dict[str, Any]]:
    """
    Drop malformed series entries.

    An entry is kept when it is a dict with a non-empty string ``type``.
    Kept entries get an empty ``data`` list if their payload is missing.

    Args:
        series: The configuration's series value (any shape)

    Returns:
        List of well-formed series, possibly empty
    """
    if not isinstance(series, list):
        logger.warning(f"Series is not a list ({type(series).__name__}), discarding it")
        return []

    sanitized = []
    for index, entry in enumerate(series):
        if not isinstance(entry, dict):
            logger.warning(f"Invalid series object at index {index}: {entry!r}")
            continue

        series_type = entry.get("type")
        if not isinstance(series_type, str) or not series_type.strip():
            logger.warning(f"Series at index {index} missing type property")
            continue

        cleaned = dict(entry)
        if cleaned.get("data") is None:
            cleaned["data"] = []
        sanitized.append(cleaned)

    return sanitized


def validate_config(config: RenderConfig) -> RenderConfig:
    """
    Validate and sanitize a render configuration.

    Args:
        config: Configuration to validate

    Returns:
        A new configuration whose series list is non-empty and whose every
        series has a type and a data payload
    """
    validated = dict(config)
    series = sanitize_series(config.get("series"))

    if not series:
        logger.warning("All series were filtered out, adding placeholder series")
        series = [placeholder_series()]
        meta = dict(validated.get("meta") or {})
        if meta:
            meta["placeholder"] = True
            meta["renderedType"] = "bar"
            validated["meta"] = meta

    validated["series"] = series
    return validated


def is_valid_render_config(config: Any) -> bool:
    """
    Minimal shape check for configurations received from outside.

    Args:
        config: Candidate configuration

    Returns:
        True if it has a title, a tooltip and a non-empty series list
    """
    return (
        isinstance(config, dict)
        and "title" in config
        and "tooltip" in config
        and isinstance(config.get("series"), list)
        and len(config["series"]) > 0
    )

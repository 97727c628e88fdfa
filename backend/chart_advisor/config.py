"""
Configuration loader.

This module provides functions for loading and accessing application settings.
"""

from functools import lru_cache
from typing import Dict, List, Optional

import dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if present
dotenv.load_dotenv()

# Baseline confidence of each local suggestion rule
DEFAULT_RULE_CONFIDENCE: Dict[str, int] = {
    "category_comparison": 85,
    "time_trend": 90,
    "proportion": 70,
    "correlation": 80,
    "cumulative_timeline": 75,
    "multi_metric": 75,
    "dense_pattern": 65,
}


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General settings
    app_name: str = "Chart Advisor API"
    api_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    uvicorn_workers: int = 1
    cors_origins: List[str] = ["*"]

    # Logging settings
    log_level: str = "INFO"
    log_to_file: bool = False
    log_directory: str = "logs"
    log_json: bool = False

    # Enhancement service settings
    enhancement_enabled: bool = False
    enhancement_url: Optional[str] = None
    enhancement_api_key: Optional[str] = None
    enhancement_timeout: float = 5.0  # seconds
    enhancement_max_retries: int = 0
    enhancement_deadline: Optional[float] = None  # seconds, defaults to the timeout
    enhancement_confidence_bonus: int = 15
    enhancement_sample_size: int = 5
    enhancement_color_scheme: str = "indigo-purple"
    enhancement_style: str = "modern"
    enhancement_accessibility: bool = True

    # Suggestion rule settings
    rule_confidence: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_RULE_CONFIDENCE))

    # Chart synthesis settings
    radar_max_rows: int = 5
    radar_max_metrics: int = 6
    parallel_max_rows: int = 50
    parallel_max_axes: int = 6
    sunburst_max_rows: int = 10

    # Cache settings
    suggestion_cache_enabled: bool = True
    suggestion_cache_size: int = 128
    suggestion_cache_ttl: int = 3600  # seconds

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed = ["development", "testing", "staging", "production"]
        if v.lower() not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level setting."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("enhancement_timeout")
    @classmethod
    def validate_enhancement_timeout(cls, v):
        """Every enhancement call must be bounded."""
        if v <= 0:
            raise ValueError("enhancement_timeout must be positive")
        return v

    @field_validator("rule_confidence")
    @classmethod
    def validate_rule_confidence(cls, v):
        """Merge overrides onto the default baselines and clamp to 0-100."""
        merged = dict(DEFAULT_RULE_CONFIDENCE)
        for rule, confidence in v.items():
            if rule not in DEFAULT_RULE_CONFIDENCE:
                raise ValueError(f"unknown suggestion rule: {rule}")
            merged[rule] = max(0, min(100, int(confidence)))
        return merged

    @property
    def effective_enhancement_deadline(self) -> float:
        """Deadline for the concurrent enhancement upgrade."""
        return self.enhancement_deadline or self.enhancement_timeout


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    This function uses lru_cache to cache the settings object
    for improved performance.

    Returns:
        Settings object
    """
    return Settings()

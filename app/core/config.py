"""Application configuration management."""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.analytics import AnomalyConfig, ForecastConfig, InsightConfig

load_dotenv()


class Settings(BaseSettings):
    """Application settings.

    Analytics defaults live here and are turned into explicit config objects
    at the request boundary; the analytics core never reads settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = os.getenv("ENV", "development")  # "development" or "production"

    # App Info
    app_name: str = "Retail Analytics API"
    app_version: str = "1.0.0"
    app_description: str = "Anomaly detection, forecasting and insights over daily merchant metrics"

    # Server
    host: str = "0.0.0.0"
    port: int = int(os.getenv("PORT", 8000))
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # Anomaly detection
    anomaly_z_threshold: float = 2.0
    anomaly_high_severity_z: float = 3.0
    anomaly_recent_window: int = 7
    anomaly_lookback_days: int = 90
    anomaly_max_lookback_days: int = 180

    # Forecasting
    forecast_min_history: int = 14
    forecast_max_horizon: int = 30
    forecast_default_horizon: int = 7
    forecast_confidence_level: float = 0.95
    forecast_holdout_fraction: float = 0.2
    forecast_history_days: int = 60

    # Insights
    insight_window: int = 7
    insight_max_results: int = 10

    # Per-metric work is fanned out to a thread pool of this size
    analytics_max_workers: int = 4

    # CORS
    allowed_origins: list = [
        "http://localhost:3000",
    ]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env.lower() == "development"

    def anomaly_config(
        self,
        threshold: Optional[float] = None,
        lookback_days: Optional[int] = None
    ) -> AnomalyConfig:
        """Anomaly settings, with optional per-request overrides."""
        lookback = lookback_days or self.anomaly_lookback_days
        return AnomalyConfig(
            recent_window=self.anomaly_recent_window,
            baseline_window=max(lookback, self.anomaly_recent_window),
            z_threshold=threshold if threshold is not None else self.anomaly_z_threshold,
            high_severity_z=self.anomaly_high_severity_z
        )

    def forecast_config(self) -> ForecastConfig:
        return ForecastConfig(
            min_history=self.forecast_min_history,
            max_horizon=self.forecast_max_horizon,
            confidence_level=self.forecast_confidence_level,
            holdout_fraction=self.forecast_holdout_fraction
        )

    def insight_config(self) -> InsightConfig:
        return InsightConfig(
            window=self.insight_window,
            max_insights=self.insight_max_results
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

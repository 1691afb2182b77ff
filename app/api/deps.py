"""API dependencies."""

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.analytics_service import AnalyticsService


def get_current_settings() -> Settings:
    """Get current application settings."""
    return get_settings()


def get_analytics_service(settings: Settings = Depends(get_current_settings)) -> AnalyticsService:
    """Get an analytics service bound to the current settings."""
    return AnalyticsService(settings)

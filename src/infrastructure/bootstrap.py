"""Process wiring: environment settings → logging → comparison service."""

from __future__ import annotations

from src.domain.services.comparison import ComparisonService
from src.infrastructure.logging_config import configure_logging
from src.infrastructure.settings import OptimizerSettings, get_settings


def create_comparison_service(settings: OptimizerSettings | None = None) -> ComparisonService:
    """Configure root logging from settings and build a ComparisonService.

    Uses the cached environment settings when none are given.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_format=settings.json_logs)
    return ComparisonService(settings.comparison_config())

"""Configuration management for the audience manager."""

from audience_manager.config.loader import load_config
from audience_manager.config.models import (
    AccountConfig,
    ApiConfig,
    AudienceManagerConfig,
    AudiencesSheetConfig,
    RulesSheetConfig,
    RunnerConfig,
)

__all__ = [
    "AccountConfig",
    "ApiConfig",
    "AudienceManagerConfig",
    "AudiencesSheetConfig",
    "RulesSheetConfig",
    "RunnerConfig",
    "load_config",
]

"""
Configuration Management Module
统一配置管理，实现API配置解耦
"""
from .settings import (
    Settings,
    RepositorySettings,
    SearchSettings,
    ScraperSettings,
    LLMSettings,
    OptimizerSettings,
    get_settings,
    get_repository_settings,
    get_search_settings,
    get_scraper_settings,
    get_llm_settings,
    get_optimizer_settings,
)

__all__ = [
    "Settings",
    "RepositorySettings",
    "SearchSettings",
    "ScraperSettings",
    "LLMSettings",
    "OptimizerSettings",
    "get_settings",
    "get_repository_settings",
    "get_search_settings",
    "get_scraper_settings",
    "get_llm_settings",
    "get_optimizer_settings",
]

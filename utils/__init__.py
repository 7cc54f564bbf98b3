"""
Utils Module
通用工具函数
"""
from .logger import setup_logger
from .exceptions import (
    ArticleOptimizerError,
    ConfigurationError,
    ScraperError,
    RenderingError,
    RenderingResourceError,
    FallbackExhaustedError,
    AcquisitionError,
    NoCandidatesError,
    NoUsableContentError,
    LLMError,
    LLMCredentialsError,
    SafetyBlockedError,
    RepositoryError,
    InvalidResponseError,
    ArticleNotFoundError,
    OptimizationAborted,
)

__all__ = [
    "setup_logger",
    "ArticleOptimizerError",
    "ConfigurationError",
    "ScraperError",
    "RenderingError",
    "RenderingResourceError",
    "FallbackExhaustedError",
    "AcquisitionError",
    "NoCandidatesError",
    "NoUsableContentError",
    "LLMError",
    "LLMCredentialsError",
    "SafetyBlockedError",
    "RepositoryError",
    "InvalidResponseError",
    "ArticleNotFoundError",
    "OptimizationAborted",
]

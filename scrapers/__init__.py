"""
Scrapers Module
搜索结果与页面正文的多层抓取
"""
from .base import ExtractionStrategy, run_fallback_chain
from .page_extractor import (
    FastPageStrategy,
    PageContentExtractor,
    RenderedPageStrategy,
)
from .search_extractor import (
    FastSearchStrategy,
    RenderedSearchStrategy,
    SearchRequest,
    SearchResultExtractor,
    StaticSearchFallback,
)

__all__ = [
    "ExtractionStrategy",
    "run_fallback_chain",
    "FastPageStrategy",
    "RenderedPageStrategy",
    "PageContentExtractor",
    "FastSearchStrategy",
    "RenderedSearchStrategy",
    "StaticSearchFallback",
    "SearchRequest",
    "SearchResultExtractor",
]

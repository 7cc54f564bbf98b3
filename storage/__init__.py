"""
Storage Module
文章仓库 API 客户端
"""
from .article_repository import ArticleRepository, unwrap_envelope

__all__ = [
    "ArticleRepository",
    "unwrap_envelope",
]

"""
Data Models / Schemas
定义统一的数据结构
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# 有效正文的最小长度 (严格大于)
USABLE_CONTENT_MIN_LENGTH = 200


class ExtractionMethod(str, Enum):
    """页面正文的获取方式"""
    FAST = "fast"
    RENDERED = "rendered"
    FAILED = "failed"


class SearchTier(str, Enum):
    """产生搜索候选结果的层级"""
    FAST = "fast"
    RENDERED = "rendered"
    STATIC = "static"


class Provenance(str, Enum):
    """最终内容由哪一层生成"""
    AI = "AI Optimizer"
    MANUAL = "Manual Optimizer"
    ORIGINAL = "Original Content"


class SourceArticle(BaseModel):
    """仓库中的原始文章 (只读)"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="文章ID")
    title: str = Field(..., description="标题")
    url: str = Field(default="", description="原文链接")
    content: str = Field(default="", description="正文")
    author: Optional[str] = Field(None, description="作者")

    @field_validator("url", "content", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class SearchCandidate(BaseModel):
    """搜索结果页中的一条候选文章"""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str = "No Title"
    snippet: str = ""
    tier: SearchTier = SearchTier.FAST

    @property
    def is_fallback(self) -> bool:
        """静态兜底结果，置信度较低"""
        return self.tier == SearchTier.STATIC


class ScrapedDocument(BaseModel):
    """单个 URL 的抓取结果"""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    content: str = ""
    method: ExtractionMethod
    error: Optional[str] = None

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "ScrapedDocument":
        failed = self.method == ExtractionMethod.FAILED
        if failed and not self.error:
            raise ValueError("failed documents must carry an error message")
        if not failed and self.error is not None:
            raise ValueError(f"'{self.method.value}' documents cannot carry an error")
        return self

    @property
    def is_usable(self) -> bool:
        return self.error is None and len(self.content) > USABLE_CONTENT_MIN_LENGTH


class ReferenceArticle(BaseModel):
    """随优化后文章一并提交的参考文章"""
    model_config = ConfigDict(frozen=True)

    reference_title: str
    url: str
    content: str = ""
    author: Optional[str] = None


class SynthesizedArticle(BaseModel):
    """生成后的文章"""
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    author: Provenance
    url: str = ""
    reference_articles: List[ReferenceArticle] = Field(default_factory=list)
    # 仅用于审计，不提交给仓库
    fallback_reason: Optional[str] = None

    def to_update_payload(self) -> Dict[str, Any]:
        """转换为仓库 PUT /articles/{id} 的请求体"""
        payload = {
            "title": self.title,
            "content": self.content,
            "author": self.author.value,
            "url": self.url,
        }
        # 没有参考文章时不带该字段，避免覆盖仓库中已有的引用
        if self.reference_articles:
            payload["reference_article"] = [ref.model_dump() for ref in self.reference_articles]
        return payload


class ReferenceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class OptimizationResult(BaseModel):
    """单篇文章的优化结果报告"""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    success: bool
    article_id: Optional[int] = None
    title: Optional[str] = None
    original_url: Optional[str] = None
    reference_count: Optional[int] = None
    content_length: Optional[int] = None
    references: Optional[List[ReferenceSummary]] = None
    provenance: Optional[str] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, article_id: Optional[int], error: str, stage: Optional[str] = None) -> "OptimizationResult":
        return cls(success=False, article_id=article_id, error=error, failed_stage=stage)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase 输出，省略空字段"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

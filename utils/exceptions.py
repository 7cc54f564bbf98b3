"""
Custom Exceptions
自定义异常类
"""
from typing import Optional


class ArticleOptimizerError(Exception):
    """文章优化器基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ArticleOptimizerError):
    """配置错误"""
    pass


class ScraperError(ArticleOptimizerError):
    """抓取器错误"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class RenderingError(ScraperError):
    """浏览器渲染失败"""
    pass


class RenderingResourceError(RenderingError):
    """渲染后端资源耗尽 (内存/进程)，不参与降级，直接向上抛出"""
    pass


class FallbackExhaustedError(ScraperError):
    """所有降级策略均已失败"""
    pass


class AcquisitionError(ArticleOptimizerError):
    """参考内容获取错误"""
    pass


class NoCandidatesError(AcquisitionError):
    """搜索没有返回任何候选结果"""
    pass


class NoUsableContentError(AcquisitionError):
    """没有抓取到任何可用正文"""
    pass


class LLMError(ArticleOptimizerError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class LLMCredentialsError(LLMError):
    """API Key 缺失或仍为占位符"""
    pass


class SafetyBlockedError(LLMError):
    """生成内容被安全过滤器拦截"""
    pass


class RepositoryError(ArticleOptimizerError):
    """文章仓库 API 错误"""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.status_code = status_code


class InvalidResponseError(RepositoryError):
    """仓库响应格式不合法 (status 为假或缺少 data)"""
    pass


class ArticleNotFoundError(RepositoryError):
    """仓库中没有可处理的文章"""
    pass


class OptimizationAborted(ArticleOptimizerError):
    """优化流程在 SEARCH / SCRAPE 阶段中止"""

    def __init__(self, message: str, stage: str, **kwargs):
        super().__init__(message, kwargs)
        self.stage = stage

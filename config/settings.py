"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class RepositorySettings(BaseSettings):
    """文章仓库 API 配置"""
    base_url: str = Field(default="http://127.0.0.1:8000/api", description="仓库 API 根地址")
    timeout: float = Field(default=30.0, description="请求超时时间(秒)")
    max_pages: int = Field(default=50, description="列表分页最大页数")

    class Config:
        env_prefix = "REPOSITORY_"


class SearchSettings(BaseSettings):
    """搜索结果页配置"""
    search_url: str = Field(default="https://www.google.com/search", description="搜索结果页地址")
    results_to_fetch: int = Field(default=2, description="每篇文章的参考结果数")
    query_suffix: str = Field(default="blog article guide", description="追加到标题后的查询限定词")
    request_timeout: float = Field(default=15.0, description="请求超时时间(秒)")

    class Config:
        env_prefix = "SEARCH_"


class ScraperSettings(BaseSettings):
    """页面抓取配置"""
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User Agent")
    request_timeout: float = Field(default=15.0, description="HTTP 请求超时时间(秒)")
    navigation_timeout: float = Field(default=30.0, description="浏览器导航超时时间(秒)")
    settle_delay: float = Field(default=2.0, description="渲染后等待动态内容的时间(秒)")
    min_content_length: int = Field(default=200, description="有效正文的最小长度")
    pacing_delay: float = Field(default=1.0, description="相邻抓取请求之间的间隔(秒)")
    headless: bool = Field(default=True, description="是否以无头模式启动浏览器")

    class Config:
        env_prefix = "SCRAPER_"


class LLMSettings(BaseSettings):
    """LLM 配置"""
    provider: str = Field(default="gemini", description="LLM提供商: gemini, openai")
    model_name: Optional[str] = Field(default=None, description="模型名称(不填则使用默认)")
    temperature: float = Field(default=0.7, description="生成温度")
    max_tokens: int = Field(default=8000, description="最大生成token数")
    timeout: float = Field(default=90.0, description="生成超时时间(秒)")

    # API Keys
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")

    class Config:
        env_prefix = "LLM_"


class OptimizerSettings(BaseSettings):
    """优化流程配置"""
    batch_delay: float = Field(default=5.0, description="批量处理时文章之间的间隔(秒)")

    class Config:
        env_prefix = "OPTIMIZER_"


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    optimizer: OptimizerSettings = Field(default_factory=OptimizerSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            # 默认查找 config/.env
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            repository=RepositorySettings(),
            search=SearchSettings(),
            scraper=ScraperSettings(),
            llm=LLMSettings(),
            optimizer=OptimizerSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.load_from_env_file()


# 便捷访问
def get_repository_settings() -> RepositorySettings:
    return get_settings().repository


def get_search_settings() -> SearchSettings:
    return get_settings().search


def get_scraper_settings() -> ScraperSettings:
    return get_settings().scraper


def get_llm_settings() -> LLMSettings:
    return get_settings().llm


def get_optimizer_settings() -> OptimizerSettings:
    return get_settings().optimizer

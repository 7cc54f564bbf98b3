"""
Article Repository
文章仓库 API 客户端 (Laravel 风格的 {status, data} 响应)
"""
from typing import Any, Dict, List, Optional
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import get_repository_settings
from models import SourceArticle, SynthesizedArticle
from utils.exceptions import (
    ArticleNotFoundError,
    InvalidResponseError,
    RepositoryError,
)


logger = logging.getLogger(__name__)


ARTICLES_ENDPOINT = "/articles"


def _article_path(article_id: int) -> str:
    return f"{ARTICLES_ENDPOINT}/{article_id}"


def unwrap_envelope(payload: Any, *, require_data: bool = True) -> Any:
    """
    校验 {status, data} 信封并取出 data

    Raises:
        InvalidResponseError: status 为假或缺少 data
    """
    if not isinstance(payload, dict) or not payload.get("status"):
        raise InvalidResponseError("Invalid response format from article API", payload=payload)
    data = payload.get("data")
    if require_data and not data:
        raise InvalidResponseError("Article API response is missing data", payload=payload)
    return data


class ArticleRepository:
    """
    文章仓库客户端

    - list_articles: 跟随分页器读取全部文章
    - get_article / get_latest_article: 读取单篇
    - update_article: 提交优化结果
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_pages: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not base_url or timeout is None or max_pages is None:
            settings = get_repository_settings()
            base_url = base_url or settings.base_url
            timeout = timeout if timeout is not None else settings.timeout
            max_pages = max_pages if max_pages is not None else settings.max_pages

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_pages = max_pages
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(self, method: str, url: str, **kwargs) -> Any:
        response = await self._get_client().request(method, url, **kwargs)
        if response.status_code == 404:
            raise ArticleNotFoundError(f"Article not found: {url}", status_code=404)
        if response.is_error:
            raise RepositoryError(
                f"Article API returned {response.status_code} for {method} {url}",
                status_code=response.status_code,
                body=response.text[:500],
            )
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Article API returned non-JSON body for {method} {url}") from e

    async def list_articles(self) -> List[SourceArticle]:
        """读取全部文章 (跟随 next_page_url，最多 max_pages 页)"""
        logger.info("Fetching all articles from repository...")
        articles: List[SourceArticle] = []
        url: Optional[str] = ARTICLES_ENDPOINT
        pages = 0

        while url and pages < self.max_pages:
            data = unwrap_envelope(await self._request("GET", url))
            pages += 1

            # 未分页时 data 直接是列表
            if isinstance(data, list):
                articles.extend(SourceArticle.model_validate(item) for item in data)
                break

            items = data.get("data")
            if not isinstance(items, list):
                raise InvalidResponseError("Article list payload is missing data.data", data=data)
            articles.extend(SourceArticle.model_validate(item) for item in items)

            url = data.get("next_page_url")
            current_page = data.get("current_page")
            last_page = data.get("last_page")
            if current_page is not None and last_page is not None and current_page >= last_page:
                url = None

        logger.info(f"Fetched {len(articles)} articles ({pages} pages)")
        return articles

    async def get_article(self, article_id: int) -> SourceArticle:
        logger.info(f"Fetching article with ID: {article_id}...")
        data = unwrap_envelope(await self._request("GET", _article_path(article_id)))
        article = SourceArticle.model_validate(data)
        logger.info(f"Fetched article: \"{article.title}\"")
        return article

    async def get_latest_article(self) -> SourceArticle:
        """返回 id 最大的文章"""
        articles = await self.list_articles()
        if not articles:
            raise ArticleNotFoundError("No articles found in the database")
        latest = max(articles, key=lambda article: article.id)
        logger.info(f"Latest article: \"{latest.title}\" (ID: {latest.id})")
        return latest

    async def update_article(self, article_id: int, article: SynthesizedArticle) -> Dict[str, Any]:
        """
        提交优化后的文章

        Returns:
            仓库返回的更新后记录 (可能为空字典)
        """
        payload = article.to_update_payload()
        data = unwrap_envelope(
            await self._request("PUT", _article_path(article_id), json=payload),
            require_data=False,
        )
        logger.info(f"Updated article {article_id} ({article.author.value})")
        return data or {}

    async def check_connection(self) -> bool:
        """检查仓库 API 是否可达且响应格式正确"""
        try:
            unwrap_envelope(await self._request("GET", ARTICLES_ENDPOINT), require_data=False)
        except Exception as e:
            logger.warning(f"Article API connection failed: {e}")
            return False
        logger.info("Article API connection successful")
        return True

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

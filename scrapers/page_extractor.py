"""
Page Content Extractor
参考文章正文抽取：静态 HTTP 抓取优先，失败后降级到浏览器渲染
"""
from typing import Awaitable, Callable, List, Optional, Sequence
import logging

import httpx

from config import ScraperSettings, get_scraper_settings
from models import ExtractionMethod, ScrapedDocument
from utils.exceptions import FallbackExhaustedError, RenderingResourceError, ScraperError

from .base import ExtractionStrategy, run_fallback_chain
from .html_extraction import extract_article
from .rendering import RenderedPage, render_page


logger = logging.getLogger(__name__)

Renderer = Callable[..., Awaitable[RenderedPage]]

# 渲染后端资源耗尽时不再降级，直接抛出
RESOURCE_ERRORS = (RenderingResourceError, MemoryError)


def browser_headers(user_agent: str) -> dict:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


def _is_html(content_type: str) -> bool:
    if not content_type:
        return True
    lowered = content_type.lower()
    return "html" in lowered or "xml" in lowered


def failed_document(url: str, error: BaseException) -> ScrapedDocument:
    return ScrapedDocument(
        url=url,
        title="Scraping Failed",
        content=f"Failed to scrape content from {url}",
        method=ExtractionMethod.FAILED,
        error=str(error) or error.__class__.__name__,
    )


class FastPageStrategy(ExtractionStrategy[str, ScrapedDocument]):
    """
    静态抓取 (httpx + BeautifulSoup)
    不执行页面脚本，速度快、成本低
    """

    def __init__(
        self,
        *,
        user_agent: str,
        timeout: float = 15.0,
        min_content_length: int = 200,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.min_content_length = min_content_length
        self._client = client

    @property
    def name(self) -> str:
        return "fast"

    async def _fetch(self, url: str) -> str:
        headers = browser_headers(self.user_agent)
        if self._client is not None:
            response = await self._client.get(url, headers=headers, timeout=self.timeout, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), follow_redirects=True) as client:
                response = await client.get(url, headers=headers)

        response.raise_for_status()
        content_type = response.headers.get("content-type", "")
        if not _is_html(content_type):
            raise ScraperError(f"Non-HTML content ({content_type}) at {url}", source=url)
        return response.text

    async def extract(self, target: str) -> ScrapedDocument:
        html = await self._fetch(target)
        title, content = extract_article(html, min_length=self.min_content_length)
        return ScrapedDocument(url=target, title=title, content=content, method=ExtractionMethod.FAST)

    def accepts(self, result: ScrapedDocument, target: str) -> bool:
        return len(result.content) > self.min_content_length


class RenderedPageStrategy(ExtractionStrategy[str, ScrapedDocument]):
    """
    浏览器渲染抓取 (Playwright)
    对渲染后的 HTML 运行与静态抓取完全相同的抽取逻辑
    """

    def __init__(
        self,
        *,
        user_agent: str,
        headless: bool = True,
        navigation_timeout: float = 30.0,
        settle_delay: float = 2.0,
        min_content_length: int = 200,
        renderer: Optional[Renderer] = None,
    ):
        self.user_agent = user_agent
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self.settle_delay = settle_delay
        self.min_content_length = min_content_length
        self._renderer = renderer or render_page

    @property
    def name(self) -> str:
        return "rendered"

    async def extract(self, target: str) -> ScrapedDocument:
        page = await self._renderer(
            target,
            user_agent=self.user_agent,
            headless=self.headless,
            navigation_timeout=self.navigation_timeout,
            wait_until="networkidle",
            settle_delay=self.settle_delay,
        )
        title, content = extract_article(page.html, min_length=self.min_content_length)
        return ScrapedDocument(
            url=target,
            title=title or (page.title or ""),
            content=content,
            method=ExtractionMethod.RENDERED,
        )


class PageContentExtractor:
    """
    页面正文抽取器

    特性:
    - 静态抓取优先，正文不足或失败时才启动浏览器
    - 单个 URL 的失败编码为 method="failed"，不会中断批量抓取
    - 渲染后端资源耗尽 (RenderingResourceError / MemoryError) 直接抛出
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ExtractionStrategy[str, ScrapedDocument]]] = None,
        *,
        settings: Optional[ScraperSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if strategies is None:
            settings = settings or get_scraper_settings()
            strategies = [
                FastPageStrategy(
                    user_agent=settings.user_agent,
                    timeout=settings.request_timeout,
                    min_content_length=settings.min_content_length,
                    client=client,
                ),
                RenderedPageStrategy(
                    user_agent=settings.user_agent,
                    headless=settings.headless,
                    navigation_timeout=settings.navigation_timeout,
                    settle_delay=settings.settle_delay,
                    min_content_length=settings.min_content_length,
                ),
            ]
        self._strategies: List[ExtractionStrategy[str, ScrapedDocument]] = list(strategies)

    @property
    def strategies(self) -> List[ExtractionStrategy[str, ScrapedDocument]]:
        return list(self._strategies)

    async def extract(self, url: str) -> ScrapedDocument:
        """
        抽取单个 URL 的标题和正文

        Args:
            url: 页面地址

        Returns:
            ScrapedDocument (失败时 method="failed" 且带 error)
        """
        logger.info(f"Scraping {url}")
        try:
            document = await run_fallback_chain(self._strategies, url, fatal_errors=RESOURCE_ERRORS)
        except FallbackExhaustedError as exc:
            cause = exc.__cause__ or exc
            logger.error(f"Failed to scrape {url}: {cause}")
            return failed_document(url, cause)

        logger.info(f"Scraped {len(document.content)} characters from {url} ({document.method.value})")
        return document

    async def aclose(self) -> None:
        for strategy in self._strategies:
            await strategy.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

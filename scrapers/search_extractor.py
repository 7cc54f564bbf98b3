"""
Search Result Extractor
抓取公开搜索结果页 (无官方 API)，三层降级：静态抓取 -> 浏览器渲染 -> 内置静态结果
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from urllib.parse import parse_qs, quote_plus, urlencode, urlparse
import logging
import re

import httpx
from bs4 import Tag

from config import ScraperSettings, SearchSettings, get_scraper_settings, get_search_settings
from models import SearchCandidate, SearchTier
from utils.exceptions import FallbackExhaustedError

from .base import ExtractionStrategy, run_fallback_chain
from .html_extraction import normalize_text, parse_html
from .page_extractor import Renderer, browser_headers
from .rendering import render_page


logger = logging.getLogger(__name__)

# 按顺序尝试，第一个产出结果的选择器胜出
RESULT_SELECTORS = (
    "div.g",
    "div[data-sokoban-container]",
    "div.Gx5Zad",
    "div.ezO2md",
)

SNIPPET_SELECTOR = "div[data-sncf], div.VwiC3b, span.aCOpRe, div.IsZvec"

# 搜索提供方自身以及视频/社交平台不是文章
EXCLUDED_HOST_PATTERNS = (
    re.compile(r"(^|\.)google\.[a-z.]+$"),
    re.compile(r"(^|\.)youtube\.com$"),
    re.compile(r"(^|\.)youtu\.be$"),
    re.compile(r"(^|\.)facebook\.com$"),
    re.compile(r"(^|\.)twitter\.com$"),
    re.compile(r"(^|\.)x\.com$"),
    re.compile(r"(^|\.)instagram\.com$"),
    re.compile(r"(^|\.)tiktok\.com$"),
)

RESULTS_PER_PAGE = 10


@dataclass(frozen=True)
class SearchRequest:
    query: str
    limit: int


def is_excluded_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return True
    if parsed.scheme not in ("http", "https"):
        return True
    host = (parsed.hostname or "").lower()
    if not host:
        return True
    return any(pattern.search(host) for pattern in EXCLUDED_HOST_PATTERNS)


def _resolve_href(href: str) -> Optional[str]:
    href = (href or "").strip()
    if href.startswith("/url?"):
        # 静态结果页中的跳转链接: /url?q=<target>&sa=...
        params = parse_qs(urlparse(href).query)
        target = (params.get("q") or params.get("url") or [""])[0]
        return target if target.startswith("http") else None
    if href.startswith("http"):
        return href
    return None


def _first_outbound_link(block: Tag) -> Optional[str]:
    for anchor in block.find_all("a", href=True):
        url = _resolve_href(anchor["href"])
        if url:
            return url
    return None


def parse_search_results(html: str, limit: int, tier: SearchTier = SearchTier.FAST) -> List[SearchCandidate]:
    """
    解析搜索结果页

    Args:
        html: 结果页 HTML
        limit: 最多返回的候选数
        tier: 标记结果来源层级

    Returns:
        按文档顺序排列、URL 去重后的候选列表
    """
    if limit <= 0:
        return []

    soup = parse_html(html)
    for selector in RESULT_SELECTORS:
        blocks = soup.select(selector)
        if not blocks:
            continue

        results: List[SearchCandidate] = []
        seen = set()
        for block in blocks:
            if len(results) >= limit:
                break
            url = _first_outbound_link(block)
            if not url or url in seen or is_excluded_url(url):
                continue

            title_el = block.find("h3")
            title = normalize_text(title_el.get_text(" ")) if title_el else ""
            snippet_el = block.select_one(SNIPPET_SELECTOR)
            snippet = normalize_text(snippet_el.get_text(" ")) if snippet_el else ""

            seen.add(url)
            results.append(SearchCandidate(url=url, title=title or "No Title", snippet=snippet, tier=tier))

        if results:
            return results

    return []


class FastSearchStrategy(ExtractionStrategy[SearchRequest, List[SearchCandidate]]):
    """静态抓取结果页，只有凑满 limit 才算成功"""

    def __init__(
        self,
        *,
        search_url: str,
        user_agent: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.search_url = search_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return "fast-search"

    async def extract(self, target: SearchRequest) -> List[SearchCandidate]:
        params = {"q": target.query, "num": RESULTS_PER_PAGE}
        headers = browser_headers(self.user_agent)
        headers["DNT"] = "1"

        if self._client is not None:
            response = await self._client.get(self.search_url, params=params, headers=headers, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), follow_redirects=True) as client:
                response = await client.get(self.search_url, params=params, headers=headers)

        response.raise_for_status()
        return parse_search_results(response.text, target.limit, SearchTier.FAST)

    def accepts(self, result: List[SearchCandidate], target: SearchRequest) -> bool:
        return len(result) >= target.limit


class RenderedSearchStrategy(ExtractionStrategy[SearchRequest, List[SearchCandidate]]):
    """隐藏自动化特征的浏览器会话渲染结果页，非空即成功"""

    def __init__(
        self,
        *,
        search_url: str,
        user_agent: str,
        headless: bool = True,
        navigation_timeout: float = 30.0,
        renderer: Optional[Renderer] = None,
    ):
        self.search_url = search_url
        self.user_agent = user_agent
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self._renderer = renderer or render_page

    @property
    def name(self) -> str:
        return "rendered-search"

    async def extract(self, target: SearchRequest) -> List[SearchCandidate]:
        url = f"{self.search_url}?{urlencode({'q': target.query, 'num': RESULTS_PER_PAGE})}"
        page = await self._renderer(
            url,
            user_agent=self.user_agent,
            headless=self.headless,
            navigation_timeout=self.navigation_timeout,
            wait_until="domcontentloaded",
            wait_for_selector=", ".join(RESULT_SELECTORS[:2]),
            stealth=True,
        )
        return parse_search_results(page.html, target.limit, SearchTier.RENDERED)

    def accepts(self, result: List[SearchCandidate], target: SearchRequest) -> bool:
        return len(result) > 0


# 关键词 -> 已知的优质来源
STATIC_RESULTS: Dict[str, List[Dict[str, str]]] = {
    "chatbot": [
        {
            "url": "https://www.ibm.com/topics/chatbots",
            "title": "What are Chatbots? | IBM",
            "snippet": "A comprehensive guide to understanding chatbots and their applications in business.",
        },
        {
            "url": "https://www.zendesk.com/blog/chatbots/",
            "title": "Chatbot Guide: Everything You Need to Know",
            "snippet": "Learn about chatbot technology, implementation, and best practices.",
        },
    ],
}


class StaticSearchFallback(ExtractionStrategy[SearchRequest, List[SearchCandidate]]):
    """
    离线兜底：不访问网络，按关键词返回内置结果
    结果可能与主题无关，tier=static 标记为低置信度
    """

    @property
    def name(self) -> str:
        return "static-search"

    def _entries(self, query: str) -> List[Dict[str, str]]:
        lowered = query.lower()
        for keyword, entries in STATIC_RESULTS.items():
            if keyword in lowered:
                return entries

        encoded = quote_plus(query)
        return [
            {
                "url": f"https://www.forbes.com/search/?q={encoded}",
                "title": f"Search Results for: {query}",
                "snippet": f"Professional articles and insights on {query}",
            },
            {
                "url": f"https://www.techcrunch.com/search/{encoded}",
                "title": f"TechCrunch: {query}",
                "snippet": f"Technology news and analysis related to {query}",
            },
        ]

    async def extract(self, target: SearchRequest) -> List[SearchCandidate]:
        return [
            SearchCandidate(tier=SearchTier.STATIC, **entry)
            for entry in self._entries(target.query)[: max(0, target.limit)]
        ]


class SearchResultExtractor:
    """
    搜索结果抽取器

    层级 (逐层降级，层与层之间的结果不混合):
    1. fast-search     静态抓取，凑满 limit 才接受
    2. rendered-search 浏览器渲染，非空即接受
    3. static-search   内置结果，总是接受
    """

    def __init__(
        self,
        strategies: Optional[Sequence[ExtractionStrategy[SearchRequest, List[SearchCandidate]]]] = None,
        *,
        settings: Optional[SearchSettings] = None,
        scraper_settings: Optional[ScraperSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if strategies is None:
            settings = settings or get_search_settings()
            scraper_settings = scraper_settings or get_scraper_settings()
            strategies = [
                FastSearchStrategy(
                    search_url=settings.search_url,
                    user_agent=scraper_settings.user_agent,
                    timeout=settings.request_timeout,
                    client=client,
                ),
                RenderedSearchStrategy(
                    search_url=settings.search_url,
                    user_agent=scraper_settings.user_agent,
                    headless=scraper_settings.headless,
                    navigation_timeout=scraper_settings.navigation_timeout,
                ),
                StaticSearchFallback(),
            ]
        self._strategies = list(strategies)

    async def search(self, query: str, limit: int) -> List[SearchCandidate]:
        """
        搜索候选文章

        Args:
            query: 搜索关键词
            limit: 最大返回结果数

        Returns:
            候选列表，长度不超过 limit
        """
        if limit <= 0:
            return []

        logger.info(f"Searching for: \"{query}\" (limit={limit})")
        try:
            results = await run_fallback_chain(self._strategies, SearchRequest(query=query, limit=limit))
        except FallbackExhaustedError as exc:
            logger.error(f"All search tiers failed for \"{query}\": {exc}")
            return []

        results = [result for result in results if not is_excluded_url(result.url)][:limit]
        if results:
            logger.info(f"Found {len(results)} results via {results[0].tier.value} tier")
        for index, result in enumerate(results, start=1):
            logger.info(f"  {index}. {result.title} ({result.url})")
        return results

    async def aclose(self) -> None:
        for strategy in self._strategies:
            await strategy.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

"""
Content Acquisition Service
组合搜索抽取器与页面抽取器：查找候选参考文章，并顺序抓取、校验正文
"""
import asyncio
from typing import List, Optional, Sequence
import logging

from config import get_scraper_settings, get_search_settings
from models import SearchCandidate, ScrapedDocument
from scrapers import PageContentExtractor, SearchResultExtractor
from utils.exceptions import NoCandidatesError, NoUsableContentError


logger = logging.getLogger(__name__)


def usable_documents(documents: Sequence[ScrapedDocument]) -> List[ScrapedDocument]:
    """过滤出无错误且正文足够长的文档"""
    return [document for document in documents if document.is_usable]


def require_usable(documents: Sequence[ScrapedDocument]) -> List[ScrapedDocument]:
    """
    至少需要一篇可用文档

    Raises:
        NoUsableContentError: 全部抓取失败或正文过短
    """
    usable = usable_documents(documents)
    if not usable:
        raise NoUsableContentError(
            "Failed to scrape any valid content. Cannot proceed with optimization.",
            {"attempted": [document.url for document in documents]},
        )
    return usable


class ContentAcquisitionService:
    """
    参考内容获取服务

    - find_references: 搜索为零是致命错误；少于请求数量可以接受
    - fetch_and_validate: 返回全部抓取结果 (含失败项)，过滤由调用方负责
    """

    def __init__(
        self,
        search_extractor: Optional[SearchResultExtractor] = None,
        page_extractor: Optional[PageContentExtractor] = None,
        *,
        max_references: Optional[int] = None,
        query_suffix: Optional[str] = None,
        pacing_delay: Optional[float] = None,
    ):
        # 只有缺省的参数才读取全局配置
        if max_references is None or query_suffix is None:
            search_settings = get_search_settings()
            if max_references is None:
                max_references = search_settings.results_to_fetch
            if query_suffix is None:
                query_suffix = search_settings.query_suffix
        if pacing_delay is None:
            pacing_delay = get_scraper_settings().pacing_delay

        self.search_extractor = search_extractor or SearchResultExtractor()
        self.page_extractor = page_extractor or PageContentExtractor()
        self.max_references = max_references
        self.query_suffix = query_suffix
        self.pacing_delay = pacing_delay

    def build_query(self, topic: str) -> str:
        """追加限定词，偏向长文内容"""
        topic = (topic or "").strip()
        if not self.query_suffix:
            return topic
        return f"{topic} {self.query_suffix}".strip()

    async def find_references(self, topic: str, max_references: Optional[int] = None) -> List[SearchCandidate]:
        """
        查找与主题相关的候选文章

        Args:
            topic: 主题 (通常是原文标题)
            max_references: 最大候选数

        Returns:
            1..max_references 个候选

        Raises:
            NoCandidatesError: 搜索没有返回任何候选
        """
        limit = max_references if max_references is not None else self.max_references
        query = self.build_query(topic)
        candidates = await self.search_extractor.search(query, limit)

        if not candidates:
            raise NoCandidatesError(
                "No search results found. Cannot proceed with optimization.",
                {"topic": topic, "query": query},
            )

        if any(candidate.is_fallback for candidate in candidates):
            logger.warning(f"Using low-confidence static results for \"{topic}\"")
        logger.info(f"Found {len(candidates)} candidate articles for \"{topic}\"")
        return candidates

    async def fetch_and_validate(self, urls: Sequence[str]) -> List[ScrapedDocument]:
        """
        顺序抓取每个 URL，请求之间保持固定间隔

        Args:
            urls: 待抓取的地址

        Returns:
            与 urls 一一对应的抓取结果 (含失败项)
        """
        urls = list(urls)
        logger.info(f"Scraping {len(urls)} articles...")

        documents: List[ScrapedDocument] = []
        for index, url in enumerate(urls):
            logger.info(f"[{index + 1}/{len(urls)}] Scraping article...")
            documents.append(await self.page_extractor.extract(url))

            if index < len(urls) - 1 and self.pacing_delay > 0:
                await asyncio.sleep(self.pacing_delay)

        usable = len(usable_documents(documents))
        logger.info(f"Completed scraping {len(documents)} articles ({usable} usable)")
        return documents

    async def aclose(self) -> None:
        await self.search_extractor.aclose()
        await self.page_extractor.aclose()

"""Orchestrator service layer for single-article and batch optimization runs."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence

from acquisition import ContentAcquisitionService, require_usable
from config import Settings, get_optimizer_settings, get_settings
from intelligence import ArticleSynthesizer, build_last_resort_article
from models import OptimizationResult, ReferenceSummary, SourceArticle, SynthesizedArticle
from scrapers import PageContentExtractor, SearchResultExtractor
from storage import ArticleRepository
from utils.exceptions import (
    ArticleOptimizerError,
    NoCandidatesError,
    NoUsableContentError,
    OptimizationAborted,
)


logger = logging.getLogger(__name__)


NO_SEARCH_RESULTS_MESSAGE = "No search results found. Cannot proceed with optimization."
NO_VALID_CONTENT_MESSAGE = "Failed to scrape any valid content. Cannot proceed with optimization."


class OptimizationStage(str, Enum):
    FETCH = "fetch"
    SEARCH = "search"
    SCRAPE = "scrape"
    SYNTHESIZE = "synthesize"
    PUBLISH = "publish"
    DONE = "done"
    ABORT = "abort"


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, ArticleOptimizerError):
        return exc.message
    return str(exc) or exc.__class__.__name__


class OptimizationOrchestrator:
    """Runs FETCH -> SEARCH -> SCRAPE -> SYNTHESIZE -> PUBLISH for one or many articles."""

    def __init__(
        self,
        *,
        repository: ArticleRepository,
        acquisition: ContentAcquisitionService,
        synthesizer: ArticleSynthesizer,
        batch_delay: Optional[float] = None,
    ) -> None:
        self.repository = repository
        self.acquisition = acquisition
        self.synthesizer = synthesizer
        self.batch_delay = batch_delay if batch_delay is not None else get_optimizer_settings().batch_delay

    async def _fetch(self, article_id: Optional[int]) -> SourceArticle:
        if article_id is None:
            return await self.repository.get_latest_article()
        return await self.repository.get_article(article_id)

    async def _synthesize(self, article: SourceArticle, references) -> SynthesizedArticle:
        try:
            return await self.synthesizer.synthesize(article, references)
        except Exception as exc:
            logger.error(f"Synthesizer failed unexpectedly: {exc}")
            return build_last_resort_article(article)

    async def run_one(self, article_id: Optional[int] = None) -> OptimizationResult:
        """Optimize one article (the latest one when no id is given). Never raises."""
        stage = OptimizationStage.FETCH
        article: Optional[SourceArticle] = None

        try:
            article = await self._fetch(article_id)
            logger.info(f"Retrieved article \"{article.title}\" (ID: {article.id})")

            stage = OptimizationStage.SEARCH
            try:
                candidates = await self.acquisition.find_references(article.title)
            except NoCandidatesError as exc:
                raise OptimizationAborted(NO_SEARCH_RESULTS_MESSAGE, stage=stage.value) from exc

            stage = OptimizationStage.SCRAPE
            documents = await self.acquisition.fetch_and_validate([c.url for c in candidates])
            try:
                references = require_usable(documents)
            except NoUsableContentError as exc:
                raise OptimizationAborted(NO_VALID_CONTENT_MESSAGE, stage=stage.value) from exc
            for index, ref in enumerate(references, 1):
                logger.info(f"  {index}. {ref.title[:60]} ({len(ref.content)} characters)")

            stage = OptimizationStage.SYNTHESIZE
            synthesized = await self._synthesize(article, references)

            stage = OptimizationStage.PUBLISH
            await self.repository.update_article(article.id, synthesized)
        except Exception as exc:
            failed_stage = exc.stage if isinstance(exc, OptimizationAborted) else stage.value
            message = _error_message(exc)
            logger.error(f"Optimization failed at {failed_stage}: {message}")
            return OptimizationResult.failure(
                article.id if article is not None else article_id,
                message,
                failed_stage,
            )

        logger.info(
            f"Optimization complete for article {article.id}: "
            f"{len(references)} references, {len(synthesized.content)} characters, {synthesized.author.value}"
        )
        return OptimizationResult(
            success=True,
            article_id=article.id,
            title=article.title,
            original_url=article.url,
            reference_count=len(references),
            content_length=len(synthesized.content),
            references=[ReferenceSummary(title=ref.title, url=ref.url) for ref in references],
            provenance=synthesized.author.value,
        )

    async def run_batch(self, article_ids: Optional[Sequence[int]] = None) -> List[OptimizationResult]:
        """Optimize the given ids in order, or every repository article by ascending id."""
        if article_ids:
            ids = list(article_ids)
            logger.info(f"Optimizing {len(ids)} specific articles...")
        else:
            articles = await self.repository.list_articles()
            ids = sorted(article.id for article in articles)
            logger.info(f"Found {len(ids)} articles to optimize")

        results: List[OptimizationResult] = []
        for index, article_id in enumerate(ids):
            logger.info(f"Processing article {index + 1}/{len(ids)} (ID: {article_id})")
            result = await self.run_one(article_id)
            results.append(result)

            if index < len(ids) - 1 and self.batch_delay > 0:
                logger.info(f"Waiting {self.batch_delay:g} seconds before next article...")
                await asyncio.sleep(self.batch_delay)

        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Batch finished: {succeeded}/{len(results)} succeeded")
        return results

    async def check_services(self) -> Dict[str, bool]:
        return {
            "repository": await self.repository.check_connection(),
            "llm": await self.synthesizer.test_connection(),
        }

    async def aclose(self) -> None:
        await self.acquisition.aclose()
        await self.synthesizer.aclose()
        await self.repository.aclose()


def create_orchestrator(settings: Optional[Settings] = None) -> OptimizationOrchestrator:
    """Wire every service from settings."""
    settings = settings or get_settings()

    repository = ArticleRepository(
        settings.repository.base_url,
        timeout=settings.repository.timeout,
        max_pages=settings.repository.max_pages,
    )
    acquisition = ContentAcquisitionService(
        SearchResultExtractor(settings=settings.search, scraper_settings=settings.scraper),
        PageContentExtractor(settings=settings.scraper),
        max_references=settings.search.results_to_fetch,
        query_suffix=settings.search.query_suffix,
        pacing_delay=settings.scraper.pacing_delay,
    )
    synthesizer = ArticleSynthesizer(settings=settings.llm)

    return OptimizationOrchestrator(
        repository=repository,
        acquisition=acquisition,
        synthesizer=synthesizer,
        batch_delay=settings.optimizer.batch_delay,
    )


async def run_one(article_id: Optional[int] = None, *, settings: Optional[Settings] = None) -> OptimizationResult:
    """Top-level API: optimize one article and release resources."""
    orchestrator = create_orchestrator(settings)
    try:
        return await orchestrator.run_one(article_id)
    finally:
        await orchestrator.aclose()


async def run_batch(
    article_ids: Optional[Sequence[int]] = None,
    *,
    settings: Optional[Settings] = None,
) -> List[OptimizationResult]:
    """Top-level API: optimize many articles sequentially."""
    orchestrator = create_orchestrator(settings)
    try:
        return await orchestrator.run_batch(article_ids)
    finally:
        await orchestrator.aclose()


async def check_services(*, settings: Optional[Settings] = None) -> Dict[str, bool]:
    orchestrator = create_orchestrator(settings)
    try:
        return await orchestrator.check_services()
    finally:
        await orchestrator.aclose()

"""End-to-end tests for orchestrator.OptimizationOrchestrator with fake collaborators."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

import orchestrator.service as service_module
from acquisition import ContentAcquisitionService
from intelligence import ArticleSynthesizer
from intelligence.llm import BaseLLM, LLMResponse
from models import ExtractionMethod, Provenance, ScrapedDocument, SearchCandidate, SourceArticle
from orchestrator import (
    NO_SEARCH_RESULTS_MESSAGE,
    NO_VALID_CONTENT_MESSAGE,
    OptimizationOrchestrator,
)
from utils.exceptions import ArticleNotFoundError, LLMCredentialsError, RenderingResourceError, RepositoryError


class _FakeRepository:
    def __init__(self, articles: List[SourceArticle], reject_updates: bool = False):
        self.articles = {article.id: article for article in articles}
        self.reject_updates = reject_updates
        self.updates: List[tuple] = []

    async def get_article(self, article_id: int) -> SourceArticle:
        if article_id not in self.articles:
            raise ArticleNotFoundError(f"Article not found: /articles/{article_id}", status_code=404)
        return self.articles[article_id]

    async def get_latest_article(self) -> SourceArticle:
        return self.articles[max(self.articles)]

    async def list_articles(self) -> List[SourceArticle]:
        return list(self.articles.values())

    async def update_article(self, article_id, article):
        if self.reject_updates:
            raise RepositoryError("Article API returned 422 for PUT /articles/1", status_code=422)
        self.updates.append((article_id, article))
        return {"id": article_id}

    async def check_connection(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class _FakeSearch:
    def __init__(self, urls_by_query: Optional[Dict[str, List[str]]] = None, default: Optional[List[str]] = None):
        self.urls_by_query = urls_by_query or {}
        self.default = default or []
        self.queries: List[str] = []

    async def search(self, query, limit):
        self.queries.append(query)
        urls = self.urls_by_query.get(query, self.default)
        return [SearchCandidate(url=url, title=url) for url in urls][:limit]

    async def aclose(self):
        return None


class _FakePages:
    def __init__(self, failing: tuple = (), exhausted: tuple = ()):
        self.failing = failing
        self.exhausted = exhausted
        self.calls: List[str] = []

    async def extract(self, url):
        self.calls.append(url)
        if url in self.exhausted:
            raise RenderingResourceError("out of memory")
        if url in self.failing:
            return ScrapedDocument(
                url=url,
                title="Scraping Failed",
                content=f"Failed to scrape content from {url}",
                method=ExtractionMethod.FAILED,
                error="timeout",
            )
        return ScrapedDocument(url=url, title=f"Ref {url}", content="c" * 800, method=ExtractionMethod.FAST)

    async def aclose(self):
        return None


class _FakeLLM(BaseLLM):
    def __init__(self, error: Exception | None = None):
        super().__init__(model="fake-model", api_key="test-key")
        self.error = error
        self.calls = 0

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages, **kwargs) -> LLMResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return LLMResponse(content="<h2>Optimized</h2><p>Rewritten body.</p>", model=self.model)


class _BrokenSynthesizer:
    async def synthesize(self, source, references):
        raise RuntimeError("unexpected")

    async def test_connection(self):
        return False

    async def aclose(self):
        return None


ARTICLE = SourceArticle(id=7, title="Chatbots 101", url="https://blog.test/chatbots-101")
TWO_REFS = ["https://ref-a.test/post", "https://ref-b.test/post"]


def _orchestrator(repository, search, pages, synthesizer=None) -> OptimizationOrchestrator:
    acquisition = ContentAcquisitionService(
        search,
        pages,
        max_references=2,
        query_suffix="",
        pacing_delay=0,
    )
    return OptimizationOrchestrator(
        repository=repository,
        acquisition=acquisition,
        synthesizer=synthesizer or ArticleSynthesizer(_FakeLLM()),
        batch_delay=0,
    )


@pytest.mark.asyncio
async def test_single_article_happy_path_publishes_ai_content():
    repository = _FakeRepository([ARTICLE])
    search = _FakeSearch(default=TWO_REFS)

    result = await _orchestrator(repository, search, _FakePages()).run_one(7)

    assert result.success is True
    assert result.article_id == 7
    assert result.reference_count == 2
    assert result.provenance == Provenance.AI.value
    assert [ref.url for ref in result.references] == TWO_REFS
    assert search.queries == ["Chatbots 101"]

    assert len(repository.updates) == 1
    published_id, published = repository.updates[0]
    assert published_id == 7
    assert published.title == "Chatbots 101"
    assert published.author == Provenance.AI
    assert result.content_length == len(published.content)


@pytest.mark.asyncio
async def test_latest_article_is_used_without_id():
    older = SourceArticle(id=3, title="Old post")
    repository = _FakeRepository([older, ARTICLE])

    result = await _orchestrator(repository, _FakeSearch(default=TWO_REFS), _FakePages()).run_one()

    assert result.success is True
    assert result.article_id == 7


@pytest.mark.asyncio
async def test_zero_search_results_abort_before_scrape_and_publish():
    repository = _FakeRepository([ARTICLE])
    pages = _FakePages()

    result = await _orchestrator(repository, _FakeSearch(), pages).run_one(7)

    assert result.success is False
    assert result.error == NO_SEARCH_RESULTS_MESSAGE
    assert result.failed_stage == "search"
    assert pages.calls == []
    assert repository.updates == []


@pytest.mark.asyncio
async def test_no_usable_content_aborts_before_synthesis():
    repository = _FakeRepository([ARTICLE])
    llm = _FakeLLM()

    result = await _orchestrator(
        repository,
        _FakeSearch(default=TWO_REFS),
        _FakePages(failing=tuple(TWO_REFS)),
        ArticleSynthesizer(llm),
    ).run_one(7)

    assert result.success is False
    assert result.error == NO_VALID_CONTENT_MESSAGE
    assert result.failed_stage == "scrape"
    assert llm.calls == 0
    assert repository.updates == []


@pytest.mark.asyncio
async def test_partial_scrape_uses_only_usable_references():
    repository = _FakeRepository([ARTICLE])

    result = await _orchestrator(
        repository, _FakeSearch(default=TWO_REFS), _FakePages(failing=(TWO_REFS[0],))
    ).run_one(7)

    assert result.success is True
    assert result.reference_count == 1
    assert [ref.url for ref in result.references] == [TWO_REFS[1]]


@pytest.mark.asyncio
async def test_missing_credentials_still_publish_manual_notice():
    repository = _FakeRepository([ARTICLE])
    synthesizer = ArticleSynthesizer(_FakeLLM(error=LLMCredentialsError("missing key")))

    result = await _orchestrator(repository, _FakeSearch(default=TWO_REFS), _FakePages(), synthesizer).run_one(7)

    assert result.success is True
    assert result.provenance == Provenance.MANUAL.value
    assert repository.updates[0][1].author == Provenance.MANUAL


@pytest.mark.asyncio
async def test_synthesizer_crash_publishes_last_resort_article():
    repository = _FakeRepository([ARTICLE])

    result = await _orchestrator(
        repository, _FakeSearch(default=TWO_REFS), _FakePages(), _BrokenSynthesizer()
    ).run_one(7)

    assert result.success is True
    assert result.provenance == Provenance.ORIGINAL.value
    assert ARTICLE.url in repository.updates[0][1].content


@pytest.mark.asyncio
async def test_publish_rejection_fails_the_article():
    repository = _FakeRepository([ARTICLE], reject_updates=True)

    result = await _orchestrator(repository, _FakeSearch(default=TWO_REFS), _FakePages()).run_one(7)

    assert result.success is False
    assert result.failed_stage == "publish"
    assert "422" in result.error


@pytest.mark.asyncio
async def test_missing_article_fails_at_fetch():
    result = await _orchestrator(_FakeRepository([ARTICLE]), _FakeSearch(default=TWO_REFS), _FakePages()).run_one(99)

    assert result.success is False
    assert result.article_id == 99
    assert result.failed_stage == "fetch"


@pytest.mark.asyncio
async def test_batch_isolates_failures_and_paces_between_articles(monkeypatch):
    sleeps = []

    async def _fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(service_module.asyncio, "sleep", _fake_sleep)

    articles = [
        SourceArticle(id=1, title="Alpha"),
        SourceArticle(id=2, title="Beta"),
        SourceArticle(id=3, title="Gamma"),
    ]
    repository = _FakeRepository(articles)
    search = _FakeSearch(
        urls_by_query={
            "Alpha": ["https://alpha.test/ref"],
            "Beta": [],
            "Gamma": ["https://gamma.test/ref"],
        }
    )
    orchestrator = _orchestrator(repository, search, _FakePages())
    orchestrator.batch_delay = 5

    results = await orchestrator.run_batch([1, 2, 3])

    assert [r.success for r in results] == [True, False, True]
    assert [r.article_id for r in results] == [1, 2, 3]
    assert results[1].error == NO_SEARCH_RESULTS_MESSAGE
    assert [published_id for published_id, _ in repository.updates] == [1, 3]
    assert sleeps == [5, 5]


@pytest.mark.asyncio
async def test_batch_without_ids_processes_every_article_ascending():
    repository = _FakeRepository(
        [SourceArticle(id=5, title="E"), SourceArticle(id=2, title="B"), SourceArticle(id=9, title="I")]
    )

    results = await _orchestrator(repository, _FakeSearch(default=TWO_REFS), _FakePages()).run_batch()

    assert [r.article_id for r in results] == [2, 5, 9]
    assert all(r.success for r in results)


@pytest.mark.asyncio
async def test_resource_exhaustion_fails_one_article_but_batch_continues():
    repository = _FakeRepository([SourceArticle(id=1, title="Heavy"), SourceArticle(id=2, title="Light")])
    search = _FakeSearch(urls_by_query={"Heavy": ["https://heavy.test"], "Light": ["https://light.test"]})
    pages = _FakePages(exhausted=("https://heavy.test",))

    results = await _orchestrator(repository, search, pages).run_batch([1, 2])

    assert results[0].success is False
    assert results[0].failed_stage == "scrape"
    assert results[1].success is True


@pytest.mark.asyncio
async def test_check_services_reports_each_dependency():
    repository = _FakeRepository([ARTICLE])

    status = await _orchestrator(repository, _FakeSearch(), _FakePages(), _BrokenSynthesizer()).check_services()

    assert status == {"repository": True, "llm": False}

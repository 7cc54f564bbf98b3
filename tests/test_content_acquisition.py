"""Tests for acquisition.ContentAcquisitionService."""

from __future__ import annotations

import pytest

import acquisition.service as service_module
from acquisition import ContentAcquisitionService, require_usable, usable_documents
from models import ExtractionMethod, ScrapedDocument, SearchCandidate, SearchTier
from utils.exceptions import NoCandidatesError, NoUsableContentError


class _FakeSearch:
    def __init__(self, results):
        self.results = results
        self.calls = []

    async def search(self, query, limit):
        self.calls.append((query, limit))
        return list(self.results)[:limit]

    async def aclose(self):
        return None


class _FakePages:
    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    async def extract(self, url):
        self.calls.append(url)
        return self.documents[url]

    async def aclose(self):
        return None


def _doc(url: str, length: int = 500, failed: bool = False) -> ScrapedDocument:
    if failed:
        return ScrapedDocument(url=url, title="Scraping Failed", content="x", method=ExtractionMethod.FAILED, error="boom")
    return ScrapedDocument(url=url, title=f"Title {url}", content="y" * length, method=ExtractionMethod.FAST)


def _service(search=None, pages=None, pacing_delay=0.0) -> ContentAcquisitionService:
    return ContentAcquisitionService(
        search or _FakeSearch([]),
        pages or _FakePages({}),
        max_references=2,
        query_suffix="blog article guide",
        pacing_delay=pacing_delay,
    )


@pytest.mark.asyncio
async def test_find_references_appends_suffix_and_limit():
    search = _FakeSearch(
        [
            SearchCandidate(url="https://a.test/1", title="A"),
            SearchCandidate(url="https://b.test/2", title="B"),
            SearchCandidate(url="https://c.test/3", title="C"),
        ]
    )

    results = await _service(search=search).find_references("Chatbots 101")

    assert search.calls == [("Chatbots 101 blog article guide", 2)]
    assert [r.url for r in results] == ["https://a.test/1", "https://b.test/2"]


@pytest.mark.asyncio
async def test_find_references_accepts_fewer_than_requested():
    search = _FakeSearch([SearchCandidate(url="https://a.test/1", tier=SearchTier.STATIC)])

    results = await _service(search=search).find_references("Chatbots 101")

    assert len(results) == 1
    assert results[0].is_fallback


@pytest.mark.asyncio
async def test_zero_candidates_is_fatal():
    with pytest.raises(NoCandidatesError, match="No search results found"):
        await _service().find_references("Obscure topic")


@pytest.mark.asyncio
async def test_fetch_and_validate_is_sequential_and_paced(monkeypatch):
    sleeps = []

    async def _fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(service_module.asyncio, "sleep", _fake_sleep)
    urls = ["https://a.test/1", "https://b.test/2", "https://c.test/3"]
    pages = _FakePages({urls[0]: _doc(urls[0]), urls[1]: _doc(urls[1], failed=True), urls[2]: _doc(urls[2], 150)})

    documents = await _service(pages=pages, pacing_delay=1.0).fetch_and_validate(urls)

    assert pages.calls == urls
    assert [d.url for d in documents] == urls
    assert sleeps == [1.0, 1.0]
    assert [d.url for d in usable_documents(documents)] == [urls[0]]


@pytest.mark.asyncio
async def test_fetch_and_validate_handles_empty_input():
    assert await _service().fetch_and_validate([]) == []


def test_require_usable_raises_when_nothing_usable():
    documents = [_doc("https://a.test/1", failed=True), _doc("https://b.test/2", 120)]

    with pytest.raises(NoUsableContentError, match="Failed to scrape any valid content"):
        require_usable(documents)

    assert require_usable(documents + [_doc("https://c.test/3")])[0].url == "https://c.test/3"


def test_injected_values_skip_global_settings(monkeypatch):
    def fail():
        raise AssertionError("global settings should not be read")

    monkeypatch.setattr(service_module, "get_search_settings", fail)
    monkeypatch.setattr(service_module, "get_scraper_settings", fail)

    service = ContentAcquisitionService(
        _FakeSearch([]),
        _FakePages({}),
        max_references=3,
        query_suffix="",
        pacing_delay=0,
    )

    assert service.max_references == 3
    assert service.build_query("Chatbots") == "Chatbots"

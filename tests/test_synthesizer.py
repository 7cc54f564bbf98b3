"""Tests for intelligence.synthesizer."""

from __future__ import annotations

from typing import List

import pytest

from intelligence import (
    MANUAL_FALLBACK_TEXT,
    ArticleSynthesizer,
    GeminiLLM,
    build_last_resort_article,
    build_prompt,
    clean_generated_content,
)
from intelligence.llm import BaseLLM, LLMResponse, Message
from models import ExtractionMethod, Provenance, ScrapedDocument, SourceArticle
from utils.exceptions import LLMCredentialsError, LLMError, SafetyBlockedError


SOURCE = SourceArticle(id=7, title="Chatbots 101", url="https://blog.test/chatbots-101", content="old body")


def _reference(index: int, length: int = 600) -> ScrapedDocument:
    return ScrapedDocument(
        url=f"https://ref{index}.test/article",
        title=f"Reference {index}",
        content=("r" * length),
        method=ExtractionMethod.FAST,
    )


class _FakeLLM(BaseLLM):
    def __init__(self, reply: str = "", error: Exception | None = None):
        super().__init__(model="fake-model", api_key="test-key")
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        self.prompts.append(messages[-1].content)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=self.model)


def test_prompt_embeds_truncated_reference_previews() -> None:
    prompt = build_prompt(SOURCE, [_reference(1, 2000), _reference(2, 100)])

    assert "Title: Chatbots 101" in prompt
    assert "URL: https://blog.test/chatbots-101" in prompt
    assert "--- REFERENCE ARTICLE 1 ---" in prompt
    assert "--- REFERENCE ARTICLE 2 ---" in prompt
    assert "r" * 1500 + "..." in prompt
    assert "r" * 1501 not in prompt
    assert "Do NOT include the title" in prompt


def test_clean_generated_content_strips_fences_and_titles() -> None:
    raw = "```html\n<title>T</title>\n<H1>Big Title</H1>\n<h2>Intro</h2><p>Body</p>\n```\n"

    assert clean_generated_content(raw) == "<h2>Intro</h2><p>Body</p>"


@pytest.mark.asyncio
async def test_successful_generation_is_ai_provenance():
    llm = _FakeLLM(reply="```html\n<h1>Chatbots 101</h1><h2>Why</h2><p>Because.</p>```")
    synthesizer = ArticleSynthesizer(llm)

    article = await synthesizer.synthesize(SOURCE, [_reference(1), _reference(2)])

    assert article.author == Provenance.AI
    assert article.title == "Chatbots 101"
    assert article.content == "<h2>Why</h2><p>Because.</p>"
    assert article.url == SOURCE.url
    assert article.fallback_reason is None
    assert [ref.reference_title for ref in article.reference_articles] == ["Reference 1", "Reference 2"]
    assert len(llm.prompts) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "reason"),
    [
        (LLMCredentialsError("missing key"), "credentials"),
        (SafetyBlockedError("blocked"), "safety_blocked"),
        (LLMError("HTTP 500"), "backend_error"),
    ],
)
async def test_llm_failures_fall_back_to_manual_notice(error, reason):
    article = await ArticleSynthesizer(_FakeLLM(error=error)).synthesize(SOURCE, [_reference(1)])

    assert article.author == Provenance.MANUAL
    assert article.content == MANUAL_FALLBACK_TEXT
    assert article.fallback_reason == reason
    assert article.title == SOURCE.title


@pytest.mark.asyncio
async def test_placeholder_gemini_key_uses_manual_notice():
    synthesizer = ArticleSynthesizer(GeminiLLM(api_key="your_gemini_api_key_here"))

    article = await synthesizer.synthesize(SOURCE, [_reference(1)])

    assert article.author == Provenance.MANUAL
    assert article.fallback_reason == "credentials"


@pytest.mark.asyncio
async def test_output_empty_after_cleanup_is_backend_error():
    article = await ArticleSynthesizer(_FakeLLM(reply="```html\n<h1>Only a title</h1>\n```")).synthesize(
        SOURCE, [_reference(1)]
    )

    assert article.author == Provenance.MANUAL
    assert article.fallback_reason == "backend_error"


@pytest.mark.asyncio
async def test_unexpected_error_uses_last_resort_article():
    article = await ArticleSynthesizer(_FakeLLM(error=RuntimeError("bug"))).synthesize(SOURCE, [_reference(1)])

    assert article.author == Provenance.ORIGINAL
    assert article.title == SOURCE.title
    assert '<a href="https://blog.test/chatbots-101"' in article.content
    assert article.reference_articles == []


def test_last_resort_article_escapes_markup() -> None:
    source = SourceArticle(id=1, title="Tips & <Tricks>", url="https://blog.test/?a=1&b=2")

    article = build_last_resort_article(source)

    assert "<h2>Tips &amp; &lt;Tricks&gt;</h2>" in article.content
    assert "https://blog.test/?a=1&amp;b=2" in article.content
    assert article.title == "Tips & <Tricks>"


@pytest.mark.asyncio
async def test_connection_check_reports_status():
    assert await ArticleSynthesizer(_FakeLLM(reply="Hello, I am working!")).test_connection() is True
    assert await ArticleSynthesizer(_FakeLLM(error=LLMError("down"))).test_connection() is False

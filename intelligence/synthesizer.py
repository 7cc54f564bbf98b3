"""
Article Synthesizer
基于参考文章生成优化后的文章，带两级兜底：
LLM 失败 → 固定说明文本 (Manual Optimizer)；其它异常 → 原文链接 (Original Content)
"""
from html import escape
from typing import List, Optional, Sequence
import logging
import re

from config import LLMSettings
from models import Provenance, ReferenceArticle, ScrapedDocument, SourceArticle, SynthesizedArticle
from utils.exceptions import LLMCredentialsError, LLMError, SafetyBlockedError

from .llm import BaseLLM, Message, get_llm


logger = logging.getLogger(__name__)


REFERENCE_PREVIEW_LENGTH = 1500

MANUAL_FALLBACK_TEXT = (
    "This content was generated automatically. The content upgrade could not be completed "
    "because the available Google Gemini API credits have been exhausted. To continue upgrading "
    "content, please upgrade your Gemini API plan."
)

CONNECTION_TEST_PROMPT = 'Say "Hello, I am working!" if you receive this message. Keep your response short.'

_FENCE_PATTERN = re.compile(r"```html\n?|```\n?")
_TITLE_PATTERN = re.compile(r"<title>.*?</title>", re.IGNORECASE | re.DOTALL)
_H1_PATTERN = re.compile(r"<h1>.*?</h1>", re.IGNORECASE | re.DOTALL)


PROMPT_TEMPLATE = """You are an expert content writer and SEO specialist. Your task is to rewrite and optimize an article to match the style, formatting, and quality of top-ranking articles.

ORIGINAL ARTICLE:
Title: {title}
URL: {url}

TOP-RANKING REFERENCE ARTICLES:
{references}

YOUR TASK:
1. Analyze the formatting, structure, and writing style of the reference articles
2. Rewrite the article about "{title}" to match the style and quality of the top-ranking articles
3. Maintain the core topic and message
4. Use similar headings structure, paragraph length, and content organization as the references
5. Make the content engaging, informative, and SEO-friendly
6. Ensure the content is unique and not a direct copy
7. Use HTML formatting for better readability (h2, h3, p, ul, ol, strong, em tags)
8. Aim for a comprehensive article (at least 1200-1500 words)

FORMATTING REQUIREMENTS:
- Use proper HTML tags for structure (<h2>, <h3>, <p>, <ul>, <ol>, <strong>, <em>)
- Include clear headings and subheadings
- Break content into readable paragraphs
- Use bullet points or numbered lists where appropriate
- Add emphasis with bold and italic text where needed
- Ensure the content flows naturally and is easy to read

OUTPUT REQUIREMENTS:
- Return ONLY the article content in HTML format
- Do NOT include the title in the output (it will be added separately)
- Do NOT include references section (it will be added automatically)
- Start directly with the article content
- Make sure all HTML tags are properly closed
- Write in a professional, engaging tone

Write the optimized article now:"""


def build_prompt(source: SourceArticle, references: Sequence[ScrapedDocument]) -> str:
    """构建生成提示词，每篇参考文章只嵌入前 1500 个字符"""
    blocks = []
    for index, reference in enumerate(references, 1):
        preview = reference.content[:REFERENCE_PREVIEW_LENGTH]
        blocks.append(
            f"\n--- REFERENCE ARTICLE {index} ---\n"
            f"Title: {reference.title}\n"
            f"URL: {reference.url}\n"
            f"Content Preview: {preview}...\n"
        )
    return PROMPT_TEMPLATE.format(title=source.title, url=source.url, references="".join(blocks))


def clean_generated_content(content: str) -> str:
    """去掉代码围栏以及 <title> / <h1> 元素"""
    content = _FENCE_PATTERN.sub("", content)
    content = _TITLE_PATTERN.sub("", content)
    content = _H1_PATTERN.sub("", content)
    return content.strip()


def to_reference_articles(references: Sequence[ScrapedDocument]) -> List[ReferenceArticle]:
    return [
        ReferenceArticle(reference_title=ref.title, url=ref.url, content=ref.content)
        for ref in references
    ]


def build_last_resort_article(source: SourceArticle) -> SynthesizedArticle:
    """最后兜底：保留原标题，正文只给出原文链接"""
    title = escape(source.title)
    url = escape(source.url)
    content = (
        f"<h2>{title}</h2>\n\n"
        f"<p>This article covers important information about <strong>{title}</strong>. "
        "For the most comprehensive and up-to-date information on this topic, please visit the "
        "original source at:</p>\n\n"
        f'<p><a href="{url}" target="_blank" rel="noopener noreferrer">{url}</a></p>\n\n'
        "<p>This content has been preserved for reference purposes and includes citations to "
        "related industry resources below.</p>\n"
    )
    return SynthesizedArticle(
        title=source.title,
        content=content,
        author=Provenance.ORIGINAL,
        url=source.url,
        fallback_reason="internal_error",
    )


def _fallback_reason(error: LLMError) -> str:
    if isinstance(error, LLMCredentialsError):
        return "credentials"
    if isinstance(error, SafetyBlockedError):
        return "safety_blocked"
    return "backend_error"


class ArticleSynthesizer:
    """
    文章生成器

    Example:
        synthesizer = ArticleSynthesizer()
        article = await synthesizer.synthesize(source, references)
    """

    def __init__(self, llm: Optional[BaseLLM] = None, *, settings: Optional[LLMSettings] = None):
        self._llm = llm
        self._settings = settings

    @property
    def llm(self) -> BaseLLM:
        # API Key 在首次调用时才校验
        if self._llm is None:
            self._llm = get_llm(settings=self._settings)
        return self._llm

    async def generate(
        self,
        source: SourceArticle,
        references: Sequence[ScrapedDocument],
    ) -> SynthesizedArticle:
        """
        调用 LLM 生成文章；LLM 层面的失败降级为固定说明文本

        Raises:
            非 LLMError 的异常原样抛出，由 synthesize 兜底
        """
        logger.info(f"Generating optimized article for \"{source.title}\" ({len(references)} references)")
        reference_articles = to_reference_articles(references)

        try:
            prompt = build_prompt(source, references)
            response = await self.llm.acomplete([Message.user(prompt)])
            content = clean_generated_content(response.content)
            if not content:
                raise LLMError("Generated content was empty after cleanup", provider=self.llm.provider)
        except LLMError as e:
            reason = _fallback_reason(e)
            logger.warning(f"AI optimization failed ({reason}): {e.message}")
            logger.info("Falling back to manual content notice")
            return SynthesizedArticle(
                title=source.title,
                content=MANUAL_FALLBACK_TEXT,
                author=Provenance.MANUAL,
                url=source.url,
                reference_articles=reference_articles,
                fallback_reason=reason,
            )

        logger.info(f"AI optimization successful ({len(content)} characters)")
        return SynthesizedArticle(
            title=source.title,
            content=content,
            author=Provenance.AI,
            url=source.url,
            reference_articles=reference_articles,
        )

    async def synthesize(
        self,
        source: SourceArticle,
        references: Sequence[ScrapedDocument],
    ) -> SynthesizedArticle:
        """生成文章，永不抛出异常"""
        try:
            return await self.generate(source, references)
        except Exception as e:
            logger.error(f"Error in article optimization: {e}")
            logger.info("Using original content with source link")
            return build_last_resort_article(source)

    async def test_connection(self) -> bool:
        """发送一个极短的提示词检查 LLM 是否可用"""
        logger.info("Testing LLM connection...")
        try:
            reply = await self.llm.achat(CONNECTION_TEST_PROMPT)
        except Exception as e:
            logger.warning(f"LLM connection failed: {e}")
            logger.info("Optimization will fall back to manual content generation")
            return False

        logger.info(f"LLM connection successful: {reply[:100]}")
        return True

    async def aclose(self) -> None:
        if self._llm is not None:
            await self._llm.aclose()

"""
HTML extraction helpers shared by the fast and rendered tiers.

Both tiers feed raw HTML through the same functions so that a page yields the
same title/body whether it was fetched statically or rendered in a browser.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag


NOISE_SELECTORS = (
    "script, style, nav, header, footer, aside, iframe, noscript",
    ".advertisement, .ads, .social-share, .comments",
)

CONTENT_SELECTORS = (
    "article",
    '[role="main"]',
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content",
    "main",
    ".post",
    ".blog-post",
)

_BLOCK_TAGS = (
    "p", "div", "section", "li", "blockquote", "pre", "tr",
    "h1", "h2", "h3", "h4", "h5", "h6",
)

MIN_SELECTOR_CONTENT_LENGTH = 200
MIN_PARAGRAPH_LENGTH = 30

_INLINE_WS_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs per line and blank-line runs to a single blank line."""
    lines = [_INLINE_WS_RE.sub(" ", line).strip() for line in (text or "").split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def strip_noise(soup: BeautifulSoup) -> None:
    for selector in NOISE_SELECTORS:
        for node in soup.select(selector):
            node.decompose()


def _node_text(node: Tag) -> str:
    # Mark block boundaries so inline markup stays on one line.
    for br in node.find_all("br"):
        br.replace_with("\n")
    for block in node.find_all(_BLOCK_TAGS):
        block.insert_before("\n\n")
        block.append("\n\n")
    return normalize_text(node.get_text())


def extract_title(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    if h1:
        text = normalize_text(h1.get_text(" "))
        if text:
            return text
    if soup.title is not None:
        text = normalize_text(soup.title.get_text(" "))
        if text:
            return text
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        return normalize_text(str(og_title["content"]))
    return ""


def extract_by_selectors(soup: BeautifulSoup, min_length: int = MIN_SELECTOR_CONTENT_LENGTH) -> Optional[str]:
    """Return text of the first structural container longer than ``min_length``."""
    for selector in CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = _node_text(node)
        if len(text) > min_length:
            return text
    return None


def extract_paragraphs(soup: BeautifulSoup, min_length: int = MIN_PARAGRAPH_LENGTH) -> str:
    paragraphs: List[str] = []
    for p in soup.find_all("p"):
        text = normalize_text(p.get_text(" "))
        if len(text) > min_length:
            paragraphs.append(text)
    return "\n\n".join(paragraphs)


def extract_article(html: str, *, min_length: int = MIN_SELECTOR_CONTENT_LENGTH) -> Tuple[str, str]:
    """
    Extract ``(title, content)`` from an HTML document.

    Noise elements are removed first, then structural selectors are tried in
    priority order; when none yields enough text, every substantial paragraph
    is joined instead.
    """
    soup = parse_html(html)
    strip_noise(soup)
    title = extract_title(soup)
    content = extract_by_selectors(soup, min_length=min_length)
    if content is None:
        content = extract_paragraphs(soup)
    return title, content

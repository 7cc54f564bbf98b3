"""Browser-based rendering for JavaScript-heavy pages.

This module provides Playwright-based rendering for the second extraction tier.
It is only used after the static HTTP tier failed or under-delivered, since
launching a browser is far more expensive than a plain request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Optional

from utils.exceptions import RenderingError, RenderingResourceError

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Default timeouts in seconds
DEFAULT_NAVIGATION_TIMEOUT = 30.0
DEFAULT_SELECTOR_TIMEOUT = 5.0

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# Masks the properties automation detectors look at first.
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

window.chrome = {
    runtime: {},
    loadTimes: function() {},
    csi: function() {},
    app: {}
};

Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en']
});

Object.defineProperty(navigator, 'plugins', {
    get: () => [1, 2, 3, 4, 5]
});
"""

# Error text emitted by Chromium / the OS when the host is out of resources.
_RESOURCE_MARKERS = (
    "out of memory",
    "cannot allocate memory",
    "enomem",
    "resource temporarily unavailable",
    "too many open files",
    "target crashed",
)


@dataclass(slots=True, frozen=True)
class RenderedPage:
    """Result of rendering a page with a browser."""

    url: str
    final_url: str
    html: str
    title: Optional[str] = None

    @property
    def content_length(self) -> int:
        return len(self.html)


def classify_rendering_error(exc: BaseException, action: str) -> RenderingError:
    """Map a Playwright failure onto RenderingError or RenderingResourceError."""
    message = str(exc)
    lowered = message.lower()
    if isinstance(exc, MemoryError) or any(marker in lowered for marker in _RESOURCE_MARKERS):
        return RenderingResourceError(f"Rendering backend exhausted while trying to {action}: {message}")
    return RenderingError(f"Failed to {action}: {message}")


@asynccontextmanager
async def open_page(
    *,
    user_agent: str,
    headless: bool = True,
    navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT,
    stealth: bool = True,
) -> AsyncIterator["Page"]:
    """
    Open a browser page and always tear the browser down on exit.

    Args:
        user_agent: User agent reported by the browser context.
        headless: Whether to run the browser in headless mode.
        navigation_timeout: Default timeout for page operations, in seconds.
        stealth: Inject the automation-masking script before any page script runs.

    Raises:
        RenderingError: If Playwright is missing or the browser cannot start.
        RenderingResourceError: If the browser failed for lack of resources.
    """
    try:
        from playwright.async_api import async_playwright
    except ImportError as e:
        raise RenderingError(
            "Playwright is not installed. Install with: pip install playwright && playwright install chromium"
        ) from e

    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=headless, args=BROWSER_ARGS)
        except Exception as exc:
            raise classify_rendering_error(exc, "launch browser") from exc

        try:
            context = await browser.new_context(
                user_agent=user_agent,
                viewport=DEFAULT_VIEWPORT,
                locale="en-US",
                java_script_enabled=True,
                ignore_https_errors=True,
            )
            try:
                page = await context.new_page()
                if stealth:
                    await page.add_init_script(STEALTH_JS)
                page.set_default_timeout(navigation_timeout * 1000)
                yield page
            finally:
                await context.close()
        finally:
            await browser.close()


async def render_page(
    url: str,
    *,
    user_agent: str,
    headless: bool = True,
    navigation_timeout: float = DEFAULT_NAVIGATION_TIMEOUT,
    wait_until: str = "networkidle",
    wait_for_selector: Optional[str] = None,
    settle_delay: float = 0.0,
    stealth: bool = True,
) -> RenderedPage:
    """Render a page and return the script-executed HTML.

    Args:
        url: The URL to render.
        wait_until: When to consider navigation complete
            ("load", "domcontentloaded", "networkidle", "commit").
        wait_for_selector: Optional selector to wait for (bounded) before reading the DOM.
        settle_delay: Extra seconds to wait for dynamic content after load.

    Raises:
        RenderingError: If navigation fails or returns an HTTP error.
        RenderingResourceError: If the rendering backend runs out of resources.
    """
    async with open_page(
        user_agent=user_agent,
        headless=headless,
        navigation_timeout=navigation_timeout,
        stealth=stealth,
    ) as page:
        try:
            response = await page.goto(url, wait_until=wait_until, timeout=navigation_timeout * 1000)
        except Exception as exc:
            raise classify_rendering_error(exc, f"navigate to {url}") from exc

        if response is not None and response.status >= 400:
            raise RenderingError(f"HTTP {response.status} error for URL: {url}", source=url)

        if wait_for_selector:
            try:
                await page.wait_for_selector(wait_for_selector, timeout=DEFAULT_SELECTOR_TIMEOUT * 1000)
            except Exception as exc:
                logger.debug("Selector %s not found on %s: %s", wait_for_selector, url, exc)

        if settle_delay > 0:
            await page.wait_for_timeout(settle_delay * 1000)

        try:
            html = await page.content()
            title = await page.title()
        except Exception as exc:
            raise classify_rendering_error(exc, f"read rendered DOM of {url}") from exc

        return RenderedPage(url=url, final_url=page.url, html=html, title=title or None)

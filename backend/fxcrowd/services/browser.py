"""
Browser session management (Playwright).

The outlook pages render their numbers client-side and some sit behind an
automated-traffic interstitial, so a plain HTTP GET sees nothing useful.
Each adapter run owns one Chromium instance for its whole duration:

    async with browser_session(...) as page:
        content = await load_page(page, url, ...)

The context manager closes the browser on every exit path, including
navigation timeouts and crashes inside the `async with` body.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from fxcrowd.core.errors import ChallengeNotClearedError
from fxcrowd.core.extract import PageContent

log = logging.getLogger("services.browser")

# Visible-text markers of an interstitial.
CHALLENGE_TEXT_MARKERS = (
    "Just a moment",
    "Checking your browser",
    "Attention Required",
    "Verify you are human",
)
# Markup markers; these can linger in the HTML after the challenge has passed,
# so they only trigger the extra wait, never a failure.
CHALLENGE_MARKERS = CHALLENGE_TEXT_MARKERS + (
    "challenge-platform",
    "cf-chl",
)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920,1080",
]

Sleep = Callable[[float], Awaitable[None]]


def is_challenge(html: str) -> bool:
    return any(marker in html for marker in CHALLENGE_MARKERS)


def challenge_still_showing(content: PageContent) -> bool:
    return any(marker in content.text for marker in CHALLENGE_TEXT_MARKERS)


@asynccontextmanager
async def browser_session(
    *,
    user_agent: str,
    navigation_timeout_ms: int,
    headless: bool = True,
) -> AsyncIterator[Page]:
    """
    Scoped Chromium session yielding a ready-to-use Page.
    """
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=headless, args=LAUNCH_ARGS)
        try:
            context = await browser.new_context(
                user_agent=user_agent,
                viewport={"width": 1920, "height": 1080},
            )
            page = await context.new_page()
            page.set_default_navigation_timeout(navigation_timeout_ms)
            page.set_default_timeout(navigation_timeout_ms)
            yield page
        finally:
            # Now, we force-close the browser no matter how the body exited.
            # A failing close must not mask the original exception.
            try:
                await browser.close()
            except PlaywrightError as e:
                log.warning("browser close failed: %s", e)


async def _frame_texts(page: Page) -> tuple[str, ...]:
    texts = []
    for frame in page.frames:
        if frame == page.main_frame:
            continue
        try:
            texts.append(await frame.inner_text("body"))
        except PlaywrightError as e:
            # Cross-origin or detached frames are common; they just contribute nothing.
            log.debug("frame %s unreadable: %s", frame.url, e)
    return tuple(texts)


async def read_content(page: Page) -> PageContent:
    html = await page.content()
    try:
        text = await page.inner_text("body")
    except PlaywrightError:
        text = ""
    return PageContent(html=html, text=text, frame_texts=await _frame_texts(page))


async def load_page(
    page: Page,
    url: str,
    *,
    settle_seconds: float,
    challenge_wait_seconds: float,
    navigation_timeout_ms: int,
    sleep: Sleep = asyncio.sleep,
) -> PageContent:
    """
    Navigate, wait for the page to settle, and return its content.

    There is no reliable "data ready" signal, so we wait a fixed settle delay.
    If a challenge interstitial is showing we wait longer and re-read once; a
    page still showing the challenge after that raises ChallengeNotClearedError.
    """
    log.debug("navigating to %s", url)
    await page.goto(url, wait_until="domcontentloaded", timeout=navigation_timeout_ms)
    await sleep(settle_seconds)

    content = await read_content(page)
    if is_challenge(content.html):
        log.info("challenge page detected at %s, waiting %.1fs", url, challenge_wait_seconds)
        await sleep(challenge_wait_seconds)
        content = await read_content(page)
        if challenge_still_showing(content):
            raise ChallengeNotClearedError(f"challenge page did not clear at {url}")
    return content

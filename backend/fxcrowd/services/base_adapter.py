"""
Source Adapter base class.

Design Pattern: Adapter + Tagged Result.
Each outlook site gets one subclass that only declares *what* is different
about it (URL, which side is printed first, script hints, text templates).
The shared run loop here handles:
1. Session lifecycle: one exclusive browser session per run, always released.
2. Extraction: the ordered strategy cascade, first usable result wins.
3. Error containment: nothing raised inside a run escapes `scrape()`; the
   caller always gets a ScrapeResult with success=True/False.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncContextManager, Callable

from fxcrowd.config import settings
from fxcrowd.core.extract import (
    LONG_FIRST,
    PageContent,
    Strategy,
    TextTemplate,
    first_non_empty,
    script_strategy,
    table_strategy,
    text_strategy,
)
from fxcrowd.core.normalize import CanonicalSentiment, normalize_records
from fxcrowd.models import now_utc
from fxcrowd.services.browser import Sleep, browser_session, load_page

log = logging.getLogger("services.adapter")

NO_DATA = "no data found"

SessionFactory = Callable[..., AsyncContextManager]


@dataclass
class ScrapeResult:
    """
    Outcome of one adapter run.
    success means "at least one valid canonical record", not "the page loaded".
    """
    success: bool
    source: str
    data: list[CanonicalSentiment] = field(default_factory=list)
    error: str | None = None
    timestamp: datetime = field(default_factory=now_utc)
    strategy: str | None = None

    @classmethod
    def failed(cls, source: str, error: str, timestamp: datetime | None = None) -> "ScrapeResult":
        return cls(success=False, source=source, data=[], error=error, timestamp=timestamp or now_utc())

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "source": self.source,
            "data": [d.as_dict() for d in self.data],
            "error": self.error,
            "timestamp": self.timestamp,
            "strategy": self.strategy,
        }


class SourceAdapter:
    """
    Base class for all outlook-page adapters.

    Subclasses set the class attributes below; most never override a method.
    """
    name: str = ""
    url: str = ""
    # Which side the page prints first. A wrong value silently inverts the
    # contrarian signal, so each adapter pins it explicitly.
    side_order: tuple[str, str] = LONG_FIRST
    min_cells: int = 3
    row_selector: str = "tr"
    script_hints: tuple[str, ...] = ()
    text_templates: tuple[TextTemplate, ...] = ()

    def __init__(
        self,
        *,
        session_factory: SessionFactory = browser_session,
        settle_seconds: float = settings.settle_seconds,
        challenge_wait_seconds: float = settings.challenge_wait_seconds,
        navigation_timeout_ms: int = settings.navigation_timeout_ms,
        user_agent: str = settings.browser_user_agent,
        headless: bool = settings.browser_headless,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.session_factory = session_factory
        self.settle_seconds = settle_seconds
        self.challenge_wait_seconds = challenge_wait_seconds
        self.navigation_timeout_ms = navigation_timeout_ms
        self.user_agent = user_agent
        self.headless = headless
        self.sleep = sleep
        self.clock = clock

    def strategies(self) -> list[Strategy]:
        return [
            table_strategy(self.side_order, self.min_cells, self.row_selector),
            script_strategy(self.script_hints),
            text_strategy(self.text_templates),
        ]

    def extract(self, content: PageContent) -> tuple[str | None, list[CanonicalSentiment]]:
        return first_non_empty(
            self.strategies(),
            content,
            lambda raw: normalize_records(raw, self.name),
        )

    async def fetch(self) -> PageContent:
        async with self.session_factory(
            user_agent=self.user_agent,
            navigation_timeout_ms=self.navigation_timeout_ms,
            headless=self.headless,
        ) as page:
            return await load_page(
                page,
                self.url,
                settle_seconds=self.settle_seconds,
                challenge_wait_seconds=self.challenge_wait_seconds,
                navigation_timeout_ms=self.navigation_timeout_ms,
                sleep=self.sleep,
            )

    async def scrape(self) -> ScrapeResult:
        timestamp = self.clock()
        log.debug("starting %s scraper", self.name)
        try:
            content = await self.fetch()
            strategy, data = self.extract(content)
        except Exception as e:
            # Adapter boundary: navigation timeouts, browser crashes and
            # unresolved challenges all become a failed result.
            log.exception("%s scraper error: %s", self.name, e)
            return ScrapeResult.failed(self.name, str(e) or type(e).__name__, timestamp)

        if not data:
            log.warning("%s: %s", self.name, NO_DATA)
            return ScrapeResult.failed(self.name, NO_DATA, timestamp)

        log.info("%s scraped %d instruments (%s strategy)", self.name, len(data), strategy)
        return ScrapeResult(
            success=True,
            source=self.name,
            data=data,
            timestamp=timestamp,
            strategy=strategy,
        )

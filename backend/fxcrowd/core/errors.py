"""
Exception types raised inside the pipeline.

Adapters never let these escape: they are converted into a failed ScrapeResult
at the adapter boundary. The orchestrator-level errors are mapped to HTTP
status codes by the routers.
"""
from __future__ import annotations


class FxcrowdError(Exception):
    """Base class for all fxcrowd errors."""


class ChallengeNotClearedError(FxcrowdError):
    """The source kept serving an anti-automation interstitial after the extra wait."""


class UnknownSourceError(FxcrowdError, KeyError):
    """A control-surface call named an adapter that is not registered."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown source: {self.name}"


class PassInProgressError(FxcrowdError):
    """A scrape pass was requested while another one is still running."""

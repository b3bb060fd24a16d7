"""Extraction strategy contract and the podcast strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod

from feeds.providers.content_types import ContentKind, ExtractionResult, PodcastResult

PODCAST_UNAVAILABLE = (
    "Podcast transcripts are not available directly. "
    "Check the source website for a transcript."
)


class ExtractionStrategy(ABC):
    """Turns one kind of content URL into an extraction result."""

    @property
    @abstractmethod
    def kind(self) -> ContentKind:
        """The content kind this strategy handles."""
        ...

    @abstractmethod
    async def extract(self, url: str, title: str | None = None) -> ExtractionResult:
        """Extract text for a URL.

        Expected "not extractable" outcomes and unexpected failures are both
        returned as a result with ``error`` set; this never raises.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the strategy."""


class PodcastStrategy(ExtractionStrategy):
    """Podcasts have no generic transcript source; point back at the episode."""

    @property
    def kind(self) -> ContentKind:
        return ContentKind.PODCAST

    async def extract(self, url: str, title: str | None = None) -> PodcastResult:
        return PodcastResult(
            text=None,
            title=title,
            error=PODCAST_UNAVAILABLE,
            fallback_url=url,
        )

"""Extraction dispatcher: classify a request and run the matching strategy.

Provides:
- Extractor, which owns one strategy per content kind
- get_extractor() for a process-wide instance built from Settings
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping

import httpx

from feeds.core.bluesky import BlueskyFetcher
from feeds.core.classifier import PODCAST_SOURCES, classify
from feeds.core.content_fetcher import FETCH_TIMEOUT, ArticleFetcher, new_http_client
from feeds.core.settings import Settings
from feeds.core.strategies import ExtractionStrategy, PodcastStrategy
from feeds.core.youtube import CaptionDownloader, YouTubeTranscriptFetcher
from feeds.providers.content_types import (
    ContentKind,
    ExtractionRequest,
    ExtractionResult,
    InvalidRequestError,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExtractionRequest, ExtractionResult], None]


class Extractor:
    """Turns extraction requests into results.

    Only malformed requests raise; every strategy failure comes back as a
    result with ``error`` set so callers can report it per item.
    """

    def __init__(
        self,
        strategies: Mapping[ContentKind, ExtractionStrategy],
        *,
        podcast_sources: Iterable[str] = PODCAST_SOURCES,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        missing = [kind.value for kind in ContentKind if kind not in strategies]
        if missing:
            raise ValueError(f"No extraction strategy for: {', '.join(missing)}")
        for kind, strategy in strategies.items():
            if strategy.kind != kind:
                raise ValueError(
                    f"Strategy {type(strategy).__name__} handles {strategy.kind.value}, "
                    f"not {kind.value}"
                )

        self._strategies = dict(strategies)
        self._podcast_sources = tuple(podcast_sources)
        self._client = client

    @classmethod
    def create(
        cls,
        client: httpx.AsyncClient | None = None,
        *,
        settings: Settings | None = None,
        downloader: CaptionDownloader | None = None,
    ) -> Extractor:
        """Build an extractor with the standard strategies.

        A client passed in stays owned by the caller; otherwise one is
        created and closed by ``close()``.
        """
        owns_client = client is None
        timeout = settings.fetch_timeout if settings else FETCH_TIMEOUT
        http = client or new_http_client(timeout)

        if downloader is None and settings is not None:
            downloader = CaptionDownloader(
                ytdlp_bin=settings.ytdlp_bin,
                languages=settings.caption_languages,
                timeout=settings.caption_timeout,
            )

        article = ArticleFetcher(http, timeout=timeout)
        strategies: dict[ContentKind, ExtractionStrategy] = {
            ContentKind.ARTICLE: article,
            ContentKind.YOUTUBE: YouTubeTranscriptFetcher(downloader),
            ContentKind.BLUESKY: BlueskyFetcher(http, article),
            ContentKind.PODCAST: PodcastStrategy(),
        }
        podcast_sources = settings.podcast_sources if settings else PODCAST_SOURCES
        return cls(
            strategies,
            podcast_sources=podcast_sources,
            client=http if owns_client else None,
        )

    async def close(self) -> None:
        for strategy in self._strategies.values():
            await strategy.close()
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> Extractor:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Classify a request and extract its text.

        Raises:
            InvalidRequestError: If the request has no URL.
        """
        if not request.url or not request.url.strip():
            raise InvalidRequestError("URL is required")

        kind = classify(request.url, request.source, podcast_sources=self._podcast_sources)
        logger.debug(f"Classified {request.url} as {kind.value}")

        result = await self._strategies[kind].extract(request.url, request.title)

        if result.ok:
            logger.info(f"Extracted {len(result.text or '')} chars ({result.kind.value}) from {request.url}")
        else:
            logger.info(f"No text for {request.url} ({result.kind.value}): {result.error}")
        return result

    async def extract_batch(
        self,
        requests: Iterable[ExtractionRequest],
        on_progress: ProgressCallback | None = None,
    ) -> list[ExtractionResult]:
        """Extract several requests one after another.

        Sequential to avoid bursting requests at third-party hosts.
        """
        results: list[ExtractionResult] = []
        for request in requests:
            result = await self.extract(request)
            results.append(result)
            if on_progress:
                on_progress(request, result)
        return results


# Module-level instance for convenience
_extractor: Extractor | None = None


def get_extractor() -> Extractor:
    """Get or create the module-level Extractor instance."""
    global _extractor
    if _extractor is None:
        _extractor = Extractor.create(settings=Settings.from_env())
    return _extractor


async def close_extractor() -> None:
    global _extractor
    if _extractor is not None:
        await _extractor.close()
        _extractor = None

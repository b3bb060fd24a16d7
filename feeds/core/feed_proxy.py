"""Pass-through fetch of feed documents with retry on timeouts.

Provides:
- FeedProxy.fetch() returning the upstream status, content type and body
- fetch_all_feeds() for fetching a source list one feed at a time
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

import httpx

from feeds.core.sync import SourceEntry
from feeds.providers.feed_sources import DEFAULT_SOURCES

logger = logging.getLogger(__name__)

FEED_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; FeedsApp/1.0)",
    "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
}

FEED_FETCH_TIMEOUT = 15.0  # seconds per attempt
FEED_FETCH_RETRIES = 2
FEED_RETRY_BACKOFF = 1.0  # seconds, multiplied by the attempt number


class FetchErrorType(str, Enum):
    """Classification of feed fetch errors for retry strategy."""

    TIMEOUT = "timeout"  # Retriable
    TRANSPORT = "transport"  # Retriable (DNS, refused, reset)
    HTTP_STATUS = "http_status"  # Not retriable, upstream answered
    INVALID = "invalid"  # Not retriable (bad URL, redirect loop)


RETRIABLE_ERRORS = {FetchErrorType.TIMEOUT, FetchErrorType.TRANSPORT}


class FeedFetchError(Exception):
    """A feed could not be fetched."""

    def __init__(self, message: str, error_type: FetchErrorType, status: int | None = None):
        super().__init__(message)
        self.error_type = error_type
        self.status = status

    @property
    def retriable(self) -> bool:
        return self.error_type in RETRIABLE_ERRORS


def classify_error(exc: Exception) -> FetchErrorType:
    """Map an httpx exception to a FetchErrorType by its type."""
    # UnsupportedProtocol is a TransportError but retrying cannot help
    if isinstance(exc, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return FetchErrorType.INVALID
    if isinstance(exc, httpx.TimeoutException):
        return FetchErrorType.TIMEOUT
    if isinstance(exc, httpx.TransportError):
        return FetchErrorType.TRANSPORT
    if isinstance(exc, httpx.HTTPStatusError):
        return FetchErrorType.HTTP_STATUS
    return FetchErrorType.INVALID


@dataclass(frozen=True)
class FeedDocument:
    status: int
    content_type: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class FeedProxy:
    """Fetches feed documents, retrying timeouts and transport failures.

    A response with an error status is returned as-is, never retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        retries: int = FEED_FETCH_RETRIES,
        backoff: float = FEED_RETRY_BACKOFF,
        timeout: float = FEED_FETCH_TIMEOUT,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.retries = retries
        self.backoff = backoff
        self.timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=FEED_HEADERS,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FeedDocument:
        """Fetch a feed document.

        Raises:
            FeedFetchError: After the last retry, or at once for non-retriable errors.
        """
        client = self._get_client()

        for attempt in range(self.retries + 1):
            try:
                response = await client.get(
                    url,
                    headers=FEED_HEADERS,
                    timeout=httpx.Timeout(self.timeout),
                )
                content_type = response.headers.get("content-type") or "application/xml"
                if response.is_success:
                    logger.info(f"Fetched {url}, length: {len(response.text)}")
                else:
                    logger.warning(f"Failed to fetch {url}: {response.status_code}")
                return FeedDocument(
                    status=response.status_code,
                    content_type=content_type,
                    body=response.text,
                )

            except (httpx.HTTPError, httpx.InvalidURL) as e:
                error_type = classify_error(e)
                if error_type is FetchErrorType.TIMEOUT:
                    message = "Request timeout"
                else:
                    message = str(e) or type(e).__name__

                if error_type not in RETRIABLE_ERRORS or attempt == self.retries:
                    raise FeedFetchError(message, error_type) from e

                wait_time = self.backoff * (attempt + 1)
                logger.info(
                    f"Retry {attempt + 1}/{self.retries} for {url} "
                    f"after {error_type.value}, waiting {wait_time:.1f}s"
                )
                await asyncio.sleep(wait_time)

        # Should not reach here, loop always returns or raises
        raise FeedFetchError("Feed fetch retry handling failed", FetchErrorType.INVALID)


@dataclass
class FeedFetchSummary:
    """Outcome of fetching a list of sources."""

    results: list[tuple[SourceEntry, FeedDocument]] = field(default_factory=list)
    errors: list[tuple[SourceEntry, FeedFetchError]] = field(default_factory=list)


async def fetch_all_feeds(
    proxy: FeedProxy,
    sources: Iterable[SourceEntry] = DEFAULT_SOURCES,
    on_progress: Callable[[str, bool], None] | None = None,
) -> FeedFetchSummary:
    """Fetch every enabled source one at a time.

    Sequential to avoid bursting requests at feed hosts. ``on_progress`` is
    called with the source name and whether it succeeded.
    """
    summary = FeedFetchSummary()

    for source in sources:
        if not source.enabled:
            continue

        try:
            document = await proxy.fetch(source.url)
            if not document.ok:
                raise FeedFetchError(
                    f"Failed to fetch {source.name}: {document.status}",
                    FetchErrorType.HTTP_STATUS,
                    status=document.status,
                )
        except FeedFetchError as e:
            summary.errors.append((source, e))
            if on_progress:
                on_progress(source.name, False)
            continue

        summary.results.append((source, document))
        if on_progress:
            on_progress(source.name, True)

    return summary

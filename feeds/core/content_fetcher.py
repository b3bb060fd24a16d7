"""Article strategy: fetch a web page and extract its main text.

Uses trafilatura for readability-style content extraction.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re

import httpx
import trafilatura

from feeds.core.strategies import ExtractionStrategy
from feeds.providers.content_types import ArticleResult, ContentKind

logger = logging.getLogger(__name__)

# Browser-like headers; some sites block obvious bots outright
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,no;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Maximum content size to fetch (10MB)
MAX_CONTENT_SIZE = 10 * 1024 * 1024

# HTTP timeout
FETCH_TIMEOUT = 30.0

NO_CONTENT_ERROR = (
    "Could not extract the article content. "
    "The site may be blocking requests or have an unusual structure."
)

_INLINE_WS_RE = re.compile(r"[^\S\n]+")
_LINE_EDGE_RE = re.compile(r" ?\n ?")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to one space and blank-line runs to one blank line."""
    text = _INLINE_WS_RE.sub(" ", text)
    text = _LINE_EDGE_RE.sub("\n", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def new_http_client(timeout: float = FETCH_TIMEOUT) -> httpx.AsyncClient:
    """Create the HTTP client shared by the network-backed strategies."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10),
    )


class ArticleFetcher(ExtractionStrategy):
    """Extracts article text from web pages.

    The HTTP client may be shared with other strategies; a client created
    here is owned by this fetcher and closed by ``close()``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = FETCH_TIMEOUT,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def kind(self) -> ContentKind:
        return ContentKind.ARTICLE

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = new_http_client(self._timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _extract_main_content(self, html: str, url: str) -> tuple[str | None, str | None]:
        """Run trafilatura on a page, returning (text, title)."""
        raw = trafilatura.extract(
            html,
            url=url,
            output_format="json",
            with_metadata=True,
            include_comments=False,
            include_tables=True,
            favor_recall=True,
        )
        if not raw:
            return None, None
        data = json.loads(raw)
        return data.get("text") or None, data.get("title") or None

    async def extract(self, url: str, title: str | None = None) -> ArticleResult:
        """Fetch and extract content from a URL.

        Args:
            url: The page to fetch.
            title: Caller-supplied title, used when the page has none.

        Returns:
            ArticleResult with extracted text or a user-facing error.
        """
        try:
            client = self._get_client()
            response = await client.get(url, headers=BROWSER_HEADERS)

            if not response.is_success:
                logger.info(f"Article fetch for {url} returned HTTP {response.status_code}")
                return ArticleResult(
                    title=title,
                    error=f"Could not fetch article: HTTP {response.status_code}",
                )

            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > MAX_CONTENT_SIZE:
                return ArticleResult(
                    title=title,
                    error=f"Article too large: {content_length} bytes",
                )

            html = response.text

            # trafilatura is CPU-bound
            loop = asyncio.get_running_loop()
            text, page_title = await loop.run_in_executor(
                None, self._extract_main_content, html, url
            )

            if not text or not text.strip():
                return ArticleResult(title=title, error=NO_CONTENT_ERROR)

            return ArticleResult(
                text=normalize_text(text),
                title=page_title or title,
            )

        except httpx.TimeoutException:
            return ArticleResult(
                title=title,
                error=f"Error fetching article: request timed out after {self._timeout}s",
            )

        except httpx.HTTPError as e:
            logger.warning(f"Transport error fetching {url}: {e}")
            return ArticleResult(title=title, error=f"Error fetching article: {e}")

        except Exception as e:
            logger.exception(f"Unexpected error fetching {url}")
            return ArticleResult(
                title=title,
                error=f"Error fetching article: {type(e).__name__}: {e}",
            )

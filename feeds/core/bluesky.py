"""Bluesky strategy: read a post's text through the public AppView API.

If the API answers with an error status the post page is handed to the
article strategy instead, so the result may come back as an article.
"""

from __future__ import annotations

import logging
import re

import httpx

from feeds.core.content_fetcher import ArticleFetcher
from feeds.core.strategies import ExtractionStrategy
from feeds.providers.content_types import BlueskyResult, ContentKind, ExtractionResult

logger = logging.getLogger(__name__)

BLUESKY_API_URL = "https://public.api.bsky.app/xrpc/app.bsky.feed.getPostThread"
POST_URL_RE = re.compile(r"bsky\.app/profile/([^/]+)/post/([^/?#]+)")

PARSE_ERROR = "Could not parse the Bluesky URL"
NO_TEXT_ERROR = "Could not load the Bluesky post"


def parse_post_url(url: str) -> tuple[str, str] | None:
    """Return (handle, post_id) from a bsky.app post URL, or None."""
    match = POST_URL_RE.search(url)
    if not match:
        return None
    return match.group(1), match.group(2)


class BlueskyFetcher(ExtractionStrategy):
    """Extracts the text of a single Bluesky post."""

    def __init__(self, client: httpx.AsyncClient, article_fetcher: ArticleFetcher) -> None:
        self._client = client
        self._article_fetcher = article_fetcher

    @property
    def kind(self) -> ContentKind:
        return ContentKind.BLUESKY

    async def extract(self, url: str, title: str | None = None) -> ExtractionResult:
        parsed = parse_post_url(url)
        if parsed is None:
            return BlueskyResult(title=title, error=PARSE_ERROR)

        handle, post_id = parsed
        params = {
            "uri": f"at://{handle}/app.bsky.feed.post/{post_id}",
            "depth": "0",
        }

        try:
            response = await self._client.get(BLUESKY_API_URL, params=params)

            if not response.is_success:
                logger.info(
                    f"Bluesky API returned HTTP {response.status_code} for {url}, "
                    "falling back to article extraction"
                )
                return await self._article_fetcher.extract(url, title)

            data = response.json()
            post = ((data or {}).get("thread") or {}).get("post") or {}
            text = (post.get("record") or {}).get("text")

            if not text:
                return BlueskyResult(title=title, error=NO_TEXT_ERROR)

            return BlueskyResult(text=text, title=title)

        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Error fetching Bluesky post {url}: {e}")
            return BlueskyResult(title=title, error=f"Error fetching Bluesky post: {e}")

        except Exception as e:
            logger.exception(f"Unexpected error fetching Bluesky post {url}")
            return BlueskyResult(
                title=title,
                error=f"Error fetching Bluesky post: {type(e).__name__}: {e}",
            )

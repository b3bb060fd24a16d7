"""Map a content URL and its source label to a content kind."""

from __future__ import annotations

from typing import Iterable

from feeds.providers.content_types import ContentKind

YOUTUBE_URL_PATTERNS = ("youtube.com/watch", "youtu.be/", "youtube.com/shorts")
BLUESKY_DOMAIN = "bsky.app"
BLUESKY_SOURCE_KEYWORD = "bluesky"
PODCAST_SOURCES = ("podcast", "latent space", "lex fridman", "huberman")


def classify(
    url: str,
    source: str | None = None,
    *,
    podcast_sources: Iterable[str] = PODCAST_SOURCES,
) -> ContentKind:
    """Return the content kind for a URL.

    Checks run in a fixed order and the first match wins:
    YouTube URL, Bluesky URL or source, podcast source keyword, article.
    """
    lower_url = url.lower()
    lower_source = (source or "").lower()

    if any(pattern in lower_url for pattern in YOUTUBE_URL_PATTERNS):
        return ContentKind.YOUTUBE

    if BLUESKY_DOMAIN in lower_url or BLUESKY_SOURCE_KEYWORD in lower_source:
        return ContentKind.BLUESKY

    if any(keyword.lower() in lower_source for keyword in podcast_sources):
        return ContentKind.PODCAST

    return ContentKind.ARTICLE

"""Tests for classifier.py"""

import pytest

from feeds.core.classifier import classify
from feeds.providers.content_types import ContentKind


class TestYouTube:
    """YouTube URLs win over any source label."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/shorts/dQw4w9WgXcQ",
            "HTTPS://WWW.YOUTUBE.COM/WATCH?V=dQw4w9WgXcQ",
        ],
    )
    def test_youtube_urls(self, url):
        assert classify(url, None) == ContentKind.YOUTUBE

    def test_youtube_beats_podcast_source(self):
        assert classify("https://youtu.be/abc12345678", "Lex Fridman Podcast") == ContentKind.YOUTUBE

    def test_youtube_beats_bluesky_source(self):
        assert classify("https://youtu.be/abc12345678", "Bluesky") == ContentKind.YOUTUBE

    def test_channel_page_is_not_youtube(self):
        assert classify("https://www.youtube.com/@twominutepapers", None) == ContentKind.ARTICLE


class TestBluesky:
    def test_bsky_url_without_source(self):
        assert classify("https://bsky.app/profile/alice.test/post/xyz", "") == ContentKind.BLUESKY

    def test_bluesky_source_label(self):
        assert classify("https://example.com/post/1", "Ethan Mollick (Bluesky)") == ContentKind.BLUESKY

    def test_bluesky_beats_podcast(self):
        assert classify("https://bsky.app/profile/a/post/b", "Some Podcast") == ContentKind.BLUESKY


class TestPodcast:
    @pytest.mark.parametrize(
        "source",
        ["Latent Space Podcast", "LATENT SPACE", "Lex Fridman", "Huberman Lab", "practical ai podcast"],
    )
    def test_podcast_sources(self, source):
        assert classify("https://example.com/episode/1", source) == ContentKind.PODCAST

    def test_custom_keywords(self):
        kind = classify("https://example.com/ep", "Hard Fork", podcast_sources=["hard fork"])
        assert kind == ContentKind.PODCAST

    def test_custom_keywords_replace_defaults(self):
        kind = classify("https://example.com/ep", "Some Podcast", podcast_sources=["hard fork"])
        assert kind == ContentKind.ARTICLE


class TestArticle:
    def test_default_is_article(self):
        assert classify("https://simonwillison.net/2024/post", "Simon Willison") == ContentKind.ARTICLE

    def test_none_source(self):
        assert classify("https://example.com", None) == ContentKind.ARTICLE

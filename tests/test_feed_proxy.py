"""Tests for feed_proxy.py"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from feeds.core.feed_proxy import (
    FEED_HEADERS,
    FeedFetchError,
    FeedProxy,
    FetchErrorType,
    classify_error,
    fetch_all_feeds,
)
from feeds.core.classifier import classify
from feeds.core.sync import SourceEntry
from feeds.providers.content_types import ContentKind
from feeds.providers.feed_sources import DEFAULT_SOURCES

RSS = "<?xml version='1.0'?><rss><channel><title>t</title></channel></rss>"


def make_proxy(handler, **kwargs) -> FeedProxy:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return FeedProxy(client, **kwargs)


class TestClassifyError:
    def test_timeout(self):
        assert classify_error(httpx.ReadTimeout("t")) == FetchErrorType.TIMEOUT
        assert classify_error(httpx.ConnectTimeout("t")) == FetchErrorType.TIMEOUT

    def test_transport(self):
        assert classify_error(httpx.ConnectError("c")) == FetchErrorType.TRANSPORT
        assert classify_error(httpx.RemoteProtocolError("r")) == FetchErrorType.TRANSPORT

    def test_invalid(self):
        assert classify_error(httpx.TooManyRedirects("loop")) == FetchErrorType.INVALID
        assert classify_error(httpx.UnsupportedProtocol("ftp")) == FetchErrorType.INVALID
        assert classify_error(httpx.InvalidURL("bad")) == FetchErrorType.INVALID

    def test_retriable_flag(self):
        assert FeedFetchError("x", FetchErrorType.TIMEOUT).retriable is True
        assert FeedFetchError("x", FetchErrorType.HTTP_STATUS).retriable is False


@pytest.mark.asyncio
class TestFeedProxy:
    async def test_success(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text=RSS, headers={"content-type": "application/rss+xml"})

        doc = await make_proxy(handler).fetch("https://example.com/feed")

        assert doc.ok
        assert doc.status == 200
        assert doc.content_type == "application/rss+xml"
        assert doc.body == RSS
        assert seen["user-agent"] == FEED_HEADERS["User-Agent"]

    async def test_default_content_type(self):
        doc = await make_proxy(lambda r: httpx.Response(200, content=b"<rss/>")).fetch("https://x.test")
        assert doc.content_type == "application/xml"

    async def test_error_status_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with patch("feeds.core.feed_proxy.asyncio.sleep", new=AsyncMock()) as sleep:
            doc = await make_proxy(handler).fetch("https://example.com/feed")

        assert doc.status == 503
        assert not doc.ok
        assert len(calls) == 1
        sleep.assert_not_awaited()

    async def test_timeout_retried_with_linear_backoff(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, text=RSS)

        with patch("feeds.core.feed_proxy.asyncio.sleep", new=AsyncMock()) as sleep:
            doc = await make_proxy(handler, retries=2, backoff=1.0).fetch("https://example.com/feed")

        assert doc.body == RSS
        assert len(calls) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_retries_exhausted(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        with patch("feeds.core.feed_proxy.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(FeedFetchError) as exc_info:
                await make_proxy(handler, retries=2).fetch("https://example.com/feed")

        assert exc_info.value.error_type == FetchErrorType.TRANSPORT
        assert len(calls) == 3

    async def test_timeout_message(self):
        def handler(request):
            raise httpx.ConnectTimeout("x", request=request)

        with patch("feeds.core.feed_proxy.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(FeedFetchError, match="Request timeout") as exc_info:
                await make_proxy(handler, retries=1).fetch("https://example.com/feed")
        assert exc_info.value.error_type == FetchErrorType.TIMEOUT

    async def test_redirect_loop_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(302, headers={"Location": "https://example.com/feed"})

        with pytest.raises(FeedFetchError) as exc_info:
            await make_proxy(handler).fetch("https://example.com/feed")

        assert exc_info.value.error_type == FetchErrorType.INVALID
        assert exc_info.value.retriable is False

    async def test_unsupported_scheme_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.UnsupportedProtocol("Request URL has an unsupported protocol", request=request)

        with patch("feeds.core.feed_proxy.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(FeedFetchError) as exc_info:
                await make_proxy(handler).fetch("ftp://example.com/feed")

        assert exc_info.value.error_type == FetchErrorType.INVALID
        assert len(calls) == 1
        sleep.assert_not_awaited()

    async def test_invalid_url_raises_fetch_error(self):
        def handler(request):
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        with pytest.raises(FeedFetchError) as exc_info:
            await make_proxy(handler).fetch("https://example.com/feed")

        assert exc_info.value.error_type == FetchErrorType.INVALID


@pytest.mark.asyncio
class TestFetchAllFeeds:
    async def test_sequential_with_progress(self):
        order = []

        def handler(request):
            order.append(str(request.url))
            if request.url.host == "broken.test":
                return httpx.Response(404)
            return httpx.Response(200, text=RSS)

        sources = [
            SourceEntry("One", "https://one.test/feed"),
            SourceEntry("Broken", "https://broken.test/feed"),
            SourceEntry("Off", "https://off.test/feed", enabled=False),
            SourceEntry("Two", "https://two.test/feed"),
        ]
        progress = []

        summary = await fetch_all_feeds(
            make_proxy(handler), sources, on_progress=lambda name, ok: progress.append((name, ok))
        )

        assert order == ["https://one.test/feed", "https://broken.test/feed", "https://two.test/feed"]
        assert progress == [("One", True), ("Broken", False), ("Two", True)]
        assert [s.name for s, _ in summary.results] == ["One", "Two"]
        assert len(summary.errors) == 1
        source, error = summary.errors[0]
        assert source.name == "Broken"
        assert error.error_type == FetchErrorType.HTTP_STATUS
        assert error.status == 404


class TestDefaultSources:
    def test_urls_unique(self):
        urls = [s.url for s in DEFAULT_SOURCES]
        assert len(urls) == len(set(urls))

    def test_podcast_sources_classify_as_podcast(self):
        podcasts = [s for s in DEFAULT_SOURCES if "Podcast" in s.name]
        assert podcasts
        for source in podcasts:
            assert classify("https://example.com/episode", source.name) == ContentKind.PODCAST

    @pytest.mark.asyncio
    async def test_fetch_all_defaults_to_builtin_list(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, text=RSS)

        summary = await fetch_all_feeds(make_proxy(handler))

        assert len(summary.results) == len(DEFAULT_SOURCES)
        assert seen[0] == DEFAULT_SOURCES[0].url

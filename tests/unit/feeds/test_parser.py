"""Tests for RSS fetching and parsing."""

import asyncio
import socket
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import feedparser
import httpx
import pytest

from podvault.config.schema import FeedsConfig
from podvault.feeds.parser import RSSParser
from podvault.utils.errors import (
    DNSResolutionError,
    FeedConnectionError,
    FeedFetchError,
    FeedTimeoutError,
    FeedTooLargeError,
    HTTPStatusError,
    InvalidFeedError,
)

FEED_URL = "https://example.com/feed.xml"


def rss(items: str, channel_extra: str = "") -> bytes:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Fallback Podcast</title>
    {channel_extra}
    {items}
  </channel>
</rss>
""".encode()


def make_parser(handler, **config) -> RSSParser:
    return RSSParser(config=FeedsConfig(**config), transport=httpx.MockTransport(handler))


def serve(content: bytes, status_code: int = 200, headers: dict | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content, headers=headers)

    return handler


class TestRSSParserFetch:
    """Tests for RSSParser.fetch."""

    @pytest.mark.asyncio
    async def test_fetch_sample_feed(self, sample_rss: bytes) -> None:
        """Test parsing podcast metadata and episodes."""
        feed = await make_parser(serve(sample_rss)).fetch(FEED_URL)

        assert feed.podcast.title == "Test Podcast"
        assert feed.podcast.feed_url == FEED_URL
        assert [e.guid for e in feed.episodes] == ["ep-2", "ep-1"]

        latest = feed.episodes[0]
        assert latest.title == "Episode 2"
        assert latest.duration == 3723
        assert latest.audio_url == "https://example.com/ep2.mp3"
        assert latest.pub_date == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)
        assert feed.episodes[1].duration == 2710

    @pytest.mark.asyncio
    async def test_itunes_image_preferred(self, sample_rss: bytes) -> None:
        """Test itunes:image wins over <image><url>."""
        feed = await make_parser(serve(sample_rss)).fetch(FEED_URL)
        assert feed.podcast.artwork_url == "https://example.com/itunes-image.jpg"

    @pytest.mark.asyncio
    async def test_rss_image_fallback(self) -> None:
        """Test <image><url> is used without itunes:image."""
        content = rss("", "<image><url>https://example.com/rss.jpg</url></image>")
        feed = await make_parser(serve(content)).fetch(FEED_URL)
        assert feed.podcast.artwork_url == "https://example.com/rss.jpg"

    @pytest.mark.asyncio
    async def test_sends_user_agent(self, sample_rss: bytes) -> None:
        """Test the configured User-Agent is sent."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=sample_rss)

        await make_parser(handler, user_agent="Podvault/test").fetch(FEED_URL)

        assert seen[0].headers["user-agent"] == "Podvault/test"
        assert "application/rss+xml" in seen[0].headers["accept"]

    @pytest.mark.asyncio
    async def test_empty_channel_is_valid(self) -> None:
        """Test a feed without items yields no episodes."""
        feed = await make_parser(serve(rss(""))).fetch(FEED_URL)
        assert feed.podcast.title == "Fallback Podcast"
        assert feed.episodes == []

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test non-2xx responses raise HTTPStatusError."""
        parser = make_parser(serve(b"missing", status_code=404))

        with pytest.raises(HTTPStatusError, match="HTTP 404: Not Found") as exc_info:
            await parser.fetch(FEED_URL)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_declared_size_over_limit(self) -> None:
        """Test Content-Length over the cap is rejected."""
        parser = make_parser(
            serve(b"x", headers={"content-length": str(11 * 1024 * 1024)})
        )
        with pytest.raises(FeedTooLargeError, match="maximum size"):
            await parser.fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_streamed_size_over_limit(self, sample_rss: bytes) -> None:
        """Test bodies growing past the cap are rejected."""
        parser = make_parser(serve(sample_rss), max_feed_bytes=100)
        with pytest.raises(FeedTooLargeError):
            await parser.fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_not_rss(self) -> None:
        """Test non-RSS documents raise InvalidFeedError."""
        parser = make_parser(serve(b"<html><body>Hello</body></html>"))
        with pytest.raises(InvalidFeedError, match="missing channel"):
            await parser.fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_atom_is_rejected(self) -> None:
        """Test Atom feeds are not accepted as RSS."""
        atom = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"><title>Atom</title></feed>"""
        with pytest.raises(InvalidFeedError):
            await make_parser(serve(atom)).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_request_timeout(self) -> None:
        """Test transport timeouts become FeedTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(FeedTimeoutError, match="Request timeout"):
            await make_parser(handler).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_dns_failure(self) -> None:
        """Test resolver failures become DNSResolutionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            try:
                raise socket.gaierror(-2, "Name or service not known")
            except socket.gaierror as e:
                raise httpx.ConnectError(str(e), request=request) from e

        with pytest.raises(DNSResolutionError, match="DNS resolution failed"):
            await make_parser(handler).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_connection_refused(self) -> None:
        """Test other connect errors become FeedConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(FeedConnectionError):
            await make_parser(handler).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_connection_reset(self) -> None:
        """Test protocol errors mid-response become FeedConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("peer closed connection", request=request)

        with pytest.raises(FeedConnectionError, match="Connection reset"):
            await make_parser(handler).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_errors_share_base_class(self) -> None:
        """Test all fetch failures are FeedFetchError subclasses."""
        with pytest.raises(FeedFetchError):
            await make_parser(serve(b"", status_code=500)).fetch(FEED_URL)

    @pytest.mark.asyncio
    async def test_overall_timeout(self) -> None:
        """Test the wall-clock budget covers slow responses."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, content=b"")

        parser = make_parser(handler, overall_timeout=0.05)
        with pytest.raises(FeedTimeoutError, match="RSS parsing timeout"):
            await parser.fetch(FEED_URL)


class TestRSSParserParse:
    """Tests for item extraction in RSSParser.parse."""

    def parse(self, items: str):
        return RSSParser().parse(rss(items), FEED_URL)

    def test_missing_guid_falls_back_to_audio_url(self) -> None:
        """Test the enclosure URL is the identifier without a guid."""
        feed = self.parse(
            """<item><title>No guid</title>
            <enclosure url="https://example.com/a.mp3" type="audio/mpeg"/></item>"""
        )
        assert feed.episodes[0].guid == "https://example.com/a.mp3"

    def test_media_content_used_without_enclosure(self) -> None:
        """Test media:content provides the audio reference."""
        feed = self.parse(
            """<item><title>Media</title><guid isPermaLink="false">m-1</guid>
            <media:content url="https://example.com/media.mp3" type="audio/mpeg"/></item>"""
        )
        assert feed.episodes[0].audio_url == "https://example.com/media.mp3"

    def test_link_used_as_last_resort(self) -> None:
        """Test <link> is the audio reference and identifier of last resort."""
        feed = self.parse(
            """<item><title>Linked</title><link>https://example.com/linked.mp3</link></item>"""
        )
        episode = feed.episodes[0]
        assert episode.audio_url == "https://example.com/linked.mp3"
        assert episode.guid == "https://example.com/linked.mp3"

    def test_items_without_title_or_audio_are_skipped(self) -> None:
        """Test unusable items are dropped."""
        feed = self.parse(
            """<item><guid isPermaLink="false">no-title</guid>
               <enclosure url="https://example.com/x.mp3" type="audio/mpeg"/></item>
               <item><title>No audio</title><guid isPermaLink="false">no-audio</guid></item>
               <item><title>Permalink only</title><guid>https://example.com/post/1</guid></item>"""
        )
        assert feed.episodes == []

    def test_dc_date_fallback(self) -> None:
        """Test dc:date is used when pubDate is missing."""
        feed = self.parse(
            """<item><title>Dated</title><guid isPermaLink="false">d-1</guid>
            <dc:date>2024-02-01T08:00:00Z</dc:date>
            <enclosure url="https://example.com/d.mp3" type="audio/mpeg"/></item>"""
        )
        assert feed.episodes[0].pub_date == datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)

    def test_missing_date_defaults_to_now(self) -> None:
        """Test undated items get the current time."""
        feed = self.parse(
            """<item><title>Undated</title><guid isPermaLink="false">u-1</guid>
            <enclosure url="https://example.com/u.mp3" type="audio/mpeg"/></item>"""
        )
        age = datetime.now(timezone.utc) - feed.episodes[0].pub_date
        assert timedelta(0) <= age < timedelta(minutes=1)

    def test_untitled_podcast_default(self) -> None:
        """Test a channel without a title gets the default name."""
        content = b"""<?xml version="1.0"?><rss version="2.0"><channel>
            <description>No title</description></channel></rss>"""
        feed = RSSParser().parse(content, FEED_URL)
        assert feed.podcast.title == "Untitled Podcast"

    def test_cancelled_parse_stops(self, sample_rss: bytes) -> None:
        """Test a token set before the worker starts skips the XML parse entirely."""
        cancel = threading.Event()
        cancel.set()

        with patch("podvault.feeds.parser.feedparser.parse") as mock_parse:
            with pytest.raises(FeedTimeoutError):
                RSSParser().parse(sample_rss, FEED_URL, cancel)

        mock_parse.assert_not_called()

    def test_cancel_during_parse_skips_items(self) -> None:
        """Test a token set while the document is parsed stops before any item."""
        items = "".join(
            f"<item><title>Episode {n}</title>"
            f'<enclosure url="https://example.com/{n}.mp3" type="audio/mpeg"/></item>'
            for n in range(500)
        )
        cancel = threading.Event()
        real_parse = feedparser.parse

        def parse_then_time_out(content: bytes):
            result = real_parse(content)
            cancel.set()
            return result

        parser = RSSParser()
        with (
            patch("podvault.feeds.parser.feedparser.parse", side_effect=parse_then_time_out),
            patch.object(parser, "_parse_entry") as mock_entry,
        ):
            with pytest.raises(FeedTimeoutError, match="cancelled"):
                parser.parse(rss(items), FEED_URL, cancel)

        mock_entry.assert_not_called()

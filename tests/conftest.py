"""Shared fixtures for Podvault tests."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from podvault.config.schema import AudioConfig, SummaryConfig
from podvault.db.database import Database
from tests.fakes import FakeDownloader, FakeGeminiClient

SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test Podcast</title>
    <link>https://example.com</link>
    <description>A podcast for tests</description>
    <image>
      <url>https://example.com/rss-image.jpg</url>
      <title>Test Podcast</title>
      <link>https://example.com</link>
    </image>
    <itunes:image href="https://example.com/itunes-image.jpg"/>
    <item>
      <title>Episode 2</title>
      <guid isPermaLink="false">ep-2</guid>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <itunes:duration>1:02:03</itunes:duration>
      <enclosure url="https://example.com/ep2.mp3" length="1000" type="audio/mpeg"/>
    </item>
    <item>
      <title>Episode 1</title>
      <guid isPermaLink="false">ep-1</guid>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <itunes:duration>45:10</itunes:duration>
      <enclosure url="https://example.com/ep1.m4a" length="1000" type="audio/mp4"/>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def sample_config_dict() -> dict:
    """Minimal valid config.yaml contents."""
    return {
        "version": "1",
        "log_level": "INFO",
        "summary": {"model_name": "gemini-2.5-flash", "keep_history": False},
    }


@pytest.fixture
def sample_rss() -> bytes:
    return SAMPLE_RSS


@pytest.fixture
def db(tmp_path: Path) -> Database:
    """Fresh on-disk SQLite library."""
    database = Database(tmp_path / "library.db")
    yield database
    database.close()


@pytest.fixture
def audio_config(tmp_path: Path) -> AudioConfig:
    return AudioConfig(media_dir=tmp_path / "media", cache_dir=tmp_path / "cache")


@pytest.fixture
def summary_config() -> SummaryConfig:
    """Summary settings with fast polling for tests."""
    return SummaryConfig(poll_interval_seconds=0.01, poll_timeout_seconds=0.2)


@pytest.fixture
def seeded_db(db: Database) -> Database:
    """Library with one podcast ("pod-1") and two episodes ("ep-1", "ep-2")."""
    db.upsert_podcast(
        "pod-1",
        "Test Podcast",
        "https://example.com/feed.xml",
        "https://example.com/art.jpg",
        datetime(2024, 1, 3, tzinfo=timezone.utc),
    )
    db.upsert_episode(
        "ep-1",
        "pod-1",
        "Episode 1",
        datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
        2710,
        "https://example.com/ep1.mp3",
    )
    db.upsert_episode(
        "ep-2",
        "pod-1",
        "Episode 2",
        datetime(2024, 1, 2, 10, tzinfo=timezone.utc),
        3723,
        "https://example.com/ep2.mp3",
    )
    return db


@pytest.fixture
def fake_downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def fake_gemini() -> FakeGeminiClient:
    return FakeGeminiClient()

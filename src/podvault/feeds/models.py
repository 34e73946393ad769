"""Data models for parsed podcast feeds."""

import re
from datetime import datetime

from pydantic import BaseModel, Field

_CLOCK_PATTERN = re.compile(r"^\d+(:\d+){1,2}$")


class FeedEpisode(BaseModel):
    """A single item extracted from an RSS feed."""

    guid: str
    title: str
    pub_date: datetime
    duration: int = Field(default=0, ge=0)  # seconds, 0 = unknown
    audio_url: str


class FeedPodcast(BaseModel):
    """Channel-level podcast metadata."""

    title: str
    feed_url: str
    artwork_url: str | None = None


class Feed(BaseModel):
    """Normalized representation of an RSS source."""

    podcast: FeedPodcast
    episodes: list[FeedEpisode] = Field(default_factory=list)


def parse_duration(value: object) -> int:
    """Parse an itunes:duration value into whole seconds.

    Accepts raw seconds ("90") or colon-delimited clock text
    ("45:10", "1:02:03"). Anything else yields 0.

    Example:
        >>> parse_duration("1:02:03")
        3723
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)

    text = str(value).strip()
    if not text:
        return 0

    if ":" in text:
        if not _CLOCK_PATTERN.match(text):
            return 0
        parts = [int(part) for part in text.split(":")]
        if len(parts) == 3:
            hours, minutes, seconds = parts
            return hours * 3600 + minutes * 60 + seconds
        minutes, seconds = parts
        return minutes * 60 + seconds

    try:
        # Some feeds publish fractional seconds ("3600.5")
        return max(int(float(text)), 0)
    except (ValueError, OverflowError):
        return 0

"""Feed fetching, parsing and synchronization for Podvault."""

from podvault.feeds.models import Feed, FeedEpisode, FeedPodcast, parse_duration
from podvault.feeds.parser import RSSParser
from podvault.feeds.sync import FeedSynchronizer, SyncResult

__all__ = [
    "Feed",
    "FeedEpisode",
    "FeedPodcast",
    "FeedSynchronizer",
    "RSSParser",
    "SyncResult",
    "parse_duration",
]

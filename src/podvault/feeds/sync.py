"""Synchronize a remote feed into the local library."""

import logging

from pydantic import BaseModel

from podvault.db.database import Database
from podvault.db.repository import Repository, generate_id
from podvault.feeds.models import Feed
from podvault.feeds.parser import RSSParser
from podvault.utils.datetime import now_utc

logger = logging.getLogger(__name__)


class SyncResult(BaseModel):
    """Outcome of a successful sync."""

    podcast_id: str
    episode_count: int  # episodes seen in this fetch, not newly added


class FeedSynchronizer:
    """Fetches a feed and merges it into the database atomically.

    Repeated syncs of the same feed reuse the podcast id and never touch
    locally owned state (custom prompt, download flags, local paths).
    """

    def __init__(self, db: Database, parser: RSSParser | None = None) -> None:
        self.db = db
        self.parser = parser or RSSParser()

    async def sync(self, feed_url: str, override_artwork: str | None = None) -> SyncResult:
        """Subscribe to or refresh a feed.

        Args:
            feed_url: RSS feed URL
            override_artwork: Artwork URL that wins over the stored and feed values

        Returns:
            SyncResult with the podcast id and the number of episodes in the feed

        Raises:
            FeedFetchError: Fetching failed (nothing was written)
            InvalidFeedError: The document is not an RSS feed
            PersistenceError: The write failed (nothing was committed)
        """
        # Network first: no transaction is open while we wait on the feed
        feed = await self.parser.fetch(feed_url)

        podcast_id = self.db.run_in_transaction(
            lambda repo: self._merge(repo, feed_url, feed, override_artwork)
        )

        logger.info(
            "Synced '%s' (%s): %d episodes", feed.podcast.title, podcast_id, len(feed.episodes)
        )
        return SyncResult(podcast_id=podcast_id, episode_count=len(feed.episodes))

    def _merge(
        self,
        repo: Repository,
        feed_url: str,
        feed: Feed,
        override_artwork: str | None,
    ) -> str:
        existing = repo.get_podcast_by_feed_url(feed_url)
        podcast_id = existing.id if existing else generate_id()

        artwork_url = (
            override_artwork
            or (existing.artwork_url if existing else None)
            or feed.podcast.artwork_url
        )

        podcast_id = repo.upsert_podcast(
            podcast_id=podcast_id,
            title=feed.podcast.title,
            feed_url=feed_url,
            artwork_url=artwork_url,
            last_fetched_at=now_utc(),
        )

        for episode in feed.episodes:
            repo.upsert_episode(
                episode_id=episode.guid,
                podcast_id=podcast_id,
                title=episode.title,
                pub_date=episode.pub_date,
                duration=episode.duration,
                audio_url=episode.audio_url,
            )

        return podcast_id

"""Application service exposing every Podvault operation.

Each public method returns an `OperationResult`. Failures never escape as
exceptions: they are logged and reduced to one human-readable message.
"""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from podvault.audio.downloader import StreamDownloader
from podvault.audio.provisioner import AudioProvisioner
from podvault.config.schema import GlobalConfig
from podvault.db.database import Database
from podvault.feeds.parser import RSSParser
from podvault.feeds.sync import FeedSynchronizer
from podvault.summary.gemini import GeminiFileClient
from podvault.summary.guard import GenerationGuard
from podvault.summary.orchestrator import SummaryOrchestrator
from podvault.utils.errors import (
    EpisodeNotFoundError,
    PersistenceError,
    PodcastNotFoundError,
    PodvaultError,
)

logger = logging.getLogger(__name__)


class OperationResult(BaseModel):
    """Uniform result envelope: data on success, a message on failure."""

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)


class PodvaultService:
    """Wires the database, feed sync, audio provisioning and summaries together.

    Example:
        >>> service = PodvaultService(ConfigManager().load_config())
        >>> result = await service.sync_feed("https://example.com/feed.xml")
        >>> result.data.episode_count
        42
    """

    def __init__(
        self,
        config: GlobalConfig | None = None,
        db: Database | None = None,
        parser: RSSParser | None = None,
        downloader: StreamDownloader | None = None,
        gemini_client: GeminiFileClient | None = None,
    ) -> None:
        self.config = config or GlobalConfig()
        self.db = db or Database(self.config.database_path)

        self.synchronizer = FeedSynchronizer(self.db, parser or RSSParser(self.config.feeds))
        self.provisioner = AudioProvisioner(
            self.db,
            downloader or StreamDownloader(self.config.audio),
            self.config.audio,
        )
        self.gemini_client = gemini_client or GeminiFileClient(
            api_key=self.config.summary.api_key,
            model_name=self.config.summary.model_name,
        )
        self.orchestrator = SummaryOrchestrator(
            self.db,
            self.provisioner,
            self.gemini_client,
            self.config.summary,
            GenerationGuard(),
        )

    # ===== Plumbing =====

    def _failure(self, operation: str, error: Exception) -> OperationResult:
        if isinstance(error, PodvaultError):
            logger.warning("%s failed: %s", operation, error)
            return OperationResult.fail(str(error) or type(error).__name__)

        logger.error("Unexpected error in %s", operation, exc_info=error)
        return OperationResult.fail(f"Unexpected error: {error}")

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> OperationResult:
        try:
            return OperationResult.ok(fn(*args))
        except Exception as e:
            return self._failure(operation, e)

    async def _acall(
        self, operation: str, fn: Callable[..., Awaitable[Any]], *args: Any
    ) -> OperationResult:
        try:
            return OperationResult.ok(await fn(*args))
        except Exception as e:
            return self._failure(operation, e)

    def startup(self) -> None:
        """Housekeeping on start: drop stale ephemeral audio, log library stats."""
        try:
            self.provisioner.clear_ephemeral_cache()
        except OSError as e:
            logger.warning("Failed to clean ephemeral cache: %s", e)

        try:
            stats = self.db.stats()
            logger.info(
                "Library: %d podcasts, %d episodes, %d documents, %d downloaded",
                stats.podcasts,
                stats.episodes,
                stats.documents,
                stats.downloaded,
            )
        except PersistenceError as e:
            logger.warning("Could not read database stats: %s", e)

    def close(self) -> None:
        self.db.close()

    # ===== Feeds =====

    async def sync_feed(self, url: str, artwork_url: str | None = None) -> OperationResult:
        """Subscribe to a feed or refresh it; data is a SyncResult."""
        return await self._acall("sync_feed", self.synchronizer.sync, url, artwork_url)

    # ===== Summaries =====

    async def generate_summary(self, episode_id: str) -> OperationResult:
        """Run the summary workflow; data is the markdown text."""
        return await self._acall(
            "generate_summary", self.orchestrator.generate_summary, episode_id
        )

    def get_generation_status(self) -> OperationResult:
        return self._call("get_generation_status", self.orchestrator.get_status)

    def list_documents(self, episode_id: str) -> OperationResult:
        return self._call("list_documents", self.orchestrator.list_documents, episode_id)

    def list_documents_by_podcast(self, podcast_id: str) -> OperationResult:
        return self._call(
            "list_documents_by_podcast", self.orchestrator.list_documents_by_podcast, podcast_id
        )

    def delete_summary(self, document_id: str) -> OperationResult:
        return self._call("delete_summary", self.orchestrator.delete_summary, document_id)

    def set_api_key(self, api_key: str) -> OperationResult:
        """Validate a Gemini key and use it for the rest of this process."""
        return self._call("set_api_key", self.gemini_client.update_api_key, api_key)

    # ===== Podcasts =====

    def list_podcasts(self) -> OperationResult:
        return self._call("list_podcasts", self.db.list_podcasts)

    def get_podcast(self, podcast_id: str) -> OperationResult:
        def get() -> Any:
            podcast = self.db.get_podcast(podcast_id)
            if podcast is None:
                raise PodcastNotFoundError("Podcast not found")
            return podcast

        return self._call("get_podcast", get)

    def update_custom_prompt(self, podcast_id: str, prompt: str | None) -> OperationResult:
        """Set a podcast's summary prompt; None or blank restores the default."""

        def update() -> None:
            cleaned = prompt if prompt and prompt.strip() else None
            if not self.db.update_custom_prompt(podcast_id, cleaned):
                raise PodcastNotFoundError("Podcast not found")

        return self._call("update_custom_prompt", update)

    def delete_podcast(self, podcast_id: str) -> OperationResult:
        """Delete a podcast with its episodes and documents.

        Downloaded audio files are removed afterwards on a best-effort basis.
        """

        def delete() -> int:
            downloaded = [
                Path(episode.local_file_path)
                for episode in self.db.list_episodes(podcast_id)
                if episode.is_downloaded and episode.local_file_path
            ]
            if not self.db.delete_podcast(podcast_id):
                raise PodcastNotFoundError("Podcast not found")

            removed = sum(1 for path in downloaded if self.provisioner.delete_file(path))
            logger.info(
                "Deleted podcast %s (%d of %d downloaded files removed)",
                podcast_id,
                removed,
                len(downloaded),
            )
            return removed

        return self._call("delete_podcast", delete)

    # ===== Episodes =====

    def list_episodes(self, podcast_id: str) -> OperationResult:
        return self._call("list_episodes", self.db.list_episodes, podcast_id)

    def get_episode(self, episode_id: str) -> OperationResult:
        def get() -> Any:
            episode = self.db.get_episode(episode_id)
            if episode is None:
                raise EpisodeNotFoundError("Episode not found")
            return episode

        return self._call("get_episode", get)

    def list_downloaded_episodes(self) -> OperationResult:
        return self._call("list_downloaded_episodes", self.db.list_downloaded_episodes)

    async def download_episode(
        self, episode_id: str, podcast_title: str | None = None
    ) -> OperationResult:
        """Save an episode to the media library; data is the file path."""

        async def download() -> str:
            path = await self.provisioner.download_to_persistent(episode_id, podcast_title)
            return str(path)

        return await self._acall("download_episode", download)

    def delete_download(self, episode_id: str) -> OperationResult:
        """Forget an episode's download, then delete the file from disk."""

        def delete() -> None:
            if self.db.get_episode(episode_id) is None:
                raise EpisodeNotFoundError("Episode not found")

            path = self.provisioner.clear_download(episode_id)
            if path is not None and not self.provisioner.delete_file(path):
                raise PodvaultError("Failed to delete file from disk")

        return self._call("delete_download", delete)

    # ===== Utility =====

    def get_db_stats(self) -> OperationResult:
        return self._call("get_db_stats", self.db.stats)

"""Audio provisioning: local vault first, ephemeral download otherwise."""

import hashlib
import logging
import re
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

from pydantic import BaseModel

from podvault.audio.downloader import StreamDownloader
from podvault.config.schema import AudioConfig
from podvault.db.database import Database
from podvault.utils.errors import EpisodeNotFoundError, PathTraversalError
from podvault.utils.paths import get_ephemeral_cache_dir

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({"mp3", "m4a", "m4b", "aac", "ogg", "oga", "opus", "wav", "flac"})
DEFAULT_EXTENSION = "mp3"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9 _-]")
_WHITESPACE = re.compile(r"\s+")


class ProvisionedAudio(BaseModel):
    """A local audio file ready for processing."""

    path: Path
    ephemeral: bool  # True = caller must delete it when done


def sanitize_path_segment(text: str) -> str:
    """Reduce text to a single safe path component.

    Keeps only letters, digits, spaces, underscores and dashes.

    Example:
        >>> sanitize_path_segment("A/B: Test?")
        'AB Test'
    """
    cleaned = _WHITESPACE.sub(" ", _UNSAFE_CHARS.sub("", text)).strip()
    return cleaned or "untitled"


def audio_extension(url: str) -> str:
    """File extension for an audio URL, defaulting to mp3."""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower().lstrip(".")
    return suffix if suffix in AUDIO_EXTENSIONS else DEFAULT_EXTENSION


class AudioProvisioner:
    """Resolves episode audio to a local file.

    Downloaded ("vault") episodes are served from disk. Everything else is
    streamed into a temporary cache directory and flagged as ephemeral.
    """

    def __init__(
        self,
        db: Database,
        downloader: StreamDownloader | None = None,
        config: AudioConfig | None = None,
    ) -> None:
        self.db = db
        self.config = config or AudioConfig()
        self.downloader = downloader or StreamDownloader(self.config)

    @property
    def cache_dir(self) -> Path:
        return self.config.cache_dir or get_ephemeral_cache_dir()

    @property
    def media_root(self) -> Path:
        return self.config.media_dir

    def ephemeral_path(self, episode_id: str, audio_url: str) -> Path:
        digest = hashlib.sha1(episode_id.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}.{audio_extension(audio_url)}"

    async def provision(self, episode_id: str) -> ProvisionedAudio:
        """Get a local file for an episode's audio.

        Raises:
            EpisodeNotFoundError: Unknown episode
            AudioDownloadError: Ephemeral download failed
        """
        episode = self.db.get_episode(episode_id)
        if episode is None:
            raise EpisodeNotFoundError(f"Episode {episode_id} not found")

        if episode.is_downloaded:
            local_path = Path(episode.local_file_path) if episode.local_file_path else None
            if local_path is not None and local_path.is_file():
                logger.debug("Using vault copy for episode %s: %s", episode_id, local_path)
                return ProvisionedAudio(path=local_path, ephemeral=False)

            logger.warning(
                "Downloaded file for episode %s is missing (%s); resetting download state",
                episode_id,
                local_path,
            )
            self.db.update_download_status(episode_id, False, None)

        dest = self.ephemeral_path(episode_id, episode.audio_url)
        await self.downloader.download(episode.audio_url, dest)
        return ProvisionedAudio(path=dest, ephemeral=True)

    def persistent_path(self, podcast_title: str, episode_title: str, audio_url: str) -> Path:
        """Destination for a persistent download, confined to the media root.

        Raises:
            PathTraversalError: If the resolved path leaves the media root
        """
        root = self.media_root.resolve()
        filename = f"{sanitize_path_segment(episode_title)}.{audio_extension(audio_url)}"
        dest = (root / sanitize_path_segment(podcast_title) / filename).resolve()
        if not dest.is_relative_to(root):
            raise PathTraversalError(f"Refusing to write outside media directory: {dest}")
        return dest

    async def download_to_persistent(
        self, episode_id: str, podcast_title: str | None = None
    ) -> Path:
        """Download an episode into the media library and mark it downloaded.

        An existing file at the destination is overwritten.

        Args:
            episode_id: Episode to download
            podcast_title: Folder name; looked up from the podcast when omitted

        Returns:
            Path of the stored file

        Raises:
            EpisodeNotFoundError: Unknown episode
            PathTraversalError: Destination escapes the media root
            AudioDownloadError: Download failed
        """
        episode = self.db.get_episode(episode_id)
        if episode is None:
            raise EpisodeNotFoundError(f"Episode {episode_id} not found")

        if podcast_title is None:
            podcast = self.db.get_podcast(episode.podcast_id)
            podcast_title = podcast.title if podcast else ""

        dest = self.persistent_path(podcast_title, episode.title, episode.audio_url)
        await self.downloader.download(episode.audio_url, dest)

        self.db.update_download_status(episode_id, True, str(dest))
        logger.info("Saved episode %s to %s", episode_id, dest)
        return dest

    def clear_download(self, episode_id: str) -> Path | None:
        """Reset an episode's download state and return the file it pointed to.

        The database is updated first; removing the file is up to the caller.
        Returns None when the episode has no recorded file.
        """
        episode = self.db.get_episode(episode_id)
        if episode is None or not episode.local_file_path:
            return None

        self.db.update_download_status(episode_id, False, None)
        return Path(episode.local_file_path)

    def delete_file(self, path: Path) -> bool:
        """Remove a file, returning False if it is missing or cannot be deleted."""
        if not path.is_file():
            logger.warning("File does not exist: %s", path)
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.error("Failed to delete file %s: %s", path, e)
            return False

        logger.info("Deleted file %s", path)
        return True

    def clear_ephemeral_cache(self) -> int:
        """Delete leftover ephemeral audio files; returns how many were removed."""
        cache_dir = self.cache_dir
        if not cache_dir.is_dir():
            return 0

        removed = 0
        for entry in cache_dir.iterdir():
            if not entry.is_file():
                continue
            try:
                entry.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Failed to remove cached file %s: %s", entry, e)

        if removed:
            logger.info("Cleaned up %d orphaned cache files", removed)
        return removed

"""AI summary workflow: provision, upload, poll, generate, persist, clean up."""

import asyncio
import logging
from contextlib import AsyncExitStack
from pathlib import Path

from podvault.audio.provisioner import AudioProvisioner
from podvault.config.schema import SummaryConfig
from podvault.db.database import Database
from podvault.db.records import DocumentRecord, PodcastDocumentRecord
from podvault.summary.gemini import GeminiFileClient, RemoteFile
from podvault.summary.guard import GenerationGuard, GenerationStatus
from podvault.summary.prompts import resolve_prompt
from podvault.utils.errors import (
    DocumentNotFoundError,
    EpisodeNotFoundError,
    FileTooLargeError,
    GenerationError,
    PodvaultError,
    PollingTimeoutError,
    ProcessingFailedError,
    UploadError,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def _file_size_bytes(path: Path) -> int:
    return path.stat().st_size


class SummaryOrchestrator:
    """Generates and stores markdown summaries of episodes with Gemini.

    Only one generation runs at a time. Every remote upload and every
    ephemeral local file created along the way is removed again, whatever
    the outcome.

    Example:
        >>> orchestrator = SummaryOrchestrator(db, provisioner, GeminiFileClient())
        >>> markdown = await orchestrator.generate_summary(episode_id)
    """

    def __init__(
        self,
        db: Database,
        provisioner: AudioProvisioner,
        client: GeminiFileClient,
        config: SummaryConfig | None = None,
        guard: GenerationGuard | None = None,
    ) -> None:
        self.db = db
        self.provisioner = provisioner
        self.client = client
        self.config = config or SummaryConfig()
        self.guard = guard or GenerationGuard()

    def get_status(self) -> GenerationStatus:
        return self.guard.status()

    def is_generating_episode(self, episode_id: str) -> bool:
        return self.guard.is_generating_episode(episode_id)

    async def generate_summary(self, episode_id: str) -> str:
        """Run the full summary workflow for one episode.

        Args:
            episode_id: Episode to summarize

        Returns:
            The generated markdown (also stored as a document)

        Raises:
            AlreadyGeneratingError: Another generation is running
            EpisodeNotFoundError: Unknown episode
            AudioDownloadError: Audio could not be fetched
            FileTooLargeError: Audio exceeds the upload limit
            UploadError: Upload failed
            ProcessingFailedError: Remote processing failed
            PollingTimeoutError: File never became ready
            GenerationError: No usable summary was produced
            PersistenceError: Summary could not be stored
        """
        # The guard is entered first so it is released only after cleanup ran
        async with self.guard.hold(episode_id), AsyncExitStack() as cleanup:
            return await self._run(episode_id, cleanup)

    async def _run(self, episode_id: str, cleanup: AsyncExitStack) -> str:
        audio = await self.provisioner.provision(episode_id)
        if audio.ephemeral:
            cleanup.push_async_callback(self._remove_local_file, audio.path)

        size_mb = _file_size_bytes(audio.path) / BYTES_PER_MB
        max_mb = self.config.max_file_size_mb
        if size_mb > max_mb:
            raise FileTooLargeError(f"File too large: {size_mb:.2f}MB (max {max_mb:g}MB)")

        remote = await self._upload(episode_id, audio.path, size_mb)
        cleanup.push_async_callback(self._delete_remote_file, remote.name)
        if not remote.uri:
            raise UploadError("Upload failed: no file URI returned")

        await self._wait_until_active(remote.name)

        prompt = self._resolve_prompt(episode_id)

        logger.info("Generating summary for episode %s", episode_id)
        markdown = await self._generate(prompt, remote)

        self._persist(episode_id, markdown, prompt)
        logger.info("Summary generated and saved for episode %s", episode_id)
        return markdown

    async def _upload(self, episode_id: str, path: Path, size_mb: float) -> RemoteFile:
        logger.info("Uploading audio file (%.2fMB)...", size_mb)
        try:
            remote = await self.client.upload(
                path, self.config.mime_type, display_name=f"episode-{episode_id}"
            )
        except PodvaultError:
            raise
        except Exception as e:
            raise UploadError(f"Upload failed: {e}") from e

        if remote is None:
            raise UploadError("Upload failed: no file name returned")

        logger.info("Uploaded: %s", remote.name)
        return remote

    async def _wait_until_active(self, name: str) -> None:
        """Poll the remote file until it is ACTIVE.

        The budget is wall-clock time and includes slow state requests.
        """
        budget = self.config.poll_timeout_seconds
        try:
            async with asyncio.timeout(budget):
                while True:
                    state = await self._get_state(name)
                    logger.debug("File state: %s", state)
                    if state == "ACTIVE":
                        return
                    if state == "FAILED":
                        raise ProcessingFailedError("Gemini file processing failed")

                    await asyncio.sleep(self.config.poll_interval_seconds)
        except TimeoutError:
            raise PollingTimeoutError(
                f"Timeout waiting for file to become ACTIVE ({budget:g}s)"
            ) from None

    async def _get_state(self, name: str) -> str | None:
        try:
            return await self.client.get_state(name)
        except PodvaultError:
            raise
        except Exception as e:
            raise ProcessingFailedError(f"Failed to check file state: {e}") from e

    def _resolve_prompt(self, episode_id: str) -> str:
        episode = self.db.get_episode(episode_id)
        if episode is None:
            raise EpisodeNotFoundError(f"Episode {episode_id} not found")

        podcast = self.db.get_podcast(episode.podcast_id)
        return resolve_prompt(podcast.custom_prompt if podcast else None)

    async def _generate(self, prompt: str, remote: RemoteFile) -> str:
        try:
            text = await self.client.generate(
                prompt, remote.uri, remote.mime_type or self.config.mime_type
            )
        except PodvaultError:
            raise
        except Exception as e:
            raise GenerationError(f"Gemini API error: {e}") from e

        if not text or not text.strip():
            raise GenerationError("Gemini returned an empty summary")
        return text

    def _persist(self, episode_id: str, markdown: str, prompt: str) -> DocumentRecord:
        if self.config.keep_history:
            return self.db.insert_document(episode_id, markdown, prompt)
        return self.db.replace_documents(episode_id, markdown, prompt)

    async def _delete_remote_file(self, name: str) -> None:
        try:
            await self.client.delete(name)
            logger.info("Deleted remote file %s", name)
        except Exception:
            logger.warning("Failed to delete Gemini file %s", name, exc_info=True)

    async def _remove_local_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
            logger.debug("Deleted temp file %s", path)
        except OSError:
            logger.warning("Failed to delete temp file %s", path, exc_info=True)

    # ===== Document reads =====

    def list_documents(self, episode_id: str) -> list[DocumentRecord]:
        return self.db.list_documents(episode_id)

    def list_documents_by_podcast(self, podcast_id: str) -> list[PodcastDocumentRecord]:
        return self.db.list_documents_by_podcast(podcast_id)

    def has_summaries(self, episode_id: str) -> bool:
        return self.db.has_documents(episode_id)

    def delete_summary(self, document_id: str) -> None:
        """Delete one stored summary.

        Raises:
            DocumentNotFoundError: If no such document exists
        """
        if not self.db.delete_document(document_id):
            raise DocumentNotFoundError(f"Document {document_id} not found")

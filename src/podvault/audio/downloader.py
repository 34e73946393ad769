"""Streaming audio downloader using httpx and aiofiles."""

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

import aiofiles
import httpx
from pydantic import BaseModel, Field

from podvault.config.schema import AudioConfig
from podvault.utils.errors import AudioDownloadError

logger = logging.getLogger(__name__)


class DownloadProgress(BaseModel):
    """Progress information for audio download."""

    status: str = Field(..., description="Current download status")
    downloaded_bytes: int = Field(default=0, ge=0, description="Bytes downloaded so far")
    total_bytes: int | None = Field(
        default=None, ge=0, description="Total bytes to download (if known)"
    )
    speed: float | None = Field(
        default=None, ge=0, description="Download speed in bytes/sec"
    )

    @property
    def percentage(self) -> float | None:
        """Calculate download percentage if total is known."""
        if self.total_bytes and self.total_bytes > 0:
            return (self.downloaded_bytes / self.total_bytes) * 100
        return None


class StreamDownloader:
    """Download audio files over HTTP(S) straight to disk.

    The body is streamed chunk by chunk, so memory use does not grow with the
    file size. The read timeout applies to each chunk: a stalled transfer fails,
    a slow but steady one does not.
    """

    def __init__(
        self,
        config: AudioConfig | None = None,
        progress_callback: Callable[[DownloadProgress], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize audio downloader.

        Args:
            config: Timeouts, chunk size and user agent
            progress_callback: Optional callback for progress updates
            transport: Optional httpx transport (used by tests)
        """
        self.config = config or AudioConfig()
        self.progress_callback = progress_callback
        self.transport = transport

    def _report(self, status: str, downloaded: int, total: int | None, started: float) -> None:
        if not self.progress_callback:
            return

        elapsed = time.monotonic() - started
        self.progress_callback(
            DownloadProgress(
                status=status,
                downloaded_bytes=downloaded,
                total_bytes=total,
                speed=downloaded / elapsed if elapsed > 0 else None,
            )
        )

    async def download(self, url: str, dest: Path) -> Path:
        """Download audio from URL into `dest`, overwriting it.

        The body is streamed into a sibling ".part" file that replaces `dest`
        only once the transfer completed, so an existing file survives a
        failed download.

        Args:
            url: Audio URL
            dest: Destination file path (parent directories are created)

        Returns:
            Path to downloaded audio file

        Raises:
            AudioDownloadError: If download fails; no partial file is left behind
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        part = partial_path(dest)
        timeout = httpx.Timeout(
            self.config.read_timeout,
            connect=self.config.connect_timeout,
        )

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers={"User-Agent": self.config.user_agent},
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise AudioDownloadError(
                            f"Failed to download audio from {url}: "
                            f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
                        )

                    declared = response.headers.get("content-length", "")
                    total = int(declared) if declared.isdigit() else None
                    downloaded = 0
                    started = time.monotonic()

                    async with aiofiles.open(part, "wb") as f:
                        async for chunk in response.aiter_bytes(self.config.chunk_size):
                            await f.write(chunk)
                            downloaded += len(chunk)
                            self._report("downloading", downloaded, total, started)

            if not part.exists() or part.stat().st_size == 0:
                raise AudioDownloadError(f"Download from {url} produced an empty file")

            os.replace(part, dest)

            self._report("finished", downloaded, total, started)
            logger.info("Downloaded %d bytes from %s to %s", downloaded, url, dest)
            return dest

        except AudioDownloadError:
            _remove_partial(part)
            raise
        except httpx.TimeoutException as e:
            _remove_partial(part)
            raise AudioDownloadError(f"Timed out downloading audio from {url}") from e
        except httpx.HTTPError as e:
            _remove_partial(part)
            raise AudioDownloadError(
                f"Failed to download audio from {url}. "
                f"This may be due to network issues or an invalid URL. "
                f"Error: {e}"
            ) from e
        except OSError as e:
            _remove_partial(part)
            raise AudioDownloadError(f"Could not write audio to {dest}: {e}") from e
        except Exception as e:
            _remove_partial(part)
            raise AudioDownloadError(
                f"Unexpected error downloading audio from {url}: {e}"
            ) from e
        except BaseException:
            # Cancelled mid-transfer
            _remove_partial(part)
            raise


def partial_path(dest: Path) -> Path:
    """In-progress download location next to `dest`."""
    return dest.with_name(dest.name + ".part")


def _remove_partial(part: Path) -> None:
    try:
        part.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove partial download %s: %s", part, e)

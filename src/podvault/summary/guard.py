"""Process-wide single-flight guard for summary generation."""

import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pydantic import BaseModel

from podvault.utils.errors import AlreadyGeneratingError


class GenerationStatus(BaseModel):
    """Snapshot of the guard state."""

    is_generating: bool
    episode_id: str | None = None


class GenerationGuard:
    """Allows at most one summary generation at a time.

    The state is either idle (no episode) or generating a specific episode.
    Transitions happen under a lock, so two callers can never both acquire.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._episode_id: str | None = None

    def try_acquire(self, episode_id: str) -> bool:
        """Enter the generating state; False if a generation is already running."""
        with self._lock:
            if self._episode_id is not None:
                return False
            self._episode_id = episode_id
            return True

    def release(self) -> None:
        with self._lock:
            self._episode_id = None

    def status(self) -> GenerationStatus:
        with self._lock:
            return GenerationStatus(
                is_generating=self._episode_id is not None,
                episode_id=self._episode_id,
            )

    def is_generating_episode(self, episode_id: str) -> bool:
        with self._lock:
            return self._episode_id == episode_id

    @asynccontextmanager
    async def hold(self, episode_id: str) -> AsyncIterator[None]:
        """Hold the guard for the duration of the block.

        Raises:
            AlreadyGeneratingError: If busy; the current holder is untouched
        """
        if not self.try_acquire(episode_id):
            raise AlreadyGeneratingError(episode_id)
        try:
            yield
        finally:
            self.release()

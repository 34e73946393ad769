"""SQLite engine, transactions and single-operation accessors.

The `Database` is the only writer of podcasts, episodes and documents:

- `run_in_transaction(fn)` runs a unit of work atomically; if `fn` raises,
  every write inside it is rolled back and the exception propagates as is.
- The remaining methods each run one repository call in its own transaction
  (session-per-operation).
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from podvault.db.models import Base
from podvault.db.records import (
    DbStats,
    DocumentRecord,
    EpisodeRecord,
    PodcastDocumentRecord,
    PodcastRecord,
)
from podvault.db.repository import Repository
from podvault.utils.errors import PersistenceError
from podvault.utils.paths import get_database_file

logger = logging.getLogger(__name__)

T = TypeVar("T")


def optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite settings whenever a connection is opened."""
    cursor = dbapi_connection.cursor()

    # WAL lets readers proceed while a sync transaction is writing
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    # Required for ON DELETE CASCADE
    cursor.execute("PRAGMA foreign_keys=ON")

    cursor.close()


class Database:
    """Persistence gateway over the podcast library."""

    def __init__(self, path: Path | str | None = None, echo: bool = False) -> None:
        """Open (and if needed create) the library database.

        Args:
            path: SQLite file path (default: user data dir)
            echo: Log SQL statements
        """
        self.path = Path(path) if path is not None else get_database_file()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self.engine: Engine = create_engine(
            f"sqlite:///{self.path}",
            poolclass=NullPool,  # one connection per session, no cross-thread reuse
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        event.listen(self.engine, "connect", optimize_sqlite_connection)

        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to initialize database at {self.path}: {e}") from e

        logger.debug("Database ready at %s", self.path)

    @contextmanager
    def transaction(self) -> Generator[Repository, None, None]:
        """Context manager yielding a repository bound to one transaction.

        Usage:
            with db.transaction() as repo:
                repo.upsert_episode(...)
        """
        session = self._session_factory()
        try:
            yield Repository(session)
            try:
                session.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(f"Failed to commit transaction: {e}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def run_in_transaction(self, fn: Callable[[Repository], T]) -> T:
        """Execute `fn` atomically and return its result.

        Any exception raised by `fn` rolls back all of its writes and is
        re-raised unchanged.
        """
        with self.transaction() as repo:
            return fn(repo)

    def close(self) -> None:
        self.engine.dispose()

    # ===== Podcasts =====

    def get_podcast(self, podcast_id: str) -> PodcastRecord | None:
        with self.transaction() as repo:
            return repo.get_podcast(podcast_id)

    def get_podcast_by_feed_url(self, feed_url: str) -> PodcastRecord | None:
        with self.transaction() as repo:
            return repo.get_podcast_by_feed_url(feed_url)

    def list_podcasts(self) -> list[PodcastRecord]:
        with self.transaction() as repo:
            return repo.list_podcasts()

    def upsert_podcast(
        self,
        podcast_id: str,
        title: str,
        feed_url: str,
        artwork_url: str | None,
        last_fetched_at: datetime,
    ) -> str:
        with self.transaction() as repo:
            return repo.upsert_podcast(podcast_id, title, feed_url, artwork_url, last_fetched_at)

    def update_custom_prompt(self, podcast_id: str, prompt: str | None) -> bool:
        with self.transaction() as repo:
            return repo.update_custom_prompt(podcast_id, prompt)

    def delete_podcast(self, podcast_id: str) -> bool:
        with self.transaction() as repo:
            return repo.delete_podcast(podcast_id)

    # ===== Episodes =====

    def upsert_episode(
        self,
        episode_id: str,
        podcast_id: str,
        title: str,
        pub_date: datetime,
        duration: int,
        audio_url: str,
    ) -> None:
        with self.transaction() as repo:
            repo.upsert_episode(episode_id, podcast_id, title, pub_date, duration, audio_url)

    def get_episode(self, episode_id: str) -> EpisodeRecord | None:
        with self.transaction() as repo:
            return repo.get_episode(episode_id)

    def list_episodes(self, podcast_id: str) -> list[EpisodeRecord]:
        with self.transaction() as repo:
            return repo.list_episodes(podcast_id)

    def list_downloaded_episodes(self) -> list[EpisodeRecord]:
        with self.transaction() as repo:
            return repo.list_downloaded_episodes()

    def update_download_status(
        self, episode_id: str, is_downloaded: bool, local_file_path: str | None
    ) -> bool:
        with self.transaction() as repo:
            return repo.update_download_status(episode_id, is_downloaded, local_file_path)

    # ===== Documents =====

    def insert_document(
        self, episode_id: str, content: str, used_prompt: str | None
    ) -> DocumentRecord:
        with self.transaction() as repo:
            return repo.insert_document(episode_id, content, used_prompt)

    def replace_documents(
        self, episode_id: str, content: str, used_prompt: str | None
    ) -> DocumentRecord:
        """Atomically drop an episode's documents and store a new one."""

        def replace(repo: Repository) -> DocumentRecord:
            repo.delete_documents_by_episode(episode_id)
            return repo.insert_document(episode_id, content, used_prompt)

        return self.run_in_transaction(replace)

    def get_document(self, document_id: str) -> DocumentRecord | None:
        with self.transaction() as repo:
            return repo.get_document(document_id)

    def list_documents(self, episode_id: str) -> list[DocumentRecord]:
        with self.transaction() as repo:
            return repo.list_documents(episode_id)

    def list_documents_by_podcast(self, podcast_id: str) -> list[PodcastDocumentRecord]:
        with self.transaction() as repo:
            return repo.list_documents_by_podcast(podcast_id)

    def has_documents(self, episode_id: str) -> bool:
        with self.transaction() as repo:
            return repo.has_documents(episode_id)

    def delete_document(self, document_id: str) -> bool:
        with self.transaction() as repo:
            return repo.delete_document(document_id)

    # ===== Utility =====

    def stats(self) -> DbStats:
        with self.transaction() as repo:
            return repo.stats()

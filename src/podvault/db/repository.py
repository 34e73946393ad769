"""Session-bound data access for podcasts, episodes and documents.

A `Repository` wraps one SQLAlchemy session. It never commits; the owning
`Database` decides transaction boundaries.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from podvault.db.models import Document, Episode, Podcast
from podvault.db.records import (
    DbStats,
    DocumentRecord,
    EpisodeRecord,
    PodcastDocumentRecord,
    PodcastRecord,
)
from podvault.utils.datetime import now_utc, to_naive_utc
from podvault.utils.errors import PersistenceError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Sync may refresh these columns; everything else on an existing row is left alone
EPISODE_SYNC_COLUMNS = ("title", "duration", "audio_url")
PODCAST_SYNC_COLUMNS = ("title", "artwork_url", "last_fetched_at")


def generate_id() -> str:
    """New opaque record identifier."""
    return str(uuid.uuid4())


def _translate_errors(method: F) -> F:
    """Re-raise SQLAlchemy failures as PersistenceError."""

    @wraps(method)
    def wrapper(self: "Repository", *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            detail = getattr(e, "orig", None) or e
            logger.error("Database error in %s: %s", method.__name__, detail)
            raise PersistenceError(f"Database error ({method.__name__}): {detail}") from e

    return wrapper  # type: ignore[return-value]


class Repository:
    """CRUD over the three library tables within one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ===== Podcasts =====

    @_translate_errors
    def upsert_podcast(
        self,
        podcast_id: str,
        title: str,
        feed_url: str,
        artwork_url: str | None,
        last_fetched_at: datetime,
    ) -> str:
        """Insert a podcast or refresh it by feed URL.

        On conflict only title, artwork and fetch time change, so a user's
        custom prompt survives every sync.

        Returns:
            Id of the stored row (the existing id when the feed URL is known)
        """
        stmt = sqlite_insert(Podcast).values(
            id=podcast_id,
            title=title,
            feed_url=feed_url,
            artwork_url=artwork_url,
            last_fetched_at=to_naive_utc(last_fetched_at),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Podcast.feed_url],
            set_={column: stmt.excluded[column] for column in PODCAST_SYNC_COLUMNS},
        ).returning(Podcast.id)
        return self.session.execute(stmt).scalar_one()

    @_translate_errors
    def get_podcast(self, podcast_id: str) -> PodcastRecord | None:
        row = self.session.get(Podcast, podcast_id)
        return PodcastRecord.model_validate(row) if row else None

    @_translate_errors
    def get_podcast_by_feed_url(self, feed_url: str) -> PodcastRecord | None:
        row = self.session.scalars(select(Podcast).where(Podcast.feed_url == feed_url)).first()
        return PodcastRecord.model_validate(row) if row else None

    @_translate_errors
    def list_podcasts(self) -> list[PodcastRecord]:
        rows = self.session.scalars(select(Podcast).order_by(Podcast.title.asc()))
        return [PodcastRecord.model_validate(row) for row in rows]

    @_translate_errors
    def update_custom_prompt(self, podcast_id: str, prompt: str | None) -> bool:
        result = self.session.execute(
            update(Podcast).where(Podcast.id == podcast_id).values(custom_prompt=prompt)
        )
        return result.rowcount > 0

    @_translate_errors
    def delete_podcast(self, podcast_id: str) -> bool:
        """Delete a podcast; episodes and documents cascade."""
        result = self.session.execute(delete(Podcast).where(Podcast.id == podcast_id))
        return result.rowcount > 0

    # ===== Episodes =====

    @_translate_errors
    def upsert_episode(
        self,
        episode_id: str,
        podcast_id: str,
        title: str,
        pub_date: datetime,
        duration: int,
        audio_url: str,
    ) -> None:
        """Insert an episode or refresh title, duration and audio URL.

        The download columns are not part of the update set, so an existing
        episode keeps its downloaded flag and local path.
        """
        stmt = sqlite_insert(Episode).values(
            id=episode_id,
            podcast_id=podcast_id,
            title=title,
            pub_date=to_naive_utc(pub_date),
            duration=duration,
            audio_url=audio_url,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Episode.id],
            set_={column: stmt.excluded[column] for column in EPISODE_SYNC_COLUMNS},
        )
        self.session.execute(stmt)

    @_translate_errors
    def get_episode(self, episode_id: str) -> EpisodeRecord | None:
        row = self.session.get(Episode, episode_id)
        return EpisodeRecord.model_validate(row) if row else None

    @_translate_errors
    def list_episodes(self, podcast_id: str) -> list[EpisodeRecord]:
        rows = self.session.scalars(
            select(Episode)
            .where(Episode.podcast_id == podcast_id)
            .order_by(Episode.pub_date.desc())
        )
        return [EpisodeRecord.model_validate(row) for row in rows]

    @_translate_errors
    def list_downloaded_episodes(self) -> list[EpisodeRecord]:
        rows = self.session.scalars(
            select(Episode).where(Episode.is_downloaded.is_(True)).order_by(Episode.pub_date.desc())
        )
        return [EpisodeRecord.model_validate(row) for row in rows]

    @_translate_errors
    def update_download_status(
        self, episode_id: str, is_downloaded: bool, local_file_path: str | None
    ) -> bool:
        result = self.session.execute(
            update(Episode)
            .where(Episode.id == episode_id)
            .values(is_downloaded=is_downloaded, local_file_path=local_file_path)
        )
        return result.rowcount > 0

    # ===== Documents =====

    @_translate_errors
    def insert_document(
        self,
        episode_id: str,
        content: str,
        used_prompt: str | None,
        created_at: datetime | None = None,
    ) -> DocumentRecord:
        row = Document(
            id=generate_id(),
            episode_id=episode_id,
            content=content,
            created_at=to_naive_utc(created_at or now_utc()),
            used_prompt=used_prompt,
        )
        self.session.add(row)
        self.session.flush()
        return DocumentRecord.model_validate(row)

    @_translate_errors
    def delete_documents_by_episode(self, episode_id: str) -> int:
        result = self.session.execute(delete(Document).where(Document.episode_id == episode_id))
        return result.rowcount

    @_translate_errors
    def get_document(self, document_id: str) -> DocumentRecord | None:
        row = self.session.get(Document, document_id)
        return DocumentRecord.model_validate(row) if row else None

    @_translate_errors
    def list_documents(self, episode_id: str) -> list[DocumentRecord]:
        rows = self.session.scalars(
            select(Document)
            .where(Document.episode_id == episode_id)
            .order_by(Document.created_at.desc())
        )
        return [DocumentRecord.model_validate(row) for row in rows]

    @_translate_errors
    def list_documents_by_podcast(self, podcast_id: str) -> list[PodcastDocumentRecord]:
        rows = self.session.execute(
            select(Document, Episode.title, Episode.pub_date)
            .join(Episode, Document.episode_id == Episode.id)
            .where(Episode.podcast_id == podcast_id)
            .order_by(Document.created_at.desc())
        )
        return [
            PodcastDocumentRecord(
                id=document.id,
                episode_id=document.episode_id,
                content=document.content,
                created_at=document.created_at,
                used_prompt=document.used_prompt,
                episode_title=episode_title,
                episode_pub_date=episode_pub_date,
            )
            for document, episode_title, episode_pub_date in rows
        ]

    @_translate_errors
    def has_documents(self, episode_id: str) -> bool:
        count = self.session.scalar(
            select(func.count()).select_from(Document).where(Document.episode_id == episode_id)
        )
        return bool(count)

    @_translate_errors
    def delete_document(self, document_id: str) -> bool:
        result = self.session.execute(delete(Document).where(Document.id == document_id))
        return result.rowcount > 0

    # ===== Utility =====

    @_translate_errors
    def stats(self) -> DbStats:
        def count(model: type, *criteria: Any) -> int:
            return self.session.scalar(select(func.count()).select_from(model).where(*criteria)) or 0

        return DbStats(
            podcasts=count(Podcast),
            episodes=count(Episode),
            documents=count(Document),
            downloaded=count(Episode, Episode.is_downloaded.is_(True)),
        )

"""Immutable records returned by the persistence layer.

ORM rows never leave a session; callers get these pydantic snapshots.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from podvault.utils.datetime import as_utc


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class PodcastRecord(_Record):
    id: str
    title: str
    feed_url: str
    artwork_url: str | None = None
    custom_prompt: str | None = None
    last_fetched_at: datetime | None = None

    @field_validator("last_fetched_at")
    @classmethod
    def normalize_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class EpisodeRecord(_Record):
    id: str
    podcast_id: str
    title: str
    pub_date: datetime
    duration: int = 0
    audio_url: str
    is_downloaded: bool = False
    local_file_path: str | None = None

    @field_validator("pub_date")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("duration", mode="before")
    @classmethod
    def default_duration(cls, value: int | None) -> int:
        return value or 0


class DocumentRecord(_Record):
    id: str
    episode_id: str
    content: str
    created_at: datetime
    used_prompt: str | None = None

    @field_validator("created_at")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class PodcastDocumentRecord(DocumentRecord):
    """Document joined with its episode, for per-podcast listings."""

    episode_title: str
    episode_pub_date: datetime

    @field_validator("episode_pub_date")
    @classmethod
    def normalize_episode_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class DbStats(BaseModel):
    podcasts: int
    episodes: int
    documents: int
    downloaded: int

"""SQLite persistence for podcasts, episodes and summary documents."""

from podvault.db.database import Database
from podvault.db.records import (
    DbStats,
    DocumentRecord,
    EpisodeRecord,
    PodcastDocumentRecord,
    PodcastRecord,
)
from podvault.db.repository import Repository, generate_id

__all__ = [
    "Database",
    "Repository",
    "generate_id",
    "DbStats",
    "DocumentRecord",
    "EpisodeRecord",
    "PodcastDocumentRecord",
    "PodcastRecord",
]

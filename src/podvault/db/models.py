"""SQLAlchemy ORM models for the podcast library.

Three tables: podcasts own episodes, episodes own documents (AI summaries).
Both relationships cascade on delete at the database level.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Podcast(Base):
    """A subscribed podcast feed.

    `custom_prompt` belongs to the user and is never written by feed sync.
    """

    __tablename__ = "podcasts"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    feed_url = Column(String, nullable=False, unique=True)
    artwork_url = Column(String, nullable=True)
    custom_prompt = Column(Text, nullable=True)
    last_fetched_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Podcast(id={self.id}, title='{self.title}', feed_url='{self.feed_url}')>"


class Episode(Base):
    """A feed item.

    `is_downloaded` and `local_file_path` are owned by the download workflow;
    the sync upsert never touches them.
    """

    __tablename__ = "episodes"

    id = Column(String, primary_key=True)  # feed GUID or fallback identity
    podcast_id = Column(
        String, ForeignKey("podcasts.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String, nullable=False)
    pub_date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=0)
    audio_url = Column(String, nullable=False)
    is_downloaded = Column(Boolean, nullable=False, default=False, server_default="0")
    local_file_path = Column(String, nullable=True)

    __table_args__ = (
        Index("idx_episodes_podcast_id", "podcast_id"),
        Index("idx_episodes_pub_date", "pub_date"),
    )

    def __repr__(self):
        return (
            f"<Episode(id={self.id}, title='{self.title}', "
            f"is_downloaded={self.is_downloaded})>"
        )


class Document(Base):
    """A generated markdown summary and the prompt that produced it."""

    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    episode_id = Column(
        String, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    used_prompt = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_documents_episode_id", "episode_id"),
        Index("idx_documents_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Document(id={self.id}, episode_id={self.episode_id})>"

"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from podvault import __version__
from podvault.utils.paths import get_database_file, get_default_media_dir

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class FeedsConfig(BaseModel):
    """RSS fetching limits."""

    request_timeout: float = Field(default=15.0, gt=0)
    overall_timeout: float = Field(default=30.0, gt=0)  # fetch + parse wall clock
    max_feed_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    user_agent: str = f"Podvault/{__version__}"


class AudioConfig(BaseModel):
    """Audio download configuration."""

    media_dir: Path = Field(default_factory=get_default_media_dir)
    cache_dir: Path | None = None  # None = system temp dir
    connect_timeout: float = Field(default=60.0, gt=0)
    read_timeout: float = Field(default=60.0, gt=0)  # idle time between chunks
    chunk_size: int = Field(default=64 * 1024, gt=0)
    user_agent: str = f"Podvault/{__version__}"

    @field_validator("media_dir", "cache_dir")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


class SummaryConfig(BaseModel):
    """Gemini summary configuration."""

    model_name: str = "gemini-2.5-flash"
    api_key: str | None = None  # If None, will use environment variable
    max_file_size_mb: float = Field(default=2000, gt=0)
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    poll_timeout_seconds: float = Field(default=60.0, gt=0)
    mime_type: str = "audio/mpeg"
    keep_history: bool = False  # False = only the latest summary per episode


class GlobalConfig(BaseModel):
    """Global Podvault configuration."""

    version: str = "1"
    log_level: LogLevel = "INFO"
    database_path: Path = Field(default_factory=get_database_file)

    feeds: FeedsConfig = Field(default_factory=FeedsConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)

    @field_validator("database_path")
    @classmethod
    def expand_database_path(cls, value: Path) -> Path:
        return value.expanduser()

"""Utility functions and helpers for Podvault."""

from podvault.utils.errors import (
    AlreadyGeneratingError,
    APIKeyError,
    AudioDownloadError,
    ConfigError,
    DNSResolutionError,
    DocumentNotFoundError,
    EpisodeNotFoundError,
    FeedConnectionError,
    FeedFetchError,
    FeedTimeoutError,
    FeedTooLargeError,
    FileTooLargeError,
    GenerationError,
    HTTPStatusError,
    InvalidConfigError,
    InvalidFeedError,
    NetworkError,
    NotFoundError,
    PathTraversalError,
    PersistenceError,
    PodcastNotFoundError,
    PodvaultError,
    PollingTimeoutError,
    ProcessingFailedError,
    SummaryError,
    UploadError,
    ValidationError,
)
from podvault.utils.paths import (
    get_cache_dir,
    get_config_dir,
    get_config_file,
    get_data_dir,
    get_database_file,
    get_default_media_dir,
    get_ephemeral_cache_dir,
    get_log_file,
)

__all__ = [
    # Errors
    "PodvaultError",
    "ConfigError",
    "InvalidConfigError",
    "APIKeyError",
    "NetworkError",
    "FeedFetchError",
    "DNSResolutionError",
    "FeedConnectionError",
    "FeedTimeoutError",
    "HTTPStatusError",
    "FeedTooLargeError",
    "AudioDownloadError",
    "ValidationError",
    "InvalidFeedError",
    "FileTooLargeError",
    "PathTraversalError",
    "NotFoundError",
    "PodcastNotFoundError",
    "EpisodeNotFoundError",
    "DocumentNotFoundError",
    "SummaryError",
    "AlreadyGeneratingError",
    "UploadError",
    "ProcessingFailedError",
    "PollingTimeoutError",
    "GenerationError",
    "PersistenceError",
    # Paths
    "get_config_dir",
    "get_data_dir",
    "get_cache_dir",
    "get_ephemeral_cache_dir",
    "get_config_file",
    "get_database_file",
    "get_log_file",
    "get_default_media_dir",
]

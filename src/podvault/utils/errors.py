"""Custom exceptions for Podvault."""


class PodvaultError(Exception):
    """Base exception for all Podvault errors."""

    pass


class ConfigError(PodvaultError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class APIKeyError(ConfigError):
    """Raised when an API key is invalid or missing."""

    pass


class NetworkError(PodvaultError):
    """Network-related errors."""

    pass


class FeedFetchError(NetworkError):
    """Base class for failures while fetching an RSS feed."""

    pass


class DNSResolutionError(FeedFetchError):
    """Feed host could not be resolved."""

    pass


class FeedConnectionError(FeedFetchError):
    """Connection refused or reset by the feed server."""

    pass


class FeedTimeoutError(FeedFetchError):
    """Feed request or parsing exceeded its time budget."""

    pass


class HTTPStatusError(FeedFetchError):
    """Feed server answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "") -> None:
        super().__init__(f"HTTP {status_code}: {reason}".rstrip(": "))
        self.status_code = status_code
        self.reason = reason


class FeedTooLargeError(FeedFetchError):
    """Feed body exceeds the configured size cap."""

    pass


class AudioDownloadError(NetworkError):
    """Raised when an audio download fails."""

    pass


class ValidationError(PodvaultError):
    """Input or structure validation errors."""

    pass


class InvalidFeedError(ValidationError):
    """Document is not a usable RSS feed."""

    pass


class FileTooLargeError(ValidationError):
    """Audio file exceeds the remote API size ceiling."""

    pass


class PathTraversalError(ValidationError):
    """Resolved path escapes its configured root directory."""

    pass


class NotFoundError(PodvaultError):
    """Requested record does not exist."""

    pass


class PodcastNotFoundError(NotFoundError):
    """Podcast not found."""

    pass


class EpisodeNotFoundError(NotFoundError):
    """Episode not found."""

    pass


class DocumentNotFoundError(NotFoundError):
    """Document not found."""

    pass


class SummaryError(PodvaultError):
    """Base class for AI summary workflow failures."""

    pass


class AlreadyGeneratingError(SummaryError):
    """A summary generation is already in progress."""

    code = "ALREADY_GENERATING"

    def __init__(self, episode_id: str | None = None) -> None:
        super().__init__("Already generating")
        self.episode_id = episode_id


class UploadError(SummaryError):
    """Uploading audio to the AI file API failed."""

    pass


class ProcessingFailedError(SummaryError):
    """The AI file API reported that processing the upload failed."""

    pass


class PollingTimeoutError(SummaryError):
    """Uploaded file did not become ready within the wait budget."""

    pass


class GenerationError(SummaryError):
    """Content generation failed or returned nothing."""

    pass


class PersistenceError(PodvaultError):
    """Database constraint violation or I/O failure."""

    pass

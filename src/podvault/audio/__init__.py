"""Audio download and provisioning for Podvault."""

from podvault.audio.downloader import DownloadProgress, StreamDownloader
from podvault.audio.provisioner import (
    AudioProvisioner,
    ProvisionedAudio,
    audio_extension,
    sanitize_path_segment,
)

__all__ = [
    "AudioProvisioner",
    "DownloadProgress",
    "ProvisionedAudio",
    "StreamDownloader",
    "audio_extension",
    "sanitize_path_segment",
]

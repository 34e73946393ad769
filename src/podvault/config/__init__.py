"""Configuration management for Podvault."""

from podvault.config.manager import ConfigManager
from podvault.config.schema import AudioConfig, FeedsConfig, GlobalConfig, SummaryConfig

__all__ = ["ConfigManager", "GlobalConfig", "FeedsConfig", "AudioConfig", "SummaryConfig"]

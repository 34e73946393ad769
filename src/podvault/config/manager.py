"""Configuration manager for loading and saving Podvault config."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from podvault.config.schema import GlobalConfig
from podvault.utils.errors import InvalidConfigError
from podvault.utils.paths import get_config_dir

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages the Podvault configuration file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config manager.

        Args:
            config_dir: Optional custom config directory. Defaults to XDG config dir.
        """
        self.config_dir = config_dir or get_config_dir()
        self.config_file = self.config_dir / "config.yaml"

    def load_config(self) -> GlobalConfig:
        """Load and validate global configuration.

        Returns:
            Validated GlobalConfig instance

        Raises:
            InvalidConfigError: If config is invalid
        """
        if not self.config_file.exists():
            config = GlobalConfig()
            self.save_config(config)
            logger.info("Created default config at %s", self.config_file)
            return config

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
            return GlobalConfig(**data)
        except (yaml.YAMLError, PydanticValidationError, TypeError) as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}"
            ) from e

    def save_config(self, config: GlobalConfig) -> None:
        """Save global configuration.

        Args:
            config: GlobalConfig instance to save
        """
        # mode="json" turns Path values into plain strings for YAML
        data = config.model_dump(mode="json")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

"""Configuration management."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .models.config import AppConfig, EnvSettings


class ConfigError(Exception):
    """Configuration-related error."""

    pass


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the server and CLI processes."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )


class ConfigManager:
    """Manages application configuration from .env and config.yaml."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Configuration directory path. Defaults to ~/.favstash
        """
        if config_dir is None:
            env_config_dir = os.environ.get("FAVSTASH_CONFIG_DIR")
            if env_config_dir:
                config_dir = Path(env_config_dir)
            else:
                config_dir = Path.home() / '.favstash'

        self.config_dir = config_dir
        self.config_file = config_dir / 'config.yaml'
        self.env_file = config_dir / '.env'

    def load_env_settings(self) -> EnvSettings:
        """Load environment settings from the optional .env file.

        Returns:
            EnvSettings instance

        Raises:
            ConfigError: If settings are invalid
        """
        if self.env_file.exists():
            load_dotenv(self.env_file)

        try:
            return EnvSettings()
        except Exception as e:
            raise ConfigError(f"Invalid .env file: {e}") from e

    def load_app_config(self) -> AppConfig:
        """Load application configuration from config.yaml.

        Returns:
            AppConfig instance

        Raises:
            ConfigError: If config file is missing or invalid
        """
        if not self.config_file.exists():
            raise ConfigError(
                f"Config file not found at {self.config_file}. "
                f"Run 'favstash init' to create configuration."
            )

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if data is None:
                data = {}

            return AppConfig(**data)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}") from e
        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    def load(self) -> AppConfig:
        """Load config.yaml and apply .env overrides."""
        config = self.load_app_config()
        env_settings = self.load_env_settings()

        overrides = {}
        if env_settings.database_path:
            overrides["database_path"] = env_settings.database_path
        if env_settings.log_level:
            overrides["log_level"] = env_settings.log_level

        config = config.model_copy(update=overrides)
        return config.model_copy(
            update={"database_path": str(self.resolve_database_path(config))}
        )

    def resolve_database_path(self, config: AppConfig) -> Path:
        """Resolve the store path; relative paths live under the config directory."""
        path = Path(config.database_path).expanduser()
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def save_app_config(self, config: AppConfig) -> None:
        """Save application configuration to config.yaml.

        Args:
            config: AppConfig instance to save

        Raises:
            ConfigError: If save fails
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            data = config.model_dump(mode='json')

            with open(self.config_file, 'w', encoding='utf-8') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

        except Exception as e:
            raise ConfigError(f"Failed to save config: {e}") from e

    def create_env_file(self, database_path: Optional[str] = None) -> None:
        """Create .env file with local overrides.

        Args:
            database_path: Optional store path override

        Raises:
            ConfigError: If file creation fails
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            lines = ["# FavStash local overrides"]
            if database_path:
                lines.append(f"FAVSTASH_DATABASE_PATH={database_path}")
            else:
                lines.append("# FAVSTASH_DATABASE_PATH=/path/to/favstash.db")
            lines.append("# FAVSTASH_LOG_LEVEL=DEBUG")

            with open(self.env_file, 'w', encoding='utf-8') as f:
                f.write("\n".join(lines) + "\n")

        except Exception as e:
            raise ConfigError(f"Failed to create .env file: {e}") from e

    def validate_database_location(self, config: AppConfig) -> None:
        """Validate the store file's directory is usable.

        Raises:
            ConfigError: If the directory is missing or not writable
        """
        path = self.resolve_database_path(config)
        parent = path.parent

        if not parent.exists():
            raise ConfigError(f"Database directory does not exist: {parent}")

        if not parent.is_dir():
            raise ConfigError(f"Database directory is not a directory: {parent}")

        if not os.access(parent, os.W_OK):
            raise ConfigError(f"Database directory is not writable: {parent}")

        if path.exists() and not os.access(path, os.R_OK | os.W_OK):
            raise ConfigError(f"Database file is not readable/writable: {path}")

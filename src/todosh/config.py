"""Configuration management for the todosh application."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TODOSH_CONFIG"
DATA_DIR_ENV_VAR = "TODOSH_DATA_DIR"

TABLE_STYLES = ("modern", "rounded", "simple", "ascii", "markdown")

TRUE_STRINGS = {"true", "yes", "on", "1"}
FALSE_STRINGS = {"false", "no", "off", "0"}


def _coerce_bool(name: str, value: Any) -> bool:
    """Accept YAML booleans and their common string spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ConfigError(f"Setting '{name}' must be true or false, got {value!r}")


@dataclass
class ConfigModel:
    """Global configuration model for todosh."""

    # File paths
    data_dir: str = "data"
    db_file: str = "db.csv"
    backup_dir: Optional[str] = None  # defaults to <data_dir>/backups

    # Behavior settings
    backup_on_write: bool = False
    use_lock: bool = True

    # UI
    table_style: str = "modern"
    no_color: bool = False

    def __post_init__(self):
        self.data_dir = os.path.expanduser(str(self.data_dir))
        if self.backup_dir is not None:
            self.backup_dir = os.path.expanduser(str(self.backup_dir))
        for name in ("backup_on_write", "use_lock", "no_color"):
            setattr(self, name, _coerce_bool(name, getattr(self, name)))
        if self.table_style not in TABLE_STYLES:
            logger.warning(
                "Unknown table_style %r, falling back to 'modern'", self.table_style
            )
            self.table_style = "modern"

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping of settings")

        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning("Ignoring unknown config key: %s", key)

        return cls(**{k: v for k, v in data.items() if k in known})

    def get_db_path(self) -> Path:
        """Get the path of the todo store."""
        return Path(self.data_dir) / self.db_file

    def get_lock_path(self) -> Path:
        """Get the advisory lock file path that guards the store."""
        db_path = self.get_db_path()
        return db_path.with_name(db_path.name + ".lock")

    def get_backup_path(self, timestamp: Optional[str] = None) -> Path:
        """Get backup directory path, or a backup file path for a timestamp."""
        if timestamp:
            db_path = self.get_db_path()
            return self.get_backup_path() / f"{db_path.stem}-{timestamp}{db_path.suffix}"
        if self.backup_dir:
            return Path(self.backup_dir)
        return Path(self.data_dir) / "backups"

    def get_config_path(self) -> Path:
        """Get the default config file path."""
        return Path(self.data_dir) / "config.yaml"


class Config:
    """Configuration manager for todosh."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, falling back to defaults."""
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            if env_path:
                config_path = Path(env_path)

        if config_path is None:
            default_path = ConfigModel().get_config_path()
            if default_path.exists():
                config_path = default_path

        if config_path is None:
            config = ConfigModel()
            logger.debug("No configuration file found, using defaults")
        else:
            config = cls._read(Path(config_path))

        data_dir = os.environ.get(DATA_DIR_ENV_VAR)
        if data_dir:
            logger.debug("Overriding data_dir from %s: %s", DATA_DIR_ENV_VAR, data_dir)
            config.data_dir = os.path.expanduser(data_dir)

        cls._instance = config
        return config

    @staticmethod
    def _read(config_path: Path) -> ConfigModel:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read config from {config_path}: {e}") from e

        try:
            config = ConfigModel.from_yaml(yaml_content)
        except (yaml.YAMLError, TypeError) as e:
            raise ConfigError(f"Invalid config in {config_path}: {e}") from e

        logger.info("Loaded configuration from %s", config_path)
        return config

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the cached configuration."""
        cls._instance = None


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)

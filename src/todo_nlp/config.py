"""Configuration management for todo-nlp."""

import logging
import os
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TODO_NLP_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.todo_nlp/config.yaml")


@dataclass
class ParserConfig:
    """Settings that shape how task lines are parsed."""

    # Date recognition
    locale: str = "pt_BR"
    forward_dates: bool = True  # Ambiguous relative dates resolve to the future

    # Inline markers
    priority_marker: str = "!"
    tag_marker: str = "#"
    max_priority: int = 3

    # Diagnostics
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate marker settings."""
        if len(self.priority_marker) != 1 or len(self.tag_marker) != 1:
            raise ConfigError("Markers must be single characters")
        if self.priority_marker == self.tag_marker:
            raise ConfigError("Priority and tag markers must differ")
        if self.max_priority < 1:
            raise ConfigError(f"max_priority must be positive, got {self.max_priority}")

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        return yaml.dump(asdict(self), default_flow_style=False, allow_unicode=True)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ParserConfig":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping")

        known = {name for name in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        return cls(**{key: value for key, value in data.items() if key in known})


def default_config_path() -> Path:
    """Get the config file path, honouring the environment override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


class Config:
    """Configuration manager for todo-nlp."""

    _instance: Optional[ParserConfig] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ParserConfig:
        """Load configuration from file.

        An explicitly given path must be readable and valid; the default
        location silently falls back to built-in defaults.
        """
        explicit = config_path is not None
        if config_path is None:
            config_path = default_config_path()

        config = ParserConfig()
        if config_path.exists():
            try:
                config = ParserConfig.from_yaml(config_path.read_text(encoding="utf-8"))
                logger.debug(f"Loaded configuration from {config_path}")
            except (yaml.YAMLError, TypeError, ConfigError) as e:
                if explicit:
                    raise ConfigError(f"Invalid config file {config_path}: {e}", path=config_path) from e
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")
                config = ParserConfig()
        elif explicit:
            raise ConfigError(f"Config file not found: {config_path}", path=config_path)

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ParserConfig, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml(), encoding="utf-8")
        logger.info(f"Configuration saved to {config_path}")

    @classmethod
    def get(cls) -> ParserConfig:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded configuration."""
        cls._instance = None


def get_config() -> ParserConfig:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ParserConfig:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ParserConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)

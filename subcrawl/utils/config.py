"""
Configuration management for the crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, fields, replace


TERMINATION_DRAIN = 'drain'
TERMINATION_IDLE = 'idle'
TERMINATION_MODES = (TERMINATION_DRAIN, TERMINATION_IDLE)


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    concurrency: int = 6
    request_timeout: float = 5.0
    idle_timeout: float = 10.0
    termination: str = TERMINATION_DRAIN
    excluded_extensions: List[str] = field(default_factory=lambda: ['.pdf', '.mp3'])
    max_duration: Optional[float] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = 'INFO'
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    file: Optional[str] = None
    json: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}")
    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file, or defaults when no file is given."""
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                try:
                    config_data = yaml.safe_load(file) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

            if not isinstance(config_data, dict):
                raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

        unknown = set(config_data) - {'crawler', 'logging'}
        if unknown:
            raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        self._config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging')
        )

        self._validate_config()
        return self._config

    def apply_overrides(self, **overrides) -> Config:
        """
        Override crawler settings, typically from command line flags.

        Keys whose value is None are ignored.
        """
        values = {key: value for key, value in overrides.items() if value is not None}
        if values:
            self._config = replace(self.config, crawler=replace(self.config.crawler, **values))
            self._validate_config()
        return self.config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        crawler = self._config.crawler

        if crawler.concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        if crawler.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        if crawler.idle_timeout < 0:
            raise ValueError("idle_timeout must be non-negative")

        if crawler.termination not in TERMINATION_MODES:
            raise ValueError(f"termination must be one of: {', '.join(TERMINATION_MODES)}")

        if crawler.max_duration is not None and crawler.max_duration <= 0:
            raise ValueError("max_duration must be positive")

        if not all(isinstance(ext, str) and ext.startswith('.') for ext in crawler.excluded_extensions):
            raise ValueError("excluded_extensions entries must start with '.'")

        level = self._config.logging.level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown logging level: {self._config.logging.level}")

        logging.debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()

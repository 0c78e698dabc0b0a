"""
Configuration management for treefetch.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union, get_args, get_origin
from dataclasses import dataclass, field, fields

from ..errors import ConfigError


@dataclass
class CrawlerConfig:
    """Configuration for link discovery."""
    max_depth: int = 1
    user_agent: str = "treefetch/1.0"
    request_timeout: Optional[float] = None
    max_content_size: int = 10 * 1024 * 1024


@dataclass
class DownloadConfig:
    """Configuration for persisting resources."""
    output_dir: str = "."
    default_outfile: str = "treefetch.out"
    max_concurrent_downloads: int = 10
    chunk_size: int = 8192
    show_progress: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = "logs/treefetch.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000
    metrics_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _matches_type(value: Any, expected: Any) -> bool:
    """Check a YAML scalar against a section field annotation."""
    if get_origin(expected) is Union:
        return any(_matches_type(value, arg) for arg in get_args(expected))
    if expected is type(None):
        return value is None
    # YAML booleans are ints in Python, so they never count as numbers here
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _type_name(expected: Any) -> str:
    if get_origin(expected) is Union:
        return ' or '.join(_type_name(arg) for arg in get_args(expected))
    if expected is type(None):
        return 'null'
    return expected.__name__


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    for f in fields(section_cls):
        if f.name in data and not _matches_type(data[f.name], f.type):
            raise ConfigError(
                f"Invalid value for '{name}.{f.name}': {data[f.name]!r} (expected {_type_name(f.type)})"
            )

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None

    def load_config(self) -> Config:
        """Load configuration from YAML file, or defaults when no path is set."""
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigError(f"Configuration file not found: {self.config_path}")

            try:
                with open(self.config_path, 'r') as file:
                    config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

            if not isinstance(config_data, dict):
                raise ConfigError(f"Top level of {self.config_path} must be a mapping")

        config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            download=_build_section(DownloadConfig, config_data.get('download'), 'download'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring'),
        )

        validate_config(config)
        return config


def validate_config(config: Config):
    """Validate configuration values."""
    if config.crawler.max_depth < 0:
        raise ConfigError("max_depth must be non-negative")

    if config.crawler.request_timeout is not None and config.crawler.request_timeout <= 0:
        raise ConfigError("request_timeout must be positive when set")

    if config.crawler.max_content_size < 1:
        raise ConfigError("max_content_size must be at least 1")

    if config.download.max_concurrent_downloads < 1:
        raise ConfigError("max_concurrent_downloads must be at least 1")

    if config.download.chunk_size < 1:
        raise ConfigError("chunk_size must be at least 1")

    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {config.logging.level}")

    logging.getLogger(__name__).debug("Configuration validation passed")


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()

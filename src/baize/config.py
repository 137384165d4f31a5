"""
Configuration loading for the platforms file.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import urlparse

import yaml
from pydantic import ValidationError

from .models.platform import PlatformConfig

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ("openai", "anthropic")
MIN_API_KEY_LENGTH = 10


class ConfigError(ValueError):
    """Raised when the platforms file is missing or invalid."""
    pass


class PlatformNotFoundError(ConfigError):
    """Raised when no platform matches an id."""

    def __init__(self, platform_id: str):
        super().__init__(f"Platform not found: {platform_id}")
        self.platform_id = platform_id


@dataclass
class GatewayConfig:
    """Complete gateway configuration."""
    version: str
    platforms: Dict[str, PlatformConfig] = field(default_factory=dict)

    def get_platform(self, platform_id: str) -> PlatformConfig:
        """
        Look up a platform by mapping key, then by its id field.

        Raises:
            PlatformNotFoundError: If nothing matches
        """
        if platform_id in self.platforms:
            return self.platforms[platform_id]
        for platform in self.platforms.values():
            if platform.id == platform_id:
                return platform
        raise PlatformNotFoundError(platform_id)

    def list_platforms(self) -> List[PlatformConfig]:
        return list(self.platforms.values())


def load_config(
    config_path: Union[str, Path],
    supported_types: Optional[Iterable[str]] = None,
) -> GatewayConfig:
    """
    Load the platforms file.

    Args:
        config_path: Path to the YAML file
        supported_types: Accepted platform types; defaults to openai and anthropic

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    path = Path(config_path).resolve()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not text.strip():
        raise ConfigError(f"Config file is empty: {path}")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")

    config = _parse_config(data, tuple(supported_types or SUPPORTED_TYPES))
    logger.debug(f"Loaded {len(config.platforms)} platforms from {path}")
    return config


def _parse_config(data: Dict[str, Any], supported_types: Tuple[str, ...]) -> GatewayConfig:
    """Parse and validate a configuration dictionary."""
    version = data.get("version")
    if not version:
        raise ConfigError("Config file is missing a version")

    raw_platforms = data.get("platforms") or {}
    if isinstance(raw_platforms, dict):
        entries = list(raw_platforms.items())
    elif isinstance(raw_platforms, list):
        entries = [(None, item) for item in raw_platforms]
    else:
        raise ConfigError("'platforms' must be a mapping or a list")

    if not entries:
        raise ConfigError("No platforms defined in config file")

    platforms: Dict[str, PlatformConfig] = {}
    for key, item in entries:
        if not isinstance(item, dict):
            raise ConfigError(f"Platform {key or '?'} must be a mapping")
        label = key or item.get("id") or "?"
        platform = _parse_platform(label, item, supported_types)
        platforms[key or platform.id] = platform

    return GatewayConfig(version=str(version), platforms=platforms)


def _expand_env(value: Optional[str]) -> Optional[str]:
    if value and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _parse_platform(label: str, item: Dict[str, Any], supported_types: Tuple[str, ...]) -> PlatformConfig:
    for required in ("id", "name", "type", "base_url", "api_key"):
        if not item.get(required):
            raise ConfigError(f"Platform {label} is missing '{required}'")
    if not item.get("models"):
        raise ConfigError(f"Platform {label} defines no models")

    api_key = _expand_env(str(item["api_key"]))
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise ConfigError(f"Platform {label} has an API key that is too short")

    parsed = urlparse(str(item["base_url"]))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Platform {label} has an invalid base_url")

    if item["type"] not in supported_types:
        raise ConfigError(f"Platform {label} has unsupported type {item['type']}")

    try:
        return PlatformConfig(
            id=str(item["id"]),
            name=str(item["name"]),
            type=item["type"],
            base_url=str(item["base_url"]),
            api_key=api_key,
            models=tuple(str(m) for m in item["models"]),
        )
    except ValidationError as e:
        raise ConfigError(f"Platform {label} is invalid: {e}") from e

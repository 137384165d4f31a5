"""
Provider construction options.
"""

import logging
from dataclasses import dataclass, replace

DEFAULT_TIMEOUT = 30.0

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


def normalize_log_level(name: str) -> str:
    """Map a level name to a known one; unknown names fall back to info."""
    key = (name or "").strip().lower()
    if key == "warning":
        return "warn"
    return key if key in _LOG_LEVELS else "info"


@dataclass(frozen=True)
class ProviderOptions:
    """Settings applied when a provider is constructed."""
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = 0
    log_level: str = "info"

    @property
    def logging_level(self) -> int:
        return _LOG_LEVELS[normalize_log_level(self.log_level)]

    @classmethod
    def builder(cls) -> "ProviderOptionsBuilder":
        return ProviderOptionsBuilder()


class ProviderOptionsBuilder:
    """
    Builder for ProviderOptions.

    Example:
        options = ProviderOptions.builder().timeout(10).log_level("debug").build()
    """

    def __init__(self, base: ProviderOptions = None):
        self._options = base or ProviderOptions()

    def timeout(self, seconds: float) -> "ProviderOptionsBuilder":
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        self._options = replace(self._options, timeout=float(seconds))
        return self

    def max_retries(self, count: int) -> "ProviderOptionsBuilder":
        if count < 0:
            raise ValueError("max_retries must not be negative")
        self._options = replace(self._options, max_retries=int(count))
        return self

    def log_level(self, name: str) -> "ProviderOptionsBuilder":
        self._options = replace(self._options, log_level=normalize_log_level(name))
        return self

    def build(self) -> ProviderOptions:
        return self._options


def provider_logger(platform_id: str, options: ProviderOptions) -> logging.Logger:
    """Logger for one platform's provider, set to the configured verbosity."""
    log = logging.getLogger(f"baize.providers.{platform_id}")
    log.setLevel(options.logging_level)
    return log

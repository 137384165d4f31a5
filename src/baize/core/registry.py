"""
Provider registry mapping platform types to factories.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from ..models.platform import PlatformConfig
from .errors import UnsupportedPlatformType
from .interface import AIProvider
from .options import ProviderOptions

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[PlatformConfig, ProviderOptions], AIProvider]


class ProviderRegistry:
    """
    Registry of provider factories keyed by platform type.

    Built once at start-up and passed to whatever needs to create
    providers. Registration and lookup are serialized by a lock.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._factories: Dict[str, ProviderFactory] = {}
        self._lock = threading.Lock()

    @classmethod
    def with_defaults(cls) -> "ProviderRegistry":
        """Create a registry holding the built-in openai and anthropic factories."""
        from ..adapters import AnthropicProvider, OpenAIProvider

        registry = cls()
        registry.register("openai", OpenAIProvider.create)
        registry.register("anthropic", AnthropicProvider.create)
        return registry

    def register(self, platform_type: str, factory: ProviderFactory) -> None:
        """
        Register a provider factory.

        Args:
            platform_type: Type identifier (e.g., "openai")
            factory: Callable building a provider from a platform and options

        An existing entry for the type is replaced.
        """
        with self._lock:
            replaced = platform_type in self._factories
            self._factories[platform_type] = factory
        if replaced:
            logger.info(f"Replaced provider factory: {platform_type}")
        else:
            logger.info(f"Registered provider factory: {platform_type}")

    def is_registered(self, platform_type: str) -> bool:
        with self._lock:
            return platform_type in self._factories

    def types(self) -> List[str]:
        """List registered platform types."""
        with self._lock:
            return sorted(self._factories)

    def create(
        self,
        platform: PlatformConfig,
        options: Optional[ProviderOptions] = None,
    ) -> AIProvider:
        """
        Create a provider for a platform.

        Args:
            platform: Platform record
            options: Construction options; defaults apply when omitted

        Returns:
            Ready-to-use provider

        Raises:
            UnsupportedPlatformType: If no factory is registered for the type
        """
        with self._lock:
            factory = self._factories.get(platform.type)
        if factory is None:
            raise UnsupportedPlatformType(platform.type)

        provider = factory(platform, options or ProviderOptions())
        logger.debug(f"Created provider for platform {platform.id} (type: {platform.type})")
        return provider

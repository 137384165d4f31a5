"""
Provider adapters for upstream AI APIs.
"""

from .openai_adapter import OpenAIProvider
from .anthropic_adapter import AnthropicProvider

__all__ = [
    "OpenAIProvider",
    "AnthropicProvider",
]

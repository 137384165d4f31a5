"""
Baize data models.
"""

from .platform import PlatformConfig
from .request import ChatCall, Message, Role
from .response import APIError

__all__ = [
    "PlatformConfig",
    "ChatCall",
    "Message",
    "Role",
    "APIError",
]

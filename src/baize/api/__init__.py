"""
HTTP serving layer.
"""

from .app import create_app
from .dispatch import call_with_retries, dispatch, dispatch_stream
from .metrics import RequestMetrics

__all__ = [
    "create_app",
    "call_with_retries",
    "dispatch",
    "dispatch_stream",
    "RequestMetrics",
]

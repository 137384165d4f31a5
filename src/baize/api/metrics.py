"""
In-process request metrics for the serving layer.
"""

import threading
from typing import Any, Dict


class RequestMetrics:
    """
    Request counters and response times per path.

    Updated by the HTTP middleware; read by the metrics endpoint.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.response_times: Dict[str, float] = {}
        self.request_counts: Dict[str, int] = {}

    def record(self, path: str, status_code: int, elapsed_ms: float) -> None:
        with self._lock:
            self.total_requests += 1
            self.request_counts[path] = self.request_counts.get(path, 0) + 1
            self.response_times[path] = self.response_times.get(path, 0.0) + elapsed_ms
            if 200 <= status_code < 400:
                self.successful_requests += 1
            else:
                self.failed_requests += 1

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the counters with average response time per path."""
        with self._lock:
            return {
                "total_requests": self.total_requests,
                "successful_requests": self.successful_requests,
                "failed_requests": self.failed_requests,
                "response_times": dict(self.response_times),
                "request_counts": dict(self.request_counts),
                "average_response_times": {
                    path: self.response_times[path] / count
                    for path, count in self.request_counts.items()
                    if count
                },
            }

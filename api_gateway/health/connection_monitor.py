"""
Connection health monitor for gateway requests.
"""

import time
from typing import Callable, Optional

from shared.logging import get_logger


OFFLINE_THRESHOLD_SECONDS = 30.0
OFFLINE_FAILURE_THRESHOLD = 2


class ConnectionMonitor:
    """Tracks request outcomes to decide whether the backend is reachable."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, name: str = "default"):
        self.name = name
        self.logger = get_logger(f"gateway.connection_monitor.{name}")
        self._clock = clock

        self._last_success_time: Optional[float] = None
        self._failed_request_count = 0
        self._consecutive_failures = 0

    def record_success(self) -> None:
        if self._consecutive_failures >= OFFLINE_FAILURE_THRESHOLD:
            self.logger.info(
                "Connection recovered",
                consecutive_failures=self._consecutive_failures
            )
        self._last_success_time = self._clock()
        self._consecutive_failures = 0

    def record_failure(self) -> None:
        self._failed_request_count += 1
        self._consecutive_failures += 1

    def is_online(self) -> bool:
        """Offline only after 30s without success and at least 2 consecutive failures."""
        if self._last_success_time is None:
            elapsed = float("inf")
        else:
            elapsed = self._clock() - self._last_success_time

        return not (
            elapsed > OFFLINE_THRESHOLD_SECONDS
            and self._consecutive_failures >= OFFLINE_FAILURE_THRESHOLD
        )

    def get_time_since_last_success(self) -> float:
        """Seconds since the last success, 0 when none was ever recorded."""
        if self._last_success_time is None:
            return 0.0
        return self._clock() - self._last_success_time

    def get_failed_request_count(self) -> int:
        return self._failed_request_count

    def get_consecutive_failures(self) -> int:
        return self._consecutive_failures

    def reset(self) -> None:
        self._last_success_time = None
        self._failed_request_count = 0
        self._consecutive_failures = 0
        self.logger.info("Connection monitor reset")

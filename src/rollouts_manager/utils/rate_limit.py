"""Rate limiting utilities for API calls."""

from __future__ import annotations

import threading
import time
from typing import Callable


class Throttle:
    """Spaces out calls so that at most ``rate_per_second`` are issued.

    Implements a simple token-spacing limiter to prevent overwhelming the
    Kubernetes API server. Shared by all threads of the operator.
    """

    def __init__(self, rate_per_second: float, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_interval = 1.0 / rate_per_second if rate_per_second > 0 else 0.0
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call_time = float("-inf")

    def wait(self) -> None:
        """Block until the next call is allowed."""
        with self._lock:
            now = self._clock()
            time_since_last_call = now - self._last_call_time
            if time_since_last_call < self.min_interval:
                self._sleep(self.min_interval - time_since_last_call)
                now = self._clock()
            self._last_call_time = now


"""
Per-site single-lane fetch queue with a minimum start-to-start interval.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TypeVar

from pricewatch.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimitedFetchQueue:
    """
    Runs scheduled tasks one at a time, spacing task starts by at least
    `min_interval_seconds` (or a larger per-call crawl delay).

    The clock advances when a task starts, so a task that raises still
    counts as an attempt and the next task waits the full interval from
    its start. Tasks are never retried here.
    """

    def __init__(
        self,
        *,
        min_interval_seconds: float,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._min_interval_seconds = max(0.0, min_interval_seconds)
        self._name = name
        self._clock = clock
        self._sleep = sleep
        self._last_start: float | None = None
        self._lock = threading.Lock()

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval_seconds

    @property
    def last_start(self) -> float | None:
        return self._last_start

    def schedule(self, task: Callable[[], T], *, crawl_delay: float | None = None) -> T:
        """
        Run `task` once the interval since the previous start has elapsed.
        """

        interval = self._min_interval_seconds
        if crawl_delay is not None:
            interval = max(interval, max(0.0, crawl_delay))

        with self._lock:
            if self._last_start is not None:
                wait_seconds = interval - (self._clock() - self._last_start)
                if wait_seconds > 0:
                    log_event(
                        logger,
                        logging.DEBUG,
                        "fetch_queue_wait",
                        queue=self._name,
                        wait_seconds=round(wait_seconds, 3),
                    )
                    self._sleep(wait_seconds)
            self._last_start = self._clock()
            return task()

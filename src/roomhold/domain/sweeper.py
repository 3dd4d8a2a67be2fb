"""Background expiry sweeper.

Runs expire_holds() on a daemon thread with a fixed delay between runs.
A failed run is logged and the loop carries on with the next tick.
"""

from __future__ import annotations

import threading
from typing import Callable

from roomhold.domain.expire_holds import expire_holds
from roomhold.infra.time import Clock, utc_now
from roomhold.observability.logging import get_logger
from roomhold.observability.redaction import safe_log_context

logger = get_logger(__name__)


class ExpirySweeper:
    """Periodic expiry of overdue holds.

    Args:
        interval_seconds: Delay between the end of one run and the next.
        clock: Source of `now` for each run.
        expire: Sweep function (injectable for tests).
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Clock = utc_now,
        expire: Callable[..., int] = expire_holds,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._expire = expire
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Run a single sweep now. Returns the number of holds expired."""
        return self._expire(now=self._clock())

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="hold-expiry-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(
            "expiry sweeper started",
            extra={
                "extra_fields": safe_log_context(interval_seconds=self.interval_seconds)
            },
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("expiry sweeper stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("expiry sweep failed")
            self._stop.wait(self.interval_seconds)

"""Drift-correcting repeating timer."""

import threading
import time
from typing import Callable, Optional

from log import get_logger

logger = get_logger(__name__)


class CorrectingInterval:
    """
    Calls `callback` every `period` seconds until cancelled.

    Each wait is computed against the anchor (start time) instead of the end
    of the previous call: tick n is due at anchor + n * period. A call that
    runs long shortens the next wait rather than pushing every later tick
    back, so the long-run rate stays at 1 / period.

    The loop runs either on its own daemon thread (start) or in the calling
    thread (run). clock and sleep are injectable for tests; with a custom
    sleep the cancel flag is checked after every sleep.
    """

    def __init__(self, callback: Callable[[], None], period: float, name: str = "interval",
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], None]] = None):
        if period <= 0:
            raise ValueError(f"Interval period must be positive, got {period}")
        self.callback = callback
        self.period = float(period)
        self.name = name
        self.ticks = 0
        self._clock = clock
        self._sleep = sleep
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, immediate: bool = True):
        """Run the interval on a daemon thread. Returns immediately."""
        if self._thread is not None:
            raise RuntimeError(f"{self.name} already started")
        anchor = self._clock()
        self._thread = threading.Thread(
            target=self.run, args=(immediate, anchor), name=self.name, daemon=True
        )
        self._thread.start()

    def run(self, immediate: bool = True, anchor: Optional[float] = None):
        """Run the interval in the current thread until cancelled.

        immediate: fire the first call at the anchor instead of one period later
        """
        if anchor is None:
            anchor = self._clock()
        due = 0 if immediate else 1

        while not self.cancelled:
            delay = anchor + due * self.period - self._clock()
            if delay > 0 and self._pause(delay):
                break
            if self.cancelled:
                break
            self._fire()
            due += 1

    def cancel(self, timeout: Optional[float] = None):
        """Stop the interval and wait for an in-flight call to finish.

        Safe to call from inside the callback.
        """
        self._cancelled.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _pause(self, delay: float) -> bool:
        """Sleep for delay seconds. Returns True if cancelled meanwhile."""
        if self._sleep is None:
            return self._cancelled.wait(delay)
        self._sleep(delay)
        return self.cancelled

    def _fire(self):
        self.ticks += 1
        try:
            self.callback()
        except Exception:
            logger.exception(f"{self.name} tick {self.ticks} failed")

from __future__ import annotations
import logging
import threading
import time
from typing import Optional

from .config import RateLimit

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Fixed-window permit counter.
    Allows at most `max_calls` permits per window; a background timer refills
    the counter at the start of every window. Callers waiting in acquire()
    sleep on a condition and are woken by each refill.
    """
    def __init__(self, rate_limit: RateLimit):
        self.rate_limit = rate_limit
        self.max_calls = rate_limit.max_calls
        self.window_sec = rate_limit.window_seconds
        self._cond = threading.Condition()
        self._remaining = self.max_calls  # floor is 0, denied attempts leave it alone
        self._closed = False
        self._stop = threading.Event()
        self._lifecycle = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    # ---------- Permits ----------
    def _take(self) -> bool:
        # caller holds self._cond
        if self._closed:
            return False
        if self._remaining > 0:
            self._remaining -= 1
            return True
        return False

    def try_acquire(self) -> bool:
        """True iff a permit was available before this call (and is now consumed)."""
        with self._cond:
            return self._take()

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """
        Block until a permit is taken.
        Returns False when `timeout` runs out first or the tracker is stopped.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._closed or self._remaining > 0, timeout=timeout)
            return self._take()

    def reset_window(self) -> None:
        with self._cond:
            self._remaining = self.max_calls
            self._cond.notify_all()
        logger.debug("Quota window reset: %d permits", self.max_calls)

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    # ---------- Reset timer ----------
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Refill now, then at start + k * window until stop()."""
        with self._lifecycle:
            if self.running:
                return
            self._stop.clear()
            with self._cond:
                self._closed = False
            self.reset_window()
            self._thread = threading.Thread(
                target=self._run, args=(time.monotonic(),), name="quota-reset", daemon=True
            )
            self._thread.start()
        logger.info("Quota timer started: %d calls per %.3fs", self.max_calls, self.window_sec)

    def _run(self, started: float) -> None:
        k = 1
        while True:
            deadline = started + k * self.window_sec
            left = deadline - time.monotonic()
            if left > 0:
                if self._stop.wait(left):
                    return
                continue  # woke early, wait out the rest
            self.reset_window()
            # fixed rate: if we fell behind, skip missed windows instead of bursting resets
            k = max(k + 1, int((time.monotonic() - started) // self.window_sec) + 1)

    def stop(self) -> None:
        """Stop the timer and turn away every waiting and future acquire()."""
        with self._lifecycle:
            with self._cond:
                self._closed = True
                self._cond.notify_all()
            thread = self._thread
            if thread is None:
                return
            self._stop.set()
            if thread is not threading.current_thread():
                thread.join()
            self._thread = None
        logger.info("Quota timer stopped")

    def __enter__(self) -> QuotaTracker:
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

"""Background wake-up that drives session timers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """Calls `callback` every `interval` seconds on a daemon thread.

    Every start() gets a fresh thread with its own stop event, so a thread
    that is still finishing a callback after stop() never keeps ticking.
    Callers that share state with the callback use owns_current_thread() to
    drop a late call from a stopped thread.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "recipegraph-ticker"):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self._callback = callback
        self._name = name
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            stop_event = threading.Event()
            thread = threading.Thread(target=self._run, args=(stop_event,), name=self._name, daemon=True)
            self._thread, self._stop_event = thread, stop_event
            thread.start()
        logger.debug("Ticker %s started (interval=%ss)", self._name, self.interval)

    def stop(self) -> Optional[threading.Thread]:
        """Signal the current thread to finish and return it so the caller can join it."""
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = self._stop_event = None
        if stop_event is None:
            return None
        stop_event.set()
        logger.debug("Ticker %s stopped", self._name)
        return thread

    def owns_current_thread(self) -> bool:
        with self._lock:
            return self._thread is threading.current_thread()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Ticker %s callback failed", self._name)

"""Background timer used by the dispatcher and the mailbox poller."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """Run ``action`` every ``interval`` seconds on a daemon thread.

    The next run starts only after the previous one has returned, so runs of
    the same task never overlap. ``action`` is expected to handle its own
    errors; anything that still escapes is logged and the loop continues.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], object]) -> None:
        self.name = name
        self.interval = interval
        self.action = action
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("%s already running", self.name)
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name=self.name)
        self._thread.start()
        logger.info("%s started (interval=%ss)", self.name, self.interval)

    def stop(self, timeout: float = 10.0) -> None:
        if not self.running:
            return
        logger.info("Stopping %s...", self.name)
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("%s stopped", self.name)

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.action()
            except Exception:
                logger.exception("%s run failed", self.name)
            self._stop_event.wait(self.interval)

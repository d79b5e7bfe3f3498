"""Background task that garbage-collects stale rooms. Started and stopped explicitly by whoever owns the process."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RoomSweeper:
    """Runs `sweep` every `interval_sec` seconds on a daemon thread until `stop()` is called."""

    def __init__(self, sweep: Callable[[], list[str]], interval_sec: float) -> None:
        if interval_sec <= 0:
            raise ValueError(f"Sweep interval must be positive. Got {interval_sec}")
        self.sweep = sweep
        self.interval_sec = interval_sec
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="room-sweeper", daemon=True
        )
        self._thread.start()
        logger.info("room sweeper started (every %ss)", self.interval_sec)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info("room sweeper stopped")

    def run_once(self) -> list[str]:
        """One pass. A failing pass is logged and the sweeper keeps going."""
        try:
            evicted = self.sweep()
        except Exception:
            logger.exception("room sweep failed")
            return []
        if evicted:
            logger.info("swept %d stale room(s): %s", len(evicted), ", ".join(evicted))
        return evicted

    def _run(self) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop.wait(self.interval_sec):
            self.run_once()

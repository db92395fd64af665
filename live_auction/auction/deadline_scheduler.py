"""
Background tick that detects bidding-window expiry.
"""

import logging
import threading
from typing import Optional

from .engine import AuctionEngine

logger = logging.getLogger(__name__)


class DeadlineScheduler:
    """Single recurring ticker that settles expired players."""

    def __init__(self, engine: AuctionEngine, tick_interval: float = 0.25):
        """
        Initialize the scheduler.

        Args:
            engine: Engine whose deadline is checked on every tick
            tick_interval: Seconds between ticks
        """
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")

        self.engine = engine
        self.tick_interval = tick_interval
        self.tick_count = 0

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._start_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start the ticker thread.

        Returns:
            False if a ticker was already running (no second thread is spawned)
        """
        with self._start_lock:
            if self.running:
                return False
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name='deadline-scheduler',
                daemon=True
            )
            self._thread.start()

        logger.info(f"Deadline scheduler started ({self.tick_interval}s tick)")
        return True

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the ticker and wait for the thread to exit."""
        with self._start_lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None

        if thread is not None:
            thread.join(timeout)
            logger.info(f"Deadline scheduler stopped after {self.tick_count} ticks")

    def tick(self) -> bool:
        """
        Run one expiry check.

        Safe to call repeatedly after expiry: the first settlement clears the
        deadline, so later ticks find nothing to do.

        Returns:
            True if a player was settled
        """
        self.tick_count += 1
        return self.engine.expire_if_due() is not None

    def _run(self) -> None:
        while not self._stop_event.wait(self.tick_interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error during deadline tick: {e}", exc_info=True)
                # Keep ticking despite errors

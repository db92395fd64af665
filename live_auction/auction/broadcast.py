"""
Coalesced dissemination of the public auction snapshot.

Policy: publish after every accepted mutation or expiry, coalesced within a
trailing window. A notification that arrives while a send is already
scheduled is absorbed by it; otherwise a send is scheduled for
``max(0, interval - time_since_last_send)``. There is no periodic heartbeat,
so clients derive the live countdown from ``deadline_at``.
"""

import itertools
import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class BroadcastCoordinator:
    """Fans the latest snapshot out to every subscriber."""

    def __init__(
        self,
        snapshot_provider: Callable[[], dict],
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., threading.Timer] = threading.Timer
    ):
        """
        Initialize the coordinator.

        Args:
            snapshot_provider: Returns the current public snapshot
            interval: Trailing coalescing window in seconds (0 = publish inline)
            clock: Monotonic clock used to space sends
            timer_factory: Builds the delayed-send timer (threading.Timer signature)
        """
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")

        self.snapshot_provider = snapshot_provider
        self.interval = interval
        self.clock = clock
        self.timer_factory = timer_factory

        self.sent_count = 0
        self._subscribers: Dict[int, Callable[[dict], None]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._last_sent_at: Optional[float] = None
        self._closed = False

    def subscribe(self, callback: Callable[[dict], None]) -> int:
        """
        Register a subscriber.

        Returns:
            Token for unsubscribe()
        """
        with self._lock:
            token = next(self._ids)
            self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            self._subscribers.pop(token, None)

    @property
    def pending(self) -> bool:
        """Whether a coalesced send is scheduled."""
        return self._timer is not None

    def notify(self) -> None:
        """Request a broadcast of the current state."""
        if self.interval == 0:
            if not self._closed:
                self.publish_now()
            return

        with self._lock:
            if self._closed or self._timer is not None:
                return  # already scheduled

            delay = 0.0
            if self._last_sent_at is not None:
                delay = max(0.0, self.interval - (self.clock() - self._last_sent_at))

            timer = self.timer_factory(delay, self._fire)
            timer.daemon = True
            self._timer = timer

        timer.start()

    def flush(self) -> None:
        """Send a scheduled broadcast immediately instead of waiting."""
        with self._lock:
            timer = self._timer
        if timer is not None:
            timer.cancel()
            self._fire()

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None:
                return  # flushed or closed meanwhile
            self._timer = None
        self.publish_now()

    def publish_now(self) -> dict:
        """
        Compute a fresh snapshot and hand it to every subscriber.

        A failing subscriber is logged and skipped.

        Returns:
            The published message
        """
        message = {'type': 'state', 'payload': self.snapshot_provider()}

        with self._lock:
            self._last_sent_at = self.clock()
            self.sent_count += 1
            subscribers = list(self._subscribers.items())

        for token, callback in subscribers:
            try:
                callback(message)
            except Exception as e:
                logger.warning(f"Subscriber {token} failed, skipping: {e}")

        logger.debug(f"Broadcast #{self.sent_count} to {len(subscribers)} subscriber(s)")
        return message

    def close(self) -> None:
        """Cancel any scheduled send and refuse further notifications."""
        with self._lock:
            self._closed = True
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.cancel()

"""
FIFO backlog of players awaiting auction.
"""

import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from .errors import ValidationError
from .models import QueueEntry

logger = logging.getLogger(__name__)


class PlayerQueue:
    """Ordered backlog; FIFO is the only ordering guarantee."""

    def __init__(
        self,
        base_price_enabled: bool = True,
        base_price_min: int = 1,
        base_price_max: int = 500
    ):
        if base_price_min > base_price_max:
            raise ValueError(
                f"base_price_min ({base_price_min}) exceeds base_price_max ({base_price_max})"
            )
        self.base_price_enabled = base_price_enabled
        self.base_price_min = base_price_min
        self.base_price_max = base_price_max
        self._entries: Deque[QueueEntry] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(
        self,
        name: str,
        base_price: Optional[int] = None,
        submitted_at: Optional[datetime] = None
    ) -> int:
        """
        Add a player to the back of the queue.

        Args:
            name: Player display name (trimmed, must be non-empty)
            base_price: Minimum first bid; defaults to the floor
            submitted_at: Submission time (default: now)

        Returns:
            1-based position of the new entry

        Raises:
            ValidationError: Empty name or out-of-range base price
        """
        cleaned = str(name or '').strip()
        if not cleaned:
            raise ValidationError('name required')

        price = self.base_price_min
        if self.base_price_enabled and base_price is not None:
            if isinstance(base_price, bool) or not isinstance(base_price, int):
                raise ValidationError(f"base price must be an integer, got {base_price!r}")
            if not self.base_price_min <= base_price <= self.base_price_max:
                raise ValidationError(
                    f"base price must be between {self.base_price_min} "
                    f"and {self.base_price_max}"
                )
            price = base_price

        entry = QueueEntry(
            name=cleaned,
            base_price=price,
            submitted_at=submitted_at or datetime.now()
        )
        self._entries.append(entry)

        logger.debug(f"Queued {entry.name} (base {entry.base_price}) at position {len(self._entries)}")
        return len(self._entries)

    def dequeue_front(self) -> Optional[QueueEntry]:
        if not self._entries:
            return None
        return self._entries.popleft()

    def peek_front(self) -> Optional[QueueEntry]:
        if not self._entries:
            return None
        return self._entries[0]

    def preview(self, n: int) -> List[QueueEntry]:
        """First n entries, front first."""
        if n <= 0:
            return []
        return list(self._entries)[:n]

    def clear(self) -> None:
        self._entries.clear()

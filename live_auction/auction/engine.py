"""
Single-writer boundary and action surface of the auction.

The AuctionEngine coordinates all core components:
- Serializes every mutation of ledger, queue and auction state under one lock
- Exposes the actions sessions and the submission endpoint can invoke
- Builds the public snapshot
- Notifies listeners after each accepted mutation, outside the lock
"""

import logging
import math
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional

from .models import Bid, SettlementRecord
from .player_queue import PlayerQueue
from .state_machine import AuctionStateMachine
from .team_ledger import TeamLedger

logger = logging.getLogger(__name__)


class AuctionEngine:
    """Serialized access to the auction state machine, ledger and queue."""

    def __init__(
        self,
        ledger: TeamLedger,
        queue: PlayerQueue,
        bid_window_seconds: float = 10.0,
        auto_load_next: bool = False,
        queue_preview_size: int = 5,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the engine.

        Args:
            ledger: Team ledger
            queue: Player queue
            bid_window_seconds: Countdown armed by start and every accepted bid
            auto_load_next: Pre-load the next queued player after settlement
            queue_preview_size: Queue entries included in snapshots
            clock: Returns the current time in epoch seconds
        """
        self.ledger = ledger
        self.queue = queue
        self.clock = clock
        self.queue_preview_size = queue_preview_size
        self.machine = AuctionStateMachine(
            ledger=ledger,
            queue=queue,
            bid_window_seconds=bid_window_seconds,
            auto_load_next=auto_load_next,
            clock=clock
        )

        self._lock = threading.Lock()
        self._listeners: List[Callable[[], None]] = []

    # ----- Change notification -----

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked after every accepted mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        # Called only after the lock is released
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error(f"Change listener failed: {e}", exc_info=True)

    def _mutate(self, operation: Callable, notify_if: Callable = lambda result: True):
        with self._lock:
            result = operation()
            self.machine.state.validate()
        if notify_if(result):
            self._notify()
        return result

    # ----- Submission -----

    def enqueue_player(self, name: str, base_price: Optional[int] = None) -> int:
        """
        Queue a player for auction.

        Returns:
            1-based queue position
        """
        position = self._mutate(lambda: self.queue.enqueue(
            name, base_price, submitted_at=datetime.fromtimestamp(self.clock())
        ))
        logger.info(f"Player submitted: {str(name).strip()!r} at position {position}")
        return position

    # ----- Auctioneer actions -----

    def start(self) -> float:
        return self._mutate(self.machine.start)

    def start_next(self) -> float:
        return self._mutate(self.machine.start_next)

    def pause(self) -> bool:
        return self._mutate(self.machine.pause, notify_if=bool)

    def load_next(self) -> Optional[str]:
        return self._mutate(self.machine.load_next)

    def set_player(self, name: str) -> str:
        return self._mutate(lambda: self.machine.set_player(name))

    def close_and_sell(self) -> Optional[SettlementRecord]:
        return self._mutate(self.machine.close_and_sell, notify_if=lambda r: r is not None)

    def mark_unsold(self) -> Optional[SettlementRecord]:
        return self._mutate(self.machine.mark_unsold, notify_if=lambda r: r is not None)

    def reset(self) -> None:
        self._mutate(self.machine.reset)

    # ----- Team actions -----

    def submit_bid(self, team_id: str, amount: int) -> Bid:
        """
        Arbitrate a bid; rejected bids raise and leave state untouched.

        Compare-and-set of the leading bid happens under the lock, so of two
        racing bids only a strictly higher one can supersede the other.
        """
        return self._mutate(lambda: self.machine.submit_bid(team_id, amount))

    def rename_team(self, team_id: str, new_name: str) -> bool:
        return self._mutate(lambda: self.ledger.rename(team_id, new_name), notify_if=bool)

    # ----- Scheduler -----

    def expire_if_due(self) -> Optional[SettlementRecord]:
        """Settle the current player if its window has run out (scheduler tick)."""
        def _expire():
            return self.machine.expire_if_due(self.clock())

        return self._mutate(_expire, notify_if=lambda r: r is not None)

    # ----- Reads -----

    def pending_players(self, limit: int = 100) -> List[dict]:
        with self._lock:
            return [entry.to_dict() for entry in self.queue.preview(limit)]

    def get_snapshot(self) -> dict:
        """
        Public projection of the auction, teams and queue.

        Copied into plain dicts under the lock; encoding and fan-out are left
        to the caller.
        """
        with self._lock:
            return self._build_snapshot(self.clock())

    def _build_snapshot(self, now: float) -> dict:
        state = self.machine.state

        countdown_seconds = 0
        deadline_iso = None
        if state.deadline_at is not None:
            countdown_seconds = max(0, math.ceil(state.deadline_at - now))
            deadline_iso = datetime.fromtimestamp(state.deadline_at).isoformat()

        up_next = self.queue.peek_front()

        return {
            'auction': {
                'phase': state.phase.value,
                'current_player': state.current_player,
                'current_base_price': state.current_base_price,
                'current_bid': state.current_bid.to_dict() if state.current_bid else None,
                'deadline_at': deadline_iso,
                'countdown_seconds': countdown_seconds,
                'history': [record.to_dict() for record in state.history]
            },
            'teams': self.ledger.to_dicts(),
            'queue': {
                'count': len(self.queue),
                'up_next': {
                    'name': up_next.name,
                    'base_price': up_next.base_price
                } if up_next else None,
                'preview': [
                    {'name': e.name, 'base_price': e.base_price}
                    for e in self.queue.preview(self.queue_preview_size)
                ]
            }
        }

"""
Authority for every mutation of the live auction.

The AuctionStateMachine is responsible for:
- Loading players from the queue into the current slot
- Starting, pausing and restarting the bidding countdown
- Arbitrating bids (base price, strictly increasing amounts, balance checks)
- Settling the current player as sold or unsold, once

Phase transitions are intentionally permissive: the auctioneer is trusted, and
guards only protect settlement, bid floors and team balances. Nothing here is
thread-safe; the AuctionEngine holds its lock around every call.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from .errors import (
    AuctionNotRunningError,
    BelowBasePriceError,
    BidTooLowError,
    InsufficientFundsError,
    NoCurrentPlayerError,
    NoPlayersQueuedError,
    ValidationError,
)
from .models import AuctionState, Bid, Phase, SettlementRecord
from .player_queue import PlayerQueue
from .team_ledger import TeamLedger

logger = logging.getLogger(__name__)


class AuctionStateMachine:
    """Phase, current player, leading bid, deadline and settlement history."""

    def __init__(
        self,
        ledger: TeamLedger,
        queue: PlayerQueue,
        bid_window_seconds: float = 10.0,
        auto_load_next: bool = False,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the state machine.

        Args:
            ledger: Team balances to validate and debit bids against
            queue: Backlog the next player is pulled from
            bid_window_seconds: Full countdown armed by start and by every bid
            auto_load_next: Pre-load the next queued player after a settlement
            clock: Returns the current time in epoch seconds
        """
        if bid_window_seconds <= 0:
            raise ValueError(f"bid_window_seconds must be positive, got {bid_window_seconds}")

        self.ledger = ledger
        self.queue = queue
        self.bid_window_seconds = bid_window_seconds
        self.auto_load_next = auto_load_next
        self.clock = clock
        self.state = AuctionState()

    # ----- Loading -----

    def _pull_next(self) -> Optional[str]:
        entry = self.queue.dequeue_front()
        self.state.clear_current()
        if entry is not None:
            self.state.current_player = entry.name
            self.state.current_base_price = entry.base_price
            logger.info(f"Loaded {entry.name} (base price {entry.base_price})")
        return self.state.current_player

    def _arm_deadline(self, now: float) -> None:
        self.state.deadline_at = now + self.bid_window_seconds

    def _go_idle(self) -> None:
        self.state.phase = Phase.IDLE
        self.state.deadline_at = None

    def load_next(self) -> Optional[str]:
        """
        Move the front of the queue into the current slot and wait for start.

        Any loaded player is replaced without settlement. With an empty queue
        the current slot is cleared.

        Returns:
            Name of the loaded player, or None
        """
        player = self._pull_next()
        self._go_idle()
        return player

    def set_player(self, name: str, base_price: Optional[int] = None) -> str:
        """
        Load an ad hoc player chosen by the auctioneer.

        Raises:
            ValidationError: If the name is empty
        """
        cleaned = str(name or '').strip()
        if not cleaned:
            raise ValidationError('name required')

        self.state.clear_current()
        self.state.current_player = cleaned
        self.state.current_base_price = base_price if base_price is not None \
            else self.queue.base_price_min
        self._go_idle()
        logger.info(f"Auctioneer set player {cleaned}")
        return cleaned

    # ----- Countdown -----

    def start(self) -> float:
        """
        Open bidding on the current player, loading one if needed.

        Calling start while already running re-arms a full window.

        Returns:
            The new deadline (epoch seconds)

        Raises:
            NoPlayersQueuedError: If no player is loaded and the queue is empty
        """
        if self.state.current_player is None:
            self._pull_next()
        if self.state.current_player is None:
            raise NoPlayersQueuedError()

        self.state.phase = Phase.RUNNING
        self._arm_deadline(self.clock())
        logger.info(
            f"Bidding open on {self.state.current_player} "
            f"({self.bid_window_seconds:g}s window)"
        )
        return self.state.deadline_at

    def start_next(self) -> float:
        """
        Load the next queued player and open bidding on it.

        Raises:
            NoPlayersQueuedError: If the queue is empty; the loaded player
                and its bid are kept
        """
        if self.queue.peek_front() is None:
            raise NoPlayersQueuedError()
        self._pull_next()
        return self.start()

    def pause(self) -> bool:
        """
        Suspend bidding; the current player and bid are retained.

        No remaining time is kept: resuming is a fresh start().

        Returns:
            True if anything changed
        """
        if self.state.phase == Phase.PAUSED and self.state.deadline_at is None:
            return False
        self.state.phase = Phase.PAUSED
        self.state.deadline_at = None
        logger.info("Auction paused")
        return True

    # ----- Bidding -----

    def submit_bid(self, team_id: str, amount: int) -> Bid:
        """
        Arbitrate a bid from a team.

        Args:
            team_id: Bidding team
            amount: Offered tokens

        Returns:
            The new leading Bid

        Raises:
            ValidationError: Non-integer or non-positive amount
            AuctionNotRunningError: Bidding is not open
            NoCurrentPlayerError: No player is loaded
            BelowBasePriceError: First bid under the base price
            BidTooLowError: Not strictly above the leading bid
            InsufficientFundsError: Team cannot afford the amount
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError('Invalid bid')
        if self.state.phase != Phase.RUNNING:
            raise AuctionNotRunningError()
        if self.state.current_player is None:
            raise NoCurrentPlayerError()

        current = self.state.current_bid
        if current is None:
            base_price = self.state.current_base_price or 0
            if amount < base_price:
                raise BelowBasePriceError(f"Bid must be at least {base_price}")
        elif amount <= current.amount:
            raise BidTooLowError(f"Bid must be greater than {current.amount}")

        tokens = self.ledger.balance(team_id)
        if tokens < amount:
            raise InsufficientFundsError(f"Insufficient tokens: {tokens} < {amount}")

        now = self.clock()
        bid = Bid(team_id=team_id, amount=amount, placed_at=datetime.fromtimestamp(now))
        self.state.current_bid = bid
        # Every accepted bid restarts a full window from now
        self._arm_deadline(now)

        logger.info(f"Bid accepted: {team_id} {amount} on {self.state.current_player}")
        return bid

    # ----- Settlement -----

    def _after_settlement(self) -> None:
        self.state.clear_current()
        self._go_idle()
        if self.auto_load_next:
            self._pull_next()

    def close_and_sell(self) -> Optional[SettlementRecord]:
        """
        Sell the current player to the leading bidder.

        Returns:
            The sold SettlementRecord, or None (no-op) without a player and bid
        """
        player = self.state.current_player
        bid = self.state.current_bid
        if player is None or bid is None:
            return None

        timestamp = datetime.fromtimestamp(self.clock())
        self.ledger.debit(bid.team_id, bid.amount, player, timestamp)

        record = SettlementRecord(
            player=player,
            team_id=bid.team_id,
            amount=bid.amount,
            timestamp=timestamp,
            unsold=False
        )
        self.state.history.insert(0, record)
        self._after_settlement()

        logger.info(f"SOLD: {player} → {bid.team_id} for {bid.amount}")
        return record

    def mark_unsold(self) -> Optional[SettlementRecord]:
        """
        Close the current player without a sale.

        Returns:
            The unsold SettlementRecord, or None (no-op) without a player or
            when a bid exists
        """
        player = self.state.current_player
        if player is None or self.state.current_bid is not None:
            return None

        record = SettlementRecord(
            player=player,
            team_id=None,
            amount=0,
            timestamp=datetime.fromtimestamp(self.clock()),
            unsold=True
        )
        self.state.history.insert(0, record)
        self._after_settlement()

        logger.info(f"UNSOLD: {player}")
        return record

    def expire_if_due(self, now: Optional[float] = None) -> Optional[SettlementRecord]:
        """
        Settle the current player if the bidding window has run out.

        Whether the player is sold is decided from the bid present now, not
        from when the timer fired.

        Returns:
            The settlement record, or None if nothing expired
        """
        if self.state.phase != Phase.RUNNING or self.state.deadline_at is None:
            return None
        if now is None:
            now = self.clock()
        if now < self.state.deadline_at:
            return None

        logger.info(f"Bidding window expired for {self.state.current_player}")
        if self.state.current_bid is None:
            record = self.mark_unsold()
        else:
            record = self.close_and_sell()
        self._go_idle()
        return record

    # ----- Reset -----

    def reset(self) -> None:
        """Operator reset: clear the auction, queue and team balances."""
        self.state = AuctionState()
        self.queue.clear()
        self.ledger.reset()
        logger.warning("Auction reset: history, queue and balances cleared")

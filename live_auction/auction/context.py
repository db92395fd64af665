"""
Composition root for one auction process.

The entry point builds an AuctionContext, hands it to the transport and tears
it down at shutdown. Components receive their collaborators explicitly; there
is no module-level auction state.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from .. import config
from .broadcast import BroadcastCoordinator
from .deadline_scheduler import DeadlineScheduler
from .engine import AuctionEngine
from .message_handler import MessageHandler
from .player_queue import PlayerQueue
from .session_authority import SessionAuthority
from .team_ledger import TeamLedger

logger = logging.getLogger(__name__)


class AuctionContext:
    """Owns the ledger, queue, engine, scheduler, coordinator and authority."""

    def __init__(
        self,
        teams: Iterable[dict],
        admin_secret: str,
        initial_tokens: int = 1000,
        team_name_max_length: int = 40,
        bid_window_seconds: float = 10.0,
        base_price_enabled: bool = True,
        base_price_min: int = 1,
        base_price_max: int = 500,
        auto_load_next: bool = False,
        tick_interval: float = 0.25,
        update_interval: float = 1.0,
        queue_preview_size: int = 5,
        pending_list_limit: int = 100,
        clock: Callable[[], float] = time.time
    ):
        self.pending_list_limit = pending_list_limit

        self.ledger = TeamLedger(
            teams,
            initial_tokens=initial_tokens,
            name_max_length=team_name_max_length
        )
        self.queue = PlayerQueue(
            base_price_enabled=base_price_enabled,
            base_price_min=base_price_min,
            base_price_max=base_price_max
        )
        self.engine = AuctionEngine(
            ledger=self.ledger,
            queue=self.queue,
            bid_window_seconds=bid_window_seconds,
            auto_load_next=auto_load_next,
            queue_preview_size=queue_preview_size,
            clock=clock
        )
        self.scheduler = DeadlineScheduler(self.engine, tick_interval=tick_interval)
        self.coordinator = BroadcastCoordinator(
            self.engine.get_snapshot,
            interval=update_interval
        )
        self.engine.add_listener(self.coordinator.notify)

        self.authority = SessionAuthority(self.ledger, admin_secret)
        self.handler = MessageHandler(self.engine, self.authority)

    @classmethod
    def from_config(cls, **overrides) -> 'AuctionContext':
        """Build a context from live_auction.config, with keyword overrides."""
        settings = dict(
            teams=config.TEAMS,
            admin_secret=config.ADMIN_PASS,
            initial_tokens=config.INITIAL_TOKENS,
            team_name_max_length=config.TEAM_NAME_MAX_LENGTH,
            bid_window_seconds=config.BID_WINDOW_SECONDS,
            base_price_enabled=config.BASE_PRICE_ENABLED,
            base_price_min=config.BASE_PRICE_MIN,
            base_price_max=config.BASE_PRICE_MAX,
            auto_load_next=config.AUTO_LOAD_NEXT_ON_SETTLE,
            tick_interval=config.TICK_INTERVAL_SECONDS,
            update_interval=config.UPDATE_INTERVAL_SECONDS,
            queue_preview_size=config.QUEUE_PREVIEW_SIZE,
            pending_list_limit=config.PENDING_LIST_LIMIT,
        )
        settings.update(overrides)
        return cls(**settings)

    def start(self) -> None:
        """Start background work (the deadline ticker)."""
        self.scheduler.start()
        logger.info(
            f"Auction context started: {len(self.ledger.teams())} teams, "
            f"{self.engine.machine.bid_window_seconds:g}s bid window"
        )

    def shutdown(self) -> None:
        """Stop the ticker and cancel pending broadcasts."""
        self.scheduler.stop()
        self.coordinator.close()
        logger.info("Auction context shut down")

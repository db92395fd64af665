"""
Core data structures for the auction.

These dataclasses represent teams, queued players, bids and settlement
records, plus the mutable state of the single live auction.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Phase(str, Enum):
    """Whether bidding is currently accepted."""

    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'


@dataclass
class Purchase:
    """A player bought by a team."""

    player: str
    amount: int
    timestamp: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'player': self.player,
            'amount': self.amount,
            'timestamp': self.timestamp.isoformat()
        }


@dataclass
class Team:
    """Tracks a single team's identity, balance and purchases."""

    team_id: str                 # Unique team identifier
    name: str                    # Display name, changeable by the team
    secret: str                  # Login secret
    tokens: int                  # Remaining balance
    purchases: List[Purchase] = field(default_factory=list)  # Most recent first

    def to_dict(self) -> dict:
        """Public fields only; the secret never leaves the server."""
        return {
            'id': self.team_id,
            'name': self.name,
            'tokens': self.tokens,
            'purchases': [p.to_dict() for p in self.purchases]
        }


@dataclass(frozen=True)
class QueueEntry:
    """A player waiting to be auctioned."""

    name: str
    base_price: int
    submitted_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'base_price': self.base_price,
            'submitted_at': self.submitted_at.isoformat()
        }


@dataclass(frozen=True)
class Bid:
    """The leading bid on the current player."""

    team_id: str
    amount: int
    placed_at: datetime

    def to_dict(self) -> dict:
        return {'team_id': self.team_id, 'amount': self.amount}


@dataclass(frozen=True)
class SettlementRecord:
    """Outcome of one auctioned player, sold or unsold."""

    player: str
    team_id: Optional[str]
    amount: int
    timestamp: datetime
    unsold: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'player': self.player,
            'team_id': self.team_id,
            'amount': self.amount,
            'timestamp': self.timestamp.isoformat(),
            'unsold': self.unsold
        }


@dataclass
class AuctionState:
    """Complete state of the live auction."""

    phase: Phase = Phase.IDLE
    current_player: Optional[str] = None
    current_base_price: Optional[int] = None
    current_bid: Optional[Bid] = None
    deadline_at: Optional[float] = None      # Epoch seconds, set only while running
    history: List[SettlementRecord] = field(default_factory=list)  # Most recent first

    def validate(self) -> None:
        """
        Validate auction state consistency.

        Raises:
            ValueError: If state is inconsistent
        """
        if (self.deadline_at is not None) != (self.phase == Phase.RUNNING):
            raise ValueError(
                f"Deadline mismatch: phase is {self.phase.value} "
                f"but deadline_at is {self.deadline_at}"
            )

        if self.current_bid is not None:
            if self.current_player is None:
                raise ValueError("Current bid without a current player")
            if self.current_base_price is not None and \
                    self.current_bid.amount < self.current_base_price:
                raise ValueError(
                    f"Bid {self.current_bid.amount} below base price "
                    f"{self.current_base_price}"
                )

    def clear_current(self) -> None:
        """Drop the current player and everything tied to it."""
        self.current_player = None
        self.current_base_price = None
        self.current_bid = None

"""
Live auction core.

This package provides the in-memory auction engine (team ledger, player
queue, state machine), the deadline scheduler and broadcast coordinator that
run around it, and the FastAPI transport that exposes it to clients.
"""

from .models import Phase, Team, QueueEntry, Bid, SettlementRecord, AuctionState
from .team_ledger import TeamLedger
from .player_queue import PlayerQueue
from .state_machine import AuctionStateMachine
from .engine import AuctionEngine
from .deadline_scheduler import DeadlineScheduler
from .broadcast import BroadcastCoordinator
from .session_authority import Role, Session, SessionAuthority
from .message_handler import MessageHandler
from .context import AuctionContext

__all__ = [
    'Phase',
    'Team',
    'QueueEntry',
    'Bid',
    'SettlementRecord',
    'AuctionState',
    'TeamLedger',
    'PlayerQueue',
    'AuctionStateMachine',
    'AuctionEngine',
    'DeadlineScheduler',
    'BroadcastCoordinator',
    'Role',
    'Session',
    'SessionAuthority',
    'MessageHandler',
    'AuctionContext',
]

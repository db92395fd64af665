"""
Shared fixtures for auction tests.
"""

import pytest

from live_auction.auction.engine import AuctionEngine
from live_auction.auction.player_queue import PlayerQueue
from live_auction.auction.team_ledger import TeamLedger


TEST_TEAMS = [
    {'id': 'TEAM1', 'name': 'Team 1', 'secret': 'leopard'},
    {'id': 'TEAM2', 'name': 'Team 2', 'secret': 'tiger'},
    {'id': 'TEAM3', 'name': 'Team 3', 'secret': 'panther'},
]

BID_WINDOW = 10.0


class FakeClock:
    """Manually advanced epoch clock"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return TeamLedger(TEST_TEAMS, initial_tokens=1000)


@pytest.fixture
def queue():
    return PlayerQueue(base_price_enabled=True, base_price_min=1, base_price_max=500)


@pytest.fixture
def engine(ledger, queue, clock):
    return AuctionEngine(ledger, queue, bid_window_seconds=BID_WINDOW, clock=clock)

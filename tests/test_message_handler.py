"""
Tests for inbound message dispatch.

Covers the full protocol without a network: login, auctioneer actions, bids,
team renames, snapshots and every error reply.
"""

import json

import pytest

from live_auction.auction.message_handler import MessageHandler
from live_auction.auction.models import Phase
from live_auction.auction.session_authority import SessionAuthority


@pytest.fixture
def handler(engine, ledger):
    return MessageHandler(engine, SessionAuthority(ledger, admin_secret='adminpass'))


def _login(handler, **fields):
    session = handler.authority.open_session()
    replies = handler.handle(session, {'type': 'login', **fields})
    assert replies[0]['type'] == 'login_ok', replies
    return session


@pytest.fixture
def admin(handler):
    return _login(handler, role='admin', **{'pass': 'adminpass'})


@pytest.fixture
def team1(handler):
    return _login(handler, role='team', teamId='TEAM1', **{'pass': 'leopard'})


@pytest.fixture
def team2(handler):
    return _login(handler, role='team', teamId='TEAM2', **{'pass': 'tiger'})


def _error_code(replies):
    assert len(replies) == 1
    assert replies[0]['type'] == 'error', replies
    return replies[0]['code']


class TestDecoding:
    """Test malformed input"""

    def test_invalid_json(self, handler):
        replies = handler.handle_raw(handler.authority.open_session(), '{not json')
        assert _error_code(replies) == 'ValidationError'
        assert replies[0]['error'] == 'Invalid JSON'

    def test_non_object(self, handler):
        replies = handler.handle_raw(handler.authority.open_session(), '[1, 2]')
        assert _error_code(replies) == 'UnknownMessage'

    def test_unknown_type(self, handler):
        replies = handler.handle(handler.authority.open_session(), {'type': 'dance'})
        assert _error_code(replies) == 'UnknownMessage'

    def test_raw_round_trip(self, handler):
        replies = handler.handle_raw(
            handler.authority.open_session(),
            json.dumps({'type': 'login', 'role': 'audience'})
        )
        assert [r['type'] for r in replies] == ['login_ok', 'state']


class TestLogin:
    """Test the login message"""

    def test_login_ok_includes_state(self, handler):
        session = handler.authority.open_session()
        replies = handler.handle(session, {
            'type': 'login', 'role': 'team', 'teamId': 'TEAM3', 'pass': 'panther'
        })

        assert replies[0] == {'type': 'login_ok', 'payload': {'role': 'team', 'teamId': 'TEAM3'}}
        assert replies[1]['type'] == 'state'
        assert 'auction' in replies[1]['payload']

    def test_bad_credentials(self, handler):
        replies = handler.handle(handler.authority.open_session(), {
            'type': 'login', 'role': 'team', 'teamId': 'TEAM3', 'pass': 'wrong'
        })
        assert replies == [{'type': 'login_failed', 'code': 'AuthenticationFailed',
                            'error': 'Bad credentials'}]

    def test_unknown_role(self, handler):
        replies = handler.handle(handler.authority.open_session(), {'type': 'login', 'role': 'king'})
        assert replies[0]['type'] == 'login_failed'
        assert replies[0]['error'] == 'Unknown role'


class TestAdminActions:
    """Test auctioneer actions"""

    def test_requires_login(self, handler):
        replies = handler.handle(handler.authority.open_session(), {'type': 'admin', 'action': 'start'})
        assert _error_code(replies) == 'AuthenticationFailed'

    def test_team_forbidden(self, handler, team1):
        replies = handler.handle(team1, {'type': 'admin', 'action': 'start'})
        assert _error_code(replies) == 'Forbidden'

    def test_unknown_action(self, handler, admin):
        replies = handler.handle(admin, {'type': 'admin', 'action': 'explode'})
        assert _error_code(replies) == 'UnknownAction'

    def test_start_with_empty_queue(self, handler, admin):
        replies = handler.handle(admin, {'type': 'admin', 'action': 'start'})
        assert _error_code(replies) == 'NoPlayersQueued'

    def test_start_and_pause(self, handler, admin, engine):
        engine.enqueue_player('Alpha')

        replies = handler.handle(admin, {'type': 'admin', 'action': 'start'})
        assert replies[0]['type'] == 'ack'
        assert engine.machine.state.phase == Phase.RUNNING

        replies = handler.handle(admin, {'type': 'admin', 'action': 'pause'})
        assert replies[0]['payload'] == {'action': 'pause', 'changed': True}
        assert engine.machine.state.phase == Phase.PAUSED

    def test_set_player(self, handler, admin, engine):
        replies = handler.handle(admin, {'type': 'admin', 'action': 'setPlayer', 'player': ' Zed '})
        assert replies[0]['payload']['player'] == 'Zed'
        assert engine.machine.state.current_player == 'Zed'

    def test_next_alias(self, handler, admin, engine):
        engine.enqueue_player('Alpha')
        replies = handler.handle(admin, {'type': 'admin', 'action': 'next'})
        assert replies[0]['payload']['player'] == 'Alpha'

    def test_close_and_sell_reports_record(self, handler, admin, team1, engine):
        engine.enqueue_player('Alpha')
        handler.handle(admin, {'type': 'admin', 'action': 'start'})
        handler.handle(team1, {'type': 'bid', 'amount': 40})

        replies = handler.handle(admin, {'type': 'admin', 'action': 'closeAndSell'})

        record = replies[0]['payload']['record']
        assert record['player'] == 'Alpha'
        assert record['team_id'] == 'TEAM1'
        assert record['amount'] == 40

    def test_close_without_bid_acks_noop(self, handler, admin, engine):
        engine.enqueue_player('Alpha')
        handler.handle(admin, {'type': 'admin', 'action': 'start'})

        replies = handler.handle(admin, {'type': 'admin', 'action': 'closeAndSell'})

        assert replies[0]['payload'] == {'action': 'closeAndSell', 'record': None}

    def test_mark_unsold(self, handler, admin, engine):
        engine.enqueue_player('Alpha')
        handler.handle(admin, {'type': 'admin', 'action': 'start'})

        replies = handler.handle(admin, {'type': 'admin', 'action': 'markUnsold'})

        assert replies[0]['payload']['record']['unsold'] is True

    def test_reset_all(self, handler, admin, engine):
        engine.enqueue_player('Alpha')
        replies = handler.handle(admin, {'type': 'admin', 'action': 'resetAll'})
        assert replies[0]['type'] == 'ack'
        assert len(engine.queue) == 0


class TestBids:
    """Test bid messages"""

    @pytest.fixture
    def running(self, handler, admin, engine):
        engine.enqueue_player('Alpha', 50)
        handler.handle(admin, {'type': 'admin', 'action': 'start'})
        return engine

    def test_bid_accepted(self, handler, team1, running):
        replies = handler.handle(team1, {'type': 'bid', 'amount': 60})
        assert replies == [{'type': 'ack', 'payload': {'action': 'bid', 'team_id': 'TEAM1', 'amount': 60}}]

    def test_numeric_string_amount(self, handler, team1, running):
        replies = handler.handle(team1, {'type': 'bid', 'amount': '75'})
        assert replies[0]['type'] == 'ack'
        assert running.machine.state.current_bid.amount == 75

    @pytest.mark.parametrize('amount', [0, -3, 'abc', None, 10.5])
    def test_invalid_amount(self, handler, team1, running, amount):
        replies = handler.handle(team1, {'type': 'bid', 'amount': amount})
        assert _error_code(replies) == 'ValidationError'
        assert replies[0]['error'] == 'Invalid bid'

    def test_below_base_price(self, handler, team1, running):
        assert _error_code(handler.handle(team1, {'type': 'bid', 'amount': 49})) == 'BelowBasePrice'

    def test_bid_too_low(self, handler, team1, team2, running):
        handler.handle(team1, {'type': 'bid', 'amount': 80})
        assert _error_code(handler.handle(team2, {'type': 'bid', 'amount': 70})) == 'BidTooLow'

    def test_insufficient_funds(self, handler, team1, running):
        assert _error_code(handler.handle(team1, {'type': 'bid', 'amount': 5000})) == 'InsufficientFunds'

    def test_not_running(self, handler, team1, engine):
        assert _error_code(handler.handle(team1, {'type': 'bid', 'amount': 10})) == 'AuctionNotRunning'

    def test_admin_cannot_bid(self, handler, admin, running):
        assert _error_code(handler.handle(admin, {'type': 'bid', 'amount': 60})) == 'Forbidden'

    def test_observer_cannot_bid(self, handler, running):
        observer = _login(handler, role='audience')
        assert _error_code(handler.handle(observer, {'type': 'bid', 'amount': 60})) == 'Forbidden'

    def test_errors_do_not_mutate(self, handler, team1, team2, running):
        handler.handle(team1, {'type': 'bid', 'amount': 80})
        before = running.get_snapshot()

        handler.handle(team2, {'type': 'bid', 'amount': 70})
        handler.handle(team2, {'type': 'bid', 'amount': 'x'})
        handler.handle(team2, {'type': 'bid', 'amount': 99999})

        assert running.get_snapshot() == before


class TestTeamActions:
    """Test team messages"""

    def test_set_name(self, handler, team1, ledger):
        replies = handler.handle(team1, {'type': 'team', 'action': 'setName', 'name': ' Lions '})
        assert replies[0]['payload'] == {'action': 'setName', 'changed': True}
        assert ledger.get('TEAM1').name == 'Lions'

    def test_set_name_only_own_team(self, handler, team1, ledger):
        """A teamId in the message cannot redirect the rename"""
        handler.handle(team1, {'type': 'team', 'action': 'setName', 'name': 'Lions', 'teamId': 'TEAM2'})
        assert ledger.get('TEAM1').name == 'Lions'
        assert ledger.get('TEAM2').name == 'Team 2'

    def test_empty_name_noop(self, handler, team1, ledger):
        replies = handler.handle(team1, {'type': 'team', 'action': 'setName', 'name': '   '})
        assert replies[0]['payload']['changed'] is False
        assert ledger.get('TEAM1').name == 'Team 1'

    def test_unknown_team_action(self, handler, team1):
        assert _error_code(handler.handle(team1, {'type': 'team', 'action': 'fly'})) == 'UnknownAction'

    def test_admin_cannot_rename(self, handler, admin):
        replies = handler.handle(admin, {'type': 'team', 'action': 'setName', 'name': 'X'})
        assert _error_code(replies) == 'Forbidden'


class TestSnapshotMessage:
    """Test snapshot pull"""

    def test_anyone_can_pull(self, handler):
        replies = handler.handle(handler.authority.open_session(), {'type': 'snapshot'})
        assert replies[0]['type'] == 'state'
        assert replies[0]['payload']['auction']['phase'] == 'idle'


class TestEndToEnd:
    """Full scenarios through the message protocol"""

    def test_sold_scenario(self, handler, admin, team1, team2, engine, clock):
        """Base 50; 60 and 80 accepted, 70 rejected; expiry sells to TEAM1 for 80"""
        engine.enqueue_player('Star', 50)
        handler.handle(admin, {'type': 'admin', 'action': 'start'})

        assert handler.handle(team1, {'type': 'bid', 'amount': 60})[0]['type'] == 'ack'
        assert handler.handle(team1, {'type': 'bid', 'amount': 80})[0]['type'] == 'ack'
        assert _error_code(handler.handle(team2, {'type': 'bid', 'amount': 70})) == 'BidTooLow'

        clock.advance(10)
        engine.expire_if_due()

        snapshot = handler.handle(team1, {'type': 'snapshot'})[0]['payload']
        team = next(t for t in snapshot['teams'] if t['id'] == 'TEAM1')
        assert team['tokens'] == 920
        assert team['purchases'][0]['player'] == 'Star'
        assert len(snapshot['auction']['history']) == 1
        assert snapshot['auction']['history'][0]['unsold'] is False
        assert snapshot['auction']['history'][0]['amount'] == 80
        assert snapshot['auction']['phase'] == 'idle'

    def test_unsold_scenario(self, handler, admin, engine, clock):
        engine.enqueue_player('Benchwarmer', 50)
        handler.handle(admin, {'type': 'admin', 'action': 'start'})

        clock.advance(10)
        engine.expire_if_due()

        snapshot = handler.handle(admin, {'type': 'snapshot'})[0]['payload']
        assert all(t['tokens'] == 1000 for t in snapshot['teams'])
        assert snapshot['auction']['history'][0]['unsold'] is True
        assert snapshot['auction']['history'][0]['amount'] == 0

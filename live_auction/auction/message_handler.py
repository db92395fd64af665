"""
Dispatch of inbound session messages onto the engine.

Transport independent: takes a decoded (or raw JSON) message for a session and
returns the replies meant for that session only. Broadcasts are not produced
here; they follow from the engine's change notifications.
"""

import json
import logging
from typing import Callable, Dict, List

import pydantic

from .api_serializers import AdminMessage, BidMessage, LoginMessage, TeamMessage
from .engine import AuctionEngine
from .errors import AuctionError, UnknownActionError, UnknownMessageError, ValidationError
from .session_authority import Role, Session, SessionAuthority

logger = logging.getLogger(__name__)


def _parse(model, msg: dict, message: str):
    try:
        return model.model_validate(msg)
    except pydantic.ValidationError as e:
        logger.debug(f"Rejected {model.__name__}: {e}")
        raise ValidationError(message)


def _ack(action: str, **payload) -> dict:
    return {'type': 'ack', 'payload': {'action': action, **payload}}


class MessageHandler:
    """Validates, authorizes and applies one session message at a time."""

    def __init__(self, engine: AuctionEngine, authority: SessionAuthority):
        self.engine = engine
        self.authority = authority

        self._admin_actions: Dict[str, Callable[[AdminMessage], dict]] = {
            'start': lambda m: _ack('start', deadline_at=self.engine.start()),
            'startNext': lambda m: _ack('startNext', deadline_at=self.engine.start_next()),
            'pause': lambda m: _ack('pause', changed=self.engine.pause()),
            'loadNext': lambda m: _ack('loadNext', player=self.engine.load_next()),
            'next': lambda m: _ack('next', player=self.engine.load_next()),
            'setPlayer': lambda m: _ack('setPlayer', player=self.engine.set_player(m.player)),
            'closeAndSell': self._close_and_sell,
            'markUnsold': self._mark_unsold,
            'reset': self._reset,
            'resetAll': self._reset,
        }

    def handle_raw(self, session: Session, raw: str) -> List[dict]:
        """Decode a JSON text frame and handle it."""
        try:
            msg = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError):
            return [ValidationError('Invalid JSON').to_dict()]
        return self.handle(session, msg)

    def handle(self, session: Session, msg) -> List[dict]:
        """
        Handle one decoded message.

        Returns:
            Replies for the originating session. Domain errors come back as
            error replies and never propagate.
        """
        if not isinstance(msg, dict):
            return [UnknownMessageError().to_dict()]

        msg_type = msg.get('type')
        try:
            if msg_type == 'login':
                return self._login(session, msg)
            if msg_type == 'admin':
                return self._admin(session, msg)
            if msg_type == 'bid':
                return self._bid(session, msg)
            if msg_type == 'team':
                return self._team(session, msg)
            if msg_type == 'snapshot':
                return [{'type': 'state', 'payload': self.engine.get_snapshot()}]
            raise UnknownMessageError()

        except AuctionError as e:
            logger.debug(f"Session {session.session_id} {msg_type!r} rejected: {e.code}: {e.message}")
            return [e.to_dict()]

    # ----- Handlers -----

    def _login(self, session: Session, msg: dict) -> List[dict]:
        try:
            login = _parse(LoginMessage, msg, 'Bad credentials')
            self.authority.authenticate(session, login.role, login.team_id, login.secret)
        except AuctionError as e:
            return [{'type': 'login_failed', 'code': e.code, 'error': e.message}]

        return [
            {'type': 'login_ok', 'payload': session.to_dict()},
            {'type': 'state', 'payload': self.engine.get_snapshot()},
        ]

    def _admin(self, session: Session, msg: dict) -> List[dict]:
        self.authority.require(session, Role.AUCTIONEER)
        admin = _parse(AdminMessage, msg, 'Invalid admin message')

        action = self._admin_actions.get(admin.action)
        if action is None:
            raise UnknownActionError('Unknown admin action')

        logger.info(f"Auctioneer action: {admin.action}")
        return [action(admin)]

    def _close_and_sell(self, admin: AdminMessage) -> dict:
        record = self.engine.close_and_sell()
        return _ack('closeAndSell', record=record.to_dict() if record else None)

    def _mark_unsold(self, admin: AdminMessage) -> dict:
        record = self.engine.mark_unsold()
        return _ack('markUnsold', record=record.to_dict() if record else None)

    def _reset(self, admin: AdminMessage) -> dict:
        self.engine.reset()
        return _ack(admin.action)

    def _bid(self, session: Session, msg: dict) -> List[dict]:
        self.authority.require(session, Role.TEAM)
        bid_msg = _parse(BidMessage, msg, 'Invalid bid')

        bid = self.engine.submit_bid(session.team_id, bid_msg.amount)
        return [_ack('bid', **bid.to_dict())]

    def _team(self, session: Session, msg: dict) -> List[dict]:
        self.authority.require(session, Role.TEAM)
        team_msg = _parse(TeamMessage, msg, 'Invalid team message')

        if team_msg.action != 'setName':
            raise UnknownActionError('Unknown team action')

        # A team can only ever rename itself
        changed = self.engine.rename_team(session.team_id, team_msg.name or '')
        return [_ack('setName', changed=changed)]

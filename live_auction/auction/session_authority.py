"""
Binds connections to roles after a credential check.
"""

import hmac
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import AuthenticationFailedError, ForbiddenError
from .team_ledger import TeamLedger

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Session roles, valued by their wire names."""

    AUCTIONEER = 'admin'
    TEAM = 'team'
    OBSERVER = 'audience'

    @classmethod
    def parse(cls, value: str) -> 'Role':
        """
        Resolve a wire role name.

        Raises:
            AuthenticationFailedError: Unknown role
        """
        aliases = {'auctioneer': cls.AUCTIONEER, 'observer': cls.OBSERVER}
        raw = str(value or '').strip().lower()
        if raw in aliases:
            return aliases[raw]
        try:
            return cls(raw)
        except ValueError:
            raise AuthenticationFailedError('Unknown role')


@dataclass
class Session:
    """One connection and the role it is bound to, if any."""

    session_id: int
    role: Optional[Role] = None
    team_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.role is not None

    def to_dict(self) -> dict:
        return {
            'role': self.role.value if self.role else None,
            'teamId': self.team_id
        }


class SessionAuthority:
    """Credential checks and role enforcement for sessions."""

    def __init__(self, ledger: TeamLedger, admin_secret: str):
        self.ledger = ledger
        self._admin_secret = admin_secret
        self._ids = itertools.count(1)

    def open_session(self) -> Session:
        return Session(session_id=next(self._ids))

    def authenticate(
        self,
        session: Session,
        role: str,
        team_id: Optional[str] = None,
        secret: Optional[str] = None
    ) -> Session:
        """
        Bind a session to a role.

        A failed attempt leaves any earlier binding in place.

        Raises:
            AuthenticationFailedError: Unknown role or bad credentials
        """
        resolved = Role.parse(role)

        if resolved == Role.AUCTIONEER:
            if secret is None or not hmac.compare_digest(
                self._admin_secret.encode('utf-8'), str(secret).encode('utf-8')
            ):
                logger.warning(f"Session {session.session_id}: auctioneer login rejected")
                raise AuthenticationFailedError()
            session.role, session.team_id = resolved, None

        elif resolved == Role.TEAM:
            try:
                team = self.ledger.authenticate(team_id, secret)
            except AuthenticationFailedError:
                logger.warning(f"Session {session.session_id}: login rejected for team {team_id}")
                raise
            session.role, session.team_id = resolved, team.team_id

        else:
            session.role, session.team_id = resolved, None

        logger.info(
            f"Session {session.session_id} logged in as {session.role.value}"
            + (f" ({session.team_id})" if session.team_id else "")
        )
        return session

    def require(self, session: Session, role: Role) -> None:
        """
        Check that a session may act in a role.

        Raises:
            AuthenticationFailedError: Session is not logged in
            ForbiddenError: Session holds a different role
        """
        if not session.authenticated:
            raise AuthenticationFailedError('Not authenticated')
        if session.role != role:
            raise ForbiddenError()

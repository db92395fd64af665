"""
Team balances, credentials and purchase history.

The ledger is not thread-safe on its own; the AuctionEngine serializes every
call into it together with the rest of the auction state.
"""

import hmac
import logging
from datetime import datetime
from typing import Dict, Iterable, List

from .errors import AuthenticationFailedError, ForbiddenError, InsufficientFundsError
from .models import Purchase, Team

logger = logging.getLogger(__name__)


class TeamLedger:
    """Owns every team's identity, secret, tokens and purchases."""

    def __init__(
        self,
        teams: Iterable[dict],
        initial_tokens: int = 1000,
        name_max_length: int = 40
    ):
        """
        Initialize the ledger from static team configuration.

        Args:
            teams: Dicts with 'id', 'name' and 'secret' keys
            initial_tokens: Starting balance for every team
            name_max_length: Longest display name a team may set
        """
        if initial_tokens < 0:
            raise ValueError(f"initial_tokens must be non-negative, got {initial_tokens}")

        self.initial_tokens = initial_tokens
        self.name_max_length = name_max_length
        self._teams: Dict[str, Team] = {}

        for spec in teams:
            team_id = spec['id']
            if team_id in self._teams:
                raise ValueError(f"Duplicate team id: {team_id}")
            self._teams[team_id] = Team(
                team_id=team_id,
                name=spec.get('name', team_id),
                secret=spec['secret'],
                tokens=initial_tokens
            )

    def authenticate(self, team_id: str, secret: str) -> Team:
        """
        Check a team's credentials.

        Raises:
            AuthenticationFailedError: Unknown team or wrong secret
        """
        team = self._teams.get(team_id)
        if team is None or secret is None:
            raise AuthenticationFailedError()
        if not hmac.compare_digest(team.secret.encode('utf-8'), str(secret).encode('utf-8')):
            raise AuthenticationFailedError()
        return team

    def get(self, team_id: str) -> Team:
        """
        Look up a team.

        Raises:
            ForbiddenError: If no such team exists
        """
        team = self._teams.get(team_id)
        if team is None:
            raise ForbiddenError(f"Unknown team: {team_id}")
        return team

    def teams(self) -> List[Team]:
        """All teams in configuration order."""
        return list(self._teams.values())

    def balance(self, team_id: str) -> int:
        return self.get(team_id).tokens

    def rename(self, team_id: str, new_name: str) -> bool:
        """
        Change a team's display name.

        The name is trimmed and truncated; an empty result leaves the
        current name untouched.

        Returns:
            True if the name changed
        """
        team = self.get(team_id)
        cleaned = str(new_name or '').strip()[:self.name_max_length].strip()
        if not cleaned or cleaned == team.name:
            return False

        logger.info(f"Team {team_id} renamed: {team.name!r} → {cleaned!r}")
        team.name = cleaned
        return True

    def debit(self, team_id: str, amount: int, player: str, timestamp: datetime) -> Purchase:
        """
        Charge a team for a won player and record the purchase.

        Raises:
            InsufficientFundsError: If the balance is below the amount
        """
        team = self.get(team_id)
        if amount < 0:
            raise ValueError(f"Debit amount must be non-negative, got {amount}")
        if team.tokens < amount:
            raise InsufficientFundsError(
                f"Insufficient tokens: {team.tokens} < {amount}"
            )

        purchase = Purchase(player=player, amount=amount, timestamp=timestamp)
        team.tokens -= amount
        team.purchases.insert(0, purchase)
        return purchase

    def reset(self) -> None:
        """Restore every balance and clear purchases. Names are kept."""
        for team in self._teams.values():
            team.tokens = self.initial_tokens
            team.purchases = []

    def to_dicts(self) -> List[dict]:
        return [team.to_dict() for team in self._teams.values()]

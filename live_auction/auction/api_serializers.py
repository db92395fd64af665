"""
Request and message models for the transport layer.

pydantic models validate inbound HTTP bodies and WebSocket messages before
they reach the engine. Field aliases follow the wire names used by clients.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ========== HTTP: player submissions ==========

class EnqueuePlayerRequest(BaseModel):
    """Request body for POST /api/players."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field('', description="Player display name")
    base_price: Optional[int] = Field(None, alias='basePrice', description="Minimum first bid")


class QueuedPlayer(BaseModel):
    name: str
    position: int


class EnqueuePlayerResponse(BaseModel):
    """Response for POST /api/players."""
    ok: bool = True
    queued: QueuedPlayer


class PendingPlayer(BaseModel):
    name: str
    base_price: int
    submitted_at: str = Field(description="ISO-8601 timestamp")


class PendingPlayersResponse(BaseModel):
    """Response for GET /api/players/pending."""
    ok: bool = True
    pending: List[PendingPlayer]


# ========== WebSocket messages ==========

class LoginMessage(BaseModel):
    """{"type": "login", "role": ..., "teamId": ..., "pass": ...}"""
    model_config = ConfigDict(populate_by_name=True)

    role: str = ''
    team_id: Optional[str] = Field(None, alias='teamId')
    secret: Optional[str] = Field(None, alias='pass')


class AdminMessage(BaseModel):
    """{"type": "admin", "action": ..., "player": ...}"""
    action: str = ''
    player: Optional[str] = None


class BidMessage(BaseModel):
    """{"type": "bid", "amount": ...}"""
    amount: int = Field(..., gt=0)


class TeamMessage(BaseModel):
    """{"type": "team", "action": "setName", "name": ...}"""
    action: str = ''
    name: Optional[str] = None

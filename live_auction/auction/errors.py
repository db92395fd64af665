"""
Typed errors raised by the auction core.

Every error carries a stable ``code`` so callers can branch on the kind of
failure rather than on message text. All of them are recoverable: they are
reported to the originating session and never change auction state.
"""


class AuctionError(Exception):
    """Base class for recoverable auction errors."""

    code = 'AuctionError'
    default_message = 'Auction error'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        """Convert to the error payload sent back to a session."""
        return {'type': 'error', 'code': self.code, 'error': self.message}


class AuthenticationFailedError(AuctionError):
    code = 'AuthenticationFailed'
    default_message = 'Bad credentials'


class ForbiddenError(AuctionError):
    code = 'Forbidden'
    default_message = 'Forbidden'


class AuctionNotRunningError(AuctionError):
    code = 'AuctionNotRunning'
    default_message = 'Auction not running'


class NoCurrentPlayerError(AuctionError):
    code = 'NoCurrentPlayer'
    default_message = 'No current player'


class BelowBasePriceError(AuctionError):
    code = 'BelowBasePrice'
    default_message = 'Bid is below the base price'


class BidTooLowError(AuctionError):
    code = 'BidTooLow'
    default_message = 'Bid must be greater than current'


class InsufficientFundsError(AuctionError):
    code = 'InsufficientFunds'
    default_message = 'Insufficient tokens'


class NoPlayersQueuedError(AuctionError):
    code = 'NoPlayersQueued'
    default_message = 'No players in queue'


class ValidationError(AuctionError):
    code = 'ValidationError'
    default_message = 'Invalid input'


class UnknownActionError(AuctionError):
    code = 'UnknownAction'
    default_message = 'Unknown action'


class UnknownMessageError(AuctionError):
    code = 'UnknownMessage'
    default_message = 'Unknown message type'

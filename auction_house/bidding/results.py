"""
Tagged results returned by engine and lifecycle operations.

Rejected bids, stale IDs and lost lifecycle races are routine, so engine
operations report them as an EngineResult instead of raising.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import Auction


class ErrorCategory(str, Enum):
    NOT_FOUND = 'not_found'
    INVALID_STATE = 'invalid_state'
    VALIDATION = 'validation'
    CONTENTION = 'contention'


class AuctionError(str, Enum):
    AUCTION_NOT_FOUND = 'auction_not_found'
    TEAM_NOT_FOUND = 'team_not_found'
    PLAYER_NOT_FOUND = 'player_not_found'
    AUCTION_NOT_ACTIVE = 'auction_not_active'
    AUCTION_NOT_LIVE = 'auction_not_live'
    PLAYER_NOT_AVAILABLE = 'player_not_available'
    BID_TOO_LOW = 'bid_too_low'
    INSUFFICIENT_FUNDS = 'insufficient_funds'
    ROSTER_FULL = 'roster_full'
    INVALID_TIMER = 'invalid_timer'
    BID_IN_PROGRESS = 'bid_in_progress'

    @property
    def category(self) -> ErrorCategory:
        return _ERROR_DETAILS[self][0]

    @property
    def message(self) -> str:
        return _ERROR_DETAILS[self][1]


_ERROR_DETAILS = {
    AuctionError.AUCTION_NOT_FOUND: (ErrorCategory.NOT_FOUND, 'Auction not found'),
    AuctionError.TEAM_NOT_FOUND: (ErrorCategory.NOT_FOUND, 'Team not found'),
    AuctionError.PLAYER_NOT_FOUND: (ErrorCategory.NOT_FOUND, 'Player not found'),
    AuctionError.AUCTION_NOT_ACTIVE: (ErrorCategory.INVALID_STATE, 'Auction is not active'),
    AuctionError.AUCTION_NOT_LIVE: (
        ErrorCategory.INVALID_STATE, 'Auction not found or already completed'
    ),
    AuctionError.PLAYER_NOT_AVAILABLE: (
        ErrorCategory.INVALID_STATE, 'Player is not available for auction'
    ),
    AuctionError.BID_TOO_LOW: (ErrorCategory.VALIDATION, 'Bid must be higher than current bid'),
    AuctionError.INSUFFICIENT_FUNDS: (ErrorCategory.VALIDATION, 'Insufficient purse remaining'),
    AuctionError.ROSTER_FULL: (ErrorCategory.VALIDATION, 'Team roster is full'),
    AuctionError.INVALID_TIMER: (ErrorCategory.VALIDATION, 'Timer duration must be positive'),
    AuctionError.BID_IN_PROGRESS: (
        ErrorCategory.CONTENTION, 'Another bid is being processed. Please try again.'
    ),
}


@dataclass
class EngineResult:
    """Outcome of a mutation: the affected auction on success, a reason otherwise."""

    success: bool
    auction: Optional[Auction] = None
    error: Optional[AuctionError] = None

    @classmethod
    def ok(cls, auction: Auction) -> 'EngineResult':
        return cls(success=True, auction=auction)

    @classmethod
    def fail(cls, error: AuctionError) -> 'EngineResult':
        return cls(success=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'error': self.error.value if self.error else None,
            'message': self.message,
            'auction': self.auction.to_dict() if self.auction else None,
        }

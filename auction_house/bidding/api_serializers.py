"""
API request and response models.

Transforms internal dataclasses into the JSON shapes served by the auction
API. Amounts are exposed as floats in crores.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .. import config
from .models import Activity, Auction, Bid, Player, Team
from .results import EngineResult


# ========== Requests ==========

class CreateAuctionRequest(BaseModel):
    """Request model for opening an auction."""
    player_id: str = Field(..., min_length=1, description="Player to auction")
    timer_duration: int = Field(
        config.DEFAULT_TIMER_DURATION, ge=1, le=3600, description="Countdown in seconds"
    )


class PlaceBidRequest(BaseModel):
    """Request model for placing a bid."""
    team_id: str = Field(..., min_length=1, description="Bidding team ID")
    amount: float = Field(..., gt=0, description="Offer in crores")


# ========== Entities ==========

class PlayerResponse(BaseModel):
    player_id: str
    name: str
    role: str
    base_price: float
    status: str
    team_id: Optional[str] = None
    sold_price: Optional[float] = None
    nationality: Optional[str] = None
    age: Optional[int] = None


class TeamResponse(BaseModel):
    team_id: str
    name: str
    short_name: str
    total_purse: float
    remaining_purse: float
    max_players: int
    players_count: int
    roster: List[PlayerResponse]


class BidResponse(BaseModel):
    bid_id: str
    auction_id: str
    player_id: str
    team_id: str
    team_name: str
    amount: float
    timestamp: str = Field(description="ISO-8601 timestamp")


class AuctionResponse(BaseModel):
    auction_id: str
    player_id: str
    player: PlayerResponse
    current_bid: float
    current_bidder: Optional[str] = None
    bids: List[BidResponse]
    status: str
    start_time: str
    end_time: Optional[str] = None
    timer_duration: int
    winner_team_id: Optional[str] = Field(None, description="Buying team once settled")
    sold_price: Optional[float] = Field(None, description="Settled price in crores")
    seconds_remaining: int = Field(description="Derived from start_time and timer_duration")


class ActivityResponse(BaseModel):
    activity_id: str
    activity_type: str
    message: str
    timestamp: str
    team_id: Optional[str] = None
    player_id: Optional[str] = None
    amount: Optional[float] = None


class MutationResponse(BaseModel):
    """Response for create/bid/settle operations."""
    success: bool = Field(..., description="Whether operation succeeded")
    message: str = Field(..., description="Human-readable status message")
    auction: Optional[AuctionResponse] = None


class DashboardMetricsResponse(BaseModel):
    total_teams: int
    total_players: int
    live_auctions_count: int
    highest_bid: float
    sold_players_count: int
    unsold_players_count: int


class TeamPurseSummary(BaseModel):
    team_id: str
    team_name: str
    remaining_purse: float
    total_spent: float
    players_count: int
    open_slots: int


class EligibleBidder(BaseModel):
    team_id: str
    short_name: str
    remaining_purse: float
    headroom: float


# ========== Serializer Functions ==========

def serialize_player(player: Player) -> PlayerResponse:
    return PlayerResponse(**player.to_dict())


def serialize_team(team: Team) -> TeamResponse:
    data = team.to_dict()
    data['roster'] = [serialize_player(p) for p in team.roster]
    return TeamResponse(players_count=len(team.roster), **data)


def serialize_bid(bid: Bid) -> BidResponse:
    return BidResponse(**bid.to_dict())


def serialize_auction(auction: Auction, now: datetime) -> AuctionResponse:
    """Transform an Auction, deriving the countdown from now."""
    data = auction.to_dict()
    data['player'] = serialize_player(auction.player)
    data['bids'] = [serialize_bid(b) for b in auction.bids]
    return AuctionResponse(seconds_remaining=auction.seconds_remaining(now), **data)


def serialize_activity(activity: Activity) -> ActivityResponse:
    return ActivityResponse(**activity.to_dict())


def serialize_result(result: EngineResult, success_message: str, now: datetime) -> MutationResponse:
    return MutationResponse(
        success=result.success,
        message=success_message if result.success else result.message,
        auction=serialize_auction(result.auction, now) if result.auction else None,
    )


def error_detail(result: EngineResult) -> Dict:
    """HTTPException detail for a failed engine result."""
    return {
        'success': False,
        'error': result.error.value,
        'category': result.error.category.value,
        'message': result.error.message,
    }

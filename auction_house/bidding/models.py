"""
Core data structures for teams, players, bids, auctions and activities.

These dataclasses represent the state of a live player auction. They carry
no behaviour beyond small derived helpers and JSON conversion; all mutation
goes through the EntityStore, BiddingEngine and AuctionLifecycleController.

Amounts are decimal currency values (crores) and are never rounded here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
import json


def to_decimal(value: Any) -> Decimal:
    """Convert an int/float/str amount to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_currency(amount: Decimal) -> str:
    """Format an amount in crores for activity messages."""
    return f"₹{amount:.2f}Cr"


def _amount_out(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _time_out(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _time_in(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class PlayerRole(str, Enum):
    BATSMAN = 'Batsman'
    BOWLER = 'Bowler'
    ALL_ROUNDER = 'All-Rounder'
    WICKET_KEEPER = 'Wicket-Keeper'


class PlayerStatus(str, Enum):
    UNSOLD = 'Unsold'
    LIVE = 'Live'
    SOLD = 'Sold'


class AuctionStatus(str, Enum):
    UPCOMING = 'upcoming'   # reserved, no current flow creates it
    LIVE = 'live'
    COMPLETED = 'completed'


class ActivityType(str, Enum):
    BID = 'bid'
    WIN = 'win'
    AUCTION_START = 'auction_start'
    AUCTION_END = 'auction_end'


class NotificationKind(str, Enum):
    AUCTION_UPDATE = 'auction_update'
    TIMER_UPDATE = 'timer_update'
    AUCTION_END = 'auction_end'


@dataclass
class Player:
    """A player in the auction pool."""

    player_id: str
    name: str
    role: PlayerRole
    base_price: Decimal
    status: PlayerStatus = PlayerStatus.UNSOLD
    team_id: Optional[str] = None          # Winning team, set only when Sold
    sold_price: Optional[Decimal] = None   # Present iff status is Sold
    nationality: Optional[str] = None
    age: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'player_id': self.player_id,
            'name': self.name,
            'role': self.role.value,
            'base_price': float(self.base_price),
            'status': self.status.value,
            'team_id': self.team_id,
            'sold_price': _amount_out(self.sold_price),
            'nationality': self.nationality,
            'age': self.age,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        """Create Player from dictionary."""
        sold_price = data.get('sold_price')
        return cls(
            player_id=data['player_id'],
            name=data['name'],
            role=PlayerRole(data['role']),
            base_price=to_decimal(data['base_price']),
            status=PlayerStatus(data.get('status', PlayerStatus.UNSOLD.value)),
            team_id=data.get('team_id'),
            sold_price=to_decimal(sold_price) if sold_price is not None else None,
            nationality=data.get('nationality'),
            age=data.get('age'),
        )


@dataclass
class Team:
    """Tracks a single franchise's purse and roster."""

    team_id: str
    name: str
    short_name: str
    total_purse: Decimal                  # Fixed at creation
    remaining_purse: Decimal              # Decreases only on settlement
    max_players: int
    roster: List[Player] = field(default_factory=list)  # Won players, in order

    def total_spent(self) -> Decimal:
        """Sum of sold prices across the roster."""
        return sum((p.sold_price or Decimal('0') for p in self.roster), Decimal('0'))

    @property
    def open_slots(self) -> int:
        return self.max_players - len(self.roster)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'team_id': self.team_id,
            'name': self.name,
            'short_name': self.short_name,
            'total_purse': float(self.total_purse),
            'remaining_purse': float(self.remaining_purse),
            'max_players': self.max_players,
            'roster': [player.to_dict() for player in self.roster],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Team':
        """Create Team from dictionary."""
        total = to_decimal(data['total_purse'])
        return cls(
            team_id=data['team_id'],
            name=data['name'],
            short_name=data['short_name'],
            total_purse=total,
            remaining_purse=to_decimal(data.get('remaining_purse', total)),
            max_players=data['max_players'],
            roster=[Player.from_dict(p) for p in data.get('roster', [])],
        )


@dataclass(frozen=True)
class Bid:
    """An immutable offer by one team within an auction."""

    bid_id: str               # Monotonic sequence, e.g. BID-000001
    auction_id: str
    player_id: str            # Denormalized from the auction
    team_id: str
    team_name: str
    amount: Decimal
    timestamp: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'bid_id': self.bid_id,
            'auction_id': self.auction_id,
            'player_id': self.player_id,
            'team_id': self.team_id,
            'team_name': self.team_name,
            'amount': float(self.amount),
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Bid':
        """Create Bid from dictionary."""
        return cls(
            bid_id=data['bid_id'],
            auction_id=data['auction_id'],
            player_id=data['player_id'],
            team_id=data['team_id'],
            team_name=data.get('team_name', data['team_id']),
            amount=to_decimal(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
        )


@dataclass
class Auction:
    """The time-boxed bidding process for exactly one player."""

    auction_id: str
    player_id: str
    player: Player                       # Snapshot taken at creation, display only
    current_bid: Decimal                 # Starts at the player's base price
    timer_duration: int                  # Seconds, fixed at creation
    start_time: datetime
    current_bidder: Optional[str] = None  # Team of the last bid, None until first bid
    bids: List[Bid] = field(default_factory=list)
    status: AuctionStatus = AuctionStatus.LIVE
    end_time: Optional[datetime] = None
    winner_team_id: Optional[str] = None    # Set at settlement; may differ from current_bidder
    sold_price: Optional[Decimal] = None

    def seconds_remaining(self, now: datetime) -> int:
        """
        Derive remaining countdown time from the wall clock.

        Nothing is stored besides start_time and timer_duration, so any
        observer can reconstruct the countdown at any moment.
        """
        if self.status == AuctionStatus.COMPLETED:
            return 0
        elapsed = int((now - self.start_time).total_seconds())
        return max(0, self.timer_duration - elapsed)

    def is_expired(self, now: datetime) -> bool:
        return (now - self.start_time).total_seconds() >= self.timer_duration

    @property
    def last_bid(self) -> Optional[Bid]:
        return self.bids[-1] if self.bids else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'auction_id': self.auction_id,
            'player_id': self.player_id,
            'player': self.player.to_dict(),
            'current_bid': float(self.current_bid),
            'current_bidder': self.current_bidder,
            'bids': [bid.to_dict() for bid in self.bids],
            'status': self.status.value,
            'start_time': self.start_time.isoformat(),
            'end_time': _time_out(self.end_time),
            'timer_duration': self.timer_duration,
            'winner_team_id': self.winner_team_id,
            'sold_price': _amount_out(self.sold_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Auction':
        """Create Auction from dictionary."""
        sold_price = data.get('sold_price')
        return cls(
            auction_id=data['auction_id'],
            player_id=data['player_id'],
            player=Player.from_dict(data['player']),
            current_bid=to_decimal(data['current_bid']),
            timer_duration=data['timer_duration'],
            start_time=datetime.fromisoformat(data['start_time']),
            current_bidder=data.get('current_bidder'),
            bids=[Bid.from_dict(b) for b in data.get('bids', [])],
            status=AuctionStatus(data.get('status', AuctionStatus.LIVE.value)),
            end_time=_time_in(data.get('end_time')),
            winner_team_id=data.get('winner_team_id'),
            sold_price=to_decimal(sold_price) if sold_price is not None else None,
        )


@dataclass(frozen=True)
class Activity:
    """A bounded audit entry describing a state-changing event."""

    activity_id: str
    activity_type: ActivityType
    message: str
    timestamp: datetime
    team_id: Optional[str] = None
    player_id: Optional[str] = None
    amount: Optional[Decimal] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'activity_id': self.activity_id,
            'activity_type': self.activity_type.value,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'team_id': self.team_id,
            'player_id': self.player_id,
            'amount': _amount_out(self.amount),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Activity':
        """Create Activity from dictionary (JSON deserialization)."""
        amount = data.get('amount')
        return cls(
            activity_id=data['activity_id'],
            activity_type=ActivityType(data['activity_type']),
            message=data['message'],
            timestamp=datetime.fromisoformat(data['timestamp']),
            team_id=data.get('team_id'),
            player_id=data.get('player_id'),
            amount=to_decimal(amount) if amount is not None else None,
        )

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Activity':
        """Create Activity from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class AuctionNotification:
    """One message pushed to observers after a committed state change."""

    kind: NotificationKind
    auction_id: str
    auction: Optional[Dict[str, Any]] = None     # Snapshot for auction_update / auction_end
    seconds_remaining: Optional[int] = None      # Set for timer_update

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {'type': self.kind.value, 'auction_id': self.auction_id}
        if self.auction is not None:
            data['auction'] = self.auction
        if self.seconds_remaining is not None:
            data['seconds_remaining'] = self.seconds_remaining
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

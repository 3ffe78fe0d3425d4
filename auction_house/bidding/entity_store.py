"""
In-memory entity store for teams, players, auctions and activities.

The EntityStore is the single owner of all auction state:
- Teams, players and auctions keyed by ID (insertion ordered)
- A bounded activity log, newest first, oldest evicted past capacity
- Monotonic ID sequences for auctions, bids and activities

Lookups return None for unknown IDs and mutation primitives are silent
no-ops for unknown IDs; callers validate existence first through the
BiddingEngine and AuctionLifecycleController.
"""

import itertools
import logging
import threading
from collections import deque
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from .. import config
from .models import (
    Activity,
    Auction,
    AuctionStatus,
    Bid,
    Player,
    PlayerStatus,
    Team,
)

logger = logging.getLogger(__name__)

ID_FORMATS = {
    'auction': 'AUC-{:04d}',
    'bid': 'BID-{:06d}',
    'activity': 'ACT-{:06d}',
}


class EntityStore:
    """Authoritative collections of auction entities."""

    def __init__(
        self,
        activity_capacity: int = config.ACTIVITY_LOG_CAPACITY,
        on_activity: Optional[Callable[[Activity], None]] = None
    ):
        """
        Initialize an empty store.

        Args:
            activity_capacity: Maximum number of activities retained
            on_activity: Optional hook called with every appended activity
                         (e.g. ActivityJournal.append_activity)
        """
        self._teams: Dict[str, Team] = {}
        self._players: Dict[str, Player] = {}
        self._auctions: Dict[str, Auction] = {}
        self._activities: deque = deque(maxlen=activity_capacity)
        self._sequences = {kind: itertools.count(1) for kind in ID_FORMATS}
        self._lock = threading.RLock()
        self.on_activity = on_activity

    # ===== ID generation =====

    def next_id(self, kind: str) -> str:
        """Return the next ID in the monotonic sequence for an entity kind."""
        with self._lock:
            return ID_FORMATS[kind].format(next(self._sequences[kind]))

    # ===== Inserts =====

    def add_team(self, team: Team) -> None:
        with self._lock:
            self._teams[team.team_id] = team

    def add_player(self, player: Player) -> None:
        with self._lock:
            self._players[player.player_id] = player

    def add_auction(self, auction: Auction) -> None:
        with self._lock:
            self._auctions[auction.auction_id] = auction

    # ===== Lookups =====

    def get_team(self, team_id: str) -> Optional[Team]:
        return self._teams.get(team_id)

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def get_auction(self, auction_id: str) -> Optional[Auction]:
        return self._auctions.get(auction_id)

    def list_teams(self) -> List[Team]:
        with self._lock:
            return list(self._teams.values())

    def list_players(self) -> List[Player]:
        with self._lock:
            return list(self._players.values())

    def list_auctions(self) -> List[Auction]:
        with self._lock:
            return list(self._auctions.values())

    def list_live_auctions(self) -> List[Auction]:
        with self._lock:
            return [a for a in self._auctions.values() if a.status == AuctionStatus.LIVE]

    def list_players_by_status(self, status: PlayerStatus) -> List[Player]:
        with self._lock:
            return [p for p in self._players.values() if p.status == status]

    # ===== Mutation primitives =====

    def update_team_purse(self, team_id: str, new_amount: Decimal) -> None:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return
            team.remaining_purse = new_amount

    def append_player_to_roster(self, team_id: str, player: Player) -> None:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return
            team.roster.append(player)

    def set_player_status(
        self,
        player_id: str,
        status: PlayerStatus,
        team_id: Optional[str] = None,
        sold_price: Optional[Decimal] = None
    ) -> None:
        """Set status; team_id and sold_price are cleared unless provided."""
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                return
            player.status = status
            player.team_id = team_id
            player.sold_price = sold_price

    def record_bid(self, auction_id: str, bid: Bid) -> None:
        """
        Append a bid and move the auction's leader as one logical unit.

        Observers never see a bid list whose last entry disagrees with
        current_bid/current_bidder.
        """
        with self._lock:
            auction = self._auctions.get(auction_id)
            if auction is None:
                return
            auction.bids.append(bid)
            auction.current_bid = bid.amount
            auction.current_bidder = bid.team_id

    def mark_auction_completed(
        self,
        auction_id: str,
        end_time: datetime,
        winner_team_id: Optional[str] = None,
        sold_price: Optional[Decimal] = None
    ) -> None:
        """Close an auction and record its outcome (no winner means unsold)."""
        with self._lock:
            auction = self._auctions.get(auction_id)
            if auction is None:
                return
            auction.status = AuctionStatus.COMPLETED
            auction.end_time = end_time
            auction.winner_team_id = winner_team_id
            auction.sold_price = sold_price

    # ===== Activity log =====

    def append_activity(self, activity: Activity) -> None:
        """Insert at the head of the log, evicting the oldest past capacity."""
        with self._lock:
            self._activities.appendleft(activity)
        logger.debug(f"Activity {activity.activity_id}: {activity.message}")

        if self.on_activity is not None:
            try:
                self.on_activity(activity)
            except Exception as e:
                logger.error(
                    f"Activity hook failed for {activity.activity_id}: {e}",
                    exc_info=True
                )

    def recent_activities(self, limit: int = config.RECENT_ACTIVITY_LIMIT) -> List[Activity]:
        """Most recent activities, newest first."""
        with self._lock:
            return list(itertools.islice(self._activities, max(limit, 0)))

    def activity_count(self) -> int:
        return len(self._activities)

    # ===== Consistency =====

    def validate(self) -> None:
        """
        Validate store consistency.

        Raises:
            ValueError: If any invariant is broken
        """
        with self._lock:
            for team in self._teams.values():
                if not Decimal('0') <= team.remaining_purse <= team.total_purse:
                    raise ValueError(
                        f"Team {team.team_id} purse out of range: "
                        f"{team.remaining_purse} of {team.total_purse}"
                    )
                if len(team.roster) > team.max_players:
                    raise ValueError(
                        f"Team {team.team_id} roster exceeds {team.max_players} players"
                    )
                expected = team.total_purse - team.total_spent()
                if team.remaining_purse != expected:
                    raise ValueError(
                        f"Purse mismatch for {team.team_id}: remaining "
                        f"{team.remaining_purse}, but total minus spent is {expected}"
                    )

            live_refs: Dict[str, int] = {}
            for auction in self._auctions.values():
                self._validate_auction(auction)
                if auction.status == AuctionStatus.LIVE:
                    live_refs[auction.player_id] = live_refs.get(auction.player_id, 0) + 1

            for player in self._players.values():
                refs = live_refs.get(player.player_id, 0)
                if player.status == PlayerStatus.LIVE and refs != 1:
                    raise ValueError(
                        f"Live player {player.player_id} referenced by {refs} live auctions"
                    )
                if player.status != PlayerStatus.LIVE and refs:
                    raise ValueError(
                        f"Player {player.player_id} is {player.status.value} "
                        f"but has a live auction"
                    )
                if (player.status == PlayerStatus.SOLD) != (player.sold_price is not None):
                    raise ValueError(
                        f"Player {player.player_id} sold_price must be set iff Sold"
                    )

    def _validate_auction(self, auction: Auction) -> None:
        if auction.current_bid < auction.player.base_price:
            raise ValueError(
                f"Auction {auction.auction_id} current bid below base price"
            )

        if (auction.winner_team_id is None) != (auction.sold_price is None):
            raise ValueError(
                f"Auction {auction.auction_id} winner and sold_price must be set together"
            )
        if auction.winner_team_id is not None:
            if auction.status != AuctionStatus.COMPLETED:
                raise ValueError(f"Auction {auction.auction_id} has a winner while live")
            if not any(b.team_id == auction.winner_team_id and b.amount == auction.sold_price
                       for b in auction.bids):
                raise ValueError(
                    f"Auction {auction.auction_id} outcome does not match any bid"
                )

        if not auction.bids:
            if auction.current_bidder is not None:
                raise ValueError(f"Auction {auction.auction_id} has a leader but no bids")
            if auction.current_bid != auction.player.base_price:
                raise ValueError(
                    f"Auction {auction.auction_id} without bids must sit at base price"
                )
            return

        for earlier, later in zip(auction.bids, auction.bids[1:]):
            if later.amount <= earlier.amount or later.timestamp < earlier.timestamp:
                raise ValueError(
                    f"Auction {auction.auction_id} bids not increasing at {later.bid_id}"
                )

        last = auction.bids[-1]
        if auction.current_bid != last.amount or auction.current_bidder != last.team_id:
            raise ValueError(
                f"Auction {auction.auction_id} leader does not match last bid {last.bid_id}"
            )

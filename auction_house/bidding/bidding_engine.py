"""
Bidding engine: the sole authority for accepting bids and settling auctions.

The BiddingEngine is responsible for:
- Validating bids against store state in a fixed precondition order
- Serialising bid mutations per auction (reject-if-busy, never queued)
- Committing sales to player, team purse and roster at settlement
- Appending an Activity for every state transition
- Publishing the committed state to the notification channel
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterator, Optional, Tuple

from .entity_store import EntityStore
from .models import (
    Activity,
    ActivityType,
    Auction,
    AuctionNotification,
    AuctionStatus,
    Bid,
    NotificationKind,
    PlayerStatus,
    Team,
    format_currency,
    to_decimal,
)
from .results import AuctionError, EngineResult

logger = logging.getLogger(__name__)

Publisher = Callable[[AuctionNotification], None]


class BiddingEngine:
    """Validates and applies bids and settlements against an EntityStore."""

    def __init__(
        self,
        store: EntityStore,
        publisher: Optional[Publisher] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the engine.

        Args:
            store: Store holding the authoritative entities
            publisher: Callback invoked with each committed change
                       (typically NotificationChannel.publish)
            clock: Source of "now", injectable for tests
        """
        self.store = store
        self.publisher = publisher
        self.clock = clock

        self._auction_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        # Settlements touch team purses shared across auctions
        self._settlement_lock = threading.Lock()

    # ===== Locking =====

    def auction_lock(self, auction_id: str) -> Optional[threading.Lock]:
        """
        Return the mutual-exclusion token for a live auction.

        Tokens exist only while an auction is live: none is created for
        unknown or completed auctions, and settlement discards the token.
        """
        with self._locks_guard:
            lock = self._auction_locks.get(auction_id)
            if lock is None:
                auction = self.store.get_auction(auction_id)
                if auction is None or auction.status != AuctionStatus.LIVE:
                    return None
                lock = threading.Lock()
                self._auction_locks[auction_id] = lock
            return lock

    def lock_count(self) -> int:
        with self._locks_guard:
            return len(self._auction_locks)

    def _discard_lock(self, auction_id: str) -> None:
        with self._locks_guard:
            self._auction_locks.pop(auction_id, None)

    @contextmanager
    def _hold(self, lock: threading.Lock, blocking: bool) -> Iterator[bool]:
        acquired = lock.acquire(blocking=blocking)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()

    def _closed_error(self, auction_id: str, when_completed: AuctionError) -> AuctionError:
        if self.store.get_auction(auction_id) is None:
            return AuctionError.AUCTION_NOT_FOUND
        return when_completed

    # ===== Bidding =====

    def place_bid(self, auction_id: str, team_id: str, amount) -> EngineResult:
        """
        Validate and record a bid.

        Preconditions, first failure wins:
        1. Auction exists
        2. Auction is live
        3. Team exists
        4. Amount is strictly above the current bid
        5. Amount fits in the team's remaining purse
        6. Team has a free roster slot

        No purse or roster is touched here; money moves only at settlement.

        Args:
            auction_id: Auction to bid on
            team_id: Bidding team
            amount: Offer in crores (Decimal, int, float or numeric str)

        Returns:
            EngineResult with the updated auction, or BID_IN_PROGRESS when
            another bid on the same auction holds the lock
        """
        amount = to_decimal(amount)

        lock = self.auction_lock(auction_id)
        if lock is None:
            error = self._closed_error(auction_id, AuctionError.AUCTION_NOT_ACTIVE)
            logger.warning(f"Bid rejected on {auction_id}: {error.value}")
            return EngineResult.fail(error)

        with self._hold(lock, blocking=False) as acquired:
            if not acquired:
                logger.warning(f"Bid rejected on {auction_id}: another bid in progress")
                return EngineResult.fail(AuctionError.BID_IN_PROGRESS)

            auction = self.store.get_auction(auction_id)
            team = self.store.get_team(team_id)
            error = self._check_bid(auction, team, amount)
            if error is not None:
                logger.warning(
                    f"Bid rejected on {auction_id}: {team_id} offered {amount} "
                    f"({error.value})"
                )
                return EngineResult.fail(error)

            now = self.clock()
            bid = Bid(
                bid_id=self.store.next_id('bid'),
                auction_id=auction_id,
                player_id=auction.player_id,
                team_id=team_id,
                team_name=team.name,
                amount=amount,
                timestamp=now,
            )
            self.store.record_bid(auction_id, bid)

            self.store.append_activity(Activity(
                activity_id=self.store.next_id('activity'),
                activity_type=ActivityType.BID,
                message=f"{team.short_name} bid {format_currency(amount)} for {auction.player.name}",
                timestamp=now,
                team_id=team_id,
                player_id=auction.player_id,
                amount=amount,
            ))

            logger.info(
                f"Bid {bid.bid_id}: {team.short_name} → {auction.player.name} "
                f"at {format_currency(amount)} ({len(auction.bids)} bids)"
            )

            self._publish(NotificationKind.AUCTION_UPDATE, auction)
            return EngineResult.ok(auction)

    def _check_bid(
        self,
        auction: Optional[Auction],
        team: Optional[Team],
        amount: Decimal
    ) -> Optional[AuctionError]:
        if auction is None:
            return AuctionError.AUCTION_NOT_FOUND
        if auction.status != AuctionStatus.LIVE:
            return AuctionError.AUCTION_NOT_ACTIVE
        if team is None:
            return AuctionError.TEAM_NOT_FOUND
        if amount <= auction.current_bid:
            return AuctionError.BID_TOO_LOW
        if amount > team.remaining_purse:
            return AuctionError.INSUFFICIENT_FUNDS
        if team.open_slots <= 0:
            return AuctionError.ROSTER_FULL
        return None

    # ===== Settlement =====

    def settle_auction(self, auction_id: str) -> EngineResult:
        """
        Commit an auction's outcome and mark it completed.

        Waits for any in-flight bid on the same auction so the outcome
        reflects every committed bid. The winning bid is the most recent one
        whose team can still pay for it and has a free roster slot; purses
        may have shrunk through other settlements since the bid was placed.
        With no eligible bid the player returns to the unsold pool. The
        settled team and price are recorded on the auction as winner_team_id
        and sold_price; after a fallback they differ from current_bidder.

        Calling this on a completed auction is rejected with AUCTION_NOT_LIVE
        and changes nothing.

        Args:
            auction_id: Auction to settle

        Returns:
            EngineResult with the completed auction
        """
        lock = self.auction_lock(auction_id)
        if lock is None:
            error = self._closed_error(auction_id, AuctionError.AUCTION_NOT_LIVE)
            logger.warning(f"Settlement rejected on {auction_id}: {error.value}")
            return EngineResult.fail(error)

        with self._hold(lock, blocking=True), self._settlement_lock:
            auction = self.store.get_auction(auction_id)
            if auction.status != AuctionStatus.LIVE:
                logger.warning(
                    f"Settlement rejected: auction {auction_id} is {auction.status.value}"
                )
                return EngineResult.fail(AuctionError.AUCTION_NOT_LIVE)

            now = self.clock()
            winner = self._select_winner(auction)
            if winner is not None:
                team, bid = winner
                self.store.mark_auction_completed(
                    auction_id, now, winner_team_id=team.team_id, sold_price=bid.amount
                )
                self._commit_sale(auction, team, bid, now)
            else:
                self.store.mark_auction_completed(auction_id, now)
                self._commit_no_sale(auction, now)

            self._discard_lock(auction_id)
            self._publish(NotificationKind.AUCTION_END, auction)
            return EngineResult.ok(auction)

    def _select_winner(self, auction: Auction) -> Optional[Tuple[Team, Bid]]:
        for bid in reversed(auction.bids):
            team = self.store.get_team(bid.team_id)
            if team is None:
                continue
            if bid.amount <= team.remaining_purse and team.open_slots > 0:
                if bid is not auction.last_bid:
                    logger.warning(
                        f"Auction {auction.auction_id}: leader cannot complete, "
                        f"falling back to {bid.team_id} at {bid.amount}"
                    )
                return team, bid
        return None

    def _commit_sale(self, auction: Auction, team: Team, bid: Bid, now: datetime) -> None:
        price = bid.amount
        self.store.set_player_status(
            auction.player_id, PlayerStatus.SOLD, team_id=team.team_id, sold_price=price
        )
        self.store.update_team_purse(team.team_id, team.remaining_purse - price)

        player = self.store.get_player(auction.player_id)
        self.store.append_player_to_roster(team.team_id, replace(player))

        self.store.append_activity(Activity(
            activity_id=self.store.next_id('activity'),
            activity_type=ActivityType.WIN,
            message=f"{team.short_name} won {player.name} for {format_currency(price)}",
            timestamp=now,
            team_id=team.team_id,
            player_id=player.player_id,
            amount=price,
        ))

        logger.info(
            f"Auction {auction.auction_id} settled: {player.name} sold to "
            f"{team.name} for {format_currency(price)} | "
            f"{format_currency(team.remaining_purse)} purse left"
        )

    def _commit_no_sale(self, auction: Auction, now: datetime) -> None:
        self.store.set_player_status(auction.player_id, PlayerStatus.UNSOLD)

        self.store.append_activity(Activity(
            activity_id=self.store.next_id('activity'),
            activity_type=ActivityType.AUCTION_END,
            message=f"{auction.player.name} went unsold",
            timestamp=now,
            player_id=auction.player_id,
        ))

        logger.info(f"Auction {auction.auction_id} settled: {auction.player.name} unsold")

    # ===== Notifications =====

    def _publish(self, kind: NotificationKind, auction: Auction) -> None:
        if self.publisher is None:
            return
        notification = AuctionNotification(
            kind=kind,
            auction_id=auction.auction_id,
            auction=auction.to_dict(),
        )
        try:
            self.publisher(notification)
        except Exception as e:
            # Committed state stands regardless of observer failures
            logger.error(f"Failed to publish {kind.value} for {auction.auction_id}: {e}",
                         exc_info=True)

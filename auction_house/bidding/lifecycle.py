"""
Auction lifecycle: creation, derived countdown and settlement on expiry.

An auction moves live -> completed exactly once. The countdown is never
stored; it is recomputed from start_time and timer_duration, so any
observer or restarted driver sees the same remaining time.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from .. import config
from .bidding_engine import BiddingEngine, Publisher
from .entity_store import EntityStore
from .models import (
    Activity,
    ActivityType,
    Auction,
    AuctionNotification,
    AuctionStatus,
    NotificationKind,
    PlayerStatus,
    format_currency,
)
from .results import AuctionError, EngineResult

logger = logging.getLogger(__name__)


class AuctionLifecycleController:
    """Drives auctions from creation through timer expiry to settlement."""

    def __init__(
        self,
        store: EntityStore,
        engine: BiddingEngine,
        publisher: Optional[Publisher] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.engine = engine
        self.publisher = publisher
        self.clock = clock or engine.clock
        self._create_lock = threading.Lock()

    def create_auction(
        self,
        player_id: str,
        timer_duration: int = config.DEFAULT_TIMER_DURATION
    ) -> EngineResult:
        """
        Open a live auction for an unsold player.

        Args:
            player_id: Player to put under the hammer
            timer_duration: Countdown length in seconds

        Returns:
            EngineResult with the new auction, or PLAYER_NOT_FOUND /
            PLAYER_NOT_AVAILABLE / INVALID_TIMER
        """
        if timer_duration <= 0:
            return EngineResult.fail(AuctionError.INVALID_TIMER)

        # Two creators racing on one player must not both see it Unsold
        with self._create_lock:
            player = self.store.get_player(player_id)
            if player is None:
                logger.warning(f"Cannot create auction: player {player_id} not found")
                return EngineResult.fail(AuctionError.PLAYER_NOT_FOUND)
            if player.status != PlayerStatus.UNSOLD:
                logger.warning(
                    f"Cannot create auction: {player.name} is {player.status.value}"
                )
                return EngineResult.fail(AuctionError.PLAYER_NOT_AVAILABLE)

            now = self.clock()
            self.store.set_player_status(player_id, PlayerStatus.LIVE)
            auction = Auction(
                auction_id=self.store.next_id('auction'),
                player_id=player_id,
                player=replace(player),
                current_bid=player.base_price,
                timer_duration=timer_duration,
                start_time=now,
                status=AuctionStatus.LIVE,
            )
            self.store.add_auction(auction)

        self.store.append_activity(Activity(
            activity_id=self.store.next_id('activity'),
            activity_type=ActivityType.AUCTION_START,
            message=f"Auction started for {player.name}",
            timestamp=now,
            player_id=player_id,
        ))

        logger.info(
            f"Auction {auction.auction_id} started: {player.name} "
            f"(base {format_currency(player.base_price)}, {timer_duration}s)"
        )

        self._publish(AuctionNotification(
            kind=NotificationKind.AUCTION_UPDATE,
            auction_id=auction.auction_id,
            auction=auction.to_dict(),
        ))
        return EngineResult.ok(auction)

    def seconds_remaining(self, auction_id: str) -> Optional[int]:
        """Remaining countdown for an auction, or None if it doesn't exist."""
        auction = self.store.get_auction(auction_id)
        if auction is None:
            return None
        return auction.seconds_remaining(self.clock())

    def close_auction(self, auction_id: str) -> EngineResult:
        """Operator-forced settlement before the timer runs out."""
        logger.info(f"Closing auction {auction_id} on operator request")
        return self.engine.settle_auction(auction_id)

    def tick(self) -> List[str]:
        """
        Advance every live auction's countdown by re-reading the clock.

        Expired auctions are settled; the rest get a timer_update.

        Returns:
            IDs of auctions settled during this tick
        """
        now = self.clock()
        settled = []

        for auction in self.store.list_live_auctions():
            if auction.is_expired(now):
                result = self.engine.settle_auction(auction.auction_id)
                if result.success:
                    settled.append(auction.auction_id)
                else:
                    # Lost the race to an operator close
                    logger.debug(
                        f"Expiry settlement skipped for {auction.auction_id}: "
                        f"{result.error.value}"
                    )
                continue

            self._publish(AuctionNotification(
                kind=NotificationKind.TIMER_UPDATE,
                auction_id=auction.auction_id,
                seconds_remaining=auction.seconds_remaining(now),
            ))

        if settled:
            logger.info(f"Timer expired for {len(settled)} auction(s): {', '.join(settled)}")
        return settled

    def _publish(self, notification: AuctionNotification) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher(notification)
        except Exception as e:
            logger.error(
                f"Failed to publish {notification.kind.value} for "
                f"{notification.auction_id}: {e}",
                exc_info=True
            )


class CountdownDriver:
    """Background thread that ticks the lifecycle controller at a fixed interval."""

    def __init__(
        self,
        controller: AuctionLifecycleController,
        interval: float = config.COUNTDOWN_TICK_INTERVAL
    ):
        self.controller = controller
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("Countdown driver already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name='countdown-driver', daemon=True
        )
        self._thread.start()
        logger.info(f"Countdown driver started (interval {self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout if timeout is not None else self.interval * 5)
            self._thread = None
        logger.info(f"Countdown driver stopped after {self.tick_count} ticks")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick_count += 1
            try:
                self.controller.tick()
            except Exception as e:
                logger.error(f"Error during countdown tick: {e}", exc_info=True)
                # Keep ticking despite errors

            self._stop_event.wait(self.interval)

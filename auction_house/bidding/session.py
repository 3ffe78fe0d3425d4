"""
Orchestrator for a live auction session.

The AuctionSession wires all components together explicitly at startup:
- EntityStore (seeded with teams and players)
- NotificationChannel as the engine's publish target
- BiddingEngine and AuctionLifecycleController over the same store
- CountdownDriver ticking the controller in the background
- Optional ActivityJournal receiving every activity
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .. import config
from .activity_journal import ActivityJournal
from .bidding_engine import BiddingEngine
from .entity_store import EntityStore
from .lifecycle import AuctionLifecycleController, CountdownDriver
from .notifications import NotificationChannel
from .seed import seed_store

logger = logging.getLogger(__name__)


class AuctionSession:
    """Owns one set of auction components for the life of a process."""

    def __init__(
        self,
        seed: Optional[int] = config.DEFAULT_SEED,
        journal_path: Optional[Path] = None,
        tick_interval: float = config.COUNTDOWN_TICK_INTERVAL,
        clock: Callable[[], datetime] = datetime.now,
        populate: bool = True
    ):
        """
        Build and wire the session components.

        Args:
            seed: Random seed for the player pool (None = random prices)
            journal_path: Optional JSONL file receiving every activity
            tick_interval: Seconds between countdown ticks
            clock: Source of "now" shared by engine and controller
            populate: Seed teams and players into the store
        """
        self.journal = ActivityJournal(journal_path) if journal_path else None
        self.store = EntityStore(
            on_activity=self.journal.append_activity if self.journal else None
        )
        if populate:
            seed_store(self.store, seed=seed)

        self.channel = NotificationChannel()
        self.engine = BiddingEngine(self.store, publisher=self.channel.publish, clock=clock)
        self.controller = AuctionLifecycleController(
            self.store, self.engine, publisher=self.channel.publish, clock=clock
        )
        self.driver = CountdownDriver(self.controller, interval=tick_interval)
        self.clock = clock

    def start(self) -> None:
        """Begin driving countdowns."""
        logger.info("=" * 60)
        logger.info("AUCTION SESSION STARTING")
        logger.info("=" * 60)
        logger.info(
            f"{len(self.store.list_teams())} teams, "
            f"{len(self.store.list_players())} players"
        )
        if self.journal:
            logger.info(f"Activity journal: {self.journal.filepath}")
        self.driver.start()

    def stop(self) -> None:
        """Stop the countdown driver; live auctions keep their derived timers."""
        self.driver.stop()
        live = self.store.list_live_auctions()
        logger.info("=" * 60)
        logger.info("AUCTION SESSION ENDED")
        logger.info("=" * 60)
        if live:
            logger.info(f"{len(live)} auction(s) still live at shutdown")

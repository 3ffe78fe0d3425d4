"""Shared pytest fixtures for auction house tests."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from auction_house.bidding.bidding_engine import BiddingEngine
from auction_house.bidding.entity_store import EntityStore
from auction_house.bidding.lifecycle import AuctionLifecycleController
from auction_house.bidding.models import Player, PlayerRole, Team
from auction_house.bidding.notifications import NotificationChannel


class FakeClock:
    """Manually advanced clock standing in for datetime.now."""

    def __init__(self, start: datetime = datetime(2024, 3, 22, 19, 30, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_team(team_id: str, purse, max_players: int = 25, name: str = None) -> Team:
    purse = Decimal(str(purse))
    return Team(
        team_id=team_id,
        name=name or f"{team_id} Franchise",
        short_name=team_id,
        total_purse=purse,
        remaining_purse=purse,
        max_players=max_players,
    )


def make_player(player_id: str, name: str, base_price, role=PlayerRole.BATSMAN) -> Player:
    return Player(
        player_id=player_id,
        name=name,
        role=role,
        base_price=Decimal(str(base_price)),
    )


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> EntityStore:
    """Small league: MI and CSK with full purses, DC nearly broke."""
    store = EntityStore()
    store.add_team(make_team('MI', 100, name='Mumbai Indians'))
    store.add_team(make_team('CSK', 100, name='Chennai Super Kings'))
    store.add_team(make_team('DC', 3, name='Delhi Capitals'))

    store.add_player(make_player('P001', 'Virat Kohli', 5))
    store.add_player(make_player('P002', 'Jasprit Bumrah', 2, PlayerRole.BOWLER))
    store.add_player(make_player('P003', 'Rishabh Pant', '1.5', PlayerRole.WICKET_KEEPER))
    store.add_player(make_player('P004', 'Hardik Pandya', 4, PlayerRole.ALL_ROUNDER))
    return store


@pytest.fixture
def channel() -> NotificationChannel:
    return NotificationChannel()


@pytest.fixture
def engine(store, channel, clock) -> BiddingEngine:
    return BiddingEngine(store, publisher=channel.publish, clock=clock)


@pytest.fixture
def controller(store, engine, channel, clock) -> AuctionLifecycleController:
    return AuctionLifecycleController(store, engine, publisher=channel.publish, clock=clock)


@pytest.fixture
def live_auction(controller):
    """A fresh live auction for Virat Kohli (base price 5)."""
    result = controller.create_auction('P001', timer_duration=60)
    assert result.success
    return result.auction

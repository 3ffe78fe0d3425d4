"""
Seed data for a fresh auction: the franchise teams and the player pool.
"""

import logging
import random
from decimal import Decimal
from typing import List, Optional

from .. import config
from .entity_store import EntityStore
from .models import Player, PlayerRole, Team, to_decimal

logger = logging.getLogger(__name__)

ROLE_CYCLE = [
    PlayerRole.BATSMAN,
    PlayerRole.BOWLER,
    PlayerRole.ALL_ROUNDER,
    PlayerRole.WICKET_KEEPER,
]


def create_seed_teams(
    purse: float = config.PURSE_PER_TEAM,
    max_players: int = config.MAX_PLAYERS_PER_TEAM
) -> List[Team]:
    """Build the franchise teams with full purses and empty rosters."""
    total = to_decimal(purse)
    return [
        Team(
            team_id=team_id,
            name=name,
            short_name=short_name,
            total_purse=total,
            remaining_purse=total,
            max_players=max_players,
        )
        for team_id, name, short_name in config.SEED_TEAMS
    ]


def create_seed_players(seed: Optional[int] = config.DEFAULT_SEED) -> List[Player]:
    """
    Build the player pool.

    Roles and nationalities cycle through their lists; base prices are drawn
    between 0.5 and 15.5 crores and rounded to one decimal place.

    Args:
        seed: Random seed for reproducible prices and ages (None = random)

    Returns:
        List of Unsold players with IDs P001..P100
    """
    rng = random.Random(seed)
    players = []

    for index, name in enumerate(config.SEED_PLAYER_NAMES):
        raw_price = rng.random() * config.BASE_PRICE_SPREAD + config.MIN_BASE_PRICE
        base_price = max(
            Decimal(str(config.MIN_BASE_PRICE)),
            Decimal(str(round(raw_price * 10) / 10))
        )
        players.append(Player(
            player_id=f"P{index + 1:03d}",
            name=name,
            role=ROLE_CYCLE[index % len(ROLE_CYCLE)],
            base_price=base_price,
            nationality=config.SEED_NATIONALITIES[index % len(config.SEED_NATIONALITIES)],
            age=config.MIN_PLAYER_AGE + rng.randrange(config.PLAYER_AGE_SPREAD),
        ))

    return players


def seed_store(store: EntityStore, seed: Optional[int] = config.DEFAULT_SEED) -> EntityStore:
    """Populate an empty store with seed teams and players."""
    if store.list_teams() or store.list_players():
        logger.info(
            f"Store already seeded - skipping ({len(store.list_teams())} teams, "
            f"{len(store.list_players())} players)"
        )
        return store

    for team in create_seed_teams():
        store.add_team(team)
    for player in create_seed_players(seed):
        store.add_player(player)

    logger.info(
        f"Store seeded with {len(store.list_teams())} teams and "
        f"{len(store.list_players())} players"
    )
    return store

"""
Read-only views over auction state for dashboards and operators.

Provides league-wide metrics, per-team purse summaries, player filtering
with fuzzy name search, and the set of teams still able to compete for a
live player.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd
from fuzzywuzzy import fuzz

from .. import config
from .entity_store import EntityStore
from .models import Auction, AuctionStatus, Player, PlayerRole, PlayerStatus

logger = logging.getLogger(__name__)


def get_dashboard_metrics(store: EntityStore) -> Dict:
    """
    Headline numbers for the auction dashboard.

    Returns:
        Dict with total_teams, total_players, live_auctions_count,
        highest_bid, sold_players_count, unsold_players_count
    """
    players = store.list_players()
    auctions = store.list_auctions()

    highest_bid = max((a.current_bid for a in auctions), default=Decimal('0'))

    return {
        'total_teams': len(store.list_teams()),
        'total_players': len(players),
        'live_auctions_count': sum(1 for a in auctions if a.status == AuctionStatus.LIVE),
        'highest_bid': float(highest_bid),
        'sold_players_count': sum(1 for p in players if p.status == PlayerStatus.SOLD),
        'unsold_players_count': sum(1 for p in players if p.status == PlayerStatus.UNSOLD),
    }


def team_purse_summary(store: EntityStore) -> pd.DataFrame:
    """
    Get purse statistics for all teams.

    Returns:
        DataFrame with team_id, team_name, remaining_purse, total_spent,
        players_count, open_slots, sorted by remaining_purse descending
    """
    summary_data = []
    for team in store.list_teams():
        summary_data.append({
            'team_id': team.team_id,
            'team_name': team.name,
            'remaining_purse': float(team.remaining_purse),
            'total_spent': float(team.total_spent()),
            'players_count': len(team.roster),
            'open_slots': team.open_slots,
        })

    columns = ['team_id', 'team_name', 'remaining_purse', 'total_spent',
               'players_count', 'open_slots']
    df = pd.DataFrame(summary_data, columns=columns)
    if len(df) == 0:
        return df

    return df.sort_values(
        ['remaining_purse', 'team_id'], ascending=[False, True]
    ).reset_index(drop=True)


def filter_players(
    store: EntityStore,
    role: Optional[PlayerRole] = None,
    status: Optional[PlayerStatus] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    threshold: int = config.FUZZY_SEARCH_THRESHOLD
) -> List[Player]:
    """
    Filter the player pool.

    Args:
        role: Only players with this role
        status: Only players with this status
        min_price: Minimum base price (inclusive)
        max_price: Maximum base price (inclusive)
        search: Fuzzy name query; results are ordered by match score
        threshold: Minimum fuzz.partial_ratio score for a name match

    Returns:
        Matching players, in store order unless a search query is given
    """
    players = store.list_players()

    if role is not None:
        players = [p for p in players if p.role == role]
    if status is not None:
        players = [p for p in players if p.status == status]
    if min_price is not None:
        players = [p for p in players if p.base_price >= Decimal(str(min_price))]
    if max_price is not None:
        players = [p for p in players if p.base_price <= Decimal(str(max_price))]

    if search:
        query = search.strip().lower()
        scored = [
            (fuzz.partial_ratio(query, p.name.lower()), p)
            for p in players
        ]
        scored = [(score, p) for score, p in scored if score >= threshold]
        # Stable sort keeps store order among equal scores
        scored.sort(key=lambda item: item[0], reverse=True)
        players = [p for _, p in scored]

        logger.debug(f"Player search '{search}': {len(players)} matches")

    return players


def eligible_bidders(store: EntityStore, auction: Auction) -> List[Dict]:
    """
    Teams that can still top the current bid in a live auction.

    A team qualifies when its remaining purse exceeds the current bid and it
    has an open roster slot. The current leader is excluded.

    Returns:
        List of dicts with team_id, short_name, remaining_purse, headroom,
        sorted by remaining_purse descending
    """
    if auction.status != AuctionStatus.LIVE:
        return []

    bidders = []
    for team in store.list_teams():
        if team.team_id == auction.current_bidder:
            continue
        if team.remaining_purse <= auction.current_bid or team.open_slots <= 0:
            continue
        bidders.append({
            'team_id': team.team_id,
            'short_name': team.short_name,
            'remaining_purse': float(team.remaining_purse),
            'headroom': float(team.remaining_purse - auction.current_bid),
        })

    bidders.sort(key=lambda t: t['remaining_purse'], reverse=True)
    return bidders

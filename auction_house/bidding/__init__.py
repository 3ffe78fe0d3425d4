"""
Live player bidding subsystem.

This package holds the authoritative auction state, enforces bidding rules
under concurrent access, drives each auction through its countdown, and
publishes committed changes to observers.
"""

from .models import (
    Activity,
    ActivityType,
    Auction,
    AuctionNotification,
    AuctionStatus,
    Bid,
    NotificationKind,
    Player,
    PlayerRole,
    PlayerStatus,
    Team,
)
from .results import AuctionError, EngineResult, ErrorCategory
from .entity_store import EntityStore
from .bidding_engine import BiddingEngine
from .lifecycle import AuctionLifecycleController, CountdownDriver
from .notifications import NotificationChannel, Subscription
from .activity_journal import ActivityJournal
from .session import AuctionSession

__all__ = [
    'Activity',
    'ActivityType',
    'Auction',
    'AuctionNotification',
    'AuctionStatus',
    'Bid',
    'NotificationKind',
    'Player',
    'PlayerRole',
    'PlayerStatus',
    'Team',
    'AuctionError',
    'EngineResult',
    'ErrorCategory',
    'EntityStore',
    'BiddingEngine',
    'AuctionLifecycleController',
    'CountdownDriver',
    'NotificationChannel',
    'Subscription',
    'ActivityJournal',
    'AuctionSession',
]

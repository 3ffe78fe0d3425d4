"""
Notification channel: fan-out of committed auction changes to observers.

The engine and lifecycle controller call publish() synchronously after each
committed change. Each observer owns a bounded queue; when a slow observer
falls behind, its oldest pending message is dropped, so publishing never
blocks the engine.
"""

import logging
import queue
import threading
from datetime import datetime
from typing import Iterator, List, Optional

from .. import config
from .models import Auction, AuctionNotification, AuctionStatus, NotificationKind

logger = logging.getLogger(__name__)


class Subscription:
    """One observer's view of the channel, optionally scoped to a single auction."""

    def __init__(self, auction_id: Optional[str] = None,
                 maxsize: int = config.NOTIFICATION_QUEUE_SIZE):
        self.auction_id = auction_id
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def matches(self, notification: AuctionNotification) -> bool:
        return self.auction_id is None or self.auction_id == notification.auction_id

    def offer(self, notification: AuctionNotification) -> None:
        while True:
            try:
                self._queue.put_nowait(notification)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass

    def get(self, timeout: Optional[float] = None) -> Optional[AuctionNotification]:
        """Next notification, or None if nothing arrives within timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[AuctionNotification]:
        """All pending notifications, oldest first, without blocking."""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items


class NotificationChannel:
    """Publish/subscribe hub between the engine and its observers."""

    def __init__(self, queue_size: int = config.NOTIFICATION_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()
        self.published_count = 0

    def subscribe(self, auction_id: Optional[str] = None) -> Subscription:
        subscription = Subscription(auction_id=auction_id, maxsize=self.queue_size)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug(f"Observer subscribed (auction={auction_id or 'all'})")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        if subscription.dropped:
            logger.info(
                f"Observer on {subscription.auction_id or 'all'} dropped "
                f"{subscription.dropped} stale notifications"
            )

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, notification: AuctionNotification) -> None:
        """Deliver a notification to every matching subscriber."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(notification)]
            self.published_count += 1
        for subscription in targets:
            subscription.offer(notification)

    def stream(
        self,
        subscription: Subscription,
        heartbeat: float = config.SSE_HEARTBEAT_SECONDS
    ) -> Iterator[Optional[AuctionNotification]]:
        """
        Yield notifications until the auction ends or the subscription closes.

        Yields None when nothing arrived within the heartbeat interval so the
        transport can send a keep-alive.
        """
        while not subscription.closed:
            notification = subscription.get(timeout=heartbeat)
            yield notification
            if (notification is not None
                    and notification.kind == NotificationKind.AUCTION_END
                    and subscription.auction_id is not None):
                return


def snapshot_for(auction: Auction, now: datetime) -> List[AuctionNotification]:
    """
    Initial messages for an observer (re)connecting mid-auction.

    The remaining time is reconstructed from start_time and timer_duration.
    """
    if auction.status == AuctionStatus.COMPLETED:
        return [AuctionNotification(
            kind=NotificationKind.AUCTION_END,
            auction_id=auction.auction_id,
            auction=auction.to_dict(),
        )]
    return [
        AuctionNotification(
            kind=NotificationKind.AUCTION_UPDATE,
            auction_id=auction.auction_id,
            auction=auction.to_dict(),
        ),
        AuctionNotification(
            kind=NotificationKind.TIMER_UPDATE,
            auction_id=auction.auction_id,
            seconds_remaining=auction.seconds_remaining(now),
        ),
    ]


def format_sse(notification: AuctionNotification) -> str:
    """Render a notification as a Server-Sent Events frame."""
    return f"data: {notification.to_json()}\n\n"

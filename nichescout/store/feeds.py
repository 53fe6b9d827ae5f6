"""Live snapshot subscriptions for the per-user collections."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Snapshot = list[Any]
SnapshotLoader = Callable[[str, str, int], Awaitable[Snapshot]]

_CLOSED = object()


class Subscription:
    """
    Cancellable stream of snapshots for one user's collection.

    Iterating yields the newest `limit` records, newest first, once on
    subscribe and again after every write. A consumer that falls behind
    only sees the latest snapshot. Cancel explicitly or leave the
    `async with` block to release it.
    """

    def __init__(self, feed: "SnapshotFeed", uid: str, collection: str, limit: int):
        self.feed = feed
        self.uid = uid
        self.collection = collection
        self.limit = limit
        self.cancelled = False
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    @property
    def key(self) -> tuple[str, str]:
        return (self.uid, self.collection)

    def push(self, item: Any) -> None:
        """Replace any undelivered snapshot with `item`."""
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def cancel(self) -> None:
        """Stop the stream and detach from the feed."""
        if self.cancelled:
            return
        self.cancelled = True
        self.feed.detach(self)
        self.push(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Snapshot:
        if self.cancelled and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.cancel()


class SnapshotFeed:
    """Registry of subscriptions keyed by user and collection."""

    def __init__(self, loader: SnapshotLoader):
        self.loader = loader
        self._subscriptions: dict[tuple[str, str], set[Subscription]] = {}

    def subscriber_count(self, uid: str, collection: str) -> int:
        return len(self._subscriptions.get((uid, collection), ()))

    async def subscribe(self, uid: str, collection: str, limit: int) -> Subscription:
        """Register a subscription and queue the current snapshot."""
        subscription = Subscription(self, uid, collection, limit)
        self._subscriptions.setdefault(subscription.key, set()).add(subscription)
        try:
            snapshot = await self.loader(uid, collection, limit)
        except Exception:
            self.detach(subscription)
            raise
        subscription.push(snapshot)
        return subscription

    def detach(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.key)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscriptions[subscription.key]

    async def publish(self, uid: str, collection: str) -> None:
        """Push a fresh snapshot to every subscriber of a collection."""
        subscribers = list(self._subscriptions.get((uid, collection), ()))
        if not subscribers:
            return

        snapshots: dict[int, Snapshot] = {}
        for subscription in subscribers:
            if subscription.cancelled:
                continue
            if subscription.limit not in snapshots:
                snapshots[subscription.limit] = await self.loader(uid, collection, subscription.limit)
            subscription.push(snapshots[subscription.limit])
        logger.debug("Published %s snapshot to %d subscribers", collection, len(subscribers))

    def close(self, uid: Optional[str] = None) -> None:
        """Cancel all subscriptions, or only those of one user."""
        for key, subscribers in list(self._subscriptions.items()):
            if uid is not None and key[0] != uid:
                continue
            for subscription in list(subscribers):
                subscription.cancel()

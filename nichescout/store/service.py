"""Per-user search log and saved result service layer."""

import logging
from typing import Any, Optional

from sqlalchemy import select

from ..database import Database
from ..models import ProductSummary
from .feeds import Snapshot, SnapshotFeed, Subscription
from .models import (
    SEARCHES, RESULTS,
    SearchLogORM, SavedResultORM,
    SearchLogEntry, SavedResult,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


class HistoryService:
    """Service for a user's logged searches and saved results."""

    def __init__(self, db: Database, feed: Optional[SnapshotFeed] = None):
        self.db = db
        self.feed = feed or SnapshotFeed(self.snapshot)

    async def log_search(
        self, uid: str, keyword: str, meta: Optional[dict[str, Any]] = None
    ) -> SearchLogEntry:
        """Append a search to the user's log."""
        async with self.db.session() as session:
            row = SearchLogORM(uid=uid, keyword=keyword, meta=dict(meta or {}))
            session.add(row)
            await session.flush()
            entry = SearchLogEntry.model_validate(row)

        logger.info("Search logged for %s: %s", uid, keyword)
        await self.publish(uid, SEARCHES)
        return entry

    async def save_result(self, uid: str, item: ProductSummary) -> SavedResult:
        """Save a copy of a product summary. Saving twice stores two rows."""
        async with self.db.session() as session:
            row = SavedResultORM(
                uid=uid,
                asin=item.asin,
                title=item.title,
                buy_box_price=item.buy_box_price,
                sales_rank_signal=item.sales_rank_signal,
                category=item.category,
                score=item.score,
            )
            session.add(row)
            await session.flush()
            saved = SavedResult.model_validate(row)

        logger.info("Saved result for %s: %s", uid, item.asin)
        await self.publish(uid, RESULTS)
        return saved

    async def recent_searches(self, uid: str, limit: int = DEFAULT_LIMIT) -> list[SearchLogEntry]:
        """Most recent searches, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(SearchLogORM)
                .where(SearchLogORM.uid == uid)
                .order_by(SearchLogORM.created_at.desc(), SearchLogORM.id.desc())
                .limit(limit)
            )
            return [SearchLogEntry.model_validate(row) for row in result.scalars()]

    async def saved_results(self, uid: str, limit: int = DEFAULT_LIMIT) -> list[SavedResult]:
        """Most recently saved results, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(SavedResultORM)
                .where(SavedResultORM.uid == uid)
                .order_by(SavedResultORM.saved_at.desc(), SavedResultORM.id.desc())
                .limit(limit)
            )
            return [SavedResult.model_validate(row) for row in result.scalars()]

    async def snapshot(self, uid: str, collection: str, limit: int = DEFAULT_LIMIT) -> Snapshot:
        """Current contents of one collection, as a subscriber sees it."""
        if collection == SEARCHES:
            return await self.recent_searches(uid, limit)
        if collection == RESULTS:
            return await self.saved_results(uid, limit)
        raise ValueError(f"Unknown collection: {collection}")

    async def publish(self, uid: str, collection: str) -> None:
        """Push a fresh snapshot to subscribers. The write is already committed."""
        try:
            await self.feed.publish(uid, collection)
        except Exception:
            logger.exception("Could not publish %s snapshot for %s", collection, uid)

    async def subscribe(
        self, uid: str, collection: str, limit: int = DEFAULT_LIMIT
    ) -> Subscription:
        """Subscribe to live snapshots of one of the user's collections."""
        return await self.feed.subscribe(uid, collection, limit)

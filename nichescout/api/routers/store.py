"""API endpoints for the caller's search log and saved results."""

import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from ...errors import InternalError, NicheScoutError
from ...models import ProductSummary
from ...store.models import COLLECTIONS, SavedResult, SearchLogCreate, SearchLogEntry
from ...store.service import DEFAULT_LIMIT, HistoryService
from ..auth import UserContext, get_current_user
from ..deps import get_history_service

logger = logging.getLogger(__name__)

router = APIRouter()


@asynccontextmanager
async def internal_errors(action: str, uid: str):
    """Report store failures as INTERNAL callable errors."""
    try:
        yield
    except NicheScoutError:
        raise
    except Exception as e:
        logger.exception("%s failed for %s", action, uid)
        raise InternalError(str(e) or "Unexpected error")


@router.post("/searches", response_model=SearchLogEntry)
async def log_search(
    data: SearchLogCreate,
    user: UserContext = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
):
    """Record a search keyword with optional metadata."""
    async with internal_errors("Logging search", user.uid):
        return await service.log_search(user.uid, data.keyword, data.meta)


@router.get("/searches", response_model=list[SearchLogEntry])
async def list_searches(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    user: UserContext = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
):
    """Most recent searches, newest first."""
    async with internal_errors("Listing searches", user.uid):
        return await service.recent_searches(user.uid, limit)


@router.post("/results", response_model=SavedResult)
async def save_result(
    item: ProductSummary,
    user: UserContext = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
):
    """
    Save a copy of a search result.

    Saving the same product again stores another copy.
    """
    async with internal_errors("Saving result", user.uid):
        return await service.save_result(user.uid, item)


@router.get("/results", response_model=list[SavedResult])
async def list_results(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    user: UserContext = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
):
    """Most recently saved results, newest first."""
    async with internal_errors("Listing results", user.uid):
        return await service.saved_results(user.uid, limit)


def snapshot_event(snapshot: list) -> str:
    """Encode a snapshot as one server-sent event."""
    data = json.dumps([item.model_dump(by_alias=True, mode="json") for item in snapshot])
    return f"event: snapshot\ndata: {data}\n\n"


@router.get("/{collection}/stream")
async def stream_collection(
    collection: str,
    request: Request,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    user: UserContext = Depends(get_current_user),
    service: HistoryService = Depends(get_history_service),
):
    """Stream live snapshots of a collection as server-sent events."""
    if collection not in COLLECTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")

    async with internal_errors("Subscribing", user.uid):
        subscription = await service.subscribe(user.uid, collection, limit)

    async def events() -> AsyncIterator[str]:
        async with subscription:
            async for snapshot in subscription:
                if await request.is_disconnected():
                    break
                yield snapshot_event(snapshot)
        logger.debug("Stream closed for %s/%s", user.uid, collection)

    return StreamingResponse(events(), media_type="text/event-stream")

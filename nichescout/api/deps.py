"""Shared API dependencies."""

from fastapi import Depends, Request

from ..config import Settings
from ..keepa.service import SearchService
from ..store.service import HistoryService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_search_service(settings: Settings = Depends(get_settings)) -> SearchService:
    """Dependency to get a search service bound to the Keepa settings."""
    return SearchService(settings.keepa)


def get_history_service(request: Request) -> HistoryService:
    """Dependency to get the history service created at startup."""
    return request.app.state.history

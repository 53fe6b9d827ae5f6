"""Shared fixtures: a fake Keepa API, a temporary database and the wired API app."""

from typing import Optional

import httpx
import pytest
from fastapi import FastAPI

from nichescout.api.auth import UserContext, get_current_user
from nichescout.api.deps import get_search_service
from nichescout.api.main import add_error_handlers
from nichescout.api.routers import functions, store
from nichescout.config import KeepaConfig, Settings
from nichescout.database import Database
from nichescout.keepa.service import SearchService
from nichescout.store.service import HistoryService


def keepa_product(
    asin: str,
    title: Optional[str] = "Test Product",
    price_history: Optional[list] = None,
    avg30: Optional[int] = None,
    avg90: Optional[int] = None,
    categories: Optional[list[str]] = None,
) -> dict:
    """Build a Keepa product object with only the fields the scorer reads."""
    product = {"asin": asin}
    if title is not None:
        product["title"] = title
    if price_history is not None:
        product["buyBoxPriceHistory"] = price_history
    stats = {}
    if avg30 is not None:
        stats["salesRankAverage30"] = avg30
    if avg90 is not None:
        stats["salesRankAverage90"] = avg90
    if stats:
        product["stats"] = stats
    if categories is not None:
        product["categoryTree"] = [{"catId": i, "name": n} for i, n in enumerate(categories)]
    return product


class FakeKeepa:
    """In-memory stand-in for api.keepa.com, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.fail_with: Optional[Exception] = None
        self.responses = {
            "token": (200, {"tokensLeft": 1200, "refillIn": 30000, "refillRate": 20}),
            "search": (200, {"asinList": []}),
            "product": (200, {"products": []}),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        status, body = self.responses[request.url.path.strip("/")]
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, resource: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/{resource}"]

    def set_search(self, asins: list[str]) -> None:
        self.responses["search"] = (200, {"asinList": asins})

    def set_products(self, products: list[dict]) -> None:
        self.responses["product"] = (200, {"products": products})


@pytest.fixture
def keepa():
    """Fake Keepa API."""
    return FakeKeepa()


@pytest.fixture
def keepa_config():
    return KeepaConfig(api_key="test-key", domain="1")


@pytest.fixture
async def db(tmp_path):
    """Create a test database."""
    db = Database.from_path(str(tmp_path / "test.db"))
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
def api_app(keepa, keepa_config, db):
    """Full API app backed by the fake Keepa and a temporary database."""
    app = FastAPI()
    app.state.settings = Settings(keepa=keepa_config)
    app.state.history = HistoryService(db)
    add_error_handlers(app)
    app.include_router(functions.router, prefix="/api/functions")
    app.include_router(store.router, prefix="/api/store")

    service = SearchService(keepa_config, transport=keepa.transport)
    app.dependency_overrides[get_search_service] = lambda: service
    app.dependency_overrides[get_current_user] = lambda: UserContext(uid="user-1")
    return app

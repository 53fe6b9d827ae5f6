"""HTTP client for the Niche Scout API."""

import json
from typing import Any, AsyncIterator, Iterable, Optional

import httpx

from .config import ClientConfig
from .models import ProductSummary
from .store.models import SavedResult, SearchLogEntry

QUOTA_EXHAUSTED_MESSAGE = "Keepa tokens are depleted. Please wait for refill or add tokens."


class CallableError(Exception):
    """Error returned by a callable endpoint."""

    def __init__(self, status: str, message: str, http_status: Optional[int] = None):
        self.status = status
        self.message = message
        self.http_status = http_status
        super().__init__(message)

    @property
    def is_quota_exhausted(self) -> bool:
        return is_quota_exhausted(f"{self.status} {self.message}")


def is_quota_exhausted(message: str) -> bool:
    """Check whether an error message signals an exhausted Keepa quota."""
    lowered = message.lower()
    return "resource-exhausted" in lowered or "resource_exhausted" in lowered or "429" in message


def describe_error(exc: Exception) -> str:
    """Message shown to the user for a failed call."""
    message = str(exc)
    if isinstance(exc, CallableError):
        if exc.is_quota_exhausted:
            return QUOTA_EXHAUSTED_MESSAGE
    elif is_quota_exhausted(message):
        return QUOTA_EXHAUSTED_MESSAGE
    return message or "Function call failed"


def parse_sse_events(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Split server-sent event lines into (event, data) pairs."""
    events = []
    event, data = "message", []
    for line in lines:
        if not line:
            if data:
                events.append((event, "\n".join(data)))
            event, data = "message", []
        elif line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data.append(line[len("data:"):].strip())
    if data:
        events.append((event, "\n".join(data)))
    return events


SNAPSHOT_MODELS = {
    "searches": SearchLogEntry,
    "results": SavedResult,
}


class NicheScoutClient:
    """Client for the callable endpoints and the per-user store."""

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Initialize the HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            timeout=self.config.timeout,
            headers=self.config.auth_headers,
            transport=self._transport,
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Client not started. Use 'async with' or call start() first.")
        return self._client

    async def call(self, name: str, data: Any = None) -> Any:
        """
        Invoke a callable endpoint.

        Args:
            name: Endpoint name (diagnosticPing, searchProducts)
            data: JSON-serializable input

        Returns:
            The `result` member of the response

        Raises:
            CallableError: when the endpoint reports an error
        """
        response = await self.client.post(f"/api/functions/{name}", json={"data": data})
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.is_success or "error" in body:
            error = body.get("error") or {}
            raise CallableError(
                status=error.get("status", "INTERNAL"),
                message=error.get("message") or f"{name} HTTP {response.status_code}",
                http_status=response.status_code,
            )
        return body.get("result")

    async def diagnostic_ping(self) -> dict:
        """Keepa token status (tokensLeft, refillIn, ...)."""
        return await self.call("diagnosticPing")

    async def search_products(
        self,
        keyword: str,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> list[ProductSummary]:
        """Run a keyword search. Prices are in cents."""
        data: dict[str, Any] = {"keyword": keyword}
        if min_price is not None:
            data["minPrice"] = min_price
        if max_price is not None:
            data["maxPrice"] = max_price
        if max_results is not None:
            data["maxResults"] = max_results

        result = await self.call("searchProducts", data)
        return [ProductSummary.model_validate(item) for item in result or []]

    async def log_search(self, keyword: str, meta: Optional[dict] = None) -> SearchLogEntry:
        """Record a search in the caller's log."""
        response = await self.client.post(
            "/api/store/searches", json={"keyword": keyword, "meta": meta or {}}
        )
        response.raise_for_status()
        return SearchLogEntry.model_validate(response.json())

    async def save_result(self, item: ProductSummary) -> SavedResult:
        """Save a copy of a search result."""
        response = await self.client.post(
            "/api/store/results", json=item.model_dump(by_alias=True, mode="json")
        )
        response.raise_for_status()
        return SavedResult.model_validate(response.json())

    async def recent_searches(self, limit: int = 10) -> list[SearchLogEntry]:
        response = await self.client.get("/api/store/searches", params={"limit": limit})
        response.raise_for_status()
        return [SearchLogEntry.model_validate(item) for item in response.json()]

    async def saved_results(self, limit: int = 10) -> list[SavedResult]:
        response = await self.client.get("/api/store/results", params={"limit": limit})
        response.raise_for_status()
        return [SavedResult.model_validate(item) for item in response.json()]

    async def subscribe(self, collection: str, limit: int = 10) -> AsyncIterator[list]:
        """
        Follow live snapshots of a collection.

        Yields a list of records per snapshot, newest first. Closing the
        generator (or breaking out of the loop) ends the subscription.
        """
        model = SNAPSHOT_MODELS[collection]
        async with self.client.stream(
            "GET", f"/api/store/{collection}/stream", params={"limit": limit}, timeout=None
        ) as response:
            response.raise_for_status()
            pending: list[str] = []
            async for line in response.aiter_lines():
                pending.append(line)
                if line:
                    continue
                for event, data in parse_sse_events(pending):
                    if event == "snapshot":
                        yield [model.model_validate(item) for item in json.loads(data)]
                pending = []

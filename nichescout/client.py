"""Keepa API client."""

import json
import logging
from typing import Any, Optional

import httpx

from .config import KeepaConfig
from .errors import UpstreamPreconditionError
from .keepa.models import SearchResponse

logger = logging.getLogger(__name__)

# Keepa accepts at most this many ASINs per product request.
MAX_ASINS_PER_REQUEST = 40


class KeepaClient:
    """Client for the Keepa REST API."""

    def __init__(
        self,
        config: KeepaConfig,
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
        if not self.config.is_configured:
            raise UpstreamPreconditionError(
                "Keepa API key not configured. Set KEEPA_KEY in .env file."
            )

        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
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

    async def _get(
        self, resource: str, label: str, params: dict, error_label: Optional[str] = None
    ) -> dict:
        """
        GET a Keepa resource and unwrap its JSON body.

        Args:
            resource: Path under the API base URL (token, search, product)
            label: Prefix used in HTTP status error messages
            error_label: Prefix used for embedded errors, defaults to label
            params: Resource-specific query parameters

        Returns:
            The decoded body; a body that is not a JSON object decodes to {}

        Raises:
            UpstreamPreconditionError: on a non-2xx status or an `error` field
        """
        response = await self.client.get(f"/{resource}", params=self.config.params(**params))
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.is_success:
            logger.error("%s HTTP %s: %s", label, response.status_code, body)
            raise UpstreamPreconditionError(
                f"{label} HTTP {response.status_code}", status=response.status_code
            )
        if body.get("error"):
            logger.error("%s error: %s", error_label or label, body["error"])
            raise UpstreamPreconditionError(
                f"{error_label or label} error: {json.dumps(body['error'])}", error=body["error"]
            )
        return body

    async def get_token_status(self) -> dict:
        """
        Get remaining token quota for the configured key.

        Returns:
            The verbatim body (tokensLeft, refillIn, refillRate, ...)
        """
        return await self._get("token", "Keepa /token", {}, error_label="Keepa")

    async def search_asins(self, term: str) -> list[str]:
        """
        Search the catalog for products matching a term.

        Args:
            term: Keyword to search for

        Returns:
            Matching ASINs in Keepa's order
        """
        body = await self._get("search", "Keepa search", {"type": "product", "term": term})
        return SearchResponse.model_validate(body).asin_list

    async def get_products(self, asins: list[str]) -> list[dict[str, Any]]:
        """
        Get product objects with buy-box data for a batch of ASINs.

        Args:
            asins: Up to MAX_ASINS_PER_REQUEST identifiers

        Returns:
            Raw product objects; ASINs without a record are omitted
        """
        if len(asins) > MAX_ASINS_PER_REQUEST:
            raise ValueError(f"At most {MAX_ASINS_PER_REQUEST} ASINs per request, got {len(asins)}")

        body = await self._get(
            "product", "Keepa product", {"asin": ",".join(asins), "buybox": "1"}
        )
        products = body.get("products") or []
        return [p for p in products if isinstance(p, dict)]

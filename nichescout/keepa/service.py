"""Keepa search service layer."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..client import MAX_ASINS_PER_REQUEST, KeepaClient
from ..config import KeepaConfig
from ..models import ProductSummary, SearchRequest
from .models import KeepaProduct
from .scoring import filter_products, summarize

logger = logging.getLogger(__name__)


class SearchService:
    """Service for keyword searches and quota checks against Keepa."""

    def __init__(
        self,
        config: KeepaConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.transport = transport

    def _client(self) -> KeepaClient:
        return KeepaClient(self.config, transport=self.transport)

    async def ping(self) -> dict:
        """Return the Keepa token status body verbatim."""
        async with self._client() as keepa:
            return await keepa.get_token_status()

    async def search(self, request: SearchRequest) -> list[ProductSummary]:
        """
        Search Keepa for a keyword and return scored, filtered summaries.

        Runs the search stage, then one product-detail request for the
        first MAX_ASINS_PER_REQUEST ASINs. An empty search result skips
        the detail request entirely.
        """
        async with self._client() as keepa:
            asins = (await keepa.search_asins(request.keyword))[:MAX_ASINS_PER_REQUEST]
            if not asins:
                logger.info("No ASINs for keyword %r", request.keyword)
                return []

            raw_products = await keepa.get_products(asins)

        summaries = []
        for raw in raw_products:
            try:
                product = KeepaProduct.model_validate(raw)
            except ValidationError as e:
                logger.warning("Skipping undecodable Keepa product: %s", e)
                continue
            summaries.append(summarize(product))

        results = filter_products(
            summaries,
            min_price=request.min_price,
            max_price=request.max_price,
            max_results=request.max_results,
        )
        logger.info(
            "Keyword %r: %d ASINs, %d products, %d results",
            request.keyword, len(asins), len(summaries), len(results),
        )
        return results

"""Keepa product-data integration."""

from .models import KeepaProduct
from .scoring import filter_products, rank_score, summarize

__all__ = ["KeepaProduct", "filter_products", "rank_score", "summarize"]

"""Map Keepa product records to scored summaries and filter them."""

import math
from typing import Iterable, Optional

from ..models import DEFAULT_MAX_RESULTS, ProductSummary
from .models import KeepaProduct

UNKNOWN_TITLE = "Unknown"
RANK_CEILING = 100000


def round2(value: float) -> float:
    """Round to 2 decimals, halves toward +infinity."""
    return math.floor(value * 100 + 0.5) / 100


def latest_buy_box_price(product: KeepaProduct) -> Optional[int]:
    """Last entry of the buy-box price history, if there is one."""
    history = product.buy_box_price_history
    if not history:
        return None
    return history[-1]


def sales_rank_signal(product: KeepaProduct) -> Optional[float]:
    """30-day sales-rank average, falling back to the 90-day one."""
    if product.stats is None:
        return None
    # Keepa reports 0 for "no data"; treat it like a missing average.
    return product.stats.sales_rank_average_30 or product.stats.sales_rank_average_90 or None


def rank_score(signal: Optional[float]) -> float:
    """
    Score a sales-rank signal: better-selling (lower rank) scores higher.

    The result is not clamped; ranks above RANK_CEILING score below zero.
    """
    if not signal:
        return 0
    return round2((RANK_CEILING - signal) / RANK_CEILING)


def leaf_category(product: KeepaProduct) -> Optional[str]:
    if not product.category_tree:
        return None
    return product.category_tree[-1].name


def summarize(product: KeepaProduct) -> ProductSummary:
    """Reduce a Keepa product to a ProductSummary."""
    signal = sales_rank_signal(product)
    return ProductSummary(
        asin=product.asin,
        title=product.title or UNKNOWN_TITLE,
        buy_box_price=latest_buy_box_price(product),
        sales_rank_signal=signal,
        category=leaf_category(product),
        score=rank_score(signal),
    )


def within_price_bounds(
    product: ProductSummary,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
) -> bool:
    """
    Check a product against optional price bounds.

    A bound only applies when both it and the product's price are set,
    so products without a price always pass.
    """
    price = product.buy_box_price
    if min_price and price and price < min_price:
        return False
    if max_price and price and price > max_price:
        return False
    return True


def filter_products(
    products: Iterable[ProductSummary],
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[ProductSummary]:
    """Apply price bounds and keep the first max_results, in order."""
    kept = [p for p in products if within_price_bounds(p, min_price, max_price)]
    return kept[:max_results]

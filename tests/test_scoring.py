"""Tests for Keepa product scoring and filtering."""

import pytest

from nichescout.keepa.models import KeepaProduct
from nichescout.keepa.scoring import (
    UNKNOWN_TITLE,
    filter_products,
    rank_score,
    round2,
    summarize,
    within_price_bounds,
)
from nichescout.models import ProductSummary

from conftest import keepa_product


def summary(asin: str, price=None) -> ProductSummary:
    return ProductSummary(asin=asin, title=asin, buy_box_price=price)


def test_summarize_full_product():
    """Test mapping a complete Keepa product."""
    product = KeepaProduct.model_validate(keepa_product(
        "B000TEST01",
        title="Silicone Spatula",
        price_history=[1000, 1500, 1299],
        avg30=25000,
        avg90=40000,
        categories=["Home & Kitchen", "Utensils", "Spatulas"],
    ))

    result = summarize(product)

    assert result.asin == "B000TEST01"
    assert result.title == "Silicone Spatula"
    assert result.buy_box_price == 1299
    assert result.sales_rank_signal == 25000
    assert result.category == "Spatulas"
    assert result.score == 0.75


def test_summarize_sparse_product():
    """Test defaults when optional fields are missing."""
    product = KeepaProduct.model_validate(keepa_product("B000TEST02", title=None))

    result = summarize(product)

    assert result.title == UNKNOWN_TITLE
    assert result.buy_box_price is None
    assert result.sales_rank_signal is None
    assert result.category is None
    assert result.score == 0


def test_empty_price_history_has_no_price():
    """Test an empty buy-box history yields no current price."""
    product = KeepaProduct.model_validate(keepa_product("B000TEST03", price_history=[]))

    assert summarize(product).buy_box_price is None


def test_signal_falls_back_to_90_day_average():
    """Test the 90-day average is used when the 30-day one is missing."""
    product = KeepaProduct.model_validate(keepa_product("B000TEST04", avg90=50000))

    result = summarize(product)
    assert result.sales_rank_signal == 50000
    assert result.score == 0.5


def test_rank_score_rounds_half_up():
    """Test two-decimal rounding of exact halves."""
    assert rank_score(87500) == 0.13
    assert round2(0.125) == 0.13
    assert round2(-0.125) == -0.12


def test_rank_score_absent_signal():
    """Test score is zero without a signal."""
    assert rank_score(None) == 0


def test_rank_score_is_not_clamped():
    """Test ranks outside 0..100000 score outside 0..1."""
    assert rank_score(150000) == -0.5
    assert rank_score(100000) == 0
    assert rank_score(1) == 1.0


def test_rank_score_monotonic():
    """Test score never increases as the rank signal grows."""
    signals = [1, 10, 500, 2500, 10000, 55555, 99999, 100000, 250000]
    scores = [rank_score(s) for s in signals]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.parametrize(
    "price,min_price,max_price,expected",
    [
        (1500, 1000, 2000, True),
        (500, 1000, None, False),
        (2500, None, 2000, False),
        (1000, 1000, 1000, True),
        (None, 1000, 2000, True),
        (500, None, None, True),
        (500, 0, None, True),
    ],
)
def test_within_price_bounds(price, min_price, max_price, expected):
    """Test price bounds only apply when both bound and price exist."""
    assert within_price_bounds(summary("A", price), min_price, max_price) is expected


def test_filter_products_keeps_missing_prices():
    """Test products without a price survive any bounds."""
    products = [summary("A", 500), summary("B", 1500), summary("C"), summary("D", 3000)]

    result = filter_products(products, min_price=1000, max_price=2000)

    assert [p.asin for p in result] == ["B", "C"]


def test_filter_products_truncates_in_order():
    """Test max_results keeps the first N in original order."""
    products = [summary(f"A{i}", 100 * i) for i in range(30)]

    result = filter_products(products, max_results=10)

    assert [p.asin for p in result] == [f"A{i}" for i in range(10)]


def test_filter_products_default_limit():
    """Test the default limit of 20."""
    products = [summary(f"A{i}") for i in range(25)]

    assert len(filter_products(products)) == 20

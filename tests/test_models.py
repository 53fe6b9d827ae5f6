"""Tests for search and Keepa data models."""

import pytest
from pydantic import ValidationError

from nichescout.keepa.models import KeepaProduct, SearchResponse
from nichescout.models import ProductSummary, SearchRequest


def test_search_request_defaults():
    """Test SearchRequest with only a keyword."""
    request = SearchRequest.model_validate({"keyword": "silicone spatula"})

    assert request.keyword == "silicone spatula"
    assert request.min_price is None
    assert request.max_price is None
    assert request.max_results == 20


def test_search_request_camel_case():
    """Test SearchRequest reads camelCase wire names."""
    request = SearchRequest.model_validate(
        {"keyword": "mug", "minPrice": 1000, "maxPrice": 2500, "maxResults": 5}
    )

    assert request.min_price == 1000
    assert request.max_price == 2500
    assert request.max_results == 5


@pytest.mark.parametrize("data", [{}, {"keyword": ""}, {"keyword": 42}, {"keyword": "x", "minPrice": -1}])
def test_search_request_rejects_bad_input(data):
    """Test SearchRequest validation failures."""
    with pytest.raises(ValidationError):
        SearchRequest.model_validate(data)


def test_product_summary_serializes_camel_case():
    """Test ProductSummary wire names."""
    summary = ProductSummary(asin="B000TEST01", title="Spatula", buy_box_price=1299, score=0.75)

    data = summary.model_dump(by_alias=True)
    assert data["buyBoxPrice"] == 1299
    assert data["salesRankSignal"] is None
    assert data["score"] == 0.75


def test_product_summary_format_price():
    """Test dollar rendering of cent prices."""
    assert ProductSummary(asin="A", title="t", buy_box_price=1299).format_price() == "$12.99"
    assert ProductSummary(asin="A", title="t").format_price() == "N/A"


def test_keepa_product_ignores_unknown_fields():
    """Test KeepaProduct keeps only the fields it declares."""
    product = KeepaProduct.model_validate({
        "asin": "B000TEST01",
        "title": "Spatula",
        "csv": [[1, 2, 3]],
        "buyBoxPriceHistory": [21000000, 1299],
        "stats": {"salesRankAverage30": 1500, "current": [1, 2]},
        "categoryTree": [{"catId": 1, "name": "Home"}, {"catId": 2, "name": "Spatulas"}],
    })

    assert product.buy_box_price_history == [21000000, 1299]
    assert product.stats.sales_rank_average_30 == 1500
    assert product.stats.sales_rank_average_90 is None
    assert product.category_tree[-1].name == "Spatulas"


def test_keepa_product_malformed_fields_become_absent():
    """Test each malformed optional field decodes to None on its own."""
    product = KeepaProduct.model_validate({
        "asin": "B000TEST01",
        "title": None,
        "buyBoxPriceHistory": "not a list",
        "stats": {"salesRankAverage30": "n/a", "salesRankAverage90": 4000},
        "categoryTree": [{"name": 7}, "junk"],
    })

    assert product.title is None
    assert product.buy_box_price_history is None
    assert product.stats.sales_rank_average_30 is None
    assert product.stats.sales_rank_average_90 == 4000
    assert len(product.category_tree) == 1
    assert product.category_tree[0].name is None


def test_keepa_product_requires_asin():
    """Test a product without an ASIN is rejected."""
    with pytest.raises(ValidationError):
        KeepaProduct.model_validate({"title": "No id"})


def test_search_response_missing_list():
    """Test a search body without asinList decodes to an empty list."""
    assert SearchResponse.model_validate({}).asin_list == []
    assert SearchResponse.model_validate({"asinList": ["A", 3, "B"]}).asin_list == ["A", "B"]

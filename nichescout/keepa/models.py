"""Partial records for Keepa API payloads.

Keepa product objects carry hundreds of fields. Only the ones the scorer
reads are declared here; everything else is ignored. Each field is
decoded on its own so one malformed attribute does not discard the
whole product.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeepaRecord(BaseModel):
    """Base for Keepa payload records."""

    model_config = ConfigDict(extra="ignore")


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


class KeepaStats(KeepaRecord):
    """Subset of the `stats` object requested with a product."""

    sales_rank_average_30: Optional[float] = Field(None, alias="salesRankAverage30")
    sales_rank_average_90: Optional[float] = Field(None, alias="salesRankAverage90")

    @field_validator("sales_rank_average_30", "sales_rank_average_90", mode="before")
    @classmethod
    def _drop_non_numeric(cls, value: Any) -> Optional[float]:
        return _number_or_none(value)


class KeepaCategory(KeepaRecord):
    """One node of a product's category path."""

    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_string(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class KeepaProduct(KeepaRecord):
    """Product object from the `product` resource."""

    asin: str
    title: Optional[str] = None
    buy_box_price_history: Optional[list[int]] = Field(None, alias="buyBoxPriceHistory")
    stats: Optional[KeepaStats] = None
    category_tree: Optional[list[KeepaCategory]] = Field(None, alias="categoryTree")

    @field_validator("title", mode="before")
    @classmethod
    def _title_string(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("buy_box_price_history", mode="before")
    @classmethod
    def _history_list(cls, value: Any) -> Optional[list[int]]:
        if not isinstance(value, list):
            return None
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            return None
        return value

    @field_validator("stats", mode="before")
    @classmethod
    def _stats_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("category_tree", mode="before")
    @classmethod
    def _tree_list(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return None
        return [node for node in value if isinstance(node, dict)]


class SearchResponse(KeepaRecord):
    """Body of the `search` resource."""

    asin_list: list[str] = Field(default_factory=list, alias="asinList")

    @field_validator("asin_list", mode="before")
    @classmethod
    def _asins(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, str)]

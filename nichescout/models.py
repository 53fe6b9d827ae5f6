"""Data models for product searches."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

DEFAULT_MAX_RESULTS = 20


class CamelModel(BaseModel):
    """Model whose wire names are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(CamelModel):
    """Input of the searchProducts call."""

    keyword: StrictStr = Field(..., min_length=1, description="Search term")
    min_price: Optional[int] = Field(None, ge=0, description="Lower price bound in cents")
    max_price: Optional[int] = Field(None, ge=0, description="Upper price bound in cents")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=0, description="Maximum number of results")


class ProductSummary(CamelModel):
    """Reduced product record returned to the client."""

    asin: str = Field(..., description="Amazon Standard Identification Number")
    title: str = Field(..., description="Product title")
    buy_box_price: Optional[int] = Field(None, description="Latest buy-box price in cents")
    sales_rank_signal: Optional[float] = Field(None, description="Rolling sales-rank average")
    category: Optional[str] = Field(None, description="Leaf category name")
    score: float = Field(0, description="Desirability score derived from sales rank")

    def format_price(self) -> str:
        """Render the buy-box price as dollars, or N/A."""
        if not self.buy_box_price:
            return "N/A"
        return f"${self.buy_box_price / 100:.2f}"

"""Per-user search log and saved result models."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator
from sqlalchemy import Column, String, Float, Integer, DateTime, JSON
from sqlalchemy.orm import declarative_base

from ..models import CamelModel, ProductSummary

Base = declarative_base()

SEARCHES = "searches"
RESULTS = "results"
COLLECTIONS = (SEARCHES, RESULTS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops the offset on read; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============ SQLAlchemy ORM Models ============

class SearchLogORM(Base):
    """SQLAlchemy model for searches table."""
    __tablename__ = SEARCHES

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String, index=True, nullable=False)
    keyword = Column(String, nullable=False)
    meta = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class SavedResultORM(Base):
    """SQLAlchemy model for results table."""
    __tablename__ = RESULTS

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String, index=True, nullable=False)
    asin = Column(String, nullable=False)
    title = Column(String, nullable=False)
    buy_box_price = Column(Integer)
    sales_rank_signal = Column(Float)
    category = Column(String)
    score = Column(Float)
    saved_at = Column(DateTime(timezone=True), default=utcnow, index=True)


# ============ Pydantic Models (API) ============

class SearchLogCreate(CamelModel):
    """Schema for logging a search."""
    keyword: str = Field(..., min_length=1)
    meta: dict[str, Any] = Field(default_factory=dict)


class SearchLogEntry(CamelModel):
    """Schema for a logged search."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    keyword: str
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class SavedResult(ProductSummary):
    """Schema for a saved product summary."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    saved_at: Optional[datetime] = None

    @field_validator("saved_at")
    @classmethod
    def _utc_saved_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

"""
Pydantic request/response models for the API.

Field names are snake_case in Python and camelCase on the wire (the
contract the browser client already speaks), via aliases.  Models accept
either spelling on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ── Transaction records ───────────────────────────────────────────────────────

class TransactionIn(BaseModel):
    """One record of the seed JSON array.  Unknown keys (e.g. image) are ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    title: str = ""
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = ""
    date_of_sale: datetime = Field(..., alias="dateOfSale")
    sold: bool = False

    @field_validator("date_of_sale")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_row(self) -> tuple:
        """Row tuple in api.database.TRANSACTION_COLUMNS order."""
        return (
            self.id,
            self.title,
            self.description,
            self.price,
            self.category,
            self.date_of_sale.strftime("%Y-%m-%dT%H:%M:%S"),
            int(self.sold),
        )


class TransactionOut(BaseModel):
    """A stored transaction as returned by GET /api/transactions."""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Externally supplied identifier", examples=[1])
    title: str | None = Field(None, description="Product title", examples=["Fjallraven Backpack"])
    description: str | None = Field(None, description="Product description")
    price: float = Field(..., description="Sale price", examples=[329.85])
    category: str | None = Field(None, description="Category label", examples=["men's clothing"])
    date_of_sale: datetime = Field(..., alias="dateOfSale", description="UTC timestamp of the sale")
    sold: bool = Field(..., description="Whether the item sold")

    @field_validator("date_of_sale")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return _as_utc(value)


# ── Report models ─────────────────────────────────────────────────────────────

class StatisticsOut(BaseModel):
    """Response body for GET /api/statistics."""
    model_config = ConfigDict(populate_by_name=True)

    total_sale_amount: float = Field(0, alias="totalSaleAmount", description="Sum of prices in the month")
    sold_items_count: int = Field(0, alias="soldItemsCount", description="Records with sold = true")
    not_sold_items_count: int = Field(0, alias="notSoldItemsCount", description="Records with sold = false")


class BarChartBucket(BaseModel):
    """One price range of the bar chart."""
    range: str = Field(..., description="Price range label", examples=["101-200"])
    count: int = Field(..., description="Records whose price falls in the range", examples=[3])


class PieChartSlice(BaseModel):
    """One category of the pie chart."""
    category: str | None = Field(None, description="Category label", examples=["electronics"])
    count: int = Field(..., description="Records in the category", examples=[4])


class CombinedOut(BaseModel):
    """Response body for GET /api/combined.

    ``statistics`` is ``{totalSales, soldItems, notSoldItems}`` or ``{}``
    when no record matches the month.
    """
    statistics: dict[str, Any] = Field(default_factory=dict)
    barchart: list[BarChartBucket] = Field(default_factory=list)
    piechart: list[PieChartSlice] = Field(default_factory=list)


class SeedResult(BaseModel):
    """Response body for GET /api/initializeDatabase."""
    message: str = Field(..., examples=["Database initialized with seed data"])
    count: int = Field(..., description="Records now stored", examples=[60])


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Invalid month"])
    details: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])

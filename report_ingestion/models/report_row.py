"""Pydantic models for normalized report rows."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from report_ingestion.utils.headers import is_identifier_valid


class ParsedRow(BaseModel):
    """Metrics of one product (artikul) for one reporting period.
    
    Every numeric field is either a finite value inside its domain or None.
    Negative source values are clamped to zero by the parsers before a row
    is built, so the constraints here only guard against parser bugs.
    """
    
    artikul: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Seller artikul, format ALNUM-ALNUM (upper-cased)"
    )
    impressions: int = Field(..., ge=0, description="Product impressions")
    visits: int = Field(..., ge=0, description="Product card visits")
    ctr: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        description="Click-through rate: visits / impressions"
    )
    add_to_cart: int = Field(default=0, ge=0, description="Add-to-cart count")
    cr_to_cart: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        description="Cart conversion rate: add_to_cart / visits"
    )
    orders: int = Field(default=0, ge=0, description="Ordered units")
    revenue: Optional[float] = Field(default=None, ge=0, description="Ordered amount, RUB")
    price_avg: Optional[float] = Field(default=None, ge=0, description="Average price, RUB")
    stock_end: Optional[int] = Field(default=None, ge=0, description="Stock at period end")
    rating: Optional[float] = Field(default=None, ge=0, description="Product rating")
    reviews_count: Optional[int] = Field(default=None, ge=0, description="Number of reviews")
    
    model_config = ConfigDict(allow_inf_nan=False)
    
    @field_validator("artikul")
    @classmethod
    def validate_artikul_format(cls, v: str) -> str:
        """Upper-case the artikul and check the ALNUM-ALNUM format."""
        normalized = v.strip().upper()
        if not is_identifier_valid(normalized):
            raise ValueError(f"artikul must look like ABC-123, got {v!r}")
        return normalized


class WildberriesRow(ParsedRow):
    """Row of a Wildberries sales funnel report.
    
    CTR and cart conversion are always known here: when the source has no
    usable value and the ratio is undefined they default to 0.
    """
    
    ctr: float = Field(default=0.0, ge=0, le=1)
    cr_to_cart: float = Field(default=0.0, ge=0, le=1)
    delivery_avg_hours: Optional[float] = Field(
        default=None,
        ge=0,
        description="Average delivery time, hours"
    )


class OzonRow(ParsedRow):
    """Row of an Ozon "by products" analytics report."""
    
    drr: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        description="Ad spend ratio (DRR): advertising spend / revenue"
    )

"""Pydantic schemas for products and bulk ingestion results."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer


class ProductCreate(BaseModel):
    """Product as scraped from a Shopify store."""

    company_id: Optional[int] = Field(None, description="Owning company (required)")
    shopify_product_id: Optional[int] = Field(None, description="Shopify product id, unique per company")
    title: Optional[str] = Field(None, description="Product title (required)")
    handle: Optional[str] = None
    product_type: Optional[str] = Field(None, validation_alias=AliasChoices("product_type", "type"))
    vendor: Optional[str] = None
    price: Optional[Decimal] = None
    created_at_shopify: Optional[datetime] = None
    days_old_when_found: Optional[int] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    tags: Optional[Union[str, List[str]]] = None
    is_new_product: Optional[bool] = None


class ProductBulkCreate(BaseModel):
    products: Optional[List[ProductCreate]] = None


class ProductResponse(BaseModel):
    id: int
    company_id: int
    company_name: Optional[str] = None
    shopify_product_id: Optional[int] = None
    title: str
    handle: Optional[str] = None
    product_type: Optional[str] = None
    vendor: Optional[str] = None
    price: Optional[Decimal] = None
    created_at_shopify: Optional[datetime] = None
    days_old_when_found: Optional[int] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    tags: Optional[str] = None
    first_seen: datetime
    last_seen: datetime
    is_new_product: bool

    @field_serializer("price")
    def serialize_price(self, value: Optional[Decimal]) -> Optional[str]:
        """Serialize Decimal as string."""
        return None if value is None else str(value)


class SkippedProduct(BaseModel):
    product: Dict[str, Any]
    reason: str


class ProductBulkResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    products: List[ProductResponse]
    added: int
    skipped: int
    skipped_products: List[SkippedProduct] = Field(
        default_factory=list, alias="skippedProducts"
    )

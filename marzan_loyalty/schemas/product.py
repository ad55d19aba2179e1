from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class ProductImageOut(BaseModel):
    id: UUID
    product_id: UUID
    image_url: str
    display_order: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(max_length=200)
    description: Optional[str] = ""
    price: float = Field(ge=0)
    promotional_price: Optional[float] = Field(default=None, ge=0)
    promotion_end_date: Optional[datetime] = None
    category: str = Field(max_length=100)
    active: bool = True
    tags: list[str] = []
    # first URL becomes the primary image
    image_urls: list[str]


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    promotional_price: Optional[float] = Field(default=None, ge=0)
    promotion_end_date: Optional[datetime] = None
    category: Optional[str] = Field(default=None, max_length=100)
    active: Optional[bool] = None
    tags: Optional[list[str]] = None


class ProductOut(BaseModel):
    id: UUID
    name: str
    description: str = ""
    price: float
    promotional_price: Optional[float] = None
    promotion_end_date: Optional[datetime] = None
    promotion_active: bool
    effective_price: float
    discount_percent: int
    image_url: str
    category: str
    active: bool
    tags: list[str] = []
    images: list[ProductImageOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageUrlsIn(BaseModel):
    urls: list[str]


class ImageOrderIn(BaseModel):
    image_ids: list[UUID]


class ImageMoveIn(BaseModel):
    from_index: int
    to_index: int


class CatalogFacetsOut(BaseModel):
    categories: list[str]
    tags: list[str]

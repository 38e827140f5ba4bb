from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from storefront.schemas.category import CategoryResponse, _clean_text


def _normalize_image_url(value: str) -> str:
    # Image locations are joined with "," in the catalog report.
    value = value.strip()
    if not value or any(ch.isspace() for ch in value):
        raise ValueError("image_url must be a non-empty location without whitespace")
    if "," in value:
        raise ValueError("image_url must not contain commas")
    if len(value) > 500:
        raise ValueError("image_url is too long (max 500 chars)")
    return value


class ProductImageCreate(BaseModel):
    image_url: str

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, value: str) -> str:
        return _normalize_image_url(value)


class ProductImageResponse(BaseModel):
    id: int
    product_id: int
    image_url: str

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    category_id: Optional[int] = Field(None, gt=0)
    image_urls: List[str] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = _clean_text(value, max_length=200)
        if not cleaned:
            raise ValueError("Product name cannot be empty")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value)

    @field_validator("image_urls")
    @classmethod
    def validate_image_urls(cls, value: List[str]) -> List[str]:
        return [_normalize_image_url(url) for url in value]


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, gt=0)
    clear_category: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        cleaned = _clean_text(value, max_length=200)
        if not cleaned:
            raise ValueError("Product name cannot be empty")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value)


class ProductListResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    stock_quantity: int
    category: Optional[CategoryResponse] = None
    primary_image: Optional[str] = None
    in_stock: bool

    class Config:
        from_attributes = True


class ProductDetailResponse(ProductListResponse):
    description: Optional[str]
    images: List[ProductImageResponse]
    created_at: datetime

    class Config:
        from_attributes = True

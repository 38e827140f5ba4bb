from typing import Optional

import bleach
from pydantic import BaseModel, Field, field_validator


def _clean_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return value
    cleaned = bleach.clean(value, tags=[], attributes={}, strip=True).strip()
    # bleach escapes "&", "<" and ">" as entities, so the text can grow
    if max_length is not None and len(cleaned) > max_length:
        raise ValueError(f"Text is too long after sanitizing (max {max_length} chars)")
    return cleaned


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = _clean_text(value, max_length=100)
        if not cleaned:
            raise ValueError("Category name cannot be empty")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value, max_length=2000)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        cleaned = _clean_text(value, max_length=100)
        if not cleaned:
            raise ValueError("Category name cannot be empty")
        return cleaned

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value, max_length=2000)


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
import re

from storefront.models.user import UserRole

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


class UserBase(BaseModel):
    username: str
    email: EmailStr

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError("Username must be 3-50 characters: letters, digits, '_', '.' or '-'")
        return v


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not re.search(r"[A-Za-z]", v):
            raise ValueError("Password must contain at least one letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v


class UserLogin(BaseModel):
    username: str
    password: str


class UserResponse(UserBase):
    id: int
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

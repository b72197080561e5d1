"""Authentication schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from tableside.core.rbac import UserRole
from tableside.core.sanitize import sanitize_text


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    """Merchant sign-up. Creates an owner account that becomes a new tenant."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=255)
    business_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", "business_name", mode="before")
    @classmethod
    def _sanitize(cls, v):
        return sanitize_text(v)


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    business_name: Optional[str] = None
    role: UserRole
    tenant_id: int

    model_config = ConfigDict(from_attributes=True)

"""Menu schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tableside.core.money import Money
from tableside.core.sanitize import sanitize_text


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""
    price: Money = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    photo: Optional[str] = None
    available: bool = True
    preparation_time: int = Field(0, ge=0)
    ingredients: Optional[str] = None
    allergens: Optional[str] = None
    popularity_score: int = Field(0, ge=0)

    @field_validator("name", "description", "category", "ingredients", "allergens", mode="before")
    @classmethod
    def _sanitize(cls, v):
        return sanitize_text(v)


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Money] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    photo: Optional[str] = None
    available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    ingredients: Optional[str] = None
    allergens: Optional[str] = None
    popularity_score: Optional[int] = Field(None, ge=0)

    @field_validator("name", "description", "category", "ingredients", "allergens", mode="before")
    @classmethod
    def _sanitize(cls, v):
        return sanitize_text(v)

    @field_validator("name", "price", "category", "available", "preparation_time", "popularity_score")
    @classmethod
    def _not_null(cls, v):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError("must not be null")
        return v


class MenuItemResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money
    category: str
    photo: Optional[str] = None
    available: bool = True
    preparation_time: int = 0
    ingredients: Optional[str] = None
    allergens: Optional[str] = None
    popularity_score: int = 0
    views: int = 0
    orders: int = 0
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MenuResponse(BaseModel):
    categories: List[str]
    items: List[MenuItemResponse]

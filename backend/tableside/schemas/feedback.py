"""Diner feedback schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tableside.core.sanitize import sanitize_text


class FeedbackCreate(BaseModel):
    order_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("comment", mode="before")
    @classmethod
    def _sanitize(cls, v):
        return sanitize_text(v)


class FeedbackRecord(BaseModel):
    order_id: Optional[int] = None
    table_number: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime

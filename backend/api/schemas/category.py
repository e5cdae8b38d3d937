"""
Category request and response schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

_HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=_HEX_COLOR)


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=_HEX_COLOR)
    order: Optional[int] = Field(None, ge=0)


class CategoryResponse(BaseModel):
    """Category with its announcement count."""

    id: str
    name: str
    slug: str
    color: str
    order: int = Field(validation_alias=AliasChoices("order", "sort_order"))
    announcement_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    total: int = Field(..., ge=0, description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number")
    size: int = Field(..., ge=1, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
    filters: Optional[Dict[str, Any]] = Field(None, description="Applied filters")


class MessageResponse(BaseModel):
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


def applied_filters(**filters) -> Optional[Dict[str, Any]]:
    """Filters that were actually given, or None"""
    applied = {key: value for key, value in filters.items() if value is not None}
    return applied or None

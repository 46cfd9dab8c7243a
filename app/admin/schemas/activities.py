from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.admin.schemas.common import PageMeta


class ActivityCreate(BaseModel):
    club_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(str_strip_whitespace=True)


class ActivityUpdate(BaseModel):
    """Fields left out or empty keep their current value"""

    club_id: int = Field(..., gt=0)
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class ActivityClose(BaseModel):
    club_id: int = Field(..., gt=0)
    close_reason: Optional[str] = Field(None, max_length=500)


class ActivityRead(BaseModel):
    id: int
    club_id: int
    creator_id: int
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: int
    close_reason: Optional[str] = None
    actual_end_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityListResponse(PageMeta):
    activities: list[ActivityRead]

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.admin.schemas.common import PageMeta


class ClubCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    president_id: int = Field(..., gt=0)
    teacher_id: Optional[int] = Field(None, gt=0)
    member_ids: list[int] = Field(default_factory=list)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("member_ids")
    @classmethod
    def validate_member_ids(cls, v):
        if any(member_id <= 0 for member_id in v):
            raise ValueError("Member ids must be positive")
        return v


class ClubStatusUpdate(BaseModel):
    is_enabled: bool
    disable_reason: Optional[str] = Field(None, max_length=500)


class ClubRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    president_id: int
    teacher_id: Optional[int] = None
    status: int
    disable_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClubListResponse(PageMeta):
    clubs: list[ClubRead]


class ClubMemberRead(BaseModel):
    id: int
    club_id: int
    user_id: int
    join_time: datetime
    status: int

    model_config = ConfigDict(from_attributes=True)


class MembershipCheck(BaseModel):
    club_id: int
    user_id: int
    is_member: bool


class MemberCount(BaseModel):
    club_id: int
    count: int

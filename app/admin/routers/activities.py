from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import PAGE_DEFAULT_SIZE
from app.core.database import get_session
from app.core.dependencies import get_current_user
from app.core.limits import limiter
from app.admin.crud.base import normalize_page, total_pages
from app.admin.models.users import User
from app.admin.schemas.activities import (
    ActivityClose,
    ActivityCreate,
    ActivityListResponse,
    ActivityRead,
    ActivityUpdate,
)
from app.admin.schemas.common import MessageResponse, applied_filters
from app.admin.services import activities as activity_service

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.post("/", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_activity(
    request: Request,
    activity: ActivityCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Create an activity for a club.

    Presidents and teachers may only create activities for their own club;
    admins for any club. The start must not be in the past or after the end.
    """
    return await activity_service.create_activity(
        db,
        activity.club_id,
        current_user.id,
        activity.title,
        activity.description,
        activity.start_time,
        activity.end_time,
    )


@router.get("/", response_model=ActivityListResponse)
@limiter.limit("30/minute")
async def get_activities_list(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(PAGE_DEFAULT_SIZE, ge=1, description="Items per page"),
    title: Optional[str] = Query(None, description="Partial title match"),
    club_id: Optional[int] = Query(None),
    activity_status: Optional[int] = Query(None, alias="status", ge=0, le=2),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    page, size = normalize_page(page, size)
    activities, total = await activity_service.list_activities(
        db, page, size, title, club_id, activity_status
    )
    return ActivityListResponse(
        activities=activities,
        total=total,
        page=page,
        size=size,
        pages=total_pages(total, size),
        filters=applied_filters(title=title, club_id=club_id, status=activity_status),
    )


@router.get("/all", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_all_activities(
    request: Request,
    activity_status: Optional[int] = Query(None, alias="status", ge=0, le=2),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if activity_status is not None:
        return await activity_service.list_activities_by_status(db, activity_status)
    return await activity_service.list_all_activities(db)


@router.get("/ongoing", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_ongoing_activities(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Open activities whose time window contains the current moment."""
    return await activity_service.list_ongoing(db)


@router.get("/ended", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_ended_activities(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Open activities past their end time. Explicitly closed ones are not listed."""
    return await activity_service.list_ended(db)


@router.get("/range", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_activities_in_range(
    request: Request,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Activities lying entirely inside the given window."""
    return await activity_service.list_activities_in_range(db, start_time, end_time)


@router.get("/by-club/{club_id}", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_club_activities(
    request: Request,
    club_id: int,
    activity_status: Optional[int] = Query(None, alias="status", ge=0, le=2),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if activity_status is not None:
        return await activity_service.list_activities_by_club_and_status(
            db, club_id, activity_status
        )
    return await activity_service.list_activities_by_club(db, club_id)


@router.get("/by-creator/{creator_id}", response_model=list[ActivityRead])
@limiter.limit("30/minute")
async def get_creator_activities(
    request: Request,
    creator_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await activity_service.list_activities_by_creator(db, creator_id)


@router.get("/{activity_id}", response_model=ActivityRead)
@limiter.limit("60/minute")
async def get_activity(
    request: Request,
    activity_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await activity_service.get_activity(db, activity_id)


@router.put("/{activity_id}", response_model=ActivityRead)
@limiter.limit("20/minute")
async def update_activity(
    request: Request,
    activity_id: int,
    data: ActivityUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit an activity; omitted or empty fields keep their value."""
    return await activity_service.edit_activity(
        db,
        activity_id,
        current_user.id,
        data.club_id,
        data.title,
        data.description,
        data.start_time,
        data.end_time,
    )


@router.post("/{activity_id}/close", response_model=ActivityRead)
@limiter.limit("20/minute")
async def close_activity(
    request: Request,
    activity_id: int,
    data: ActivityClose,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """End an activity now. An ended activity cannot be closed again."""
    return await activity_service.close_activity(
        db, data.club_id, activity_id, current_user.id, data.close_reason
    )


@router.delete("/{activity_id}", response_model=MessageResponse)
@limiter.limit("20/minute")
async def delete_activity(
    request: Request,
    activity_id: int,
    club_id: int = Query(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await activity_service.delete_activity(db, club_id, activity_id, current_user.id)
    return MessageResponse(
        message="Activity deleted", details={"activity_id": activity_id}
    )


@router.post("/{activity_id}/restore", response_model=ActivityRead)
@limiter.limit("10/minute")
async def restore_activity(
    request: Request,
    activity_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await activity_service.restore_activity(db, activity_id, current_user.id)

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.exceptions import (
    ActivityClubMismatchError,
    AlreadyEndedError,
    InvalidTimeRangeError,
    StartInPastError,
)
from app.core.logging_utils import log_business_event
from app.core.validations import as_naive_utc, is_blank
from app.admin.crud import activities as activities_crud
from app.admin.crud.base import get_by_id, restore, soft_delete
from app.admin.models.activities import Activity, ActivityStatus
from app.admin.models.clubs import Club
from app.admin.models.users import User
from app.admin.services.permissions import require_action, require_club_scope
from app.admin.services.users import get_user

logger = logging.getLogger(__name__)


async def get_activity(
    session: AsyncSession, activity_id: int, include_deleted: bool = False
) -> Activity:
    return await get_by_id(session, Activity, activity_id, "Activity", include_deleted)


async def _authorize(
    session: AsyncSession, operator_id: int, club_id: int, action: str
) -> User:
    """Presidents and above; presidents and teachers only inside their own club"""
    operator = await get_user(session, operator_id)
    require_action(operator, "manage_activity")
    require_club_scope(operator, club_id, action)
    return operator


async def _club_activity(
    session: AsyncSession, club_id: int, activity_id: int
) -> Activity:
    activity = await get_activity(session, activity_id)
    if activity.club_id != club_id:
        raise ActivityClubMismatchError(activity_id, club_id)
    return activity


def _check_range(start_time: datetime, end_time: datetime):
    if start_time > end_time:
        raise InvalidTimeRangeError(start_time, end_time)


async def create_activity(
    session: AsyncSession,
    club_id: int,
    creator_id: int,
    title: str,
    description: Optional[str],
    start_time: datetime,
    end_time: datetime,
) -> Activity:
    """Schedule a new ongoing activity for the club"""
    await _authorize(session, creator_id, club_id, "create activity in")
    await get_by_id(session, Club, club_id, "Club")

    start_time = as_naive_utc(start_time)
    end_time = as_naive_utc(end_time)
    _check_range(start_time, end_time)
    if start_time < utcnow():
        raise StartInPastError(start_time)

    activity = Activity(
        club_id=club_id,
        creator_id=creator_id,
        title=title.strip(),
        description=description,
        start_time=start_time,
        end_time=end_time,
        status=ActivityStatus.ONGOING,
    )
    session.add(activity)
    await session.commit()

    log_business_event(
        "activity_created",
        "activity",
        activity.id,
        {"club_id": club_id, "creator_id": creator_id},
    )
    return activity


async def edit_activity(
    session: AsyncSession,
    activity_id: int,
    operator_id: int,
    club_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> Activity:
    """Overwrite the fields that were given; the result must keep start <= end"""
    await _authorize(session, operator_id, club_id, "edit activity in")
    activity = await _club_activity(session, club_id, activity_id)

    new_start = as_naive_utc(start_time) or activity.start_time
    new_end = as_naive_utc(end_time) or activity.end_time
    _check_range(new_start, new_end)

    if not is_blank(title):
        activity.title = title.strip()
    if not is_blank(description):
        activity.description = description
    activity.start_time = new_start
    activity.end_time = new_end
    await session.commit()

    log_business_event(
        "activity_edited", "activity", activity.id, {"operator_id": operator_id}
    )
    return activity


async def close_activity(
    session: AsyncSession,
    club_id: int,
    activity_id: int,
    operator_id: int,
    close_reason: Optional[str] = None,
) -> Activity:
    await _authorize(session, operator_id, club_id, "close activity in")
    activity = await _club_activity(session, club_id, activity_id)

    if activity.status == ActivityStatus.ENDED:
        raise AlreadyEndedError(activity_id)

    activity.status = ActivityStatus.ENDED
    activity.actual_end_time = utcnow()
    if not is_blank(close_reason):
        activity.close_reason = close_reason.strip()
    await session.commit()

    log_business_event(
        "activity_closed",
        "activity",
        activity.id,
        {"operator_id": operator_id, "reason": activity.close_reason},
    )
    return activity


async def delete_activity(
    session: AsyncSession, club_id: int, activity_id: int, operator_id: int
) -> Activity:
    await _authorize(session, operator_id, club_id, "delete activity in")
    activity = await _club_activity(session, club_id, activity_id)

    soft_delete(activity)
    await session.commit()

    log_business_event(
        "activity_deleted", "activity", activity.id, {"operator_id": operator_id}
    )
    return activity


async def restore_activity(
    session: AsyncSession, activity_id: int, operator_id: int
) -> Activity:
    operator = await get_user(session, operator_id)
    require_action(operator, "restore")

    activity = await restore(session, Activity, activity_id, "Activity")
    await session.commit()
    log_business_event(
        "activity_restored", "activity", activity.id, {"operator_id": operator_id}
    )
    return activity


async def list_all_activities(session: AsyncSession):
    return await activities_crud.get_all_activities(session)


async def list_activities_by_club(session: AsyncSession, club_id: int):
    return await activities_crud.get_activities_by_club(session, club_id)


async def list_activities_by_creator(session: AsyncSession, creator_id: int):
    return await activities_crud.get_activities_by_creator(session, creator_id)


async def list_activities_by_status(session: AsyncSession, status: int):
    return await activities_crud.get_activities_by_status(session, status)


async def list_activities_by_club_and_status(
    session: AsyncSession, club_id: int, status: int
):
    return await activities_crud.get_activities_by_club_and_status(
        session, club_id, status
    )


async def list_activities_in_range(
    session: AsyncSession, start_time: datetime, end_time: datetime
):
    return await activities_crud.get_activities_in_range(
        session, as_naive_utc(start_time), as_naive_utc(end_time)
    )


async def list_ongoing(session: AsyncSession):
    """Status ONGOING and now within [start, end]"""
    return await activities_crud.get_ongoing_activities(session, utcnow())


async def list_ended(session: AsyncSession):
    """Status ONGOING but already past their end time"""
    return await activities_crud.get_ended_activities(session, utcnow())


async def list_activities(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    title: Optional[str] = None,
    club_id: Optional[int] = None,
    status: Optional[int] = None,
):
    return await activities_crud.get_activities_paginated(
        session, page, size, title, club_id, status
    )

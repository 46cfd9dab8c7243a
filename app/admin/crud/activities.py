from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin.crud.base import active_query, find_all, paginate
from app.admin.models.activities import Activity, ActivityStatus


async def get_all_activities(session: AsyncSession):
    return await find_all(session, Activity, order_by=Activity.start_time)


async def get_activities_by_club(session: AsyncSession, club_id: int):
    return await find_all(
        session, Activity, Activity.club_id == club_id, order_by=Activity.start_time
    )


async def get_activities_by_creator(session: AsyncSession, creator_id: int):
    return await find_all(
        session, Activity, Activity.creator_id == creator_id, order_by=Activity.start_time
    )


async def get_activities_by_status(session: AsyncSession, status: int):
    return await find_all(
        session, Activity, Activity.status == status, order_by=Activity.start_time
    )


async def get_activities_by_club_and_status(
    session: AsyncSession, club_id: int, status: int
):
    return await find_all(
        session,
        Activity,
        Activity.club_id == club_id,
        Activity.status == status,
        order_by=Activity.start_time,
    )


async def get_activities_in_range(
    session: AsyncSession, start: datetime, end: datetime
):
    """Activities lying entirely inside [start, end]"""
    return await find_all(
        session,
        Activity,
        Activity.start_time >= start,
        Activity.end_time <= end,
        order_by=Activity.start_time,
    )


async def get_ongoing_activities(session: AsyncSession, now: datetime):
    return await find_all(
        session,
        Activity,
        Activity.status == ActivityStatus.ONGOING,
        Activity.start_time <= now,
        Activity.end_time >= now,
        order_by=Activity.start_time,
    )


async def get_ended_activities(session: AsyncSession, now: datetime):
    """Past their end time but never closed explicitly"""
    return await find_all(
        session,
        Activity,
        Activity.status == ActivityStatus.ONGOING,
        Activity.end_time < now,
        order_by=Activity.end_time.desc(),
    )


async def get_activities_paginated(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    title: Optional[str] = None,
    club_id: Optional[int] = None,
    status: Optional[int] = None,
):
    conditions = []
    if title:
        conditions.append(Activity.title.ilike(f"%{title.strip()}%"))
    if club_id is not None:
        conditions.append(Activity.club_id == club_id)
    if status is not None:
        conditions.append(Activity.status == status)

    query = active_query(Activity)
    if conditions:
        query = query.where(and_(*conditions))

    return await paginate(
        session, query.order_by(Activity.start_time.desc(), Activity.id.desc()), page, size
    )

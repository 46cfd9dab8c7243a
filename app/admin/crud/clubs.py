from typing import Optional

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_operation
from app.admin.crud.base import active_query, count_active, find_all, paginate
from app.admin.models.clubs import Club
from app.admin.models.club_members import ClubMember, MemberStatus
from app.admin.models.users import User


@db_operation
async def find_club_by_title(session: AsyncSession, title: str) -> Optional[Club]:
    result = await session.execute(active_query(Club).where(Club.title == title))
    return result.scalars().first()


async def get_all_clubs(session: AsyncSession):
    return await find_all(session, Club)


async def get_clubs_by_status(session: AsyncSession, status: int):
    return await find_all(session, Club, Club.status == status)


async def get_clubs_by_president(session: AsyncSession, president_id: int):
    return await find_all(session, Club, Club.president_id == president_id)


async def get_clubs_paginated(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    title: Optional[str] = None,
    status: Optional[int] = None,
):
    conditions = []
    if title:
        conditions.append(Club.title.ilike(f"%{title.strip()}%"))
    if status is not None:
        conditions.append(Club.status == status)

    query = active_query(Club)
    if conditions:
        query = query.where(and_(*conditions))

    query = query.order_by(Club.created_at.desc(), Club.id.desc())
    return await paginate(session, query, page, size)


@db_operation
async def find_membership(
    session: AsyncSession, club_id: int, user_id: int
) -> Optional[ClubMember]:
    """The (club, user) membership row in any status"""
    result = await session.execute(
        active_query(ClubMember)
        .where(ClubMember.club_id == club_id, ClubMember.user_id == user_id)
        .order_by(ClubMember.id.desc())
    )
    return result.scalars().first()


async def get_club_members(session: AsyncSession, club_id: int):
    """Every membership row of the club, exited ones included"""
    return await find_all(session, ClubMember, ClubMember.club_id == club_id)


async def get_user_memberships(session: AsyncSession, user_id: int):
    """Every membership row of the user, exited ones included"""
    return await find_all(session, ClubMember, ClubMember.user_id == user_id)


async def is_user_in_club(session: AsyncSession, club_id: int, user_id: int) -> bool:
    count = await count_active(
        session,
        ClubMember,
        ClubMember.club_id == club_id,
        ClubMember.user_id == user_id,
        ClubMember.status == MemberStatus.ACTIVE,
    )
    return count > 0


async def count_club_members(session: AsyncSession, club_id: int) -> int:
    return await count_active(
        session,
        ClubMember,
        ClubMember.club_id == club_id,
        ClubMember.status == MemberStatus.ACTIVE,
    )


async def get_active_memberships(session: AsyncSession, club_id: int):
    return await find_all(
        session,
        ClubMember,
        ClubMember.club_id == club_id,
        ClubMember.status == MemberStatus.ACTIVE,
    )


async def get_affiliated_users(session: AsyncSession, club_id: int):
    """Users whose parent club is ``club_id``"""
    return await find_all(session, User, User.parent_club_id == club_id)

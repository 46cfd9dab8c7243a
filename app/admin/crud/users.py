from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_operation
from app.admin.crud.base import active_query, find_all, paginate
from app.admin.models.users import User


@db_operation
async def find_user_by_username(
    session: AsyncSession, username: str, include_deleted: bool = False
) -> Optional[User]:
    result = await session.execute(
        active_query(User, include_deleted).where(User.username == username)
    )
    return result.scalar_one_or_none()


async def _exists(session: AsyncSession, *conditions) -> bool:
    query = select(User.id).where(User.is_deleted.is_(False), *conditions).limit(1)
    result = await session.execute(query)
    return result.first() is not None


@db_operation
async def username_exists(session: AsyncSession, username: str) -> bool:
    return await _exists(session, User.username == username)


@db_operation
async def email_exists(session: AsyncSession, email: str) -> bool:
    return await _exists(session, User.email == email)


@db_operation
async def phone_exists(session: AsyncSession, phone: str) -> bool:
    return await _exists(session, User.phone == phone)


async def get_users_paginated(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    username: Optional[str] = None,
    real_name: Optional[str] = None,
    role_id: Optional[int] = None,
    status: Optional[int] = None,
):
    """Users filtered by partial username / real name and exact role / status"""
    conditions = []

    if username:
        conditions.append(User.username.ilike(f"%{username.strip()}%"))

    if real_name:
        conditions.append(User.real_name.ilike(f"%{real_name.strip()}%"))

    if role_id is not None:
        conditions.append(User.role_id == role_id)

    if status is not None:
        conditions.append(User.status == status)

    query = active_query(User)
    if conditions:
        query = query.where(and_(*conditions))

    return await paginate(session, query.order_by(User.id), page, size)


async def get_all_users(session: AsyncSession):
    return await find_all(session, User)


async def get_users_by_role(session: AsyncSession, role_id: int):
    return await find_all(session, User, User.role_id == role_id)


async def get_users_by_club(session: AsyncSession, club_id: int):
    return await find_all(session, User, User.parent_club_id == club_id)

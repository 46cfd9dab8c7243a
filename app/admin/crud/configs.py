from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_operation
from app.admin.crud.base import active_query, find_all, paginate
from app.admin.models.configs import Config


@db_operation
async def find_config_by_key(
    session: AsyncSession, config_key: str, include_deleted: bool = False
) -> Optional[Config]:
    result = await session.execute(
        active_query(Config, include_deleted).where(Config.config_key == config_key)
    )
    return result.scalar_one_or_none()


@db_operation
async def find_configs_by_ids(session: AsyncSession, ids):
    result = await session.execute(
        active_query(Config).where(Config.id.in_(list(ids))).order_by(Config.id)
    )
    return result.scalars().all()


async def get_all_configs(session: AsyncSession):
    return await find_all(session, Config, order_by=Config.config_key)


async def get_configs_by_group(session: AsyncSession, group: str):
    return await find_all(
        session, Config, Config.config_group == group, order_by=Config.config_key
    )


async def get_configs_by_type(session: AsyncSession, config_type: str):
    return await find_all(
        session, Config, Config.config_type == config_type, order_by=Config.config_key
    )


@db_operation
async def get_config_groups(session: AsyncSession):
    result = await session.execute(
        select(Config.config_group)
        .where(Config.is_deleted.is_(False))
        .distinct()
        .order_by(Config.config_group)
    )
    return [row[0] for row in result.all()]


async def get_configs_paginated(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    config_key: Optional[str] = None,
    config_group: Optional[str] = None,
    config_type: Optional[str] = None,
):
    conditions = []
    if config_key:
        conditions.append(Config.config_key.ilike(f"%{config_key.strip()}%"))
    if config_group:
        conditions.append(Config.config_group == config_group)
    if config_type:
        conditions.append(Config.config_type == config_type)

    query = active_query(Config)
    if conditions:
        query = query.where(and_(*conditions))

    return await paginate(session, query.order_by(Config.config_key), page, size)

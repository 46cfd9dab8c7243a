"""
Query helpers shared by every table: the soft-delete predicate, lookups by id,
soft delete / restore and pagination.
"""

import math
from typing import Optional, Sequence, Tuple, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.config import PAGE_DEFAULT_SIZE, PAGE_MAX_SIZE
from app.core.database import db_operation
from app.core.exceptions import NotFoundError


def active_query(model: Type, include_deleted: bool = False) -> Select:
    """``SELECT model`` filtered to non-deleted rows unless include_deleted"""
    query = select(model)
    if not include_deleted:
        query = query.where(model.is_deleted.is_(False))
    return query


def normalize_page(page: Optional[int], size: Optional[int]) -> Tuple[int, int]:
    """1-based page, size clamped to [1, PAGE_MAX_SIZE]"""
    page = page if page and page > 0 else 1
    size = size if size and size > 0 else PAGE_DEFAULT_SIZE
    return page, min(size, PAGE_MAX_SIZE)


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if size else 0


@db_operation
async def paginate(
    session: AsyncSession, query: Select, page: int = 1, size: int = PAGE_DEFAULT_SIZE
) -> Tuple[Sequence, int]:
    """Run ``query`` for one page; returns (items, total)"""
    page, size = normalize_page(page, size)

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    result = await session.execute(query.offset((page - 1) * size).limit(size))
    return result.scalars().all(), total


@db_operation
async def find_by_id(
    session: AsyncSession, model: Type, entity_id: int, include_deleted: bool = False
):
    query = active_query(model, include_deleted).where(model.id == entity_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_by_id(
    session: AsyncSession,
    model: Type,
    entity_id: int,
    resource: str,
    include_deleted: bool = False,
):
    """Like find_by_id but raises NotFoundError"""
    entity = await find_by_id(session, model, entity_id, include_deleted)
    if entity is None:
        raise NotFoundError(resource, str(entity_id))
    return entity


@db_operation
async def find_all(session: AsyncSession, model: Type, *conditions, order_by=None):
    query = active_query(model).where(*conditions)
    query = query.order_by(order_by if order_by is not None else model.id)
    result = await session.execute(query)
    return result.scalars().all()


@db_operation
async def count_active(session: AsyncSession, model: Type, *conditions) -> int:
    query = (
        select(func.count(model.id))
        .where(model.is_deleted.is_(False))
        .where(*conditions)
    )
    return (await session.execute(query)).scalar() or 0


def soft_delete(entity) -> None:
    """Mark loaded entity deleted; the caller commits"""
    entity.is_deleted = True


async def restore(session: AsyncSession, model: Type, entity_id: int, resource: str):
    """Clear the deleted flag of a row; the caller commits"""
    entity = await get_by_id(session, model, entity_id, resource, include_deleted=True)
    entity.is_deleted = False
    return entity

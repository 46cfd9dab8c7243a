from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_operation
from app.admin.crud.base import active_query
from app.admin.models.tokens import Token, TokenStatus


@db_operation
async def find_token_by_value(
    session: AsyncSession, token_value: str
) -> Optional[Token]:
    result = await session.execute(
        active_query(Token).where(Token.token_value == token_value)
    )
    return result.scalar_one_or_none()


@db_operation
async def expire_user_tokens(session: AsyncSession, user_id: int) -> int:
    """Set every valid token of the user to EXPIRED; returns the row count"""
    result = await session.execute(
        update(Token)
        .where(
            Token.user_id == user_id,
            Token.status == TokenStatus.VALID,
            Token.is_deleted.is_(False),
        )
        .values(status=TokenStatus.EXPIRED)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


@db_operation
async def expire_overdue_tokens(session: AsyncSession, now: datetime) -> int:
    result = await session.execute(
        update(Token)
        .where(
            Token.expires_at <= now,
            Token.status == TokenStatus.VALID,
            Token.is_deleted.is_(False),
        )
        .values(status=TokenStatus.EXPIRED)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


@db_operation
async def list_user_tokens(
    session: AsyncSession, user_id: int, valid_only: bool = False, now: datetime = None
):
    query = active_query(Token).where(Token.user_id == user_id)
    if valid_only:
        query = query.where(Token.status == TokenStatus.VALID)
        if now is not None:
            query = query.where(Token.expires_at > now)
    result = await session.execute(query.order_by(Token.created_at.desc(), Token.id.desc()))
    return result.scalars().all()

"""
Bearer token lifecycle.

A token starts VALID with ``is_reference`` set. It becomes EXPIRED when the
user logs out, logs in again, changes password, when it is found past its
expiry during validation, or when the periodic sweep runs. EXPIRED is final.
A reference token may be exchanged exactly once for a new one.
"""

import logging
import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import TOKEN_EXPIRE_HOURS
from app.core.database import utcnow, with_db_transaction
from app.core.exceptions import (
    TokenExpiredError,
    TokenNotFoundError,
    TokenNotReferenceableError,
)
from app.core.logging_utils import log_business_event
from app.admin.crud.tokens import (
    expire_overdue_tokens,
    expire_user_tokens,
    find_token_by_value,
    list_user_tokens,
)
from app.admin.models.tokens import Token, TokenStatus

logger = logging.getLogger(__name__)


def new_token_value() -> str:
    return uuid.uuid4().hex


async def revoke_all_for_user(session: AsyncSession, user_id: int) -> int:
    """Expire every valid token of the user; the caller commits"""
    count = await expire_user_tokens(session, user_id)
    if count:
        logger.debug(f"Expired {count} token(s) of user {user_id}")
    return count


async def issue_token(session: AsyncSession, user_id: int) -> Token:
    """
    Create a fresh reference token for the user after expiring all of
    their existing tokens. Flushes but does not commit.
    """
    await revoke_all_for_user(session, user_id)

    token = Token(
        token_value=new_token_value(),
        user_id=user_id,
        expires_at=utcnow() + timedelta(hours=TOKEN_EXPIRE_HOURS),
        status=TokenStatus.VALID,
        is_reference=True,
    )
    session.add(token)
    await session.flush()

    log_business_event("token_issued", "token", token.id, {"user_id": user_id})
    return token


async def _load(session: AsyncSession, token_value: str) -> Token:
    token = await find_token_by_value(session, token_value)
    if token is None:
        raise TokenNotFoundError()
    return token


async def validate_token(session: AsyncSession, token_value: str) -> Token:
    """
    Return the token if it is usable.

    A token found past ``expires_at`` is marked EXPIRED and committed before
    TokenExpiredError is raised.
    """
    token = await _load(session, token_value)

    if token.status != TokenStatus.VALID:
        raise TokenExpiredError(token.id)

    if token.expires_at < utcnow():
        token.status = TokenStatus.EXPIRED
        await session.commit()
        logger.info(
            "Token expired on validation",
            extra={"token_id": token.id, "user_id": token.user_id},
        )
        raise TokenExpiredError(token.id)

    return token


async def refresh_token(session: AsyncSession, old_token_value: str) -> Token:
    """Exchange a valid reference token for a new one"""
    old = await _load(session, old_token_value)

    if not old.is_reference:
        raise TokenNotReferenceableError()

    await validate_token(session, old_token_value)

    async def _refresh(session: AsyncSession):
        old.is_reference = False
        return await issue_token(session, old.user_id)

    new = await with_db_transaction(session, _refresh)
    log_business_event(
        "token_refreshed", "token", new.id, {"user_id": new.user_id, "previous": old.id}
    )
    return new


async def revoke_token(session: AsyncSession, token_value: str) -> Token:
    """Logout: expire a single token"""

    async def _revoke(session: AsyncSession):
        token = await _load(session, token_value)
        token.status = TokenStatus.EXPIRED
        return token

    token = await with_db_transaction(session, _revoke)
    log_business_event("token_revoked", "token", token.id, {"user_id": token.user_id})
    return token


async def sweep_expired(session: AsyncSession) -> int:
    """Expire every valid token past its expiry time; returns how many"""
    count = await with_db_transaction(
        session, lambda s: expire_overdue_tokens(s, utcnow())
    )
    logger.info(f"Token sweep expired {count} token(s)", extra={"expired": count})
    if count:
        log_business_event("tokens_swept", "token", 0, {"expired": count})
    return count


async def list_valid_tokens(session: AsyncSession, user_id: int):
    return await list_user_tokens(session, user_id, valid_only=True, now=utcnow())


async def list_tokens(session: AsyncSession, user_id: int):
    return await list_user_tokens(session, user_id)

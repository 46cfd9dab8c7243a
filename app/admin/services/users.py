import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import with_db_transaction
from app.core.exceptions import (
    ForbiddenRoleError,
    InvalidCredentialsError,
    NotFoundError,
    PasswordMismatchError,
    UserDisabledError,
    UsernameTakenError,
)
from app.core.logging_utils import log_business_event
from app.core.validations import is_blank
from app.admin.crud import users as users_crud
from app.admin.crud.base import get_by_id, restore, soft_delete
from app.admin.models.roles import RoleType
from app.admin.models.tokens import Token
from app.admin.models.users import NO_CLUB, User, UserStatus
from app.admin.services import tokens as token_service
from app.admin.services.permissions import (
    parse_role,
    require_action,
    require_grant,
    require_self_or_action,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("email", "phone", "real_name", "gender", "remark")


async def get_user(
    session: AsyncSession, user_id: int, include_deleted: bool = False
) -> User:
    return await get_by_id(session, User, user_id, "User", include_deleted)


async def get_user_by_username(session: AsyncSession, username: str) -> User:
    user = await users_crud.find_user_by_username(session, username)
    if user is None:
        raise NotFoundError("User", username)
    return user


async def login(session: AsyncSession, username: str, password_hash: str) -> Token:
    """
    Exchange username and password hash for a new token.

    The hash is compared verbatim; hashing happens on the client.
    """
    user = await users_crud.find_user_by_username(session, username)
    if user is None or user.password_hash != password_hash:
        logger.info("Login failed", extra={"username": username})
        raise InvalidCredentialsError()

    if user.status != UserStatus.ENABLED:
        raise UserDisabledError(username)

    token = await with_db_transaction(
        session, lambda s: token_service.issue_token(s, user.id)
    )
    log_business_event("user_logged_in", "user", user.id)
    return token


async def _create_user(
    session: AsyncSession,
    username: str,
    password_hash: str,
    gender: Optional[int],
    role: RoleType,
) -> Token:
    if await users_crud.username_exists(session, username):
        raise UsernameTakenError(username)

    async def _register(session: AsyncSession):
        user = User(
            username=username,
            password_hash=password_hash,
            gender=gender if gender is not None else 0,
            points=0,
            parent_club_id=NO_CLUB,
            role_id=role,
            status=UserStatus.ENABLED,
        )
        session.add(user)
        await session.flush()
        return await token_service.issue_token(session, user.id)

    token = await with_db_transaction(session, _register)
    log_business_event(
        "user_registered", "user", token.user_id, {"username": username, "role_id": int(role)}
    )
    return token


async def register(
    session: AsyncSession,
    username: str,
    password_hash: str,
    gender: Optional[int] = None,
) -> Token:
    """Self-registration as an unaffiliated student"""
    return await _create_user(
        session, username, password_hash, gender, RoleType.UNAFFILIATED
    )


async def register_plus(
    session: AsyncSession,
    username: str,
    password_hash: str,
    gender: Optional[int],
    role_id: Optional[int],
    operator_id: int,
) -> Token:
    """Registration of another account, possibly with an elevated role"""
    operator = await get_user(session, operator_id)

    role = parse_role(role_id) if role_id is not None else RoleType.UNAFFILIATED
    if role == RoleType.SUPER_ADMIN:
        raise ForbiddenRoleError(role)
    if role >= RoleType.TEACHER:
        require_action(operator, "register_staff")

    return await _create_user(session, username, password_hash, gender, role)


async def change_profile(
    session: AsyncSession, user_id: int, patch: Dict[str, Any]
) -> User:
    """Apply non-empty profile fields; everything else is left untouched"""
    user = await get_user(session, user_id)

    changed = []
    for field in PROFILE_FIELDS:
        value = patch.get(field)
        if is_blank(value):
            continue
        setattr(user, field, value.strip() if isinstance(value, str) else value)
        changed.append(field)

    if changed:
        await session.commit()
        log_business_event("profile_changed", "user", user.id, {"fields": changed})
    return user


async def change_password(
    session: AsyncSession,
    user_id: int,
    old_password_hash: str,
    new_password_hash: str,
    operator_id: int,
) -> User:
    """Change the password and revoke every token of the target user"""
    operator = await get_user(session, operator_id)
    require_self_or_action(operator, user_id, "manage_other_user")

    user = await get_user(session, user_id)
    if user.password_hash != old_password_hash:
        raise PasswordMismatchError()

    async def _change(session: AsyncSession):
        user.password_hash = new_password_hash
        return await token_service.revoke_all_for_user(session, user.id)

    revoked = await with_db_transaction(session, _change)
    log_business_event(
        "password_changed",
        "user",
        user.id,
        {"operator_id": operator_id, "revoked_tokens": revoked},
    )
    return user


async def change_permission(
    session: AsyncSession, target_id: int, operator_id: int, target_role: int
) -> User:
    """
    Set the role of a user. The operator needs the grant level of the target
    role; the user's parent club is left as it is.
    """
    operator = await get_user(session, operator_id)
    role = require_grant(operator, target_role)

    user = await get_user(session, target_id)
    previous = user.role_id
    user.role_id = role
    await session.commit()

    log_business_event(
        "role_changed",
        "user",
        user.id,
        {"from": previous, "to": int(role), "operator_id": operator_id},
    )
    return user


async def delete_user(session: AsyncSession, user_id: int, operator_id: int) -> User:
    """Soft delete the user row only; memberships and clubs are not touched"""
    operator = await get_user(session, operator_id)
    require_self_or_action(operator, user_id, "manage_other_user")

    user = await get_user(session, user_id)
    soft_delete(user)
    await session.commit()

    log_business_event("user_deleted", "user", user.id, {"operator_id": operator_id})
    return user


async def restore_user(session: AsyncSession, user_id: int, operator_id: int) -> User:
    operator = await get_user(session, operator_id)
    require_action(operator, "restore")

    user = await restore(session, User, user_id, "User")
    await session.commit()
    log_business_event("user_restored", "user", user.id, {"operator_id": operator_id})
    return user


async def logout(session: AsyncSession, token_value: str) -> Token:
    return await token_service.revoke_token(session, token_value)


async def refresh_token(session: AsyncSession, token_value: str) -> Token:
    return await token_service.refresh_token(session, token_value)


async def list_users(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    username: Optional[str] = None,
    real_name: Optional[str] = None,
    role_id: Optional[int] = None,
    status: Optional[int] = None,
):
    return await users_crud.get_users_paginated(
        session, page, size, username, real_name, role_id, status
    )


async def list_all_users(session: AsyncSession):
    return await users_crud.get_all_users(session)


async def list_users_by_role(session: AsyncSession, role_id: int):
    return await users_crud.get_users_by_role(session, role_id)


async def list_users_by_club(session: AsyncSession, club_id: int):
    return await users_crud.get_users_by_club(session, club_id)


async def username_exists(session: AsyncSession, username: str) -> bool:
    return await users_crud.username_exists(session, username)


async def email_exists(session: AsyncSession, email: str) -> bool:
    return await users_crud.email_exists(session, email)


async def phone_exists(session: AsyncSession, phone: str) -> bool:
    return await users_crud.phone_exists(session, phone)

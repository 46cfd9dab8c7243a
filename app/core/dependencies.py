from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.exceptions import (
    AuthenticationError,
    TokenNotFoundError,
    UserDisabledError,
)
from app.admin.crud.base import find_by_id
from app.admin.models.tokens import Token
from app.admin.models.users import User, UserStatus
from app.admin.services.permissions import require_action
from app.admin.services.tokens import validate_token

security = HTTPBearer(
    scheme_name="Bearer token",
    description="Token returned by login, register or refresh",
    auto_error=False,
)


async def get_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_session),
) -> Token:
    """Validate the bearer token of the request"""
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError("Authentication token is required")

    try:
        return await validate_token(db, credentials.credentials.strip())
    except TokenNotFoundError:
        raise AuthenticationError("Invalid authentication token")


async def get_current_user(
    token: Token = Depends(get_current_token),
    db: AsyncSession = Depends(get_session),
) -> User:
    """The operator of the request, re-read on every call"""
    user = await find_by_id(db, User, token.user_id)
    if user is None:
        raise AuthenticationError("Token owner no longer exists")
    if user.status != UserStatus.ENABLED:
        raise UserDisabledError(user.username)
    return user


def require_permission(action: str):
    """
    Dependency factory checking the operator against the role policy.

    Usage:
    @router.post("/configs")
    async def create(user: User = Depends(require_permission("manage_config"))):
        ...
    """

    async def permission_dependency(user: User = Depends(get_current_user)) -> User:
        require_action(user, action)
        return user

    return permission_dependency

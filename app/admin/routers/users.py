from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import PAGE_DEFAULT_SIZE
from app.core.database import get_session
from app.core.dependencies import get_current_token, get_current_user
from app.core.limits import limiter
from app.admin.crud.base import normalize_page, total_pages
from app.admin.models.tokens import Token
from app.admin.models.users import User
from app.admin.schemas.common import MessageResponse, applied_filters
from app.admin.schemas.users import (
    ExistsResponse,
    LoginRequest,
    PasswordChange,
    PermissionChange,
    ProfileUpdate,
    RegisterPlusRequest,
    RegisterRequest,
    TokenInfo,
    TokenRead,
    TokenRefreshRequest,
    UserListResponse,
    UserRead,
)
from app.admin.services import tokens as token_service
from app.admin.services import users as user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/login", response_model=TokenRead)
@limiter.limit("10/minute")
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Log in with username and password hash.

    Every earlier token of the user is expired; the returned token is the only valid one.
    """
    return await user_service.login(db, credentials.username, credentials.password_hash)


@router.post("/register", response_model=TokenRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_session),
):
    """Create an unaffiliated student account and log it in."""
    return await user_service.register(db, data.username, data.password_hash, data.gender)


@router.post(
    "/register-plus", response_model=TokenRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("20/minute")
async def register_plus(
    request: Request,
    data: RegisterPlusRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Create an account with a chosen role on behalf of the authenticated user.

    - Teacher and admin accounts require an admin operator
    - Super admin accounts can never be created
    """
    return await user_service.register_plus(
        db,
        data.username,
        data.password_hash,
        data.gender,
        data.role_id,
        current_user.id,
    )


@router.post("/logout", response_model=MessageResponse)
@limiter.limit("30/minute")
async def logout(
    request: Request,
    token: Token = Depends(get_current_token),
    db: AsyncSession = Depends(get_session),
):
    """Expire the bearer token used for this request."""
    await user_service.logout(db, token.token_value)
    return MessageResponse(message="Logged out")


@router.post("/refresh", response_model=TokenRead)
@limiter.limit("10/minute")
async def refresh(
    request: Request,
    data: TokenRefreshRequest,
    db: AsyncSession = Depends(get_session),
):
    """Exchange a valid token for a new one. A token can be exchanged only once."""
    return await user_service.refresh_token(db, data.token)


@router.get("/me", response_model=UserRead)
@limiter.limit("60/minute")
async def get_me(request: Request, current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserRead)
@limiter.limit("10/minute")
async def update_me(
    request: Request,
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Update the profile of the authenticated user; empty fields are ignored."""
    return await user_service.change_profile(db, current_user.id, profile.model_dump())


@router.get("/me/tokens", response_model=list[TokenInfo])
@limiter.limit("30/minute")
async def get_my_tokens(
    request: Request,
    all_tokens: bool = Query(False, description="Include expired tokens"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if all_tokens:
        return await token_service.list_tokens(db, current_user.id)
    return await token_service.list_valid_tokens(db, current_user.id)


@router.get("/exists", response_model=ExistsResponse)
@limiter.limit("30/minute")
async def check_exists(
    request: Request,
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_session),
):
    """Report whether the given username, email or phone is already in use."""
    return ExistsResponse(
        username=await user_service.username_exists(db, username) if username else None,
        email=await user_service.email_exists(db, email) if email else None,
        phone=await user_service.phone_exists(db, phone) if phone else None,
    )


@router.get("/", response_model=UserListResponse)
@limiter.limit("20/minute")
async def get_users_list(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(PAGE_DEFAULT_SIZE, ge=1, description="Items per page"),
    username: Optional[str] = Query(None, description="Partial username match"),
    real_name: Optional[str] = Query(None, description="Partial real name match"),
    role_id: Optional[int] = Query(None, ge=0, le=5),
    user_status: Optional[int] = Query(None, alias="status", ge=0, le=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    page, size = normalize_page(page, size)
    users, total = await user_service.list_users(
        db, page, size, username, real_name, role_id, user_status
    )
    return UserListResponse(
        users=users,
        total=total,
        page=page,
        size=size,
        pages=total_pages(total, size),
        filters=applied_filters(
            username=username, real_name=real_name, role_id=role_id, status=user_status
        ),
    )


@router.get("/all", response_model=list[UserRead])
@limiter.limit("10/minute")
async def get_all_users(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await user_service.list_all_users(db)


@router.get("/by-role/{role_id}", response_model=list[UserRead])
@limiter.limit("30/minute")
async def get_users_by_role(
    request: Request,
    role_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await user_service.list_users_by_role(db, role_id)


@router.get("/by-club/{club_id}", response_model=list[UserRead])
@limiter.limit("30/minute")
async def get_users_by_club(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Users whose parent club is the given club."""
    return await user_service.list_users_by_club(db, club_id)


@router.get("/by-username/{username}", response_model=UserRead)
@limiter.limit("30/minute")
async def get_user_by_username(
    request: Request,
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await user_service.get_user_by_username(db, username)


@router.get("/{user_id}", response_model=UserRead)
@limiter.limit("30/minute")
async def get_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await user_service.get_user(db, user_id)


@router.put("/{user_id}/password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def change_password(
    request: Request,
    user_id: int,
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Change a password. Users change their own; admins may change anyone's.

    All tokens of the user are expired, so they have to log in again.
    """
    await user_service.change_password(
        db, user_id, data.old_password_hash, data.new_password_hash, current_user.id
    )
    return MessageResponse(message="Password changed", details={"user_id": user_id})


@router.put("/{user_id}/role", response_model=UserRead)
@limiter.limit("20/minute")
async def change_role(
    request: Request,
    user_id: int,
    data: PermissionChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Assign a role to a user.

    - Unaffiliated, member and president: teacher or higher
    - Teacher: admin or higher
    - Admin: super admin
    - Super admin: never
    """
    return await user_service.change_permission(
        db, user_id, current_user.id, data.target_role
    )


@router.delete("/{user_id}", response_model=MessageResponse)
@limiter.limit("10/minute")
async def delete_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Soft delete a user. Users may delete themselves; admins anyone."""
    await user_service.delete_user(db, user_id, current_user.id)
    return MessageResponse(message="User deleted", details={"user_id": user_id})


@router.post("/{user_id}/restore", response_model=UserRead)
@limiter.limit("10/minute")
async def restore_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await user_service.restore_user(db, user_id, current_user.id)

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import PAGE_DEFAULT_SIZE
from app.core.database import get_session
from app.core.dependencies import get_current_user
from app.core.limits import limiter
from app.admin.crud.base import normalize_page, total_pages
from app.admin.models.users import User
from app.admin.schemas.clubs import (
    ClubCreate,
    ClubListResponse,
    ClubMemberRead,
    ClubRead,
    ClubStatusUpdate,
    MemberCount,
    MembershipCheck,
)
from app.admin.schemas.common import MessageResponse, applied_filters
from app.admin.services import clubs as club_service

router = APIRouter(prefix="/clubs", tags=["Clubs"])


@router.post("/", response_model=ClubRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_club(
    request: Request,
    club: ClubCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a club (admin or higher).

    - **president_id** becomes the club's president
    - **member_ids** become members; every id must exist
    - **teacher_id** must belong to a teacher or higher
    """
    return await club_service.create_club(
        db,
        club.title,
        club.description,
        club.president_id,
        club.teacher_id,
        club.member_ids,
        current_user.id,
    )


@router.get("/", response_model=ClubListResponse)
@limiter.limit("30/minute")
async def get_clubs_list(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(PAGE_DEFAULT_SIZE, ge=1, description="Items per page"),
    title: Optional[str] = Query(None, description="Partial title match"),
    club_status: Optional[int] = Query(None, alias="status", ge=0, le=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    page, size = normalize_page(page, size)
    clubs, total = await club_service.list_clubs(db, page, size, title, club_status)
    return ClubListResponse(
        clubs=clubs,
        total=total,
        page=page,
        size=size,
        pages=total_pages(total, size),
        filters=applied_filters(title=title, status=club_status),
    )


@router.get("/all", response_model=list[ClubRead])
@limiter.limit("30/minute")
async def get_all_clubs(
    request: Request,
    club_status: Optional[int] = Query(None, alias="status", ge=0, le=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if club_status is not None:
        return await club_service.list_clubs_by_status(db, club_status)
    return await club_service.list_all_clubs(db)


@router.get("/by-president/{president_id}", response_model=list[ClubRead])
@limiter.limit("30/minute")
async def get_clubs_by_president(
    request: Request,
    president_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await club_service.list_clubs_by_president(db, president_id)


@router.post("/exit", response_model=ClubMemberRead)
@limiter.limit("10/minute")
async def exit_club(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Leave the club the authenticated member belongs to."""
    return await club_service.exit_club(db, current_user.id)


@router.get("/memberships/me", response_model=list[ClubMemberRead])
@limiter.limit("30/minute")
async def get_my_memberships(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Every membership record of the authenticated user, exited ones included."""
    return await club_service.list_user_memberships(db, current_user.id)


@router.get("/memberships/user/{user_id}", response_model=list[ClubMemberRead])
@limiter.limit("30/minute")
async def get_user_memberships(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await club_service.list_user_memberships(db, user_id)


@router.get("/{club_id}", response_model=ClubRead)
@limiter.limit("60/minute")
async def get_club(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await club_service.get_club(db, club_id)


@router.put("/{club_id}/status", response_model=ClubRead)
@limiter.limit("10/minute")
async def change_club_status(
    request: Request,
    club_id: int,
    data: ClubStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Enable or disable a club (admin or higher)."""
    return await club_service.close_open_club(
        db, data.is_enabled, current_user.id, club_id, data.disable_reason
    )


@router.post("/{club_id}/join", response_model=ClubMemberRead)
@limiter.limit("10/minute")
async def join_club(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Join an enabled club. Only users without a club may join."""
    return await club_service.join_club(db, current_user.id, club_id)


@router.get("/{club_id}/members", response_model=list[ClubMemberRead])
@limiter.limit("30/minute")
async def get_club_members(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """All membership records of the club, exited ones included."""
    return await club_service.list_club_members(db, club_id)


@router.get("/{club_id}/members/count", response_model=MemberCount)
@limiter.limit("30/minute")
async def count_club_members(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Number of active members."""
    count = await club_service.count_club_members(db, club_id)
    return MemberCount(club_id=club_id, count=count)


@router.get("/{club_id}/members/{user_id}", response_model=MembershipCheck)
@limiter.limit("30/minute")
async def check_membership(
    request: Request,
    club_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Whether the user is an active member of the club."""
    is_member = await club_service.is_user_in_club(db, user_id, club_id)
    return MembershipCheck(club_id=club_id, user_id=user_id, is_member=is_member)


@router.delete("/{club_id}", response_model=MessageResponse)
@limiter.limit("10/minute")
async def delete_club(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await club_service.delete_club(db, club_id, current_user.id)
    return MessageResponse(message="Club deleted", details={"club_id": club_id})


@router.post("/{club_id}/restore", response_model=ClubRead)
@limiter.limit("10/minute")
async def restore_club(
    request: Request,
    club_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await club_service.restore_club(db, club_id, current_user.id)

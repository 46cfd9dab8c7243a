"""
Club lifecycle and membership transitions.

Every transition keeps users consistent with their memberships:
an unaffiliated user has no parent club, members and presidents point
at the club they belong to.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow, with_db_transaction
from app.core.exceptions import (
    AlreadyMemberError,
    ClubDisabledError,
    DuplicateTitleError,
    MemberNotFoundError,
    NotFoundError,
    NotEligibleError,
    NotInClubError,
    PresidentCannotExitError,
    ValidationError,
)
from app.core.logging_utils import log_business_event
from app.core.validations import strip_or_none
from app.admin.crud import clubs as clubs_crud
from app.admin.crud.base import find_by_id, get_by_id, restore, soft_delete
from app.admin.models.club_members import ClubMember, MemberStatus
from app.admin.models.clubs import Club, ClubStatus
from app.admin.models.roles import RoleType
from app.admin.models.users import NO_CLUB, User
from app.admin.services.permissions import require_action
from app.admin.services.users import get_user

logger = logging.getLogger(__name__)


async def get_club(
    session: AsyncSession, club_id: int, include_deleted: bool = False
) -> Club:
    return await get_by_id(session, Club, club_id, "Club", include_deleted)


def _enroll(
    session: AsyncSession,
    club: Club,
    user: User,
    role: RoleType,
    membership: Optional[ClubMember] = None,
) -> ClubMember:
    """Activate (or create) the membership and point the user at the club"""
    if membership is None:
        membership = ClubMember(club_id=club.id, user_id=user.id)
        session.add(membership)
    membership.status = MemberStatus.ACTIVE
    membership.join_time = utcnow()

    user.role_id = role
    user.parent_club_id = club.id
    return membership


async def create_club(
    session: AsyncSession,
    title: str,
    description: Optional[str],
    president_id: int,
    teacher_id: Optional[int],
    member_ids: Optional[Iterable[int]],
    operator_id: int,
) -> Club:
    """
    Create an enabled club with its president and initial members.

    The president becomes PRESIDENT of the new club, every other listed
    member becomes MEMBER. All rows are written in one transaction.
    """
    operator = await get_user(session, operator_id)
    require_action(operator, "create_club")

    president = await get_user(session, president_id)

    if teacher_id is not None:
        teacher = await get_user(session, teacher_id)
        if teacher.role_id < RoleType.TEACHER:
            raise ValidationError(
                "Club teacher must have the teacher role or higher",
                {"teacher_id": teacher_id, "role_id": teacher.role_id},
                "INVALID_TEACHER",
            )

    title = title.strip()
    if await clubs_crud.find_club_by_title(session, title):
        raise DuplicateTitleError(title)

    # distinct ids in request order, president excluded
    extra_ids = list(dict.fromkeys(m for m in (member_ids or []) if m != president_id))

    async def _create(session: AsyncSession):
        club = Club(
            title=title,
            description=description,
            president_id=president.id,
            teacher_id=teacher_id,
            status=ClubStatus.ENABLED,
        )
        session.add(club)
        await session.flush()

        _enroll(session, club, president, RoleType.PRESIDENT)

        for member_id in extra_ids:
            member = await find_by_id(session, User, member_id)
            if member is None:
                raise MemberNotFoundError(member_id)
            _enroll(session, club, member, RoleType.MEMBER)

        await session.flush()
        return club

    club = await with_db_transaction(session, _create)

    log_business_event(
        "club_created",
        "club",
        club.id,
        {
            "title": club.title,
            "president_id": president.id,
            "members": len(extra_ids),
            "operator_id": operator_id,
        },
    )
    return club


async def close_open_club(
    session: AsyncSession,
    is_enabled: bool,
    operator_id: int,
    club_id: int,
    disable_reason: Optional[str] = None,
) -> Club:
    """Enable or disable a club; a previous reason survives re-enabling"""
    operator = await get_user(session, operator_id)
    require_action(operator, "toggle_club")

    club = await get_club(session, club_id)
    club.status = ClubStatus.ENABLED if is_enabled else ClubStatus.DISABLED
    reason = strip_or_none(disable_reason)
    if not is_enabled and reason:
        club.disable_reason = reason
    await session.commit()

    log_business_event(
        "club_enabled" if is_enabled else "club_disabled",
        "club",
        club.id,
        {"operator_id": operator_id, "reason": club.disable_reason},
    )
    return club


async def join_club(session: AsyncSession, user_id: int, club_id: int) -> ClubMember:
    """An unaffiliated user joins an enabled club as a member"""
    user = await get_user(session, user_id)
    if user.role_id != RoleType.UNAFFILIATED:
        raise NotEligibleError(user_id, "Only users without a club can join one")

    club = await get_club(session, club_id)
    if club.status != ClubStatus.ENABLED:
        raise ClubDisabledError(club_id)

    membership = await clubs_crud.find_membership(session, club_id, user_id)
    if membership is not None and membership.status == MemberStatus.ACTIVE:
        raise AlreadyMemberError(user_id, club_id)

    async def _join(session: AsyncSession):
        return _enroll(session, club, user, RoleType.MEMBER, membership)

    membership = await with_db_transaction(session, _join)
    log_business_event("member_joined", "club", club_id, {"user_id": user_id})
    return membership


async def exit_club(session: AsyncSession, user_id: int) -> ClubMember:
    """A member leaves their club; the membership row is kept as EXITED"""
    user = await get_user(session, user_id)
    club_id = user.parent_club_id
    in_club = club_id is not None and club_id != NO_CLUB

    # presidents are refused whatever their current role
    if in_club:
        club = await find_by_id(session, Club, club_id)
        if club is not None and club.president_id == user_id:
            raise PresidentCannotExitError(user_id, club_id)

    if user.role_id != RoleType.MEMBER:
        raise NotEligibleError(user_id, "Only club members can exit a club")

    if not in_club:
        raise NotInClubError(user_id)

    membership = await clubs_crud.find_membership(session, club_id, user_id)
    if membership is None:
        raise NotFoundError("Membership", f"club={club_id}, user={user_id}")

    async def _exit(session: AsyncSession):
        membership.status = MemberStatus.EXITED
        user.role_id = RoleType.UNAFFILIATED
        user.parent_club_id = NO_CLUB
        return membership

    await with_db_transaction(session, _exit)
    log_business_event("member_exited", "club", club_id, {"user_id": user_id})
    return membership


async def delete_club(session: AsyncSession, club_id: int, operator_id: int) -> Club:
    """
    Soft-delete a club and release everyone in it.

    Active memberships become EXITED and every member or president of the
    club returns to unaffiliated, in the same transaction as the delete.
    """
    operator = await get_user(session, operator_id)
    require_action(operator, "delete_club")

    club = await get_club(session, club_id)

    async def _delete(session: AsyncSession):
        memberships = await clubs_crud.get_active_memberships(session, club.id)
        for membership in memberships:
            membership.status = MemberStatus.EXITED

        users = await clubs_crud.get_affiliated_users(session, club.id)
        for user in users:
            if user.role_id in (RoleType.MEMBER, RoleType.PRESIDENT):
                user.role_id = RoleType.UNAFFILIATED
                user.parent_club_id = NO_CLUB

        soft_delete(club)
        return len(memberships)

    released = await with_db_transaction(session, _delete)
    log_business_event(
        "club_deleted",
        "club",
        club.id,
        {"operator_id": operator_id, "released_members": released},
    )
    return club


async def restore_club(session: AsyncSession, club_id: int, operator_id: int) -> Club:
    """Un-delete a club; it comes back without members"""
    operator = await get_user(session, operator_id)
    require_action(operator, "restore")

    club = await get_by_id(session, Club, club_id, "Club", include_deleted=True)
    if club.is_deleted and await clubs_crud.find_club_by_title(session, club.title):
        raise DuplicateTitleError(club.title)

    club = await restore(session, Club, club_id, "Club")
    await session.commit()
    log_business_event("club_restored", "club", club.id, {"operator_id": operator_id})
    return club


async def list_all_clubs(session: AsyncSession):
    return await clubs_crud.get_all_clubs(session)


async def list_clubs_by_status(session: AsyncSession, status: int):
    return await clubs_crud.get_clubs_by_status(session, status)


async def list_clubs_by_president(session: AsyncSession, president_id: int):
    return await clubs_crud.get_clubs_by_president(session, president_id)


async def list_clubs(
    session: AsyncSession,
    page: int = 1,
    size: int = 10,
    title: Optional[str] = None,
    status: Optional[int] = None,
):
    return await clubs_crud.get_clubs_paginated(session, page, size, title, status)


async def list_club_members(session: AsyncSession, club_id: int):
    """All membership rows of the club, including exited ones"""
    return await clubs_crud.get_club_members(session, club_id)


async def list_user_memberships(session: AsyncSession, user_id: int):
    """All membership rows of the user, including exited ones"""
    return await clubs_crud.get_user_memberships(session, user_id)


async def is_user_in_club(session: AsyncSession, user_id: int, club_id: int) -> bool:
    """Only an ACTIVE membership counts"""
    return await clubs_crud.is_user_in_club(session, club_id, user_id)


async def count_club_members(session: AsyncSession, club_id: int) -> int:
    return await clubs_crud.count_club_members(session, club_id)

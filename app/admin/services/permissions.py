"""
Role policy: the minimum role for each privileged action, and for granting
each role to another user. Every service consults these tables instead of
comparing role numbers inline.
"""

from typing import Optional

from app.core.exceptions import (
    ForbiddenRoleError,
    InvalidRoleError,
    PermissionDeniedError,
    WrongClubError,
)
from app.admin.models.roles import RoleType
from app.admin.models.users import User

# action -> (minimum role, resource name used in error messages)
ACTION_MIN_ROLES = {
    "create_club": (RoleType.ADMIN, "club"),
    "toggle_club": (RoleType.ADMIN, "club"),
    "delete_club": (RoleType.ADMIN, "club"),
    "manage_activity": (RoleType.PRESIDENT, "activity"),
    "manage_other_user": (RoleType.ADMIN, "user"),
    "register_staff": (RoleType.ADMIN, "user"),
    "manage_config": (RoleType.ADMIN, "config"),
    "restore": (RoleType.ADMIN, "deleted record"),
    "sweep_tokens": (RoleType.ADMIN, "tokens"),
    "view_errors": (RoleType.ADMIN, "error statistics"),
    "purge": (RoleType.SUPER_ADMIN, "deleted records"),
}

# target role -> minimum operator role to grant it; SUPER_ADMIN is never granted
GRANT_MIN_ROLES = {
    RoleType.UNAFFILIATED: RoleType.TEACHER,
    RoleType.MEMBER: RoleType.TEACHER,
    RoleType.PRESIDENT: RoleType.TEACHER,
    RoleType.TEACHER: RoleType.ADMIN,
    RoleType.ADMIN: RoleType.SUPER_ADMIN,
}

# roles whose activity rights are limited to their own club
CLUB_SCOPED_ROLES = {RoleType.PRESIDENT, RoleType.TEACHER}


def has_role(user: User, minimum: RoleType) -> bool:
    return user.role_id >= minimum


def require_action(operator: User, action: str, reason: Optional[str] = None):
    minimum, resource = ACTION_MIN_ROLES[action]
    if not has_role(operator, minimum):
        raise PermissionDeniedError(
            action.replace("_", " "),
            resource,
            reason or f"requires role {minimum.name.lower()} or higher",
        )


def parse_role(role_id) -> RoleType:
    if not RoleType.has_value(role_id):
        raise InvalidRoleError(role_id)
    return RoleType(role_id)


def require_grant(operator: User, target_role) -> RoleType:
    """Check that operator may assign target_role; returns it as RoleType"""
    role = parse_role(target_role)
    if role == RoleType.SUPER_ADMIN:
        raise ForbiddenRoleError(role)

    minimum = GRANT_MIN_ROLES[role]
    if not has_role(operator, minimum):
        raise PermissionDeniedError(
            "grant",
            f"role {role.name.lower()}",
            f"requires role {minimum.name.lower()} or higher",
        )
    return role


def require_self_or_action(operator: User, target_user_id: int, action: str):
    """Users may act on themselves; acting on others needs the action's role"""
    if operator.id != target_user_id:
        require_action(operator, action, "only allowed on your own account")


def require_club_scope(operator: User, club_id: int, action: str):
    """Presidents and teachers may only act inside their own club"""
    if operator.role in CLUB_SCOPED_ROLES and operator.parent_club_id != club_id:
        raise WrongClubError(action, club_id)

"""
Role policy tests
"""

import pytest

from app.core.exceptions import (
    ForbiddenRoleError,
    InvalidRoleError,
    PermissionDeniedError,
    WrongClubError,
)
from app.admin.models import User
from app.admin.models.roles import RoleType
from app.admin.services.permissions import (
    ACTION_MIN_ROLES,
    has_role,
    parse_role,
    require_action,
    require_club_scope,
    require_grant,
    require_self_or_action,
)


def user_with(role: RoleType, user_id: int = 1, club_id: int = 7) -> User:
    return User(id=user_id, username=f"user{user_id}", role_id=role, parent_club_id=club_id)


class TestActions:
    @pytest.mark.parametrize("action", sorted(ACTION_MIN_ROLES))
    def test_minimum_role_is_enough(self, action):
        minimum, _ = ACTION_MIN_ROLES[action]
        require_action(user_with(minimum), action)

    @pytest.mark.parametrize(
        "action", [a for a, (role, _) in ACTION_MIN_ROLES.items() if role > 0]
    )
    def test_one_below_minimum_is_denied(self, action):
        minimum, _ = ACTION_MIN_ROLES[action]
        with pytest.raises(PermissionDeniedError):
            require_action(user_with(RoleType(minimum - 1)), action)

    def test_purge_is_super_admin_only(self):
        with pytest.raises(PermissionDeniedError):
            require_action(user_with(RoleType.ADMIN), "purge")
        require_action(user_with(RoleType.SUPER_ADMIN), "purge")

    def test_has_role(self):
        assert has_role(user_with(RoleType.TEACHER), RoleType.PRESIDENT)
        assert not has_role(user_with(RoleType.MEMBER), RoleType.PRESIDENT)


class TestGrants:
    @pytest.mark.parametrize(
        "operator,target,allowed",
        [
            (RoleType.TEACHER, RoleType.UNAFFILIATED, True),
            (RoleType.TEACHER, RoleType.PRESIDENT, True),
            (RoleType.PRESIDENT, RoleType.MEMBER, False),
            (RoleType.TEACHER, RoleType.TEACHER, False),
            (RoleType.ADMIN, RoleType.TEACHER, True),
            (RoleType.ADMIN, RoleType.ADMIN, False),
            (RoleType.SUPER_ADMIN, RoleType.ADMIN, True),
        ],
    )
    def test_grant_table(self, operator, target, allowed):
        if allowed:
            assert require_grant(user_with(operator), int(target)) == target
        else:
            with pytest.raises(PermissionDeniedError):
                require_grant(user_with(operator), int(target))

    def test_super_admin_is_never_granted(self):
        with pytest.raises(ForbiddenRoleError):
            require_grant(user_with(RoleType.SUPER_ADMIN), 5)

    @pytest.mark.parametrize("value", [-1, 6, 42, "1", None])
    def test_parse_role_rejects_unknown(self, value):
        with pytest.raises(InvalidRoleError):
            parse_role(value)

    def test_parse_role(self):
        assert parse_role(3) is RoleType.TEACHER


class TestScopes:
    def test_self_is_always_allowed(self):
        student = user_with(RoleType.UNAFFILIATED, user_id=3)
        require_self_or_action(student, 3, "manage_other_user")

    def test_others_need_action_role(self):
        with pytest.raises(PermissionDeniedError):
            require_self_or_action(user_with(RoleType.TEACHER), 2, "manage_other_user")
        require_self_or_action(user_with(RoleType.ADMIN), 2, "manage_other_user")

    def test_president_scoped_to_own_club(self):
        president = user_with(RoleType.PRESIDENT, club_id=7)
        require_club_scope(president, 7, "edit activity in")
        with pytest.raises(WrongClubError):
            require_club_scope(president, 8, "edit activity in")

    def test_teacher_scoped_to_own_club(self):
        with pytest.raises(WrongClubError):
            require_club_scope(user_with(RoleType.TEACHER, club_id=7), 8, "close activity in")

    def test_admin_is_not_scoped(self):
        require_club_scope(user_with(RoleType.ADMIN, club_id=-1), 8, "close activity in")

"""
User service tests: registration, login, profile, password and roles
"""

import pytest

from app.core.exceptions import (
    ForbiddenRoleError,
    InvalidCredentialsError,
    InvalidRoleError,
    NotFoundError,
    PasswordMismatchError,
    PermissionDeniedError,
    UserDisabledError,
    UsernameTakenError,
)
from app.admin.models import NO_CLUB, RoleType, TokenStatus, UserStatus
from app.admin.services import tokens as token_service
from app.admin.services import users as user_service

PASSWORD = "5f4dcc3b5aa765d61d8327deb882cf99"
NEW_PASSWORD = "e10adc3949ba59abbe56e057f20f883e"


class TestRegister:
    async def test_register_creates_unaffiliated_user(self, session):
        token = await user_service.register(session, "alice", PASSWORD, gender=1)
        user = await user_service.get_user(session, token.user_id)

        assert user.username == "alice"
        assert user.role_id == RoleType.UNAFFILIATED
        assert user.parent_club_id == NO_CLUB
        assert user.status == UserStatus.ENABLED
        assert user.points == 0
        assert user.gender == 1

    async def test_duplicate_username(self, session):
        await user_service.register(session, "alice", PASSWORD)
        with pytest.raises(UsernameTakenError):
            await user_service.register(session, "alice", PASSWORD)

    async def test_username_exists(self, session):
        await user_service.register(session, "alice", PASSWORD)
        assert await user_service.username_exists(session, "alice") is True
        assert await user_service.username_exists(session, "bob") is False


class TestRegisterPlus:
    """Creating accounts with a role on behalf of someone else"""

    async def test_teacher_creates_member(self, session, make_user):
        teacher = await make_user("teacher", RoleType.TEACHER)
        token = await user_service.register_plus(
            session, "newbie", PASSWORD, None, RoleType.MEMBER, teacher.id
        )
        user = await user_service.get_user(session, token.user_id)
        assert user.role_id == RoleType.MEMBER

    async def test_staff_roles_need_admin(self, session, make_user):
        teacher = await make_user("teacher", RoleType.TEACHER)
        with pytest.raises(PermissionDeniedError):
            await user_service.register_plus(
                session, "staff", PASSWORD, None, RoleType.TEACHER, teacher.id
            )
        assert await user_service.username_exists(session, "staff") is False

    async def test_admin_creates_teacher(self, session, admin):
        token = await user_service.register_plus(
            session, "staff", PASSWORD, None, RoleType.TEACHER, admin.id
        )
        user = await user_service.get_user(session, token.user_id)
        assert user.role_id == RoleType.TEACHER

    async def test_super_admin_can_never_be_created(self, session, super_admin):
        with pytest.raises(ForbiddenRoleError):
            await user_service.register_plus(
                session, "boss", PASSWORD, None, RoleType.SUPER_ADMIN, super_admin.id
            )

    async def test_unknown_role(self, session, admin):
        with pytest.raises(InvalidRoleError):
            await user_service.register_plus(session, "x-user", PASSWORD, None, 9, admin.id)

    async def test_missing_role_defaults_to_unaffiliated(self, session, make_user):
        member = await make_user("member", RoleType.MEMBER)
        token = await user_service.register_plus(
            session, "friend", PASSWORD, None, None, member.id
        )
        user = await user_service.get_user(session, token.user_id)
        assert user.role_id == RoleType.UNAFFILIATED


class TestLogin:
    async def test_login_success(self, session):
        registered = await user_service.register(session, "alice", PASSWORD)
        token = await user_service.login(session, "alice", PASSWORD)
        assert token.user_id == registered.user_id
        assert token.status == TokenStatus.VALID

    async def test_wrong_password(self, session):
        await user_service.register(session, "alice", PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            await user_service.login(session, "alice", NEW_PASSWORD)

    async def test_unknown_user(self, session):
        with pytest.raises(InvalidCredentialsError):
            await user_service.login(session, "ghost", PASSWORD)

    async def test_disabled_user(self, session, make_user):
        await make_user("frozen", status=UserStatus.DISABLED)
        with pytest.raises(UserDisabledError):
            await user_service.login(session, "frozen", PASSWORD)

    async def test_logout_expires_token(self, session):
        token = await user_service.register(session, "alice", PASSWORD)
        await user_service.logout(session, token.token_value)
        await session.refresh(token)
        assert token.status == TokenStatus.EXPIRED


class TestProfile:
    async def test_blank_fields_are_ignored(self, session, make_user):
        user = await make_user("alice")
        user.real_name = "Alice"
        await session.commit()

        updated = await user_service.change_profile(
            session,
            user.id,
            {"email": "alice@example.com", "real_name": "  ", "phone": None, "gender": 2},
        )
        assert updated.email == "alice@example.com"
        assert updated.real_name == "Alice"
        assert updated.phone is None
        assert updated.gender == 2

    async def test_missing_user(self, session):
        with pytest.raises(NotFoundError):
            await user_service.change_profile(session, 404, {"remark": "hi"})


class TestPassword:
    async def test_change_own_password_revokes_tokens(self, session):
        token = await user_service.register(session, "alice", PASSWORD)

        await user_service.change_password(
            session, token.user_id, PASSWORD, NEW_PASSWORD, token.user_id
        )

        await session.refresh(token)
        assert token.status == TokenStatus.EXPIRED
        assert await token_service.list_valid_tokens(session, token.user_id) == []
        with pytest.raises(InvalidCredentialsError):
            await user_service.login(session, "alice", PASSWORD)
        await user_service.login(session, "alice", NEW_PASSWORD)

    async def test_old_password_must_match(self, session, make_user):
        user = await make_user("alice")
        with pytest.raises(PasswordMismatchError):
            await user_service.change_password(
                session, user.id, NEW_PASSWORD, NEW_PASSWORD, user.id
            )

    async def test_other_users_need_admin(self, session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob", RoleType.TEACHER)
        with pytest.raises(PermissionDeniedError):
            await user_service.change_password(
                session, alice.id, PASSWORD, NEW_PASSWORD, bob.id
            )

    async def test_admin_changes_other_password(self, session, make_user, admin):
        alice = await make_user("alice")
        await user_service.change_password(session, alice.id, PASSWORD, NEW_PASSWORD, admin.id)
        assert alice.password_hash == NEW_PASSWORD


class TestChangePermission:
    """Granting roles follows the grant table"""

    async def test_teacher_promotes_to_president(self, session, make_user):
        teacher = await make_user("teacher", RoleType.TEACHER)
        student = await make_user("student")

        user = await user_service.change_permission(
            session, student.id, teacher.id, RoleType.PRESIDENT
        )
        assert user.role_id == RoleType.PRESIDENT
        assert user.parent_club_id == NO_CLUB

    async def test_teacher_cannot_grant_teacher(self, session, make_user):
        teacher = await make_user("teacher", RoleType.TEACHER)
        student = await make_user("student")
        with pytest.raises(PermissionDeniedError):
            await user_service.change_permission(
                session, student.id, teacher.id, RoleType.TEACHER
            )

    async def test_admin_grant_needs_super_admin(self, session, make_user, admin, super_admin):
        student = await make_user("student")
        with pytest.raises(PermissionDeniedError):
            await user_service.change_permission(session, student.id, admin.id, RoleType.ADMIN)

        user = await user_service.change_permission(
            session, student.id, super_admin.id, RoleType.ADMIN
        )
        assert user.role_id == RoleType.ADMIN

    async def test_super_admin_is_never_granted(self, session, make_user, super_admin):
        student = await make_user("student")
        with pytest.raises(ForbiddenRoleError):
            await user_service.change_permission(
                session, student.id, super_admin.id, RoleType.SUPER_ADMIN
            )

    async def test_member_cannot_grant_anything(self, session, make_user):
        member = await make_user("member", RoleType.MEMBER)
        student = await make_user("student")
        with pytest.raises(PermissionDeniedError):
            await user_service.change_permission(
                session, student.id, member.id, RoleType.UNAFFILIATED
            )

    async def test_out_of_range_role(self, session, make_user, super_admin):
        student = await make_user("student")
        with pytest.raises(InvalidRoleError):
            await user_service.change_permission(session, student.id, super_admin.id, -1)


class TestDeleteRestore:
    async def test_user_deletes_self(self, session, make_user):
        alice = await make_user("alice")
        await user_service.delete_user(session, alice.id, alice.id)

        with pytest.raises(NotFoundError):
            await user_service.get_user(session, alice.id)
        deleted = await user_service.get_user(session, alice.id, include_deleted=True)
        assert deleted.is_deleted is True

    async def test_deleting_others_needs_admin(self, session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob", RoleType.PRESIDENT)
        with pytest.raises(PermissionDeniedError):
            await user_service.delete_user(session, alice.id, bob.id)

    async def test_restore(self, session, make_user, admin):
        alice = await make_user("alice")
        await user_service.delete_user(session, alice.id, admin.id)

        restored = await user_service.restore_user(session, alice.id, admin.id)
        assert restored.is_deleted is False
        assert (await user_service.get_user(session, alice.id)).id == alice.id

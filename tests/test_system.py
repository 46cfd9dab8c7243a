"""
Purge of soft-deleted rows and the validation helpers
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import PermissionDeniedError
from app.core.validations import (
    as_naive_utc,
    clean_phone_number,
    is_blank,
    strip_or_none,
)
from app.admin.models import Config
from app.admin.services import configs as config_service
from app.admin.services import system as system_service
from app.admin.services import users as user_service


class TestPurge:
    async def test_admin_cannot_purge(self, session, admin):
        with pytest.raises(PermissionDeniedError):
            await system_service.purge_deleted(session, admin.id)

    async def test_purge_removes_only_deleted_rows(self, session, make_user, super_admin):
        alice = await make_user("alice")
        await make_user("bob")
        kept = await config_service.create_config(session, "kept", "1")
        dropped = await config_service.create_config(session, "dropped", "1")
        await config_service.delete_config(session, dropped.id)
        await user_service.delete_user(session, alice.id, alice.id)

        counts = await system_service.purge_deleted(session, super_admin.id)

        assert counts["users"] == 1
        assert counts["configs"] == 1
        assert counts["clubs"] == 0
        assert await session.get(Config, kept.id) is not None
        session.expunge_all()
        assert await session.get(Config, dropped.id) is None
        assert await user_service.username_exists(session, "bob") is True


class TestPhoneNumbers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+86 138-0013-8000", "+8613800138000"),
            ("(555) 123 4567", "5551234567"),
            ("12345", "12345"),
        ],
    )
    def test_clean(self, raw, expected):
        assert clean_phone_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "1234", "1" * 21])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            clean_phone_number(raw)


class TestHelpers:
    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank("x")
        assert not is_blank(0)

    def test_strip_or_none(self):
        assert strip_or_none("  a ") == "a"
        assert strip_or_none("   ") is None
        assert strip_or_none(None) is None

    def test_as_naive_utc(self):
        aware = datetime(2024, 5, 1, 20, 0, tzinfo=timezone(timedelta(hours=8)))
        assert as_naive_utc(aware) == datetime(2024, 5, 1, 12, 0)

        naive = datetime(2024, 5, 1, 12, 0)
        assert as_naive_utc(naive) is naive
        assert as_naive_utc(None) is None

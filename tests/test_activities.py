"""
Activity scheduling, editing, closing and listing tests
"""

from datetime import timedelta, timezone

import pytest

from app.core.database import utcnow
from app.core.exceptions import (
    ActivityClubMismatchError,
    AlreadyEndedError,
    InvalidTimeRangeError,
    NotFoundError,
    PermissionDeniedError,
    StartInPastError,
    WrongClubError,
)
from app.admin.models import ActivityStatus, RoleType
from app.admin.services import activities as activity_service

HOUR = timedelta(hours=1)


@pytest.fixture
async def club_setup(make_user, make_club):
    """Two clubs, each with its president"""
    chess_president = await make_user("chess-pres")
    go_president = await make_user("go-pres")
    chess = await make_club("Chess", chess_president)
    go = await make_club("Go", go_president)
    return chess, chess_president, go, go_president


class TestCreateActivity:
    async def test_president_creates_in_own_club(self, session, club_setup):
        chess, president, _, _ = club_setup
        start = utcnow() + HOUR

        activity = await activity_service.create_activity(
            session, chess.id, president.id, " Blitz night ", None, start, start + HOUR
        )

        assert activity.status == ActivityStatus.ONGOING
        assert activity.title == "Blitz night"
        assert activity.creator_id == president.id
        assert activity.club_id == chess.id

    async def test_president_of_other_club(self, session, club_setup):
        chess, _, _, go_president = club_setup
        start = utcnow() + HOUR
        with pytest.raises(WrongClubError):
            await activity_service.create_activity(
                session, chess.id, go_president.id, "Blitz", None, start, start + HOUR
            )

    async def test_admin_creates_anywhere(self, session, club_setup, admin):
        _, _, go, _ = club_setup
        start = utcnow() + HOUR
        activity = await activity_service.create_activity(
            session, go.id, admin.id, "Tournament", None, start, start + HOUR
        )
        assert activity.club_id == go.id

    async def test_member_cannot_create(self, session, club_setup, make_user):
        chess, _, _, _ = club_setup
        member = await make_user("member", RoleType.MEMBER, parent_club_id=chess.id)
        start = utcnow() + HOUR
        with pytest.raises(PermissionDeniedError):
            await activity_service.create_activity(
                session, chess.id, member.id, "Blitz", None, start, start + HOUR
            )

    async def test_start_after_end(self, session, club_setup):
        chess, president, _, _ = club_setup
        start = utcnow() + 2 * HOUR
        with pytest.raises(InvalidTimeRangeError):
            await activity_service.create_activity(
                session, chess.id, president.id, "Blitz", None, start, start - HOUR
            )

    async def test_start_in_past(self, session, club_setup):
        chess, president, _, _ = club_setup
        start = utcnow() - HOUR
        with pytest.raises(StartInPastError):
            await activity_service.create_activity(
                session, chess.id, president.id, "Blitz", None, start, start + 2 * HOUR
            )

    async def test_aware_times_are_stored_as_utc(self, session, club_setup):
        chess, president, _, _ = club_setup
        start = (utcnow() + HOUR).replace(tzinfo=timezone.utc)
        local = start.astimezone(timezone(timedelta(hours=8)))

        activity = await activity_service.create_activity(
            session, chess.id, president.id, "Blitz", None, local, local + HOUR
        )
        assert activity.start_time == start.replace(tzinfo=None)
        assert activity.start_time.tzinfo is None

    async def test_unknown_club(self, session, admin):
        start = utcnow() + HOUR
        with pytest.raises(NotFoundError):
            await activity_service.create_activity(
                session, 404, admin.id, "Blitz", None, start, start + HOUR
            )


class TestEditActivity:
    async def test_partial_update(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)
        original_start = activity.start_time

        edited = await activity_service.edit_activity(
            session, activity.id, president.id, chess.id, title="Renamed", description=""
        )

        assert edited.title == "Renamed"
        assert edited.description is None
        assert edited.start_time == original_start

    async def test_edit_must_keep_range(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)
        with pytest.raises(InvalidTimeRangeError):
            await activity_service.edit_activity(
                session,
                activity.id,
                president.id,
                chess.id,
                start_time=activity.end_time + HOUR,
            )

    async def test_club_mismatch(self, session, club_setup, make_activity, admin):
        chess, president, go, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)
        with pytest.raises(ActivityClubMismatchError):
            await activity_service.edit_activity(
                session, activity.id, admin.id, go.id, title="Moved"
            )


class TestCloseActivity:
    async def test_close(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)

        closed = await activity_service.close_activity(
            session, chess.id, activity.id, president.id, "Rained out"
        )

        assert closed.status == ActivityStatus.ENDED
        assert closed.close_reason == "Rained out"
        assert closed.actual_end_time is not None

    async def test_close_twice(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)
        await activity_service.close_activity(session, chess.id, activity.id, president.id)

        with pytest.raises(AlreadyEndedError):
            await activity_service.close_activity(
                session, chess.id, activity.id, president.id
            )

    async def test_other_president_cannot_close(self, session, club_setup, make_activity):
        chess, president, _, go_president = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)
        with pytest.raises(WrongClubError):
            await activity_service.close_activity(
                session, chess.id, activity.id, go_president.id
            )


class TestDeleteRestore:
    async def test_delete_and_restore(self, session, club_setup, make_activity, admin):
        chess, president, _, _ = club_setup
        activity = await make_activity(chess, president, HOUR, 2 * HOUR)

        await activity_service.delete_activity(session, chess.id, activity.id, president.id)
        with pytest.raises(NotFoundError):
            await activity_service.get_activity(session, activity.id)

        with pytest.raises(PermissionDeniedError):
            await activity_service.restore_activity(session, activity.id, president.id)

        restored = await activity_service.restore_activity(session, activity.id, admin.id)
        assert restored.is_deleted is False


class TestListing:
    async def test_ongoing_and_ended(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        running = await make_activity(chess, president, -HOUR, HOUR, title="Running")
        finished = await make_activity(chess, president, -3 * HOUR, -HOUR, title="Over")
        await make_activity(chess, president, HOUR, 2 * HOUR, title="Upcoming")
        # closed explicitly and past its end time: in neither list
        await make_activity(
            chess, president, -3 * HOUR, -HOUR, status=ActivityStatus.ENDED, title="Closed"
        )
        await make_activity(
            chess, president, -HOUR, HOUR, status=ActivityStatus.ENDED, title="Cut short"
        )

        ongoing = await activity_service.list_ongoing(session)
        assert [a.id for a in ongoing] == [running.id]

        ended = await activity_service.list_ended(session)
        assert [a.id for a in ended] == [finished.id]

    async def test_in_range(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        inside = await make_activity(chess, president, HOUR, 2 * HOUR)
        await make_activity(chess, president, HOUR, 10 * HOUR)

        now = utcnow()
        found = await activity_service.list_activities_in_range(
            session, now, now + 3 * HOUR
        )
        assert [a.id for a in found] == [inside.id]

    async def test_by_club_and_status(self, session, club_setup, make_activity):
        chess, president, go, go_president = club_setup
        open_one = await make_activity(chess, president, HOUR, 2 * HOUR)
        await make_activity(chess, president, HOUR, 2 * HOUR, status=ActivityStatus.ENDED)
        await make_activity(go, go_president, HOUR, 2 * HOUR)

        assert len(await activity_service.list_activities_by_club(session, chess.id)) == 2
        filtered = await activity_service.list_activities_by_club_and_status(
            session, chess.id, ActivityStatus.ONGOING
        )
        assert [a.id for a in filtered] == [open_one.id]

        by_creator = await activity_service.list_activities_by_creator(
            session, go_president.id
        )
        assert len(by_creator) == 1

    async def test_paginated(self, session, club_setup, make_activity):
        chess, president, _, _ = club_setup
        for i in range(5):
            await make_activity(chess, president, HOUR, 2 * HOUR, title=f"Session {i}")

        activities, total = await activity_service.list_activities(
            session, page=2, size=2, club_id=chess.id
        )
        assert total == 5
        assert len(activities) == 2

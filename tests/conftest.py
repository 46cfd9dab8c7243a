"""
Pytest configuration and fixtures for the club administration tests
"""

import os

# must be set before anything under app/ is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TOKEN_SWEEP_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, utcnow
from app.admin.models import (
    NO_CLUB,
    Activity,
    ActivityStatus,
    Club,
    ClubMember,
    ClubStatus,
    MemberStatus,
    RoleType,
    User,
    UserStatus,
)

PASSWORD = "5f4dcc3b5aa765d61d8327deb882cf99"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session):
    """Insert a user directly, bypassing registration"""

    async def _make(
        username: str,
        role: RoleType = RoleType.UNAFFILIATED,
        parent_club_id: int = NO_CLUB,
        status: UserStatus = UserStatus.ENABLED,
    ) -> User:
        user = User(
            username=username,
            password_hash=PASSWORD,
            gender=0,
            points=0,
            parent_club_id=parent_club_id,
            role_id=role,
            status=status,
        )
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", RoleType.ADMIN)


@pytest.fixture
async def super_admin(make_user):
    return await make_user("root", RoleType.SUPER_ADMIN)


@pytest.fixture
def make_club(session):
    """Insert a club with its president membership"""

    async def _make(title: str, president: User, status: ClubStatus = ClubStatus.ENABLED):
        club = Club(title=title, president_id=president.id, status=status)
        session.add(club)
        await session.flush()

        session.add(
            ClubMember(
                club_id=club.id,
                user_id=president.id,
                join_time=utcnow(),
                status=MemberStatus.ACTIVE,
            )
        )
        president.role_id = RoleType.PRESIDENT
        president.parent_club_id = club.id
        await session.commit()
        return club

    return _make


@pytest.fixture
def make_activity(session):
    """Insert an activity with arbitrary times, past ones included"""

    async def _make(
        club: Club,
        creator: User,
        start_offset: timedelta,
        end_offset: timedelta,
        status: ActivityStatus = ActivityStatus.ONGOING,
        title: str = "Practice",
    ) -> Activity:
        now = utcnow()
        activity = Activity(
            club_id=club.id,
            creator_id=creator.id,
            title=title,
            start_time=now + start_offset,
            end_time=now + end_offset,
            status=status,
        )
        session.add(activity)
        await session.commit()
        return activity

    return _make

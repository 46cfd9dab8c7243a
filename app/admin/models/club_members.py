from enum import IntEnum

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, text

from app.core.database import AuditMixin, Base, utcnow


class MemberStatus(IntEnum):
    EXITED = 0
    ACTIVE = 1


class ClubMember(AuditMixin, Base):
    """Membership record; kept with status EXITED when the user leaves"""

    __tablename__ = "club_members"
    # one live record per (club, user); exits and rejoins reuse it
    __table_args__ = (
        Index(
            "uq_club_members_club_user",
            "club_id",
            "user_id",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    club_id = Column(BigInteger, nullable=False, index=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    join_time = Column(DateTime, nullable=False, default=utcnow)
    status = Column(Integer, nullable=False, default=MemberStatus.ACTIVE)

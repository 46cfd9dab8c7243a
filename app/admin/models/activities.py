from enum import IntEnum

from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from app.core.database import AuditMixin, Base


class ActivityStatus(IntEnum):
    CANCELLED = 0
    ONGOING = 1
    ENDED = 2


class Activity(AuditMixin, Base):
    __tablename__ = "activities"

    club_id = Column(BigInteger, nullable=False, index=True)
    creator_id = Column(BigInteger, nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(Integer, nullable=False, default=ActivityStatus.ONGOING, index=True)
    close_reason = Column(String(500), nullable=True)
    actual_end_time = Column(DateTime, nullable=True)

from enum import IntEnum

from sqlalchemy import BigInteger, Column, Index, Integer, String, text

from app.core.database import AuditMixin, Base


class ClubStatus(IntEnum):
    DISABLED = 0
    ENABLED = 1


class Club(AuditMixin, Base):
    __tablename__ = "clubs"
    # deleted clubs release their title
    __table_args__ = (
        Index(
            "uq_clubs_title_active",
            "title",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    president_id = Column(BigInteger, nullable=False, index=True)
    teacher_id = Column(BigInteger, nullable=True)
    status = Column(Integer, nullable=False, default=ClubStatus.ENABLED)
    disable_reason = Column(String(500), nullable=True)

    @property
    def is_enabled(self) -> bool:
        return self.status == ClubStatus.ENABLED

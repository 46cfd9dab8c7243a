from enum import IntEnum

from sqlalchemy import BigInteger, Column, Integer, String

from app.core.database import AuditMixin, Base
from app.admin.models.roles import RoleType

NO_CLUB = -1


class UserStatus(IntEnum):
    DISABLED = 0
    ENABLED = 1


class User(AuditMixin, Base):
    __tablename__ = "users"

    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    gender = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)

    # owning club for members and presidents, NO_CLUB otherwise
    parent_club_id = Column(BigInteger, nullable=False, default=NO_CLUB, index=True)
    role_id = Column(Integer, nullable=False, default=RoleType.UNAFFILIATED, index=True)

    email = Column(String(100), nullable=True, unique=True)
    phone = Column(String(20), nullable=True)
    real_name = Column(String(50), nullable=True)
    status = Column(Integer, nullable=False, default=UserStatus.ENABLED)
    remark = Column(String(500), nullable=True)

    @property
    def role(self) -> RoleType:
        return RoleType(self.role_id)

    @property
    def is_enabled(self) -> bool:
        return self.status == UserStatus.ENABLED

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r} role={self.role_id}>"

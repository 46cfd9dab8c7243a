from enum import IntEnum

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String

from app.core.database import AuditMixin, Base


class TokenStatus(IntEnum):
    EXPIRED = 0
    VALID = 1


class Token(AuditMixin, Base):
    """Opaque bearer token bound to one user"""

    __tablename__ = "tokens"

    token_value = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=TokenStatus.VALID)
    # may still be exchanged for a new token
    is_reference = Column(Boolean, nullable=False, default=True)

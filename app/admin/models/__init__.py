from app.core.database import Base
from .roles import RoleType
from .users import User, UserStatus, NO_CLUB
from .clubs import Club, ClubStatus
from .club_members import ClubMember, MemberStatus
from .activities import Activity, ActivityStatus
from .tokens import Token, TokenStatus
from .configs import Config, ConfigType, DEFAULT_GROUP

__all__ = [
    "Base",
    "RoleType",
    "User",
    "UserStatus",
    "NO_CLUB",
    "Club",
    "ClubStatus",
    "ClubMember",
    "MemberStatus",
    "Activity",
    "ActivityStatus",
    "Token",
    "TokenStatus",
    "Config",
    "ConfigType",
    "DEFAULT_GROUP",
]

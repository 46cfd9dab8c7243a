from enum import IntEnum


class RoleType(IntEnum):
    """User roles, ordered by privilege"""

    UNAFFILIATED = 0  # student without a club
    MEMBER = 1
    PRESIDENT = 2
    TEACHER = 3
    ADMIN = 4
    SUPER_ADMIN = 5

    @classmethod
    def has_value(cls, value) -> bool:
        return isinstance(value, int) and value in cls._value2member_map_

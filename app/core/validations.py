import re
from datetime import datetime, timezone
from typing import Any, Optional


def clean_phone_number(phone: str) -> str:
    """
    Normalise a phone number to its digits, keeping a leading '+'.

    Raises ValueError so it can be used directly inside pydantic validators.
    """
    if not phone or not phone.strip():
        raise ValueError("Phone number cannot be empty")

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)

    if not digits:
        raise ValueError("Phone number must contain digits")

    if len(digits) < 5 or len(digits) > 20:
        raise ValueError("Phone number must be between 5 and 20 digits")

    prefix = "+" if phone.startswith("+") else ""
    result = prefix + digits
    if len(result) > 20:
        raise ValueError("Phone number must be at most 20 characters")
    return result


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after stripping"""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; aware values are converted"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

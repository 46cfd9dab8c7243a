import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.validations import clean_phone_number
from app.admin.schemas.common import PageMeta

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password_hash: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    """Self-registration; the password arrives already hashed"""

    username: str = Field(..., min_length=3, max_length=50)
    password_hash: str = Field(
        ..., min_length=32, max_length=128, description="Client-side password hash"
    )
    gender: Optional[int] = Field(None, ge=0, le=2)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username may only contain letters, digits, '.', '_' and '-'"
            )
        return v


class RegisterPlusRequest(RegisterRequest):
    role_id: Optional[int] = Field(None, description="Role of the new account")


class TokenRefreshRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)


class TokenRead(BaseModel):
    id: int
    token_value: str
    user_id: int
    expires_at: datetime
    status: int
    is_reference: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenInfo(BaseModel):
    """Token metadata without the secret value"""

    id: int
    user_id: int
    expires_at: datetime
    status: int
    is_reference: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserRead(BaseModel):
    id: int
    username: str
    gender: int
    points: int
    parent_club_id: int
    role_id: int
    email: Optional[str] = None
    phone: Optional[str] = None
    real_name: Optional[str] = None
    status: int
    remark: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(PageMeta):
    users: list[UserRead]


class ProfileUpdate(BaseModel):
    """Empty or missing fields are left unchanged"""

    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    real_name: Optional[str] = Field(None, max_length=50)
    gender: Optional[int] = Field(None, ge=0, le=2)
    remark: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return clean_phone_number(v)
        return v


class PasswordChange(BaseModel):
    old_password_hash: str = Field(..., min_length=1, max_length=128)
    new_password_hash: str = Field(..., min_length=32, max_length=128)


class PermissionChange(BaseModel):
    target_role: int = Field(..., description="New role id")


class ExistsResponse(BaseModel):
    username: Optional[bool] = None
    email: Optional[bool] = None
    phone: Optional[bool] = None

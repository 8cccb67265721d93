"""Pydantic request/response schemas for mp_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.mp_common.patch import UNSET, supplied_fields
from src.mp_gateway.user.db_models import UserModel


def _check_password_complexity(v: str) -> str:
    """Enforce: at least one uppercase, one lowercase, one digit."""
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one digit")
    return v


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    phone: str | None = Field(None, max_length=20)
    address: str | None = None

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return _check_password_complexity(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


@dataclass(frozen=True)
class ProfilePatch:
    """Partial profile update. UNSET fields are not touched; None clears phone or address."""

    name: str = UNSET
    email: str = UNSET
    phone: str | None = UNSET
    address: str | None = UNSET
    avatar_ref: str | None = UNSET
    new_password: str = UNSET

    def changes(self) -> dict[str, Any]:
        return supplied_fields(self)

    @property
    def is_empty(self) -> bool:
        return not self.changes()


class UpdateProfileRequest(BaseModel):
    """Every field optional; only fields present in the body are applied.

    Changing the password requires current_password.
    """

    name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    address: str | None = None
    avatar_ref: str | None = Field(None, max_length=255)
    current_password: str | None = Field(None, max_length=128)
    new_password: str | None = Field(None, min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_complexity(cls, v: str | None) -> str | None:
        return None if v is None else _check_password_complexity(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not v.strip():
            raise ValueError("Name must not be blank")
        return v.strip()

    def to_patch(self) -> ProfilePatch:
        supplied = self.model_dump(exclude_unset=True, exclude={"current_password"})
        if supplied.get("new_password", UNSET) is None:
            del supplied["new_password"]
        return ProfilePatch(**supplied)


class UserInfo(BaseModel):
    """The caller's own profile. Never includes the password hash."""

    user_id: str
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    avatar_ref: str | None = None
    created_at: str | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> "UserInfo":
        return cls(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            phone=user.phone,
            address=user.address,
            avatar_ref=user.avatar_ref,
            created_at=user.created_at.isoformat() if user.created_at else None,
        )


class PublicProfile(BaseModel):
    """What any visitor may see about a seller: no contact details, no hash."""

    user_id: str
    name: str
    avatar_ref: str | None = None
    member_since: str | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> "PublicProfile":
        return cls(
            user_id=str(user.id),
            name=user.name,
            avatar_ref=user.avatar_ref,
            member_since=user.created_at.isoformat() if user.created_at else None,
        )


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800  # 30 minutes in seconds
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800

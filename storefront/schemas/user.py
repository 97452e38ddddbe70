# storefront/schemas/user.py
from datetime import date, datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["User", "Admin"]


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class UserRead(SQLModel):
    """Response schema returned to clients (never includes the hash)."""

    id: int
    email: str
    name: str
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    avatar: str | None = None
    roles: Role
    verify: int
    created_at: datetime
    updated_at: datetime


class UserCreateData(SQLModel):
    """
    Input to the user directory's create operation.

    Used by registration, admin user creation and admin seeding.
    """

    email: EmailStr
    password: str = Field(min_length=6)
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    roles: Role = "User"


class RegisterRequest(SQLModel):
    """
    Payload for customer sign-up.

    - name defaults to the part of the email before '@'
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = None
    date_of_birth: date | None = None

    @field_validator("name", "phone", "address")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)


class AuthData(SQLModel):
    """Token + profile returned by register/login."""

    access_token: str
    expires: int  # seconds
    user: UserRead


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Email and role cannot be changed here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = None
    date_of_birth: date | None = None
    avatar: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ChangePasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=72)


class AdminUserCreate(SQLModel):
    """
    Admin-side account creation.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    name: str | None = Field(default=None, max_length=255)
    roles: Role = "User"


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    roles: Role

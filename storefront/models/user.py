# storefront/models/user.py
from datetime import date, datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user account.

    Identity:
      - id: autoincrement integer, monotonically increasing
      - email: unique login name

    Role:
      - "User" | "Admin"
      - guests are represented by a missing token, not by a row.
    """

    __tablename__ = "users"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    email: str = Field(
        unique=True,
        index=True,
        max_length=255,
    )

    # bcrypt hash, never returned to clients
    password_hash: str

    name: str = Field(
        default="",
        max_length=255,
        description="Display name; first part of email by default",
    )

    phone: str | None = Field(default=None, max_length=20)
    address: str | None = None
    date_of_birth: date | None = None
    avatar: str | None = None

    roles: str = Field(
        default="User",
        index=True,
        description="Application role: User | Admin",
    )

    verify: int = Field(
        default=0,
        description="1 once the email address is verified",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

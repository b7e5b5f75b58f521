"""User entity model.

Defines the User table referenced by workflows and stored credentials.
Users are authenticated upstream; this service only resolves a bearer
token to a user row. All user-specific resources are scoped by user_id.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import uuid4

from pydantic import EmailStr
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from src.models.account import Account, OAuthConnection
    from src.models.credential import UserCredential
    from src.models.workflow import Workflow


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    """Base user fields shared across models."""

    username: str = Field(
        max_length=50,
        index=True,
        unique=True,
        description="Unique username",
    )
    email: EmailStr | None = Field(
        default=None,
        max_length=255,
        index=True,
        description="User email address (optional)",
    )
    is_active: bool = Field(
        default=True,
        description="Whether the user account is active",
    )


class User(UserBase, table=True):
    """User database entity."""

    __tablename__ = "user"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique user identifier (UUID)",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Account creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)",
    )

    # Relationships
    workflows: list["Workflow"] = Relationship(back_populates="user")
    accounts: list["Account"] = Relationship(back_populates="user")
    oauth_connections: list["OAuthConnection"] = Relationship(back_populates="user")
    credentials: list["UserCredential"] = Relationship(back_populates="user")


class TokenPayload(SQLModel):
    """JWT token payload schema."""

    sub: str  # user_id
    exp: datetime

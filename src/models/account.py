"""OAuth grant entity models.

Two table layouts hold OAuth grants, depending on which auth stack wrote
them:

- ``account``: provider account rows with ``expires_at`` in epoch seconds,
  as returned in OAuth token responses.
- ``oauth_connection``: connected-platform rows with ``token_expires_at``
  as a native timestamp.

A user may hold several grants for the same provider (one per account).
Tokens are written by the auth stack; this service only reads whether
one is present and when it expires.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlmodel import Column, Field, Relationship, SQLModel, Text

if TYPE_CHECKING:
    from src.models.user import User


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """OAuth provider account (expiry stored as epoch seconds)."""

    __tablename__ = "account"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
    )
    user_id: str = Field(
        foreign_key="user.id",
        index=True,
        description="Owner user ID",
    )
    provider: str = Field(
        max_length=100,
        index=True,
        description="Platform slug (e.g. 'twitter', 'github')",
    )
    provider_account_id: str = Field(
        max_length=255,
        description="Account identifier at the provider",
    )
    account_name: str | None = Field(
        default=None,
        max_length=255,
        description="Human-readable account name (e.g. '@handle')",
    )
    access_token: str | None = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    refresh_token: str | None = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    expires_at: int | None = Field(
        default=None,
        description="Access token expiry in seconds since the epoch",
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
    )

    user: "User" = Relationship(back_populates="accounts")


class OAuthConnection(SQLModel, table=True):
    """Connected platform grant (expiry stored as a timestamp)."""

    __tablename__ = "oauth_connection"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
    )
    user_id: str = Field(
        foreign_key="user.id",
        index=True,
        description="Owner user ID",
    )
    provider: str = Field(
        max_length=100,
        index=True,
        description="Platform slug (e.g. 'twitter', 'github')",
    )
    provider_user_id: str | None = Field(default=None, max_length=255)
    display_name: str | None = Field(default=None, max_length=255)
    access_token: str | None = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    token_expires_at: datetime | None = Field(
        default=None,
        description="Access token expiry",
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
    )

    user: "User" = Relationship(back_populates="oauth_connections")

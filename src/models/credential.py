"""Credential models.

Defines the UserCredential table holding named API keys, the
backend-agnostic records the credential store adapters return, and the
per-platform status schemas served to clients.

SECURITY: nothing in this module exposes a secret value. Adapters only
report whether a token or encrypted value is present.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlmodel import Column, Field, Relationship, SQLModel, Text

from src.core.platforms import CredentialType

if TYPE_CHECKING:
    from src.models.user import User


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class UserCredential(SQLModel, table=True):
    """API key database entity.

    Several keys may exist per (user, platform), told apart by name.
    The encrypted value is written by the credential manager; a row
    without one does not count as a usable key.
    """

    __tablename__ = "user_credential"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique credential identifier (UUID)",
    )
    user_id: str = Field(
        foreign_key="user.id",
        index=True,
        description="Owner user ID",
    )
    platform: str = Field(
        max_length=100,
        index=True,
        description="Platform slug (e.g. 'openai', 'stripe')",
    )
    name: str = Field(
        max_length=255,
        min_length=1,
        description="Human-readable key name",
    )
    encrypted_value: str | None = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Encrypted secret value",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)",
    )

    # Relationships
    user: "User" = Relationship(back_populates="credentials")


@dataclass(frozen=True)
class OAuthAccountRecord:
    """OAuth grant as seen by the resolver, whatever table it came from."""

    id: str
    provider: str
    account_label: str
    has_access_token: bool
    expires_at_ms: int | None = None  # Epoch milliseconds


@dataclass(frozen=True)
class ApiKeyRecord:
    """API key as seen by the resolver."""

    id: str
    platform: str
    name: str
    has_encrypted_value: bool


class RequiredCredential(SQLModel):
    """A platform credential referenced by a workflow."""

    platform: str
    type: CredentialType
    variable: str = Field(description="Template variable, e.g. 'user.twitter'")


class OAuthAccountStatus(SQLModel):
    """One connected OAuth account."""

    id: str
    label: str
    is_expired: bool


class ApiKeyStatus(SQLModel):
    """One stored API key."""

    id: str
    name: str


class CredentialStatus(SQLModel):
    """Connection status of one required platform.

    Both lists are always present; the one not matching ``type`` is empty.
    """

    platform: str
    type: CredentialType
    display_name: str
    icon: str
    connected: bool
    oauth_accounts: list[OAuthAccountStatus] = Field(default_factory=list)
    api_keys: list[ApiKeyStatus] = Field(default_factory=list)


class WorkflowCredentialsResponse(SQLModel):
    """Credential statuses for a workflow."""

    credentials: list[CredentialStatus] = Field(default_factory=list)


class PlatformInfo(SQLModel):
    """Registry metadata for a platform."""

    platform: str
    type: CredentialType
    display_name: str
    icon: str

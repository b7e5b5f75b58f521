"""Credential store adapters.

Read-only views over the tables holding a user's OAuth grants and API
keys, shaped into backend-agnostic records for the resolver.

The two OAuth table layouts keep token expiry in different units (epoch
seconds vs. a native timestamp); both are converted to epoch milliseconds
here so the resolver compares a single unit.

Each adapter opens its own session per lookup so the OAuth and API key
queries can run concurrently.
"""

from datetime import datetime, timezone
from typing import Callable, Literal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.account import Account, OAuthConnection
from src.models.credential import ApiKeyRecord, OAuthAccountRecord, UserCredential

logger = structlog.get_logger()

SessionFactory = Callable[[], AsyncSession]

OAuthBackend = Literal["accounts", "connections", "disabled"]


class CredentialStoreError(Exception):
    """Error reading a credential store."""

    pass


def epoch_seconds_to_ms(value: int | float | None) -> int | None:
    """Convert an epoch-seconds expiry to epoch milliseconds."""
    if value is None:
        return None
    return int(value * 1000)


def datetime_to_ms(value: datetime | None) -> int | None:
    """Convert a timestamp expiry to epoch milliseconds.

    Naive timestamps (SQLite drops tzinfo) are read as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def normalize_expiry(value: int | float | datetime | str | None) -> int | None:
    """Normalize an expiry of any stored representation to epoch milliseconds.

    Numbers are epoch seconds, strings are ISO 8601 timestamps.
    """
    match value:
        case None:
            return None
        case bool():
            raise CredentialStoreError(f"Unsupported expiry value: {value!r}")
        case int() | float():
            return epoch_seconds_to_ms(value)
        case datetime():
            return datetime_to_ms(value)
        case str():
            try:
                return datetime_to_ms(datetime.fromisoformat(value))
            except ValueError as e:
                raise CredentialStoreError(f"Unsupported expiry value: {value!r}") from e
        case _:
            raise CredentialStoreError(f"Unsupported expiry value: {value!r}")


class AccountTableOAuthStore:
    """OAuth grants from the ``account`` table (expiry in epoch seconds)."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def list_oauth_accounts(self, user_id: str) -> list[OAuthAccountRecord]:
        """List every OAuth account of a user."""
        async with self._session_factory() as session:
            result = await session.execute(select(Account).where(Account.user_id == user_id))
            accounts = result.scalars().all()

        return [
            OAuthAccountRecord(
                id=account.id,
                provider=account.provider,
                account_label=account.account_name or account.provider_account_id,
                has_access_token=bool(account.access_token),
                expires_at_ms=normalize_expiry(account.expires_at),
            )
            for account in accounts
        ]


class ConnectionTableOAuthStore:
    """OAuth grants from the ``oauth_connection`` table (expiry as timestamp)."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def list_oauth_accounts(self, user_id: str) -> list[OAuthAccountRecord]:
        """List every connected platform grant of a user."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(OAuthConnection).where(OAuthConnection.user_id == user_id)
            )
            connections = result.scalars().all()

        return [
            OAuthAccountRecord(
                id=connection.id,
                provider=connection.provider,
                account_label=(
                    connection.display_name or connection.provider_user_id or connection.id
                ),
                has_access_token=bool(connection.access_token),
                expires_at_ms=normalize_expiry(connection.token_expires_at),
            )
            for connection in connections
        ]


class SQLApiKeyStore:
    """API keys from the ``user_credential`` table."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def list_api_keys(self, user_id: str) -> list[ApiKeyRecord]:
        """List every API key of a user."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserCredential).where(UserCredential.user_id == user_id)
            )
            credentials = result.scalars().all()

        return [
            ApiKeyRecord(
                id=credential.id,
                platform=credential.platform,
                name=credential.name,
                has_encrypted_value=bool(credential.encrypted_value),
            )
            for credential in credentials
        ]


def build_oauth_store(
    backend: OAuthBackend,
    session_factory: SessionFactory,
) -> AccountTableOAuthStore | ConnectionTableOAuthStore | None:
    """Get the OAuth store adapter for the configured backend.

    Returns:
        Store adapter, or None when OAuth grants are not deployed
    """
    if backend == "accounts":
        return AccountTableOAuthStore(session_factory)
    if backend == "connections":
        return ConnectionTableOAuthStore(session_factory)

    logger.debug("oauth_store_disabled", backend=backend)
    return None

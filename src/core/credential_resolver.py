"""Credential status resolution.

Given the platforms a workflow requires, looks up the user's OAuth grants
and API keys and reports, per platform, whether a usable credential is
connected.

OAuth storage is optional infrastructure: when its store is missing or
fails, OAuth platforms are reported as disconnected instead of failing the
whole resolution. API key storage is not optional and its errors propagate.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

import structlog

from src.core.platforms import CredentialType, classify
from src.models.credential import (
    ApiKeyRecord,
    ApiKeyStatus,
    CredentialStatus,
    OAuthAccountRecord,
    OAuthAccountStatus,
)

logger = structlog.get_logger()


class OAuthAccountLookup(Protocol):
    """Lists a user's OAuth grants with expiries in epoch milliseconds."""

    async def list_oauth_accounts(self, user_id: str) -> Sequence[OAuthAccountRecord]: ...


class ApiKeyLookup(Protocol):
    """Lists a user's stored API keys."""

    async def list_api_keys(self, user_id: str) -> Sequence[ApiKeyRecord]: ...


def now_ms() -> int:
    """Current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def is_expired(expires_at_ms: int | None, current_ms: int) -> bool:
    """An expiry equal to the current instant counts as expired."""
    return expires_at_ms is not None and expires_at_ms <= current_ms


class CredentialStatusResolver:
    """Assembles per-platform credential statuses for one user.

    Example usage:
        resolver = CredentialStatusResolver(oauth_store, api_key_store)
        statuses = await resolver.resolve({"twitter", "openai"}, user_id="user-123")
    """

    def __init__(
        self,
        oauth_lookup: OAuthAccountLookup | None,
        api_key_lookup: ApiKeyLookup,
    ) -> None:
        """Initialize resolver.

        Args:
            oauth_lookup: OAuth grant store, None when not deployed
            api_key_lookup: API key store
        """
        self._oauth_lookup = oauth_lookup
        self._api_key_lookup = api_key_lookup

    async def resolve(
        self,
        required: Iterable[str],
        user_id: str,
        current_ms: int | None = None,
    ) -> list[CredentialStatus]:
        """Resolve the connection status of each required platform.

        Args:
            required: Platform tokens, one status is returned per token
            user_id: User whose credentials are looked up
            current_ms: Reference time in epoch milliseconds (default: now)

        Returns:
            Credential statuses in the order of ``required``

        Raises:
            Exception: Whatever the API key store raises
        """
        platforms = list(dict.fromkeys(required))
        if not platforms:
            return []

        classifications = [classify(platform) for platform in platforms]
        needs_oauth = any(c.type is CredentialType.OAUTH for c in classifications)
        needs_api_keys = any(c.type is CredentialType.API_KEY for c in classifications)

        lookups = [
            asyncio.ensure_future(
                self._load_oauth_accounts(user_id) if needs_oauth else _nothing()
            ),
            asyncio.ensure_future(
                self._load_api_keys(user_id) if needs_api_keys else _nothing()
            ),
        ]
        try:
            oauth_accounts, api_keys = await asyncio.gather(*lookups)
        except BaseException:
            # No lookup may outlive the request
            for lookup in lookups:
                lookup.cancel()
            await asyncio.gather(*lookups, return_exceptions=True)
            raise

        reference_ms = now_ms() if current_ms is None else current_ms
        statuses = []
        for classification in classifications:
            if classification.type is CredentialType.OAUTH:
                accounts = [
                    OAuthAccountStatus(
                        id=account.id,
                        label=account.account_label,
                        is_expired=is_expired(account.expires_at_ms, reference_ms),
                    )
                    for account in oauth_accounts
                    if account.provider == classification.platform and account.has_access_token
                ]
                keys: list[ApiKeyStatus] = []
                connected = bool(accounts)
            else:
                accounts = []
                keys = [
                    ApiKeyStatus(id=key.id, name=key.name)
                    for key in api_keys
                    if key.platform == classification.platform and key.has_encrypted_value
                ]
                connected = bool(keys)

            statuses.append(
                CredentialStatus(
                    platform=classification.platform,
                    type=classification.type,
                    display_name=classification.display_name,
                    icon=classification.icon,
                    connected=connected,
                    oauth_accounts=accounts,
                    api_keys=keys,
                )
            )

        logger.info(
            "credential_statuses_resolved",
            user_id=user_id,
            required=len(statuses),
            connected=sum(1 for s in statuses if s.connected),
        )

        return statuses

    async def _load_oauth_accounts(self, user_id: str) -> Sequence[OAuthAccountRecord]:
        """Load OAuth grants, degrading to none when the store is unavailable."""
        if self._oauth_lookup is None:
            logger.warning(
                "oauth_accounts_unavailable",
                user_id=user_id,
                reason="no_oauth_store",
            )
            return []

        try:
            return await self._oauth_lookup.list_oauth_accounts(user_id)
        except Exception as e:
            logger.warning(
                "oauth_accounts_unavailable",
                user_id=user_id,
                reason="lookup_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

    async def _load_api_keys(self, user_id: str) -> Sequence[ApiKeyRecord]:
        return await self._api_key_lookup.list_api_keys(user_id)


async def _nothing() -> list:
    return []


async def resolve_credential_statuses(
    required: Iterable[str],
    oauth_lookup: OAuthAccountLookup | None,
    api_key_lookup: ApiKeyLookup,
    user_id: str,
    current_ms: int | None = None,
) -> list[CredentialStatus]:
    """Resolve credential statuses with a one-off resolver."""
    resolver = CredentialStatusResolver(oauth_lookup, api_key_lookup)
    return await resolver.resolve(required, user_id=user_id, current_ms=current_ms)

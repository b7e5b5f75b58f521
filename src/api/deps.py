"""API dependencies for FastAPI dependency injection.

Provides database sessions, user context, and service instances.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, AsyncGenerator

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from src.config import settings
from src.models.user import TokenPayload, User
from src.services.credential_stores import (
    AccountTableOAuthStore,
    ConnectionTableOAuthStore,
    SessionFactory,
    SQLApiKeyStore,
    build_oauth_store,
)
from src.services.workflow_credentials_service import WorkflowCredentialsService
from src.services.workflow_service import WorkflowService

logger = structlog.get_logger()

# Database engine and session
_engine_kwargs = {"echo": settings.debug}
if not settings.database_url.startswith("sqlite"):
    _engine_kwargs.update(
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
    )

_engine = create_async_engine(settings.database_url, **_engine_kwargs)

_async_session_maker = sessionmaker(
    _engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Security
_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session.

    Yields:
        AsyncSession that will be closed after use
    """
    async with _async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> SessionFactory:
    """Get the session factory used by credential store adapters."""
    return _async_session_maker


# Type alias for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db_session)]
SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]


def create_access_token(user_id: str) -> str:
    """Create a JWT access token.

    Tokens are normally issued by the upstream auth service; this is
    used by tooling and tests that share the signing key.

    Args:
        user_id: User ID to encode in token

    Returns:
        Encoded JWT token
    """
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.jwt_access_token_expire_minutes
    )

    payload = TokenPayload(sub=user_id, exp=expire)

    return jwt.encode(
        payload.model_dump(),
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenPayload:
    """Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
        return TokenPayload(**payload)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    session: DBSession,
) -> User:
    """Get the current authenticated user.

    Args:
        credentials: Bearer token from request
        session: Database session

    Returns:
        Authenticated user

    Raises:
        HTTPException: If not authenticated or user not found
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_access_token(credentials.credentials)

    # Check token expiration
    if token_data.exp < datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    query = select(User).where(User.id == token_data.sub)
    result = await session.execute(query)
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


# Type alias for authenticated user dependency
CurrentUser = Annotated[User, Depends(get_current_user)]


# Service dependencies
def get_oauth_store(
    session_factory: SessionFactoryDep,
) -> AccountTableOAuthStore | ConnectionTableOAuthStore | None:
    """Get the OAuth grant store for the configured backend, if any."""
    return build_oauth_store(settings.oauth_account_backend, session_factory)


def get_api_key_store(session_factory: SessionFactoryDep) -> SQLApiKeyStore:
    """Get API key store instance."""
    return SQLApiKeyStore(session_factory)


def get_workflow_service(session: DBSession) -> WorkflowService:
    """Get workflow service instance."""
    return WorkflowService(session)


def get_workflow_credentials_service(
    workflow_service: Annotated[WorkflowService, Depends(get_workflow_service)],
    oauth_store: Annotated[
        AccountTableOAuthStore | ConnectionTableOAuthStore | None,
        Depends(get_oauth_store),
    ],
    api_key_store: Annotated[SQLApiKeyStore, Depends(get_api_key_store)],
) -> WorkflowCredentialsService:
    """Get workflow credentials service instance."""
    return WorkflowCredentialsService(workflow_service, oauth_store, api_key_store)


# Type aliases for service dependencies
WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]
WorkflowCredentialsServiceDep = Annotated[
    WorkflowCredentialsService, Depends(get_workflow_credentials_service)
]

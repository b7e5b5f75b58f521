"""Pytest configuration and fixtures.

Provides common fixtures for all tests including:
- Database sessions
- Test users
- Authentication tokens
- Workflow and credential rows
"""

import json
import os
from typing import Any, AsyncGenerator
from uuid import uuid4

os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from src.api.deps import create_access_token, get_db_session, get_session_factory
from src.main import app
from src.models.account import Account, OAuthConnection
from src.models.credential import UserCredential
from src.models.user import User
from src.models.workflow import Workflow, WorkflowStatus


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create async database engine.

    A file database lets the OAuth and API key lookups open their own
    connections concurrently.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Create async session factory bound to the test engine."""
    return sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    session_factory,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        id=str(uuid4()),
        username="testuser",
        email="test@example.com",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create a second user that owns nothing of the test user's."""
    user = User(
        id=str(uuid4()),
        username="otheruser",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Create authentication headers."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture
def make_workflow(db_session: AsyncSession, test_user: User):
    """Factory storing a workflow with the given config for the test user.

    A string config is stored verbatim, anything else is JSON-encoded.
    """
    async def _make(config: Any, user_id: str | None = None) -> Workflow:
        workflow = Workflow(
            id=str(uuid4()),
            user_id=user_id or test_user.id,
            name="Test Workflow",
            description="A test workflow",
            config=config if isinstance(config, str) else json.dumps(config),
            status=WorkflowStatus.DRAFT,
        )
        db_session.add(workflow)
        await db_session.commit()
        await db_session.refresh(workflow)
        return workflow

    return _make


@pytest_asyncio.fixture
async def test_workflow(make_workflow) -> Workflow:
    """Create a workflow that posts an AI-written tweet."""
    return await make_workflow(
        {
            "steps": [
                {
                    "id": "write",
                    "module": "ai.openai.chat",
                    "inputs": {"apiKey": "{{user.openai}}", "prompt": "Write a tweet"},
                },
                {
                    "id": "post",
                    "module": "social.twitter.postTweet",
                    "inputs": {"text": "{{write.content}}"},
                },
            ]
        }
    )


@pytest_asyncio.fixture
async def twitter_account(db_session: AsyncSession, test_user: User) -> Account:
    """Create a connected Twitter account without expiry."""
    account = Account(
        user_id=test_user.id,
        provider="twitter",
        provider_account_id="12345",
        account_name="@tester",
        access_token="twitter-access-token",
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest_asyncio.fixture
async def openai_key(db_session: AsyncSession, test_user: User) -> UserCredential:
    """Create a stored OpenAI API key."""
    credential = UserCredential(
        user_id=test_user.id,
        platform="openai",
        name="Personal key",
        encrypted_value="gAAAAABencrypted",
    )
    db_session.add(credential)
    await db_session.commit()
    await db_session.refresh(credential)
    return credential


@pytest_asyncio.fixture
async def twitter_connection(db_session: AsyncSession, test_user: User) -> OAuthConnection:
    """Create a connected Twitter grant in the connections table."""
    connection = OAuthConnection(
        user_id=test_user.id,
        provider="twitter",
        provider_user_id="12345",
        display_name="@tester",
        access_token="twitter-access-token",
    )
    db_session.add(connection)
    await db_session.commit()
    await db_session.refresh(connection)
    return connection

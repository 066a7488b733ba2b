# This project was developed with assistance from AI tools.
"""Shared fixtures: in-memory SQLite store, seeded funds, session registry.

Store-backed tests run against SQLite via aiosqlite so they need no
external services. The decision service is replaced by a rules-only fake;
the AI reviewer is exercised separately with a patched completion call.
"""

from datetime import UTC, datetime

import httpx
import pytest
import pytest_asyncio
from factories import RulesOnlyDecisionService
from fastapi import Request
from relief_db import Base, get_db
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from relief_api.main import app
from relief_api.middleware.auth import get_current_user
from relief_api.schemas.auth import UserContext
from relief_api.services.drafts import DraftCache
from relief_api.services.feed import ChangeFeed
from relief_api.services.scratch import InMemoryScratchStorage
from relief_api.services.seed import SAMPLE_FUNDS, seed_funds
from relief_api.services.session import SessionRegistry, get_session_registry
from relief_api.services.verification import LocalSsoLinker


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Seed ACME (Domain, acme.example), BETA (SSO) and GAMMA (Roster)."""
    async with session_factory() as session:
        await seed_funds(session, SAMPLE_FUNDS)
    return {fund["code"] for fund in SAMPLE_FUNDS}


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def scratch():
    return InMemoryScratchStorage()


@pytest.fixture
def drafts(scratch):
    return DraftCache(scratch)


@pytest.fixture
def decision_service():
    return RulesOnlyDecisionService()


@pytest.fixture
def sso_linker():
    return LocalSsoLinker()


@pytest.fixture
def registry(session_factory, feed, drafts, decision_service, sso_linker):
    return SessionRegistry(
        session_factory=session_factory,
        feed=feed,
        drafts=drafts,
        decision_service=decision_service,
        sso_linker=sso_linker,
    )


@pytest.fixture
def now():
    return datetime.now(UTC)


@pytest_asyncio.fixture
async def client_factory(registry, session_factory):
    """Build API clients bound to a test user; no Keycloak, SQLite store.

    Each client sends an ``x-test-user`` header that the overridden auth
    dependency resolves back to the ``UserContext`` it was built with.
    """
    users: dict[str, UserContext] = {}
    clients: list[httpx.AsyncClient] = []

    async def _current_user(request: Request) -> UserContext:
        return users[request.headers["x-test-user"]]

    async def _db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_current_user] = _current_user
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_db] = _db

    async def _make(user: UserContext) -> httpx.AsyncClient:
        users[user.user_id] = user
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://test",
            headers={"x-test-user": user.user_id},
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()

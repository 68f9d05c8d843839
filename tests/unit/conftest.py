"""
Unit test fixtures: an in-memory sqlite database per test, plus stores bound
to a session on it.
"""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from oidc_store.application.store import ApplicationStore
from oidc_store.authorization.store import AuthorizationStore
from oidc_store.database import init_db
from oidc_store.encoding import DecodeCache
from oidc_store.scope.store import ScopeStore
from oidc_store.token.store import TokenStore


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def decode_cache():
    return DecodeCache(maxsize=128, ttl=60)


@pytest.fixture
def application_store(decode_cache, session):
    return ApplicationStore(decode_cache, session)


@pytest.fixture
def authorization_store(decode_cache, session):
    return AuthorizationStore(decode_cache, session)


@pytest.fixture
def scope_store(decode_cache, session):
    return ScopeStore(decode_cache, session)


@pytest.fixture
def token_store(decode_cache, session):
    return TokenStore(decode_cache, session)
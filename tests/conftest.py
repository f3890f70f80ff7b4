"""
Shared fixtures: in-memory database, fake identities and a wired test app
"""
from typing import Dict, Optional
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.auth import AuthenticatedUser, IdentityProvider, get_identity_provider
from app.database import get_db
from app.routes import dashboard, ideas, leads, library
from app.services.ai_service import get_ai_service
from app.services.market_research import MarketResearchClient, get_market_research_client
from app.services.rate_limiter import InMemoryRateLimiter, get_rate_limiter
from app.services.view_cache import CacheInvalidator, ViewCache, get_cache_invalidator, get_view_cache


TEST_DATABASE_URL = "sqlite+aiosqlite://"

USER = AuthenticatedUser(id="user-1", email="founder@example.com")
OTHER_USER = AuthenticatedUser(id="user-2", email="other@example.com")
TOKENS = {"founder-token": USER, "other-token": OTHER_USER}


def valid_idea_reply() -> Dict:
    """A complete idea as the model is asked to return it"""
    return {
        "title": "ClinicFlow",
        "problem": "Small clinics lose hours every week to manual appointment reminders.",
        "solution": "An SMS assistant that confirms, reschedules and fills cancellations automatically.",
        "market_size": "$2.1B appointment reminder software market",
        "target_audience": "Independent clinics with 1-10 practitioners",
        "revenue_streams": ["Monthly subscription", "Per-message overage", "Onboarding fee"],
        "validation_data": {
            "market_trends": ["SMS-first patient communication", "Staff shortages"],
            "competitor_analysis": "Incumbents target hospital groups and price out small clinics.",
            "demand_indicators": ["Forum threads about no-shows", "Rising reminder tool searches"],
        },
    }


def generation_body(email: str = "founder@example.com", **fields) -> Dict:
    body = {
        "email": email,
        "preferences": "B2B tools for small clinics",
        "industry": "Healthcare",
    }
    body.update(fields)
    return body


def auth_header(token: str = "founder-token") -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeIdentityProvider(IdentityProvider):
    """Resolves a fixed set of opaque tokens"""

    def __init__(self, tokens: Optional[Dict[str, AuthenticatedUser]] = None):
        self.tokens = tokens or TOKENS

    async def authenticate(self, token: str) -> Optional[AuthenticatedUser]:
        return self.tokens.get(token)


class InMemoryDatabase:
    """In-memory database created lazily on the event loop that first uses it"""

    def __init__(self):
        self.engine = None
        self.session_maker = None

    async def _ensure_initialized(self):
        if self.engine is not None:
            return
        self.engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self.session_maker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def get_db(self):
        await self._ensure_initialized()
        async with self.session_maker() as session:
            yield session

    async def dispose(self):
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


@pytest_asyncio.fixture
async def engine():
    """Async engine on a private in-memory database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Session bound to the in-memory database"""
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def idea_reply():
    return valid_idea_reply()


@pytest.fixture
def ai_service(idea_reply):
    """Stand-in generation client returning a valid idea"""
    service = Mock()
    service.generate_idea = AsyncMock(return_value=idea_reply)
    return service


@pytest.fixture
def view_cache():
    return ViewCache(ttl_seconds=60)


@pytest.fixture
def api_app(ai_service, view_cache):
    """FastAPI app with every router and test doubles for external collaborators"""
    database = InMemoryDatabase()
    limiter = InMemoryRateLimiter()

    test_app = FastAPI()
    test_app.include_router(ideas.router)
    test_app.include_router(library.router)
    test_app.include_router(dashboard.router)
    test_app.include_router(leads.router)

    test_app.dependency_overrides[get_db] = database.get_db
    test_app.dependency_overrides[get_identity_provider] = lambda: FakeIdentityProvider()
    test_app.dependency_overrides[get_ai_service] = lambda: ai_service
    test_app.dependency_overrides[get_market_research_client] = lambda: MarketResearchClient(api_key="")
    test_app.dependency_overrides[get_rate_limiter] = lambda: limiter
    test_app.dependency_overrides[get_view_cache] = lambda: view_cache
    test_app.dependency_overrides[get_cache_invalidator] = lambda: CacheInvalidator(view_cache)
    test_app.state.database = database
    return test_app


@pytest.fixture
def client(api_app):
    """Test client sharing one event loop across requests"""
    with TestClient(api_app) as test_client:
        yield test_client
        test_client.portal.call(api_app.state.database.dispose)

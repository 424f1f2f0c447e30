import asyncio
import os
import sys
from typing import AsyncGenerator, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from core.database import (
    create_db_and_tables,
    create_engine_for,
    create_session_factory,
)
from core.exceptions import InvalidTokenError
from core.identity import IdentityAssertion, IdentityVerifier
from core.models import User, UserRole
from main import create_app

ADMIN_EMAIL = "owner@example.com"

ADMIN_TOKEN = "admin-token"
READER_TOKEN = "reader-token"
OTHER_TOKEN = "other-token"

TEST_ASSERTIONS = {
    ADMIN_TOKEN: IdentityAssertion(
        subject_id="idp|owner",
        email=ADMIN_EMAIL,
        email_verified=True,
        name="Site Owner",
        picture="https://img.example.com/owner.png",
    ),
    READER_TOKEN: IdentityAssertion(
        subject_id="idp|reader",
        email="reader@example.com",
        email_verified=True,
        name="Reader",
        picture="https://img.example.com/reader.png",
    ),
    OTHER_TOKEN: IdentityAssertion(
        subject_id="idp|other",
        email="other@example.com",
        email_verified=True,
        name="Other Reader",
        picture=None,
    ),
}


class FakeIdentityVerifier(IdentityVerifier):
    """Maps opaque test tokens to fixed identity assertions"""

    def __init__(self, assertions: Dict[str, IdentityAssertion] = None):
        self.assertions = dict(assertions or TEST_ASSERTIONS)
        self.calls = []

    async def verify(self, token: str) -> IdentityAssertion:
        self.calls.append(token)
        try:
            return self.assertions[token]
        except KeyError:
            raise InvalidTokenError("Unknown test token")


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _seed_admin(database_url: str):
    """Provision the owner account by email only, as a deployment seed would"""
    engine = create_engine_for(database_url)
    await create_db_and_tables(engine)
    async with create_session_factory(engine)() as session:
        session.add(User(email=ADMIN_EMAIL, role=UserRole.ADMIN))
        await session.commit()
    await engine.dispose()


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        log_level="DEBUG",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'portfolio_test.db'}",
        rate_limit_max=1000,
        rate_limit_window_seconds=60,
    )


@pytest.fixture
def fake_verifier() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def test_app(test_settings, fake_verifier):
    """Application on a fresh SQLite file with the owner account seeded"""
    asyncio.run(_seed_admin(test_settings.database_url))
    return create_app(test_settings, identity_verifier=fake_verifier)


@pytest.fixture
def test_client(test_app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return bearer(ADMIN_TOKEN)


@pytest.fixture
def reader_headers() -> Dict[str, str]:
    return bearer(READER_TOKEN)


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return bearer(OTHER_TOKEN)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async session on a private in-memory database"""
    engine = create_engine_for("sqlite+aiosqlite:///:memory:")
    await create_db_and_tables(engine)
    async with create_session_factory(engine)() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def sample_blog_post() -> Dict:
    return {
        "title": "Shipping a portfolio",
        "slug": "shipping-a-portfolio",
        "content": "word " * 450,
        "excerpt": "Notes from building this site",
        "published": True,
        "tags": ["python", "fastapi"],
    }


@pytest.fixture
def sample_project() -> Dict:
    return {
        "title": "Portfolio API",
        "slug": "portfolio-api",
        "description": "Backend for this site",
        "technologies": ["python", "fastapi", "sqlmodel"],
        "liveLink": "https://example.com",
        "repoLink": "",
        "featured": True,
    }

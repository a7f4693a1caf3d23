# tests/conftest.py — Shared test fixtures
import os
import json

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"

from models import Base
from database import get_db_session, get_session_factory, enable_sqlite_foreign_keys
from exceptions import ExternalServiceError
from llm import get_llm_client
from storage import Storage
from main import app


class FakeLLM:
    """Stands in for LLMClient: returns queued replies, records every call"""

    def __init__(self):
        self.replies = []
        self.calls = []

    def queue(self, reply):
        """Queue a string, a dict (sent as JSON) or an exception to raise"""
        self.replies.append(reply)

    async def generate(self, prompt, context=None, *, system=None, json_mode=False,
                       max_tokens=None, require_content=True):
        self.calls.append({
            "prompt": prompt, "context": context, "system": system,
            "json_mode": json_mode, "max_tokens": max_tokens,
        })
        if not self.replies:
            raise ExternalServiceError("No language model provider is configured")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        if not reply.strip() and require_content:
            raise ExternalServiceError("Language model returned no content")
        return reply


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    return Storage(db_session)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, fake_llm):
    """HTTP test client with overridden DB and language-model dependencies"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def ann(store):
    """A team member"""
    return await store.create_user({
        "name": "Ann", "email": "ann@syncflow.dev", "role": "Engineer",
        "timezone": "Europe/London", "utc_offset": 0,
    })


@pytest_asyncio.fixture
async def bob(store):
    """A second team member"""
    return await store.create_user({
        "name": "Bob", "email": "bob@syncflow.dev", "role": "Reviewer",
        "timezone": "Asia/Tokyo", "utc_offset": 9, "status": "online",
    })


@pytest_asyncio.fixture
async def backlog(store):
    return await store.create_column({"title": "Backlog", "position": 0})

"""
Pytest configuration and fixtures

Each test gets its own file-backed SQLite database, so concurrent sessions
see real locking and nothing leaks between tests.
"""
import json
from datetime import date
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import jockeyfinder.models  # noqa: F401
from jockeyfinder.database import Base
from jockeyfinder.models import Meeting, Profile


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_profile(db_session):
    """Factory: await make_profile("jockey", "approved")."""

    async def _make(role: str, status: str = "approved", full_name: str | None = None) -> Profile:
        profile = Profile(
            id=str(uuid4()),
            full_name=full_name or f"Test {role.title()}",
            role=role,
            status=status,
            email=f"{role}_{uuid4().hex[:8]}@example.com",
        )
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _make


@pytest_asyncio.fixture
async def make_meeting(db_session):
    async def _make(track: str = "Te Rapa", meeting_date: date = date(2026, 1, 10), external_id: int | None = None) -> Meeting:
        meeting = Meeting(meeting_date=meeting_date, track=track, club="Waikato RC", external_id=external_id)
        db_session.add(meeting)
        await db_session.commit()
        return meeting

    return _make


@pytest_asyncio.fixture
async def meeting(make_meeting):
    return await make_meeting()


@pytest.fixture
def calendar_transport():
    """httpx.MockTransport serving a fixed LoveRacing payload.

    Tests mutate `state["events"]` (list, encoded into the {"d": ...}
    envelope) or `state["response"]` (raw httpx.Response) before calling.
    """
    state = {"events": [], "response": None, "calls": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"].append(json.loads(request.content))
        if state["response"] is not None:
            return state["response"]
        return httpx.Response(200, json={"d": json.dumps(state["events"])})

    return httpx.MockTransport(handler), state

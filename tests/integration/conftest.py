"""
Integration Test Fixtures

Provides a fresh SQLite database (via aiosqlite) per test, seeded with a
small catalog, plus an HTTP client wired to the application with get_db
overridden to use that database.

The session maker mirrors the application's (expire_on_commit=False) so
service code behaves the same as in production.
"""

from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from studyhub.db.base import Base, get_db
from studyhub.db.models import Activity, Subtopic, User


# =============================================================================
# Database Configuration
# =============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over a throwaway SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A session for direct store and service tests."""
    async with session_maker() as session:
        yield session


# =============================================================================
# Seed Data
# =============================================================================


@pytest_asyncio.fixture
async def seeded(session_maker) -> dict:
    """
    Two users and a small catalog.

    Activities:
        1 "quiz Algebra"      subtopics 11 (order 1), 12 (order 2)
        2 "quiz Geometry"     subtopic 21 (order 1)
        3 "Python Basics"     subtopic 31 (order 1)
        4 "Web Development"   subtopics 41 (order 1), 42 (order 2)
    """
    async with session_maker() as session:
        session.add_all(
            [
                User(id=1, username="alice", email="alice@example.com"),
                User(id=2, username="bob", email="bob@example.com"),
            ]
        )
        session.add_all(
            [
                Activity(
                    id=1,
                    title="quiz Algebra",
                    description="equations and functions",
                    subtopics=[
                        Subtopic(id=11, title="Linear equations", order=1),
                        Subtopic(id=12, title="Quadratics", order=2),
                    ],
                ),
                Activity(
                    id=2,
                    title="quiz Geometry",
                    description="shapes",
                    subtopics=[Subtopic(id=21, title="Triangles", order=1)],
                ),
                Activity(
                    id=3,
                    title="Python Basics",
                    description="intro to python",
                    subtopics=[Subtopic(id=31, title="Variables", order=1)],
                ),
                Activity(
                    id=4,
                    title="Web Development",
                    description="html and python backends",
                    subtopics=[
                        Subtopic(id=41, title="Flask routing", order=1),
                        Subtopic(id=42, title="Templates", order=2),
                    ],
                ),
            ]
        )
        await session.commit()

    return {"user_id": 1, "other_user_id": 2}


# =============================================================================
# HTTP Client
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker, seeded) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Async client against a fresh app with get_db bound to the test database.
    """
    from studyhub.main import create_app

    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return {"X-User-Id": "1"}


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return {"X-User-Id": "2"}

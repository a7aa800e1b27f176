"""
Shared fixtures: a file-backed SQLite database per test, a small discipline
catalog and a few users.

File-backed (not :memory:) so that concurrent sessions opened by the
coordinator see each other's commits.
"""
import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ADMIN_EMAILS", "admin@lecturehub.test")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lecturehub.orm.base import Base
from lecturehub.orm.discipline import Discipline
from lecturehub.orm.user import User
from lecturehub.schemas.module import ModuleDraft


TEST_DISCIPLINES = [
    {
        "id": "statistics",
        "name": "Statistics",
        "category": "natural-sciences-mathematics",
        "description": "Study of data collection, analysis and inference",
    },
    {
        "id": "computer-science",
        "name": "Computer Science",
        "category": "engineering-computer-science",
        "description": "Study of computation, programming, algorithms, and computer systems",
    },
    {
        "id": "psychology",
        "name": "Psychology",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of human behavior and mental processes",
    },
]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lecturehub_test.db'}",
        echo=False,
        connect_args={"timeout": 30.0},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with factory() as session:
        for discipline_data in TEST_DISCIPLINES:
            session.add(Discipline(module_count=0, **discipline_data))
        await session.commit()

    return factory


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _create_user(session_factory, email: str, name: str) -> User:
    async with session_factory() as session:
        user = User(email=email, name=name)
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def user(session_factory) -> User:
    return await _create_user(session_factory, "ada@lecturehub.test", "Ada Lovelace")


@pytest_asyncio.fixture
async def other_user(session_factory) -> User:
    return await _create_user(session_factory, "alan@lecturehub.test", "Alan Turing")


@pytest_asyncio.fixture
async def admin_user(session_factory) -> User:
    return await _create_user(session_factory, "admin@lecturehub.test", "Admin")


@pytest.fixture
def make_draft():
    """Factory for generated drafts; keyword overrides use snake_case field names."""
    def _make(**overrides) -> ModuleDraft:
        data = {
            "slug": "descriptive-statistics",
            "title": "Descriptive Statistics",
            "description": "Summarising data",
            "discipline": "statistics",
            "concepts": ["mean", "median"],
            "tags": ["stats"],
            "learning_outcomes": ["Compute a mean"],
            "estimated_time": 30,
            "lessons": [{"slug": "l1", "title": "L1"}, {"slug": "l2", "title": "L2"}],
            "exercises": [{"slug": "e1", "title": "E1"}],
        }
        data.update(overrides)
        return ModuleDraft(**data)

    return _make


@pytest.fixture
def append_draft(make_draft):
    """Factory for append-to drafts targeting a slug."""
    def _make(target_slug: str, **overrides) -> ModuleDraft:
        overrides.setdefault("slug", "")
        overrides.setdefault("title", "More Statistics")
        overrides.setdefault("consolidation", {"action": "append-to", "target_module_slug": target_slug})
        return make_draft(**overrides)

    return _make

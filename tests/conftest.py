"""Shared pytest fixtures: in-memory database, fake question engine, API client."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from qpy_submission import models  # noqa: F401
from qpy_submission.api import deps
from qpy_submission.config import settings
from qpy_submission.core.security import create_host_token
from qpy_submission.database import Base, enable_sqlite_transactions
from qpy_submission.main import app
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_reference_service import QuestionReferenceResolver

from tests.fakes import ASSIGNMENT_ID, BANK_ENTRY_ID, CONTEXT_ID, FakeQuestionEngine, seed_question_bank


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def assignment() -> AssignmentContext:
    return AssignmentContext(context_id=CONTEXT_ID, instance_id=ASSIGNMENT_ID)


@pytest.fixture
def question_engine() -> FakeQuestionEngine:
    return FakeQuestionEngine()


@pytest.fixture
async def question_bank(db: AsyncSession) -> None:
    await seed_question_bank(db)


@pytest.fixture
async def configured_assignment(db: AsyncSession, assignment: AssignmentContext, question_bank) -> AssignmentContext:
    """Assignment pointing at version 1 of the seeded entry."""
    await QuestionReferenceResolver(db, assignment).upsert(BANK_ENTRY_ID, 1)
    await db.commit()
    return assignment


@pytest.fixture
def api_base() -> str:
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
def host_headers() -> dict:
    return {"Authorization": f"Bearer {create_host_token('moodle.test')}"}


@pytest.fixture
async def async_client(session_factory, question_engine: FakeQuestionEngine, api_base: str):
    """API client whose requests use the in-memory database and the fake engine."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_question_engine():
        yield question_engine

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_question_engine] = override_get_question_engine
    client = AsyncClient(transport=ASGITransport(app=app), base_url=api_base, timeout=30.0)
    yield client
    await client.aclose()
    app.dependency_overrides.clear()

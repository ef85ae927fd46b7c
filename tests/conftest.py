"""Shared test fixtures: file-backed async SQLite store, catalog builders, service, HTTP client."""

import os

# Set env vars BEFORE importing app modules (settings are cached on first use)
os.environ.setdefault("CYBERQUEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CYBERQUEST_STORE_TIMEOUT_SECONDS", "5")

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.routers.api import get_service  # noqa: E402
from app.schemas.catalog import (  # noqa: E402
    BadgeCriteriaSchema,
    BadgeSchema,
    ContentCatalog,
    HabitSchema,
    QuestionSchema,
    QuizSchema,
)
from app.services.progression import ProgressionService  # noqa: E402
from app.services.store import SqlProfileStore  # noqa: E402

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_quiz(quiz_id: str, questions: int = 10, title: str | None = None) -> QuizSchema:
    """Quiz whose correct answer is always option 0."""
    return QuizSchema(
        id=quiz_id,
        title=title or quiz_id.replace("_", " ").title(),
        questions=[
            QuestionSchema(question=f"Question {i + 1}?", options=["right", "wrong", "also wrong"], correct_answer=0)
            for i in range(questions)
        ],
    )


def make_badge(
    badge_id: str,
    criteria_type: str,
    requirement: float = 1,
    points: int | None = None,
    all_quizzes: bool = False,
) -> BadgeSchema:
    return BadgeSchema(
        id=badge_id,
        name=badge_id.replace("_", " ").title(),
        points=points,
        criteria=BadgeCriteriaSchema(type=criteria_type, requirement=requirement, all_quizzes=all_quizzes),
    )


def make_habit(habit_id: str, frequency: str = "daily") -> HabitSchema:
    return HabitSchema(id=habit_id, name=habit_id, frequency=frequency)


class FakeClock:
    """Settable clock for the service."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def catalog() -> ContentCatalog:
    return ContentCatalog(
        quizzes=(make_quiz("ten", 10, title="Ten Questions"), make_quiz("two", 2)),
        badges=(
            make_badge("perfect_score", "perfect_quiz_score", 100, points=100),
            make_badge("four_habits", "habits_enabled", 4, points=40),
        ),
        habits=(
            make_habit("lockScreen", "daily"),
            make_habit("checkLinks", "daily"),
            make_habit("backupData", "monthly"),
            make_habit("reviewPrivacySettings", "yearly"),
        ),
        tips=("Tip one", "Tip two"),
    )


@pytest.fixture
async def sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(sessionmaker) -> SqlProfileStore:
    return SqlProfileStore(sessionmaker, timeout=5.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_service(store, clock):
    def _make(catalog: ContentCatalog) -> ProgressionService:
        return ProgressionService(store, catalog, get_settings(), clock=clock)
    return _make


@pytest.fixture
def service(make_service, catalog) -> ProgressionService:
    return make_service(catalog)


@pytest.fixture
async def client(service):
    app.dependency_overrides[get_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()

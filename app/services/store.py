"""Profile store: keyed profile documents plus append-only quiz and points logs.

Mutations go through ``transaction(user_id)``, which holds a per-user lock for
the whole read-modify-write and commits everything in one database
transaction. Writes are also compare-and-set on ``Profile.version`` so a
writer in another process cannot silently overwrite a newer profile.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, AsyncIterator

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ProfileExists, ProfileNotFound, StaleProfile, StoreUnavailable
from app.models.points_transaction import PointsTransactionRecord
from app.models.profile import Profile
from app.models.quiz_result import QuizResultRecord
from app.schemas.profile import (
    AwardedBadgeSchema,
    PointsTransactionSchema,
    ProgressProfileSchema,
    QuizResultSchema,
)

logger = logging.getLogger(__name__)

# Profile fields a caller may write; everything else is managed by the store
WRITABLE_FIELDS = {
    "email",
    "display_name",
    "total_points",
    "level",
    "quizzes_taken",
    "total_quiz_score",
    "average_quiz_score",
    "security_habits",
    "badges",
    "current_streak",
    "last_activity_date",
}


class ProfileTransaction(ABC):
    """Operations available inside one user's critical section."""

    user_id: str

    @abstractmethod
    async def get(self) -> ProgressProfileSchema: ...

    @abstractmethod
    async def update(self, fields: dict[str, Any], expected_version: int | None = None) -> None: ...

    @abstractmethod
    async def append_transaction(self, txn: PointsTransactionSchema) -> None: ...

    @abstractmethod
    async def append_quiz_result(self, result: QuizResultSchema) -> int: ...


class ProfileStore(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> ProgressProfileSchema: ...

    @abstractmethod
    async def create(self, user_id: str, profile: ProgressProfileSchema) -> ProgressProfileSchema: ...

    @abstractmethod
    async def update(
        self, user_id: str, fields: dict[str, Any], expected_version: int | None = None
    ) -> None: ...

    @abstractmethod
    async def append_transaction(self, user_id: str, txn: PointsTransactionSchema) -> None: ...

    @abstractmethod
    async def append_quiz_result(self, user_id: str, result: QuizResultSchema) -> int: ...

    @abstractmethod
    async def quiz_history(self, user_id: str, limit: int = 10) -> list[QuizResultSchema]: ...

    @abstractmethod
    async def points_history(self, user_id: str, limit: int = 20) -> list[PointsTransactionSchema]: ...

    @abstractmethod
    async def leaderboard(self, limit: int = 10) -> list[ProgressProfileSchema]: ...

    @abstractmethod
    def transaction(self, user_id: str) -> AsyncContextManager[ProfileTransaction]: ...


# ---------- row <-> schema ----------

def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset; everything is written in UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_schema(row: Profile) -> ProgressProfileSchema:
    return ProgressProfileSchema(
        user_id=row.user_id,
        email=row.email,
        display_name=row.display_name,
        total_points=row.total_points,
        level=row.level,
        quizzes_taken=row.quizzes_taken,
        total_quiz_score=row.total_quiz_score,
        average_quiz_score=row.average_quiz_score,
        security_habits=json.loads(row.habits_json or "{}"),
        badges=tuple(AwardedBadgeSchema(**b) for b in json.loads(row.badges_json or "[]")),
        current_streak=row.current_streak,
        last_activity_date=row.last_activity_date,
        version=row.version,
    )


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Not writable profile fields: {', '.join(sorted(unknown))}")
    values = dict(fields)
    if "security_habits" in values:
        values["habits_json"] = json.dumps(values.pop("security_habits"))
    if "badges" in values:
        values["badges_json"] = json.dumps(
            [b.model_dump(mode="json") for b in values.pop("badges")]
        )
    return values


def _result_to_schema(row: QuizResultRecord) -> QuizResultSchema:
    return QuizResultSchema(
        quiz_id=row.quiz_id,
        quiz_name=row.quiz_name,
        score=row.score,
        total_questions=row.total_questions,
        percentage=row.percentage,
        answers=tuple(json.loads(row.answers_json or "[]")),
        difficulty=row.difficulty,
        completed_at=_as_utc(row.completed_at),
    )


# ---------- queries shared by the store and its transactions ----------

async def _load(session: AsyncSession, user_id: str) -> ProgressProfileSchema:
    result = await session.execute(
        select(Profile)
        .where(Profile.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise ProfileNotFound(user_id)
    return _to_schema(row)


async def _write(
    session: AsyncSession, user_id: str, fields: dict[str, Any], expected_version: int | None
) -> None:
    stmt = update(Profile).where(Profile.user_id == user_id)
    if expected_version is not None:
        stmt = stmt.where(Profile.version == expected_version)
    stmt = stmt.values(
        **_to_columns(fields), version=Profile.version + 1, updated_at=func.now()
    ).execution_options(synchronize_session=False)

    result = await session.execute(stmt)
    if result.rowcount:
        return
    exists = await session.scalar(select(Profile.user_id).where(Profile.user_id == user_id))
    if exists is None:
        raise ProfileNotFound(user_id)
    raise StaleProfile(user_id, expected_version)


def _add_transaction(session: AsyncSession, user_id: str, txn: PointsTransactionSchema) -> None:
    session.add(
        PointsTransactionRecord(
            user_id=user_id, amount=txn.amount, reason=txn.reason, timestamp=txn.timestamp
        )
    )


async def _add_quiz_result(session: AsyncSession, user_id: str, result: QuizResultSchema) -> int:
    record = QuizResultRecord(
        user_id=user_id,
        quiz_id=result.quiz_id,
        quiz_name=result.quiz_name,
        difficulty=result.difficulty,
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage,
        answers_json=json.dumps(list(result.answers)),
        completed_at=result.completed_at,
    )
    session.add(record)
    await session.flush()
    return record.id


class SqlProfileTransaction(ProfileTransaction):
    def __init__(self, store: "SqlProfileStore", session: AsyncSession, user_id: str):
        self._store = store
        self._session = session
        self.user_id = user_id

    async def get(self) -> ProgressProfileSchema:
        return await self._store._call(_load(self._session, self.user_id))

    async def update(self, fields: dict[str, Any], expected_version: int | None = None) -> None:
        await self._store._call(_write(self._session, self.user_id, fields, expected_version))

    async def append_transaction(self, txn: PointsTransactionSchema) -> None:
        _add_transaction(self._session, self.user_id, txn)

    async def append_quiz_result(self, result: QuizResultSchema) -> int:
        return await self._store._call(_add_quiz_result(self._session, self.user_id, result))


class SqlProfileStore(ProfileStore):
    """Profile store on an async SQLAlchemy session factory."""

    def __init__(self, sessionmaker: async_sessionmaker, timeout: float = 5.0):
        self._sessionmaker = sessionmaker
        self.timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def _call(self, coro):
        """Await a store call with the timeout; transport failures become StoreUnavailable."""
        try:
            async with asyncio.timeout(self.timeout):
                return await coro
        except TimeoutError as exc:
            logger.warning("Profile store call timed out after %ss", self.timeout)
            raise StoreUnavailable(f"Profile store timed out after {self.timeout}s") from exc
        except (OperationalError, InterfaceError) as exc:
            logger.warning("Profile store unavailable: %s", exc)
            raise StoreUnavailable(str(exc)) from exc

    # ---------- unlocked reads ----------

    async def get(self, user_id: str) -> ProgressProfileSchema:
        async with self._sessionmaker() as session:
            return await self._call(_load(session, user_id))

    async def quiz_history(self, user_id: str, limit: int = 10) -> list[QuizResultSchema]:
        """Most recent results first."""
        async with self._sessionmaker() as session:
            result = await self._call(
                session.execute(
                    select(QuizResultRecord)
                    .where(QuizResultRecord.user_id == user_id)
                    .order_by(QuizResultRecord.id.desc())
                    .limit(limit)
                )
            )
            return [_result_to_schema(r) for r in result.scalars().all()]

    async def points_history(self, user_id: str, limit: int = 20) -> list[PointsTransactionSchema]:
        """Most recent transactions first."""
        async with self._sessionmaker() as session:
            result = await self._call(
                session.execute(
                    select(PointsTransactionRecord)
                    .where(PointsTransactionRecord.user_id == user_id)
                    .order_by(PointsTransactionRecord.id.desc())
                    .limit(limit)
                )
            )
            return [
                PointsTransactionSchema(amount=r.amount, reason=r.reason, timestamp=_as_utc(r.timestamp))
                for r in result.scalars().all()
            ]

    async def leaderboard(self, limit: int = 10) -> list[ProgressProfileSchema]:
        async with self._sessionmaker() as session:
            result = await self._call(
                session.execute(
                    select(Profile)
                    .order_by(Profile.total_points.desc(), Profile.user_id.asc())
                    .limit(limit)
                )
            )
            return [_to_schema(r) for r in result.scalars().all()]

    # ---------- writes ----------

    async def create(self, user_id: str, profile: ProgressProfileSchema) -> ProgressProfileSchema:
        async with self.transaction(user_id) as tx:
            session = tx._session
            exists = await self._call(
                session.scalar(select(Profile.user_id).where(Profile.user_id == user_id))
            )
            if exists is not None:
                raise ProfileExists(user_id)
            session.add(
                Profile(
                    user_id=user_id,
                    email=profile.email,
                    display_name=profile.display_name,
                    total_points=profile.total_points,
                    level=profile.level,
                    quizzes_taken=profile.quizzes_taken,
                    total_quiz_score=profile.total_quiz_score,
                    average_quiz_score=profile.average_quiz_score,
                    current_streak=profile.current_streak,
                    last_activity_date=profile.last_activity_date,
                    habits_json=json.dumps(profile.security_habits),
                    badges_json=json.dumps([b.model_dump(mode="json") for b in profile.badges]),
                    version=1,
                )
            )
            try:
                await self._call(session.flush())
            except IntegrityError as exc:
                raise ProfileExists(user_id) from exc
            return await tx.get()

    async def update(
        self, user_id: str, fields: dict[str, Any], expected_version: int | None = None
    ) -> None:
        async with self.transaction(user_id) as tx:
            await tx.update(fields, expected_version)

    async def append_transaction(self, user_id: str, txn: PointsTransactionSchema) -> None:
        async with self.transaction(user_id) as tx:
            await tx.append_transaction(txn)

    async def append_quiz_result(self, user_id: str, result: QuizResultSchema) -> int:
        async with self.transaction(user_id) as tx:
            return await tx.append_quiz_result(result)

    @asynccontextmanager
    async def transaction(self, user_id: str) -> AsyncIterator[SqlProfileTransaction]:
        """Critical section for one user: serialized in-process, committed atomically."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            try:
                async with asyncio.timeout(self.timeout):
                    await lock.acquire()
            except TimeoutError as exc:
                logger.warning("Timed out waiting for profile lock of user %s", user_id)
                raise StoreUnavailable(f"Profile of user {user_id!r} is busy") from exc

            try:
                async with self._sessionmaker() as session:
                    try:
                        yield SqlProfileTransaction(self, session, user_id)
                        await self._call(session.commit())
                    except Exception:
                        await session.rollback()
                        raise
            finally:
                lock.release()
        finally:
            # locks live only while some call holds or waits for them
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

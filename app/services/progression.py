"""Progression service: runs each user action as one read-modify-write on the profile.

Pure pieces (ledger, badges, quiz session, streak, rotation) compute the new
state; this module reads the profile inside the user's store transaction,
applies them in order and writes the result back with compare-and-set.
"""
import logging
from datetime import date, datetime, timezone
from typing import Callable

from app.core.config import Settings, get_settings
from app.core.errors import HabitNotFound, ProfileExists, ProfileNotFound, QuizNotFound
from app.schemas.catalog import BadgeSchema, ContentCatalog
from app.schemas.profile import (
    PointsTransactionSchema,
    ProgressProfileSchema,
    QuizResultSchema,
)
from app.schemas.stats import (
    ActionOutcomeSchema,
    DashboardSchema,
    DashboardStatsSchema,
    LeaderboardEntrySchema,
    QuizOutcomeSchema,
    TodayHabitSchema,
)
from app.services import badges, rotation
from app.services.ledger import apply_points
from app.services.quiz_session import percentage, quiz_points, score_quiz
from app.services.store import WRITABLE_FIELDS, ProfileStore, ProfileTransaction
from app.services.streak import advance_streak

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressionService:
    def __init__(
        self,
        store: ProfileStore,
        catalog: ContentCatalog,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.clock = clock

    # ---------- pure steps with configured constants ----------

    def _apply_points(self, profile, amount, reason, now):
        return apply_points(
            profile, amount, reason, now=now, points_per_level=self.settings.points_per_level
        )

    def _evaluate(self, profile, now):
        return badges.evaluate(
            profile,
            self.catalog,
            now=now,
            default_points=self.settings.default_badge_points,
            points_per_level=self.settings.points_per_level,
        )

    async def _save(
        self,
        tx: ProfileTransaction,
        before: ProgressProfileSchema,
        after: ProgressProfileSchema,
        transactions: list[PointsTransactionSchema],
    ) -> ProgressProfileSchema:
        await tx.update(
            {field: getattr(after, field) for field in WRITABLE_FIELDS},
            expected_version=before.version,
        )
        for txn in transactions:
            await tx.append_transaction(txn)
        return await tx.get()

    def _outcome(self, before, after, awarded, cls=ActionOutcomeSchema, **extra):
        for badge in awarded:
            logger.info("Awarded badge %s to user %s", badge.id, after.user_id)
        return cls(
            profile=after,
            awarded_badges=awarded,
            points_awarded=after.total_points - before.total_points,
            **extra,
        )

    # ---------- profile lifecycle ----------

    async def initialize_profile(
        self, user_id: str, email: str | None = None, display_name: str | None = None
    ) -> ProgressProfileSchema:
        """Return the user's profile, creating a zeroed one on first sign-in."""
        try:
            return await self.store.get(user_id)
        except ProfileNotFound:
            pass

        if not display_name and email:
            display_name = email.split("@")[0]
        profile = ProgressProfileSchema(
            user_id=user_id,
            email=email,
            display_name=display_name,
            security_habits=self.catalog.default_habit_map(),
        )
        try:
            created = await self.store.create(user_id, profile)
        except ProfileExists:
            # lost a race with another first sign-in
            return await self.store.get(user_id)
        logger.info("Profile initialized for user %s", user_id)
        return created

    async def get_profile(self, user_id: str) -> ProgressProfileSchema:
        return await self.store.get(user_id)

    # ---------- mutating actions ----------

    async def add_points(self, user_id: str, amount: int, reason: str) -> ActionOutcomeSchema:
        now = self.clock()
        async with self.store.transaction(user_id) as tx:
            before = await tx.get()
            profile, txn = self._apply_points(before, amount, reason, now)
            profile, awarded, badge_txns = self._evaluate(profile, now)
            after = await self._save(tx, before, profile, [txn, *badge_txns])
        logger.info("Added %d points to user %s for: %s", amount, user_id, reason)
        return self._outcome(before, after, awarded)

    async def evaluate_badges(self, user_id: str) -> ActionOutcomeSchema:
        now = self.clock()
        async with self.store.transaction(user_id) as tx:
            before = await tx.get()
            profile, awarded, txns = self._evaluate(before, now)
            if not awarded:
                return self._outcome(before, before, [])
            after = await self._save(tx, before, profile, txns)
        return self._outcome(before, after, awarded)

    async def toggle_habit(self, user_id: str, habit_id: str, enabled: bool) -> ActionOutcomeSchema:
        """Set a habit flag. Each false -> true transition earns habit points; switching off takes nothing back."""
        if habit_id not in self.catalog.habit_keys():
            raise HabitNotFound(habit_id)

        now = self.clock()
        async with self.store.transaction(user_id) as tx:
            before = await tx.get()
            was_enabled = before.security_habits.get(habit_id, False)
            profile = before.model_copy(
                update={"security_habits": {**before.security_habits, habit_id: enabled}}
            )
            txns = []
            if enabled and not was_enabled:
                profile, txn = self._apply_points(
                    profile, self.settings.habit_points, f"Enabled security habit: {habit_id}", now
                )
                txns.append(txn)
                profile = advance_streak(profile, now.date())
            profile, awarded, badge_txns = self._evaluate(profile, now)
            after = await self._save(tx, before, profile, txns + badge_txns)

        logger.info("Security habit %s set to %s for user %s", habit_id, enabled, user_id)
        return self._outcome(before, after, awarded)

    async def complete_quiz(
        self, user_id: str, quiz_id: str, answers: list[int | None]
    ) -> QuizOutcomeSchema:
        """Score a finished attempt, store it and grant quiz points and badges."""
        quiz = self.catalog.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)

        now = self.clock()
        result = score_quiz(quiz, answers, now=now)

        async with self.store.transaction(user_id) as tx:
            before = await tx.get()
            await tx.append_quiz_result(result)

            taken = before.quizzes_taken + 1
            total_score = before.total_quiz_score + result.score
            profile = before.model_copy(
                update={
                    "quizzes_taken": taken,
                    "total_quiz_score": total_score,
                    "average_quiz_score": total_score / taken,
                }
            )
            profile = advance_streak(profile, now.date())

            awarded: list[BadgeSchema] = []
            txns: list[PointsTransactionSchema] = []
            if result.is_perfect:
                perfect = self.catalog.get_badge(self.settings.perfect_badge_id)
                if perfect is not None:
                    profile, txn = badges.award_badge(
                        profile, perfect, now=now,
                        default_points=self.settings.default_badge_points,
                        points_per_level=self.settings.points_per_level,
                    )
                    if txn is not None:
                        awarded.append(perfect)
                        txns.append(txn)

            points = quiz_points(
                result,
                per_correct=self.settings.quiz_points_per_correct,
                perfect_bonus=self.settings.perfect_quiz_bonus,
            )
            if points > 0:
                profile, txn = self._apply_points(profile, points, f"Quiz completed: {quiz.title}", now)
                txns.append(txn)

            profile, more, badge_txns = self._evaluate(profile, now)
            after = await self._save(tx, before, profile, txns + badge_txns)

        logger.info(
            "Quiz %s completed by user %s: %d/%d", quiz_id, user_id, result.score, result.total_questions
        )
        return self._outcome(before, after, awarded + more, cls=QuizOutcomeSchema, result=result)

    # ---------- read-only views ----------

    async def quiz_history(self, user_id: str, limit: int | None = None) -> list[QuizResultSchema]:
        return await self.store.quiz_history(user_id, limit or self.settings.history_default_limit)

    async def points_history(self, user_id: str, limit: int = 20) -> list[PointsTransactionSchema]:
        return await self.store.points_history(user_id, limit)

    async def dashboard(self, user_id: str) -> DashboardSchema:
        profile = await self.store.get(user_id)
        recent = await self.store.quiz_history(user_id, 3)
        habits = profile.security_habits
        security_score = percentage(profile.enabled_habit_count(), len(habits)) if habits else 0
        return DashboardSchema(
            profile=profile,
            recent_quizzes=recent,
            security_score=security_score,
            stats=DashboardStatsSchema(
                total_points=profile.total_points,
                level=profile.level,
                badges_count=len(profile.badges),
                quizzes_taken=profile.quizzes_taken,
                average_quiz_score=profile.average_quiz_score,
                current_streak=profile.current_streak,
            ),
            tip_of_the_day=rotation.tip_of_the_day(self.catalog.tips, self.clock().date()),
        )

    async def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntrySchema]:
        profiles = await self.store.leaderboard(limit or self.settings.leaderboard_default_limit)
        return [
            LeaderboardEntrySchema(
                rank=rank,
                user_id=p.user_id,
                display_name=p.display_name,
                total_points=p.total_points,
                level=p.level,
                badges=len(p.badges),
            )
            for rank, p in enumerate(profiles, start=1)
        ]

    async def todays_habits(self, user_id: str, day: date | None = None) -> list[TodayHabitSchema]:
        """Today's rotation with the user's enabled flags."""
        profile = await self.store.get(user_id)
        picks = rotation.todays_habits(
            self.catalog,
            day or self.clock().date(),
            daily=self.settings.daily_habit_count,
            monthly=self.settings.monthly_habit_count,
            yearly=self.settings.yearly_habit_count,
        )
        return [
            TodayHabitSchema(**h.model_dump(), enabled=profile.security_habits.get(h.id, False))
            for h in picks
        ]

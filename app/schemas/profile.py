"""Pydantic schemas for per-user progression state and its append-only logs."""
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from app.schemas.catalog import BadgeSchema


class AwardedBadgeSchema(BadgeSchema):
    """Badge definition snapshot taken when the badge was earned."""

    earned_at: datetime


class ProgressProfileSchema(BaseModel):
    user_id: str
    email: str | None = None
    display_name: str | None = None
    total_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    quizzes_taken: int = Field(default=0, ge=0)
    total_quiz_score: float = Field(default=0.0, ge=0)
    average_quiz_score: float = 0.0
    security_habits: dict[str, bool] = Field(default_factory=dict)
    badges: tuple[AwardedBadgeSchema, ...] = ()
    current_streak: int = Field(default=0, ge=0)
    last_activity_date: date | None = None
    version: int = 0

    model_config = {"frozen": True}

    def badge_ids(self) -> set[str]:
        return {b.id for b in self.badges}

    def has_badge(self, badge_id: str) -> bool:
        return any(b.id == badge_id for b in self.badges)

    def enabled_habit_count(self) -> int:
        return sum(1 for enabled in self.security_habits.values() if enabled)


class PointsTransactionSchema(BaseModel):
    amount: int
    reason: str
    timestamp: datetime

    model_config = {"frozen": True}


class QuizResultSchema(BaseModel):
    quiz_id: str
    quiz_name: str
    score: int = Field(ge=0)
    total_questions: int = Field(gt=0)
    percentage: int
    answers: tuple[int | None, ...]
    difficulty: str | None = None
    completed_at: datetime

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _consistent(self):
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed total_questions")
        if len(self.answers) != self.total_questions:
            raise ValueError("answers must have one entry per question")
        return self

    @property
    def is_perfect(self) -> bool:
        return self.score == self.total_questions

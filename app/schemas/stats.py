"""Pydantic schemas for action outcomes, dashboard and leaderboard."""
from pydantic import BaseModel, Field

from app.schemas.catalog import BadgeSchema, HabitSchema
from app.schemas.profile import ProgressProfileSchema, QuizResultSchema


class ProfileCreateSchema(BaseModel):
    email: str | None = None
    display_name: str | None = None


class PointsAddSchema(BaseModel):
    # sign is checked by the ledger (InvalidAmount)
    amount: int
    reason: str = Field(min_length=1, max_length=255)


class HabitToggleSchema(BaseModel):
    enabled: bool


class QuizSubmitSchema(BaseModel):
    answers: list[int | None]


class ActionOutcomeSchema(BaseModel):
    profile: ProgressProfileSchema
    awarded_badges: list[BadgeSchema] = []
    points_awarded: int = 0


class QuizOutcomeSchema(ActionOutcomeSchema):
    result: QuizResultSchema


class DashboardStatsSchema(BaseModel):
    total_points: int
    level: int
    badges_count: int
    quizzes_taken: int
    average_quiz_score: float
    current_streak: int


class DashboardSchema(BaseModel):
    profile: ProgressProfileSchema
    recent_quizzes: list[QuizResultSchema]
    security_score: int  # % of tracked habits enabled
    stats: DashboardStatsSchema
    tip_of_the_day: str | None = None


class LeaderboardEntrySchema(BaseModel):
    rank: int
    user_id: str
    display_name: str | None
    total_points: int
    level: int
    badges: int


class TodayHabitSchema(HabitSchema):
    enabled: bool = False

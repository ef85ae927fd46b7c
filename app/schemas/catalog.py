"""Pydantic schemas for the read-only content catalog: quizzes, badges, habits."""
from typing import Literal

from pydantic import BaseModel, Field, model_validator

CRITERIA_TYPES = (
    "quiz_completion",
    "habits_enabled",
    "total_points",
    "level_reached",
    "activity_streak",
    "quiz_average",
    "perfect_quiz_score",
)

HabitFrequency = Literal["daily", "monthly", "yearly"]


class QuestionSchema(BaseModel):
    question: str
    options: list[str] = Field(min_length=2)
    correct_answer: int = Field(ge=0)
    explanation: str = ""

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _correct_answer_in_options(self):
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class QuizSchema(BaseModel):
    id: str
    title: str
    description: str = ""
    category: str = "general"
    difficulty: str = "Beginner"
    questions: list[QuestionSchema] = Field(min_length=1)

    model_config = {"frozen": True}


class BadgeCriteriaSchema(BaseModel):
    # not restricted to CRITERIA_TYPES: unknown types are skipped at evaluation time
    type: str
    requirement: float = 0
    all_quizzes: bool = False

    model_config = {"frozen": True}


class BadgeSchema(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    category: str = "general"
    points: int | None = Field(default=None, gt=0)  # None -> default_badge_points
    criteria: BadgeCriteriaSchema

    model_config = {"frozen": True}


class HabitSchema(BaseModel):
    id: str
    name: str
    description: str = ""
    frequency: HabitFrequency
    category: str = "general"
    icon: str = ""

    model_config = {"frozen": True}


# Habit flags every new profile starts with, on top of the catalog habit ids
DEFAULT_HABIT_KEYS = (
    "passwordManagerUsed",
    "twoFactorEnabled",
    "regularBreachChecks",
    "securityUpdatesEnabled",
)


class ContentCatalog(BaseModel):
    """Static reference data. Loaded once, injected everywhere, never mutated."""

    quizzes: tuple[QuizSchema, ...] = ()
    badges: tuple[BadgeSchema, ...] = ()
    habits: tuple[HabitSchema, ...] = ()
    tips: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _unique_ids(self):
        for kind in ("quizzes", "badges", "habits"):
            ids = [item.id for item in getattr(self, kind)]
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            if dupes:
                raise ValueError(f"duplicate {kind} ids: {', '.join(dupes)}")
        return self

    def get_quiz(self, quiz_id: str) -> QuizSchema | None:
        return next((q for q in self.quizzes if q.id == quiz_id), None)

    def get_badge(self, badge_id: str) -> BadgeSchema | None:
        return next((b for b in self.badges if b.id == badge_id), None)

    def get_habit(self, habit_id: str) -> HabitSchema | None:
        return next((h for h in self.habits if h.id == habit_id), None)

    def habits_by_frequency(self, frequency: str) -> list[HabitSchema]:
        return [h for h in self.habits if h.frequency == frequency]

    def quizzes_by_category(self, category: str) -> list[QuizSchema]:
        return [q for q in self.quizzes if q.category == category]

    def badges_by_category(self, category: str) -> list[BadgeSchema]:
        return [b for b in self.badges if b.category == category]

    def habit_keys(self) -> list[str]:
        """Fixed set of habit flags a profile tracks, in stable order."""
        keys = list(DEFAULT_HABIT_KEYS)
        keys.extend(h.id for h in self.habits if h.id not in DEFAULT_HABIT_KEYS)
        return keys

    def default_habit_map(self) -> dict[str, bool]:
        return {key: False for key in self.habit_keys()}

from app.schemas.catalog import (
    BadgeCriteriaSchema,
    BadgeSchema,
    ContentCatalog,
    HabitSchema,
    QuestionSchema,
    QuizSchema,
)
from app.schemas.profile import (
    AwardedBadgeSchema,
    PointsTransactionSchema,
    ProgressProfileSchema,
    QuizResultSchema,
)

__all__ = [
    "AwardedBadgeSchema",
    "BadgeCriteriaSchema",
    "BadgeSchema",
    "ContentCatalog",
    "HabitSchema",
    "PointsTransactionSchema",
    "ProgressProfileSchema",
    "QuestionSchema",
    "QuizResultSchema",
    "QuizSchema",
]

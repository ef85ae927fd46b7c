"""Domain errors raised by the progression engine."""


class ProgressionError(Exception):
    """Base class for every error the engine raises on purpose."""


class ProfileNotFound(ProgressionError):
    def __init__(self, user_id: str):
        super().__init__(f"Profile not found for user {user_id!r}")
        self.user_id = user_id


class ProfileExists(ProgressionError):
    def __init__(self, user_id: str):
        super().__init__(f"Profile already exists for user {user_id!r}")
        self.user_id = user_id


class InvalidAmount(ProgressionError):
    def __init__(self, amount: int):
        super().__init__(f"Point amount must be a positive integer, got {amount!r}")
        self.amount = amount


class NoAnswerSelected(ProgressionError):
    def __init__(self, question_index: int):
        super().__init__(f"No answer selected for question {question_index}")
        self.question_index = question_index


class InvalidAnswer(ProgressionError):
    """Answer index outside the question's options, or answer list of wrong length."""


class InvalidSessionState(ProgressionError):
    """Quiz session operation not allowed in the current state."""


class StoreUnavailable(ProgressionError):
    """Transient store failure (timeout, lost connection). Safe to retry."""


class StaleProfile(StoreUnavailable):
    """Compare-and-set write lost against a concurrent writer."""

    def __init__(self, user_id: str, expected_version: int):
        super().__init__(
            f"Profile for user {user_id!r} changed since version {expected_version}"
        )
        self.user_id = user_id
        self.expected_version = expected_version


class UnknownCriteriaType(ProgressionError):
    def __init__(self, badge_id: str, criteria_type: str):
        super().__init__(f"Badge {badge_id!r} has unknown criteria type {criteria_type!r}")
        self.badge_id = badge_id
        self.criteria_type = criteria_type


class QuizNotFound(ProgressionError):
    def __init__(self, quiz_id: str):
        super().__init__(f"Quiz not found: {quiz_id!r}")
        self.quiz_id = quiz_id


class HabitNotFound(ProgressionError):
    def __init__(self, habit_id: str):
        super().__init__(f"Habit not found: {habit_id!r}")
        self.habit_id = habit_id


class CatalogError(ProgressionError):
    """Content catalog file missing or malformed."""

"""Quiz session: drives one attempt from first question to a scored result."""
from datetime import datetime, timezone
from enum import Enum

from app.core.errors import InvalidAnswer, InvalidSessionState, NoAnswerSelected
from app.schemas.catalog import QuestionSchema, QuizSchema
from app.schemas.profile import QuizResultSchema

POINTS_PER_CORRECT = 5
PERFECT_QUIZ_BONUS = 25


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    return (200 * part + whole) // (2 * whole)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizSession:
    """One quiz attempt. Nothing is persisted until the caller takes ``result``."""

    def __init__(self):
        self.state = SessionState.NOT_STARTED
        self.quiz: QuizSchema | None = None
        self.question_index = 0
        self.score = 0
        self.answers: list[int | None] = []
        self.pending_answer: int | None = None
        self.result: QuizResultSchema | None = None

    def start(self, quiz: QuizSchema) -> None:
        """Begin a fresh attempt; any previous attempt state is discarded."""
        self.state = SessionState.IN_PROGRESS
        self.quiz = quiz
        self.question_index = 0
        self.score = 0
        self.answers = []
        self.pending_answer = None
        self.result = None

    @property
    def current_question(self) -> QuestionSchema:
        self._require_in_progress()
        return self.quiz.questions[self.question_index]

    def select_answer(self, index: int) -> None:
        question = self.current_question
        if not 0 <= index < len(question.options):
            raise InvalidAnswer(
                f"Answer {index} out of range for question {self.question_index} "
                f"({len(question.options)} options)"
            )
        self.pending_answer = index

    def advance(self, now: datetime | None = None) -> QuizResultSchema | None:
        """Record the pending answer and move on; returns the result after the last question."""
        question = self.current_question
        if self.pending_answer is None:
            raise NoAnswerSelected(self.question_index)

        self.answers.append(self.pending_answer)
        if self.pending_answer == question.correct_answer:
            self.score += 1
        self.pending_answer = None

        if self.question_index + 1 < len(self.quiz.questions):
            self.question_index += 1
            return None

        total = len(self.quiz.questions)
        self.result = QuizResultSchema(
            quiz_id=self.quiz.id,
            quiz_name=self.quiz.title,
            score=self.score,
            total_questions=total,
            percentage=percentage(self.score, total),
            answers=tuple(self.answers),
            difficulty=self.quiz.difficulty,
            completed_at=now or datetime.now(timezone.utc),
        )
        self.state = SessionState.COMPLETED
        return self.result

    def _require_in_progress(self) -> None:
        if self.state is not SessionState.IN_PROGRESS:
            raise InvalidSessionState(f"Quiz session is {self.state.value}")


def score_quiz(quiz: QuizSchema, answers: list[int | None], now: datetime | None = None) -> QuizResultSchema:
    """Replay a full answer list through a session and return the scored result."""
    if len(answers) != len(quiz.questions):
        raise InvalidAnswer(
            f"Expected {len(quiz.questions)} answers for quiz {quiz.id!r}, got {len(answers)}"
        )
    session = QuizSession()
    session.start(quiz)
    result = None
    for answer in answers:
        if answer is not None:
            session.select_answer(answer)
        result = session.advance(now=now)
    return result


def quiz_points(
    result: QuizResultSchema,
    per_correct: int = POINTS_PER_CORRECT,
    perfect_bonus: int = PERFECT_QUIZ_BONUS,
) -> int:
    """Points for a completed quiz: per correct answer, plus a bonus for a perfect score."""
    points = int(result.score * per_correct)
    if result.is_perfect:
        points += perfect_bonus
    return points

"""Unit tests for the quiz session state machine and quiz scoring."""

import pytest

from app.core.errors import InvalidAnswer, InvalidSessionState, NoAnswerSelected
from app.services.quiz_session import QuizSession, SessionState, percentage, quiz_points, score_quiz
from tests.conftest import NOW, make_quiz


def test_new_session_is_not_started():
    session = QuizSession()
    assert session.state is SessionState.NOT_STARTED
    with pytest.raises(InvalidSessionState):
        session.select_answer(0)
    with pytest.raises(InvalidSessionState):
        session.advance()


def test_full_attempt_scores_and_completes():
    quiz = make_quiz("basics", 3)
    session = QuizSession()
    session.start(quiz)

    session.select_answer(0)
    assert session.advance() is None
    assert session.question_index == 1

    session.select_answer(1)  # wrong
    assert session.advance() is None

    session.select_answer(0)
    result = session.advance(now=NOW)

    assert session.state is SessionState.COMPLETED
    assert result.quiz_id == "basics"
    assert result.quiz_name == "Basics"
    assert result.score == 2
    assert result.total_questions == 3
    assert result.percentage == 67
    assert result.answers == (0, 1, 0)
    assert result.completed_at == NOW
    assert session.result is result


def test_changing_selection_before_advance_keeps_last_choice():
    session = QuizSession()
    session.start(make_quiz("one", 1))
    session.select_answer(2)
    session.select_answer(0)
    result = session.advance()
    assert result.answers == (0,)
    assert result.score == 1


def test_advance_without_answer_rejected_and_state_kept():
    session = QuizSession()
    session.start(make_quiz("basics", 2))
    with pytest.raises(NoAnswerSelected):
        session.advance()
    assert session.state is SessionState.IN_PROGRESS
    assert session.question_index == 0
    assert session.answers == []


def test_pending_answer_cleared_between_questions():
    session = QuizSession()
    session.start(make_quiz("basics", 2))
    session.select_answer(0)
    session.advance()
    with pytest.raises(NoAnswerSelected):
        session.advance()


def test_out_of_range_answer_rejected():
    session = QuizSession()
    session.start(make_quiz("basics", 2))
    with pytest.raises(InvalidAnswer):
        session.select_answer(3)
    with pytest.raises(InvalidAnswer):
        session.select_answer(-1)


def test_completed_session_is_terminal():
    session = QuizSession()
    session.start(make_quiz("one", 1))
    session.select_answer(0)
    session.advance()

    with pytest.raises(InvalidSessionState):
        session.select_answer(0)
    with pytest.raises(InvalidSessionState):
        session.advance()


def test_start_again_begins_independent_attempt():
    quiz = make_quiz("one", 1)
    session = QuizSession()
    session.start(quiz)
    session.select_answer(0)
    first = session.advance()

    session.start(quiz)
    assert session.state is SessionState.IN_PROGRESS
    assert session.score == 0 and session.answers == [] and session.result is None
    session.select_answer(1)
    second = session.advance()

    assert first.score == 1
    assert second.score == 0


def test_score_quiz_replays_answers():
    result = score_quiz(make_quiz("five", 5), [0, 0, 1, 0, 2], now=NOW)
    assert result.score == 3
    assert result.percentage == 60
    assert result.answers == (0, 0, 1, 0, 2)


def test_score_quiz_wrong_answer_count():
    with pytest.raises(InvalidAnswer):
        score_quiz(make_quiz("five", 5), [0, 0])


def test_score_quiz_missing_answer():
    with pytest.raises(NoAnswerSelected):
        score_quiz(make_quiz("three", 3), [0, None, 0])


def test_quiz_points():
    perfect = score_quiz(make_quiz("ten", 10), [0] * 10)
    partial = score_quiz(make_quiz("ten", 10), [0] * 7 + [1] * 3)
    zero = score_quiz(make_quiz("two", 2), [1, 1])

    assert quiz_points(perfect) == 10 * 5 + 25
    assert quiz_points(partial) == 35
    assert quiz_points(zero) == 0
    assert quiz_points(perfect, per_correct=2, perfect_bonus=0) == 20


@pytest.mark.parametrize(
    "correct, expected",
    [(1, 13), (5, 63), (3, 38), (0, 0), (8, 100)],
)
def test_percentage_rounds_halves_up(correct, expected):
    quiz = make_quiz("eight", 8)
    result = score_quiz(quiz, [0] * correct + [1] * (8 - correct), now=NOW)

    assert result.percentage == expected
    assert percentage(correct, 8) == expected


def test_percentage_without_half():
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67

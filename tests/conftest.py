# =============================================================================
# CONFTEST - Shared fixtures
# =============================================================================
# Seeded repository, controllable clock and recording completion hooks
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from adaptive_quiz.core.errors import CompletionHookError
from adaptive_quiz.core.models import AnswerOption, CompletedQuiz, Difficulty, Question, Quiz
from adaptive_quiz.core.quiz_engine import QuizEngine
from adaptive_quiz.core.services.question_repository import QuestionRepository
from adaptive_quiz.core.services.session_store import SessionStore

COURSE_ID = "python-101"
QUIZ_ID = "python-basics"


def build_question(
    question_id: str,
    difficulty: Difficulty,
    correct_index: int = 0,
    option_count: int = 4,
    course_id: str = COURSE_ID,
    quiz_id: str | None = None,
) -> Question:
    return Question(
        id=question_id,
        course_id=course_id,
        content=f"Question {question_id}?",
        options=tuple(
            AnswerOption(text=f"Option {index}", is_correct=index == correct_index)
            for index in range(option_count)
        ),
        difficulty=difficulty,
        explanation=f"Explanation for {question_id}.",
        quiz_id=quiz_id,
    )


class FakeClock:
    """Clock returning a fixed instant that tests advance by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingHook:
    def __init__(self) -> None:
        self.completed: list[CompletedQuiz] = []

    def on_complete(self, completed: CompletedQuiz) -> None:
        self.completed.append(completed)


class FailingHook:
    def __init__(self) -> None:
        self.calls = 0

    def on_complete(self, completed: CompletedQuiz) -> None:
        self.calls += 1
        raise CompletionHookError("badge service unavailable")


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def make_question():
    """Factory for valid four-option questions."""
    return build_question


@pytest.fixture
def repository() -> QuestionRepository:
    """Three-question adaptive quiz: easy q1, medium q2, hard q3; passing score 70."""
    repo = QuestionRepository()
    repo.add_quiz(
        Quiz(
            id=QUIZ_ID,
            course_id=COURSE_ID,
            title="Python Basics",
            difficulty=Difficulty.EASY,
            time_limit_minutes=10,
            passing_score=70,
        )
    )
    repo.add_question(build_question("q1", Difficulty.EASY, correct_index=1))
    repo.add_question(build_question("q2", Difficulty.MEDIUM, correct_index=2))
    repo.add_question(build_question("q3", Difficulty.HARD, correct_index=0))
    return repo


@pytest.fixture
def wide_repository() -> QuestionRepository:
    """Six-question adaptive quiz with two questions per tier."""
    repo = QuestionRepository()
    repo.add_quiz(Quiz(id="wide", course_id="wide-course", title="Wide", difficulty=Difficulty.MEDIUM))
    for tier in Difficulty:
        for suffix in ("a", "b"):
            repo.add_question(build_question(f"{tier.value}-{suffix}", tier, course_id="wide-course"))
    return repo


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def engine(repository, sessions, hook, clock) -> QuizEngine:
    return QuizEngine(questions=repository, sessions=sessions, completion_hook=hook, clock=clock)

"""Domain models for the adaptive quiz engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from adaptive_quiz.constants.quiz_constants import DEFAULT_PASSING_SCORE


class Difficulty(str, Enum):
    """Difficulty tier of a question or quiz, totally ordered easy < medium < hard."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def step_up(self) -> Difficulty:
        """Return the next harder tier, or this tier when already hardest."""
        return _TIER_ORDER[min(self.rank + 1, len(_TIER_ORDER) - 1)]

    def step_down(self) -> Difficulty:
        """Return the next easier tier, or this tier when already easiest."""
        return _TIER_ORDER[max(self.rank - 1, 0)]


_TIER_ORDER: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)


@dataclass(frozen=True, slots=True)
class AnswerOption:
    """One selectable option of a multiple-choice question."""

    text: str
    is_correct: bool = False


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly one correct option.

    The one-correct-option invariant is enforced when questions enter the
    repository, so engine code may rely on ``correct_option_index``.
    """

    id: str
    course_id: str
    content: str
    options: tuple[AnswerOption, ...]
    difficulty: Difficulty
    explanation: str | None = None
    quiz_id: str | None = None

    @property
    def correct_option_index(self) -> int | None:
        return next((i for i, option in enumerate(self.options) if option.is_correct), None)

    def is_correct_choice(self, option_index: int) -> bool:
        """Out-of-range indices are simply not correct."""
        if not 0 <= option_index < len(self.options):
            return False
        return self.options[option_index].is_correct

    def option_texts(self) -> list[str]:
        return [option.text for option in self.options]


@dataclass(frozen=True, slots=True)
class Quiz:
    """Quiz definition; read-only while sessions are running."""

    id: str
    course_id: str
    title: str
    difficulty: Difficulty | None = None
    time_limit_minutes: int | None = None
    passing_score: int = DEFAULT_PASSING_SCORE
    is_adaptive: bool = True

    @property
    def starting_difficulty(self) -> Difficulty:
        return self.difficulty or Difficulty.EASY


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """Entry of a session's performance history."""

    question_id: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class QuizSession:
    """Snapshot of one learner's in-progress run through a quiz.

    Snapshots are never mutated; the session store swaps in a new snapshot
    with ``version + 1`` on every transition.
    """

    id: str
    user_id: str
    quiz_id: str
    total_questions: int
    current_difficulty: Difficulty
    current_question_id: str | None
    started_at: datetime
    updated_at: datetime
    current_question_index: int = 0
    correct_answers: int = 0
    score: int = 0
    performance_history: tuple[AnswerRecord, ...] = ()
    is_complete: bool = False
    version: int = 0

    def answered_question_ids(self) -> set[str]:
        return {record.question_id for record in self.performance_history}


@dataclass(frozen=True, slots=True)
class QuestionView:
    """Caller-safe projection of a question: no correctness flags."""

    id: str
    content: str
    options: list[str]
    difficulty: Difficulty

    @classmethod
    def from_question(cls, question: Question) -> QuestionView:
        return cls(
            id=question.id,
            content=question.content,
            options=question.option_texts(),
            difficulty=question.difficulty,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "content": self.content,
            "options": list(self.options),
            "difficulty": self.difficulty.value,
        }


@dataclass(frozen=True, slots=True)
class CompletedQuiz:
    """Payload handed to the completion hook when a session finishes."""

    user_id: str
    quiz_id: str
    score: int
    difficulty: Difficulty
    time_spent_seconds: int
    answers: tuple[AnswerRecord, ...]
    is_passed: bool
    correct_answers: int
    total_questions: int
    completed_at: datetime


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """Permanent record of a completed session, written once."""

    id: str
    user_id: str
    quiz_id: str
    score: int
    time_spent_seconds: int
    difficulty: Difficulty
    is_passed: bool
    answers: tuple[AnswerRecord, ...]
    correct_answers: int
    total_questions: int
    completed_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quiz_id": self.quiz_id,
            "score": self.score,
            "time_spent": self.time_spent_seconds,
            "difficulty": self.difficulty.value,
            "is_passed": self.is_passed,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "answers": [
                {"question_id": a.question_id, "is_correct": a.is_correct} for a in self.answers
            ],
            "completed_at": self.completed_at.isoformat(),
        }


class BadgeCriteriaType(str, Enum):
    """Kinds of badge requirements evaluated when a quiz completes."""

    FIRST_QUIZ = "first_quiz"
    PERFECT_SCORE = "perfect_score"
    STREAK = "streak"


@dataclass(frozen=True, slots=True)
class Badge:
    """Badge definition from the catalogue."""

    id: str
    name: str
    description: str
    criteria_type: BadgeCriteriaType
    days: int | None = None
    xp_reward: int = 0
    rarity: str = "common"


@dataclass(slots=True)
class LearnerProfile:
    """Aggregate gamification stats for a single learner."""

    user_id: str
    xp: int = 0
    streak: int = 0
    last_active_on: date | None = None
    badge_ids: list[str] = field(default_factory=list)

"""Service recording permanent quiz attempts."""

from __future__ import annotations

from threading import Lock
from uuid import uuid4

from adaptive_quiz.core.models import CompletedQuiz, QuizAttempt


class AttemptLog:
    """Append-only log of completed quiz attempts, indexed by learner."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._attempts: dict[str, list[QuizAttempt]] = {}

    def record(self, completed: CompletedQuiz) -> QuizAttempt:
        """Write the permanent attempt for a completed session."""
        attempt = QuizAttempt(
            id=uuid4().hex,
            user_id=completed.user_id,
            quiz_id=completed.quiz_id,
            score=completed.score,
            time_spent_seconds=completed.time_spent_seconds,
            difficulty=completed.difficulty,
            is_passed=completed.is_passed,
            answers=completed.answers,
            correct_answers=completed.correct_answers,
            total_questions=completed.total_questions,
            completed_at=completed.completed_at,
        )
        with self._lock:
            self._attempts.setdefault(attempt.user_id, []).append(attempt)
        return attempt

    def attempts_for(self, user_id: str, quiz_id: str | None = None) -> list[QuizAttempt]:
        with self._lock:
            attempts = list(self._attempts.get(user_id, []))
        if quiz_id is not None:
            attempts = [a for a in attempts if a.quiz_id == quiz_id]
        return attempts

    def count_for(self, user_id: str) -> int:
        with self._lock:
            return len(self._attempts.get(user_id, []))

    def total_count(self) -> int:
        with self._lock:
            return sum(len(attempts) for attempts in self._attempts.values())

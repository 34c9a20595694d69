"""Adaptive quiz state machine shared by the API layer and tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from threading import Lock
from typing import Protocol

from adaptive_quiz.core.difficulty_adapter import DifficultyAdapter, HeuristicDifficultyAdapter, adapt_difficulty
from adaptive_quiz.core.errors import EmptyQuizError, InvalidStateError, NotFoundError
from adaptive_quiz.core.models import (
    AnswerRecord,
    CompletedQuiz,
    Difficulty,
    Question,
    QuestionView,
    Quiz,
    QuizSession,
)
from adaptive_quiz.core.services.question_repository import QuestionRepository
from adaptive_quiz.core.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class CompletionHook(Protocol):
    def on_complete(self, completed: CompletedQuiz) -> object: ...


@dataclass(frozen=True, slots=True)
class SessionStart:
    """Result of starting a session: the first question and run metadata."""

    session_id: str
    question: QuestionView
    question_number: int
    total_questions: int
    time_limit_minutes: int | None

    def to_dict(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "question": self.question.to_dict(),
            "question_number": self.question_number,
            "total_questions": self.total_questions,
            "time_limit": self.time_limit_minutes,
        }


@dataclass(frozen=True, slots=True)
class AnswerResult:
    """Feedback for one submitted answer, plus either the next question or the final result."""

    is_correct: bool
    explanation: str | None
    correct_option_index: int | None
    score: int
    is_complete: bool
    total_questions: int
    next_question: QuestionView | None = None
    question_number: int | None = None
    final_score: int | None = None
    correct_answers: int | None = None
    is_passed: bool | None = None
    passing_score: int | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "is_correct": self.is_correct,
            "explanation": self.explanation,
            "correct_option_index": self.correct_option_index,
            "score": self.score,
            "is_complete": self.is_complete,
            "total_questions": self.total_questions,
        }
        if self.is_complete:
            payload.update(
                final_score=self.final_score,
                correct_answers=self.correct_answers,
                is_passed=self.is_passed,
                passing_score=self.passing_score,
            )
        else:
            payload.update(
                next_question=self.next_question.to_dict() if self.next_question else None,
                question_number=self.question_number,
            )
        return payload


def score_percentage(correct_answers: int, total_questions: int) -> int:
    """Integer percentage rounded half up, so 2 of 3 gives 67 and 1 of 8 gives 13."""
    if total_questions <= 0:
        return 0
    return (200 * correct_answers + total_questions) // (2 * total_questions)


class QuizEngine:
    """Owns the NotStarted -> InProgress -> Complete session lifecycle.

    Each transition runs under a per-session lock and is committed through
    the session store's version check, so concurrent submissions for one
    session cannot interleave.
    """

    def __init__(
        self,
        questions: QuestionRepository | None = None,
        sessions: SessionStore | None = None,
        adapter: DifficultyAdapter | None = None,
        completion_hook: CompletionHook | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.questions = questions or QuestionRepository()
        self.sessions = sessions or SessionStore()
        self._adapter = adapter or HeuristicDifficultyAdapter()
        self._completion_hook = completion_hook
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._lock = Lock()
        self._session_locks: dict[str, Lock] = {}

    # --- Session lifecycle ---

    def start_session(self, quiz_id: str, user_id: str) -> SessionStart:
        quiz = self.questions.require_quiz(quiz_id)
        pool = self.questions.pool_for(quiz_id)
        if not pool:
            raise EmptyQuizError(f"Quiz {quiz_id} has no questions.")

        first_question = pool[0]
        now = self._clock()
        session = self.sessions.create(
            QuizSession(
                id=self.sessions.new_session_id(),
                user_id=user_id,
                quiz_id=quiz.id,
                total_questions=len(pool),
                current_difficulty=quiz.starting_difficulty,
                current_question_id=first_question.id,
                started_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Started session %s for user %s on quiz %s (%d questions, %s)",
            session.id,
            user_id,
            quiz.id,
            session.total_questions,
            session.current_difficulty.value,
        )
        return SessionStart(
            session_id=session.id,
            question=QuestionView.from_question(first_question),
            question_number=1,
            total_questions=session.total_questions,
            time_limit_minutes=quiz.time_limit_minutes,
        )

    def submit_answer(self, session_id: str, question_id: str, selected_option_index: int) -> AnswerResult:
        with self._session_lock(session_id):
            session = self._load_open_session(session_id)
            quiz = self.questions.require_quiz(session.quiz_id)
            question = self._resolve_question(quiz, question_id)
            if question.id != session.current_question_id:
                raise InvalidStateError(
                    f"Question {question_id} is not the current question of session {session_id}."
                )

            is_correct = question.is_correct_choice(selected_option_index)
            history = session.performance_history + (AnswerRecord(question.id, is_correct),)
            correct_answers = session.correct_answers + (1 if is_correct else 0)
            question_index = session.current_question_index + 1
            score = score_percentage(correct_answers, session.total_questions)
            is_complete = question_index >= session.total_questions

            difficulty = session.current_difficulty
            next_question: Question | None = None
            if not is_complete:
                if quiz.is_adaptive:
                    difficulty = self._next_difficulty(history, difficulty)
                next_question = self.questions.find_by_difficulty_excluding(
                    quiz.course_id,
                    difficulty,
                    session.answered_question_ids() | {question.id},
                    quiz_id=quiz.id,
                )
                if next_question is None:
                    logger.info(
                        "No unanswered %s question left for session %s; ending after %d of %d",
                        difficulty.value,
                        session_id,
                        question_index,
                        session.total_questions,
                    )
                    is_complete = True

            now = self._clock()
            updated = self.sessions.update(
                session_id,
                {
                    "performance_history": history,
                    "correct_answers": correct_answers,
                    "current_question_index": question_index,
                    "score": score,
                    "current_difficulty": difficulty,
                    "current_question_id": next_question.id if next_question else None,
                    "is_complete": is_complete,
                    "updated_at": now,
                },
                expected_version=session.version,
            )
            if is_complete:
                self.sessions.delete(session_id)

        # A next question is only chosen while the session stays open.
        if next_question is not None:
            return AnswerResult(
                is_correct=is_correct,
                explanation=question.explanation,
                correct_option_index=question.correct_option_index,
                score=updated.score,
                is_complete=False,
                total_questions=updated.total_questions,
                next_question=QuestionView.from_question(next_question),
                question_number=updated.current_question_index + 1,
            )

        self._forget_session_lock(session_id)
        completed = self._build_completion(updated, quiz, now)
        self._notify_completion(completed)
        return AnswerResult(
            is_correct=is_correct,
            explanation=question.explanation,
            correct_option_index=question.correct_option_index,
            score=updated.score,
            is_complete=True,
            total_questions=updated.total_questions,
            final_score=completed.score,
            correct_answers=completed.correct_answers,
            is_passed=completed.is_passed,
            passing_score=quiz.passing_score,
        )

    def get_session(self, session_id: str) -> QuizSession | None:
        return self.sessions.get(session_id)

    # --- Internals ---

    def _load_open_session(self, session_id: str) -> QuizSession:
        session = self.sessions.get(session_id)
        if session is None:
            self._forget_session_lock(session_id)
            if self.sessions.is_retired(session_id):
                raise InvalidStateError(f"Quiz session {session_id} is already complete.")
            raise NotFoundError(f"Quiz session {session_id} not found.")
        if session.is_complete:
            raise InvalidStateError(f"Quiz session {session_id} is already complete.")
        return session

    def _resolve_question(self, quiz: Quiz, question_id: str) -> Question:
        question = self.questions.get_question(question_id)
        if question is None or not self.questions.in_pool(quiz.id, question_id):
            raise NotFoundError(f"Question {question_id} not found in quiz {quiz.id}.")
        return question

    def _next_difficulty(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty:
        try:
            proposed = Difficulty(self._adapter.adapt(history, current))
        except Exception:
            logger.warning("Difficulty adapter failed; using local rule", exc_info=True)
            proposed = adapt_difficulty(history, current)
        if proposed is not current:
            logger.debug("Difficulty %s -> %s", current.value, proposed.value)
        return proposed

    def _build_completion(self, session: QuizSession, quiz: Quiz, completed_at: datetime) -> CompletedQuiz:
        elapsed = int((completed_at - session.started_at).total_seconds())
        return CompletedQuiz(
            user_id=session.user_id,
            quiz_id=session.quiz_id,
            score=session.score,
            difficulty=session.current_difficulty,
            time_spent_seconds=max(elapsed, 0),
            answers=session.performance_history,
            is_passed=session.score >= quiz.passing_score,
            correct_answers=session.correct_answers,
            total_questions=session.total_questions,
            completed_at=completed_at,
        )

    def _notify_completion(self, completed: CompletedQuiz) -> None:
        logger.info(
            "User %s completed quiz %s: score=%d passed=%s",
            completed.user_id,
            completed.quiz_id,
            completed.score,
            completed.is_passed,
        )
        if self._completion_hook is None:
            return
        try:
            self._completion_hook.on_complete(completed)
        except Exception:
            logger.exception(
                "Completion hook failed for user %s on quiz %s", completed.user_id, completed.quiz_id
            )

    @contextmanager
    def _session_lock(self, session_id: str) -> Iterator[None]:
        with self._lock:
            lock = self._session_locks.setdefault(session_id, Lock())
        with lock:
            yield

    def _forget_session_lock(self, session_id: str) -> None:
        with self._lock:
            self._session_locks.pop(session_id, None)

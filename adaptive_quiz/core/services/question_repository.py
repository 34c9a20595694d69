"""Service holding the quiz catalogue and the question pools behind it."""

from __future__ import annotations

from collections.abc import Iterable
from threading import Lock

from adaptive_quiz.constants.quiz_constants import MAX_OPTIONS_PER_QUESTION, MIN_OPTIONS_PER_QUESTION
from adaptive_quiz.core.errors import InvalidQuestionError, NotFoundError
from adaptive_quiz.core.models import AnswerOption, Difficulty, Question, Quiz


class QuestionRepository:
    """Read-mostly store of quizzes and questions, kept in ingestion order.

    A quiz's pool is every question of the quiz's course that is either
    untagged or tagged to that quiz.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, Quiz] = {}
        self._questions: list[Question] = []
        self._questions_by_id: dict[str, Question] = {}

    def add_quiz(self, quiz: Quiz) -> Quiz:
        if not quiz.id.strip():
            raise ValueError("Quiz id must not be empty.")
        if not 0 <= quiz.passing_score <= 100:
            raise ValueError("Passing score must be a percentage between 0 and 100.")
        if quiz.time_limit_minutes is not None and quiz.time_limit_minutes <= 0:
            raise ValueError("Time limit must be a positive number of minutes.")
        with self._lock:
            self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        with self._lock:
            return self._quizzes.get(quiz_id)

    def require_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} not found.")
        return quiz

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return list(self._quizzes.values())

    def add_question(self, question: Question) -> Question:
        prepared = self._prepare_question(question)
        with self._lock:
            if prepared.id in self._questions_by_id:
                raise ValueError(f"Duplicate question id {prepared.id}.")
            self._questions.append(prepared)
            self._questions_by_id[prepared.id] = prepared
        return prepared

    def load_bank(self, quizzes: Iterable[Quiz], questions: Iterable[Question]) -> None:
        """Add a batch of quizzes and their questions."""
        for quiz in quizzes:
            self.add_quiz(quiz)
        for question in questions:
            self.add_question(question)

    def get_question(self, question_id: str) -> Question | None:
        with self._lock:
            return self._questions_by_id.get(question_id)

    def get_question_count(self) -> int:
        with self._lock:
            return len(self._questions)

    def pool_for(self, quiz_id: str) -> list[Question]:
        quiz = self.require_quiz(quiz_id)
        with self._lock:
            return [q for q in self._questions if _in_pool(q, quiz.course_id, quiz.id)]

    def pool_size(self, quiz_id: str) -> int:
        return len(self.pool_for(quiz_id))

    def in_pool(self, quiz_id: str, question_id: str) -> bool:
        quiz = self.require_quiz(quiz_id)
        question = self.get_question(question_id)
        return question is not None and _in_pool(question, quiz.course_id, quiz.id)

    def find_by_difficulty_excluding(
        self,
        course_id: str,
        difficulty: Difficulty,
        excluded_ids: Iterable[str],
        quiz_id: str | None = None,
    ) -> Question | None:
        """Return the first question of ``difficulty`` in the course not in ``excluded_ids``."""
        excluded = set(excluded_ids)
        with self._lock:
            for question in self._questions:
                if question.difficulty != difficulty or question.id in excluded:
                    continue
                if quiz_id is None:
                    if question.course_id == course_id:
                        return question
                elif _in_pool(question, course_id, quiz_id):
                    return question
        return None

    def _prepare_question(self, question: Question) -> Question:
        """Validate and normalize a question before storage."""
        question_id = question.id.strip()
        if not question_id:
            raise InvalidQuestionError("Question id must not be empty.")
        content = question.content.strip()
        if not content:
            raise InvalidQuestionError("Question text must not be empty.")
        options = self._validate_options(question.options)
        explanation = question.explanation.strip() if question.explanation else None
        return Question(
            id=question_id,
            course_id=question.course_id,
            content=content,
            options=options,
            difficulty=Difficulty(question.difficulty),
            explanation=explanation or None,
            quiz_id=question.quiz_id,
        )

    @staticmethod
    def _validate_options(options: Iterable[AnswerOption]) -> tuple[AnswerOption, ...]:
        cleaned = tuple(AnswerOption(text=o.text.strip(), is_correct=bool(o.is_correct)) for o in options)
        if not MIN_OPTIONS_PER_QUESTION <= len(cleaned) <= MAX_OPTIONS_PER_QUESTION:
            raise InvalidQuestionError(
                f"Each question must have between {MIN_OPTIONS_PER_QUESTION} "
                f"and {MAX_OPTIONS_PER_QUESTION} options."
            )
        if any(not option.text for option in cleaned):
            raise InvalidQuestionError("Option text cannot be empty.")
        correct_count = sum(1 for option in cleaned if option.is_correct)
        if correct_count != 1:
            raise InvalidQuestionError(
                f"Exactly one option must be marked correct (found {correct_count})."
            )
        return cleaned


def _in_pool(question: Question, course_id: str, quiz_id: str) -> bool:
    return question.course_id == course_id and question.quiz_id in (None, quiz_id)

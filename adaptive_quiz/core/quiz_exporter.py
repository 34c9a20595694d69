"""Utilities for exporting question banks to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path

from adaptive_quiz.core.models import Question, Quiz

_OPTION_LETTERS = ("A", "B", "C", "D", "E", "F")


def save_bank_to_file(file_path: Path, quizzes: list[Quiz], questions: list[Question]) -> None:
    """Persist quizzes and questions to disk in the text import format."""

    if not quizzes and not questions:
        raise ValueError("Cannot export an empty question bank.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_bank(quizzes, questions), encoding="utf-8")


def serialize_bank(quizzes: list[Quiz], questions: list[Question]) -> str:
    blocks = [_serialize_quiz(quiz) for quiz in quizzes]
    current_course = quizzes[-1].course_id if quizzes else None
    for question in questions:
        if question.course_id != current_course:
            blocks.append(f"COURSE: {question.course_id}")
            current_course = question.course_id
        blocks.append(_serialize_question(question))
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_quiz(quiz: Quiz) -> str:
    lines = [
        f"QUIZ: {quiz.id}",
        f"COURSE: {quiz.course_id}",
        f"TITLE: {quiz.title}",
    ]
    if quiz.difficulty is not None:
        lines.append(f"DIFFICULTY: {quiz.difficulty.value}")
    lines.append(f"PASSING: {quiz.passing_score}")
    if quiz.time_limit_minutes is not None:
        lines.append(f"TIMELIMIT: {quiz.time_limit_minutes}")
    lines.append(f"ADAPTIVE: {'yes' if quiz.is_adaptive else 'no'}")
    return "\n".join(lines)


def _serialize_question(question: Question) -> str:
    if len(question.options) > len(_OPTION_LETTERS):
        raise ValueError(f"Question {question.id} has more options than the format supports.")

    question_lines = question.content.splitlines() or [question.content]
    lines: list[str] = [f"Q: {question_lines[0]}"]
    lines.extend(question_lines[1:])

    for letter, option in zip(_OPTION_LETTERS, question.options):
        option_lines = option.text.splitlines() or [option.text]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    correct_index = question.correct_option_index
    if correct_index is not None:
        lines.append(f"CORRECT: {_OPTION_LETTERS[correct_index]}")
    lines.append(f"DIFFICULTY: {question.difficulty.value}")

    if question.explanation:
        explanation_lines = question.explanation.splitlines()
        lines.append(f"EXPLANATION: {explanation_lines[0]}")
        lines.extend(explanation_lines[1:])

    lines.append(f"ID: {question.id}")
    if question.quiz_id is not None:
        lines.append(f"QUIZ: {question.quiz_id}")

    return "\n".join(lines)

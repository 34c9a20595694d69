"""Utilities for importing question banks from a human-friendly text file.

File format (blocks separated by blank lines or '---'). A block starting
with ``QUIZ:`` defines a quiz, a block starting with ``COURSE:`` switches
the course for the questions that follow, and a block starting with ``Q:``
defines a question:

    QUIZ: python-basics
    COURSE: python-101
    TITLE: Python Basics
    DIFFICULTY: easy          (starting tier, optional)
    PASSING: 70               (optional, percent)
    TIMELIMIT: 15             (optional, minutes)
    ADAPTIVE: yes             (optional, yes/no)

    Q: What does len([1, 2, 3]) return?
    A: 2
    B: 3
    C: 4
    CORRECT: B
    DIFFICULTY: easy
    EXPLANATION: len counts the items in the list.
    ID: py-len                (optional, generated otherwise)
    QUIZ: python-basics       (optional, limits the question to one quiz)

A quiz block also sets the current course. Question text, options and
explanations may continue on following lines. Lines starting with ``#``
are comments only between blocks; inside a block they are content.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from adaptive_quiz.constants.quiz_constants import DEFAULT_PASSING_SCORE, MAX_OPTIONS_PER_QUESTION
from adaptive_quiz.core.models import AnswerOption, Difficulty, Question, Quiz


class QuizImportError(Exception):
    """Raised when a question bank cannot be parsed."""


@dataclass(slots=True)
class ImportedBank:
    """Container for imported quizzes and questions."""

    source_path: Path | None
    quizzes: list[Quiz]
    questions: list[Question]


_OPTION_ORDER = ["A", "B", "C", "D", "E", "F"][:MAX_OPTIONS_PER_QUESTION]
_TRUE_VALUES = {"yes", "true", "1", "on"}
_FALSE_VALUES = {"no", "false", "0", "off"}


def load_bank_from_file(file_path: Path) -> ImportedBank:
    text = file_path.read_text(encoding="utf-8")
    bank = parse_bank_text(text)
    bank.source_path = file_path
    return bank


def parse_bank_text(text: str) -> ImportedBank:
    quizzes: list[Quiz] = []
    questions: list[Question] = []
    current_course: str | None = None
    generated_ids: dict[str, int] = {}

    for block in _split_blocks(text):
        first = block.splitlines()[0].strip().upper()
        if first.startswith("QUIZ:"):
            quiz = _parse_quiz_block(block)
            quizzes.append(quiz)
            current_course = quiz.course_id
        elif first.startswith("COURSE:"):
            current_course = _parse_course_block(block)
        elif first.startswith("Q:"):
            if current_course is None:
                raise QuizImportError("Question defined before any QUIZ or COURSE block.")
            questions.append(_parse_question_block(block, current_course, generated_ids))
        else:
            raise QuizImportError(f"Block must start with QUIZ:, COURSE: or Q: (found '{block.splitlines()[0]}').")

    if not quizzes and not questions:
        raise QuizImportError("Question bank did not contain any quizzes or questions.")
    return ImportedBank(source_path=None, quizzes=quizzes, questions=questions)


def _split_blocks(text: str) -> list[str]:
    groups: list[list[str]] = [[]]
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped.startswith("#") and not groups[-1]:
            continue
        if not stripped or stripped == "---":
            if groups[-1]:
                groups.append([])
            continue
        groups[-1].append(raw_line)
    return ["\n".join(lines).strip() for lines in groups if lines]


def _split_key(line: str) -> tuple[str, str]:
    key, value = line.split(":", 1)
    return key.strip().upper(), value.strip()


def _parse_quiz_block(block: str) -> Quiz:
    values: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        if ":" not in line:
            raise QuizImportError(f"Expected KEY: value in quiz block, got '{line}'.")
        key, value = _split_key(line)
        if key not in {"QUIZ", "COURSE", "TITLE", "DIFFICULTY", "PASSING", "TIMELIMIT", "ADAPTIVE"}:
            raise QuizImportError(f"Unknown quiz field '{key}'.")
        values[key] = value

    quiz_id = values.get("QUIZ", "")
    if not quiz_id:
        raise QuizImportError("QUIZ must include an id.")
    course_id = values.get("COURSE", "")
    if not course_id:
        raise QuizImportError(f"Quiz {quiz_id} is missing COURSE.")

    passing_score = DEFAULT_PASSING_SCORE
    if "PASSING" in values:
        passing_score = _parse_int(values["PASSING"], "PASSING")
        if not 0 <= passing_score <= 100:
            raise QuizImportError("PASSING must be a percentage between 0 and 100.")

    time_limit = None
    if values.get("TIMELIMIT"):
        time_limit = _parse_int(values["TIMELIMIT"], "TIMELIMIT")
        if time_limit <= 0:
            raise QuizImportError("TIMELIMIT must be a positive integer.")

    return Quiz(
        id=quiz_id,
        course_id=course_id,
        title=values.get("TITLE") or quiz_id,
        difficulty=_parse_difficulty(values["DIFFICULTY"]) if values.get("DIFFICULTY") else None,
        time_limit_minutes=time_limit,
        passing_score=passing_score,
        is_adaptive=_parse_bool(values.get("ADAPTIVE", "yes"), "ADAPTIVE"),
    )


def _parse_course_block(block: str) -> str:
    lines = [line.strip() for line in block.splitlines() if line.strip()]
    if len(lines) != 1:
        raise QuizImportError("A COURSE block must contain a single COURSE: line.")
    _, course_id = _split_key(lines[0])
    if not course_id:
        raise QuizImportError("COURSE must include an id.")
    return course_id


def _parse_question_block(block: str, course_id: str, generated_ids: dict[str, int]) -> Question:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letters: list[str] = []
    difficulty = Difficulty.MEDIUM
    question_id: str | None = None
    quiz_tag: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            raw_value = line.split(":", 1)[1]
            correct_letters = [part.strip().upper() for part in raw_value.split(",") if part.strip()]
            current_section = None
            continue

        if upper.startswith("DIFFICULTY:"):
            difficulty = _parse_difficulty(line.split(":", 1)[1].strip())
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if upper.startswith("ID:"):
            question_id = line.split(":", 1)[1].strip() or None
            current_section = None
            continue

        if upper.startswith("QUIZ:"):
            quiz_tag = line.split(":", 1)[1].strip() or None
            current_section = None
            continue

        if len(line) > 1 and line[0].isalpha() and line[1] == ":":
            letter = line[0].upper()
            if letter in _OPTION_ORDER:
                options[letter] = line[2:].strip()
                current_section = letter
                continue
            if line[0].isupper():
                raise QuizImportError(f"Option letter must be one of {', '.join(_OPTION_ORDER)} (got '{letter}').")

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    letters = _OPTION_ORDER[: len(options)]
    if len(options) < 2 or set(options) != set(letters):
        raise QuizImportError(
            f"Options must be consecutive letters starting at A, at least two (got {sorted(options)})."
        )
    option_texts = [options[letter].strip() for letter in letters]
    if any(not text for text in option_texts):
        raise QuizImportError("Option text cannot be empty.")

    if len(correct_letters) != 1:
        raise QuizImportError("Each question needs exactly one CORRECT letter.")
    if correct_letters[0] not in letters:
        raise QuizImportError(f"CORRECT must be one of {', '.join(letters)}.")
    correct_index = letters.index(correct_letters[0])

    if question_id is None:
        generated_ids[course_id] = generated_ids.get(course_id, 0) + 1
        question_id = f"{course_id}-q{generated_ids[course_id]:03d}"

    explanation = "\n".join(explanation_lines).strip()
    return Question(
        id=question_id,
        course_id=course_id,
        content=question_text,
        options=tuple(
            AnswerOption(text=text, is_correct=index == correct_index)
            for index, text in enumerate(option_texts)
        ),
        difficulty=difficulty,
        explanation=explanation or None,
        quiz_id=quiz_tag,
    )


def _parse_difficulty(raw_value: str) -> Difficulty:
    try:
        return Difficulty(raw_value.strip().lower())
    except ValueError as exc:
        raise QuizImportError("DIFFICULTY must be one of easy, medium or hard.") from exc


def _parse_int(raw_value: str, field_name: str) -> int:
    try:
        return int(raw_value)
    except ValueError as exc:
        raise QuizImportError(f"{field_name} must be an integer.") from exc


def _parse_bool(raw_value: str, field_name: str) -> bool:
    lowered = raw_value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise QuizImportError(f"{field_name} must be yes or no.")

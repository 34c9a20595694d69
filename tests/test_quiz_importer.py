"""
Tests for the question bank text format.
"""

from __future__ import annotations

import pytest

from adaptive_quiz.config import SAMPLE_BANK_PATH
from adaptive_quiz.core.models import AnswerOption, Difficulty, Question, Quiz
from adaptive_quiz.core.quiz_engine import QuizEngine
from adaptive_quiz.core.quiz_exporter import save_bank_to_file, serialize_bank
from adaptive_quiz.core.quiz_importer import QuizImportError, load_bank_from_file, parse_bank_text
from adaptive_quiz.core.services.question_repository import QuestionRepository

BANK = """
# comment lines are ignored
QUIZ: python-basics
COURSE: python-101
TITLE: Python Basics
DIFFICULTY: easy
PASSING: 80
TIMELIMIT: 15
ADAPTIVE: no

Q: What does len([1, 2, 3]) return?
A: 2
B: 3
C: 4
CORRECT: B
DIFFICULTY: easy
EXPLANATION: len counts the items
in the list.

---
Q: Which keyword defines a function?
A: def
B: func
CORRECT: A
ID: py-def
QUIZ: python-basics

COURSE: web-101

Q: Which status code means Not Found?
A: 200
B: 404
CORRECT: b
DIFFICULTY: HARD
"""


class TestParseBank:
    """Quiz headers, question blocks and course switching."""

    def test_parses_quiz_header(self):
        bank = parse_bank_text(BANK)

        assert len(bank.quizzes) == 1
        quiz = bank.quizzes[0]
        assert quiz.id == "python-basics"
        assert quiz.course_id == "python-101"
        assert quiz.title == "Python Basics"
        assert quiz.difficulty is Difficulty.EASY
        assert quiz.passing_score == 80
        assert quiz.time_limit_minutes == 15
        assert quiz.is_adaptive is False

    def test_parses_questions(self):
        bank = parse_bank_text(BANK)

        first, second, third = bank.questions
        assert first.id == "python-101-q001"
        assert first.course_id == "python-101"
        assert first.option_texts() == ["2", "3", "4"]
        assert first.correct_option_index == 1
        assert first.explanation == "len counts the items\nin the list."
        assert first.quiz_id is None

        assert second.id == "py-def"
        assert second.difficulty is Difficulty.MEDIUM
        assert second.quiz_id == "python-basics"
        assert second.explanation is None

        assert third.course_id == "web-101"
        assert third.id == "web-101-q001"
        assert third.difficulty is Difficulty.HARD
        assert third.correct_option_index == 1

    def test_quiz_defaults(self):
        bank = parse_bank_text("QUIZ: q\nCOURSE: c")

        quiz = bank.quizzes[0]
        assert quiz.title == "q"
        assert quiz.difficulty is None
        assert quiz.passing_score == 70
        assert quiz.time_limit_minutes is None
        assert quiz.is_adaptive is True

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Q: Orphan?\nA: x\nB: y\nCORRECT: A",
            "QUIZ: q",
            "QUIZ: q\nCOURSE: c\nPASSING: 120",
            "QUIZ: q\nCOURSE: c\nTIMELIMIT: soon",
            "QUIZ: q\nCOURSE: c\nADAPTIVE: maybe",
            "QUIZ: q\nCOURSE: c\nCOLOR: red",
            "COURSE: c\n\nQ: One option?\nA: x\nCORRECT: A",
            "COURSE: c\n\nQ: Two correct?\nA: x\nB: y\nCORRECT: A, B",
            "COURSE: c\n\nQ: No correct?\nA: x\nB: y",
            "COURSE: c\n\nQ: Gap?\nA: x\nC: y\nCORRECT: A",
            "COURSE: c\n\nQ: Bad letter?\nA: x\nB: y\nCORRECT: D",
            "COURSE: c\n\nQ: Seven?\nA: 1\nB: 2\nC: 3\nD: 4\nE: 5\nF: 6\nG: 7\nCORRECT: A",
            "COURSE: c\n\nQ: Bad tier?\nA: x\nB: y\nCORRECT: A\nDIFFICULTY: extreme",
            "COURSE: c\n\nNOTE: stray block",
        ],
    )
    def test_rejects_malformed_banks(self, text):
        with pytest.raises(QuizImportError):
            parse_bank_text(text)


class TestBankFiles:
    def test_export_then_import_keeps_bank(self, tmp_path):
        original = parse_bank_text(BANK)
        path = tmp_path / "bank.txt"

        save_bank_to_file(path, original.quizzes, original.questions)
        reloaded = load_bank_from_file(path)

        assert reloaded.source_path == path
        assert reloaded.quizzes == original.quizzes
        assert reloaded.questions == original.questions

    def test_export_rejects_empty_bank(self, tmp_path):
        with pytest.raises(ValueError):
            save_bank_to_file(tmp_path / "empty.txt", [], [])

    def test_sample_bank_loads_into_repository(self):
        bank = load_bank_from_file(SAMPLE_BANK_PATH)
        repo = QuestionRepository()
        repo.load_bank(bank.quizzes, bank.questions)

        quiz_ids = [quiz.id for quiz in repo.list_quizzes()]
        assert quiz_ids == ["python-basics", "http-fundamentals"]
        assert repo.pool_size("python-basics") == 10
        assert repo.pool_size("http-fundamentals") == 3
        assert {q.difficulty for q in repo.pool_for("python-basics")} == set(Difficulty)

    def test_sample_bank_perfect_run_passes(self):
        bank = load_bank_from_file(SAMPLE_BANK_PATH)
        repo = QuestionRepository()
        repo.load_bank(bank.quizzes, bank.questions)
        engine = QuizEngine(questions=repo)

        started = engine.start_session("python-basics", "learner-1")
        question = repo.get_question(started.question.id)
        while True:
            result = engine.submit_answer(started.session_id, question.id, question.correct_option_index)
            assert result.is_correct is True
            if result.is_complete:
                break
            question = repo.get_question(result.next_question.id)

        assert result.is_passed is True
        assert result.final_score >= 70

    def test_hash_lines_inside_question_survive_round_trip(self, tmp_path):
        quiz = Quiz(id="snippets", course_id="python-101", title="Snippets")
        question = Question(
            id="py-print",
            course_id="python-101",
            content="What does this print?\n# comment\nprint(1)",
            options=(AnswerOption("1\n# not a comment", True), AnswerOption("nothing")),
            difficulty=Difficulty.EASY,
            explanation="Comments are skipped.\n# like this one",
        )
        path = tmp_path / "bank.txt"

        save_bank_to_file(path, [quiz], [question])
        reloaded = load_bank_from_file(path).questions[0]

        assert reloaded.content == "What does this print?\n# comment\nprint(1)"
        assert reloaded.option_texts() == ["1\n# not a comment", "nothing"]
        assert reloaded.explanation == "Comments are skipped.\n# like this one"

    def test_hash_lines_between_blocks_are_comments(self):
        text = "# header\n" + serialize_bank(
            [Quiz(id="q", course_id="c", title="Q")],
            [],
        ) + "\n# trailing note\n\nCOURSE: c\n"

        bank = parse_bank_text(text)

        assert [quiz.id for quiz in bank.quizzes] == ["q"]

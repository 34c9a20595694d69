"""
Tests for the HTTP layer using FastAPI's TestClient.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from adaptive_quiz.core.gamification import GamificationHook
from adaptive_quiz.core.models import Quiz
from adaptive_quiz.core.quiz_engine import QuizEngine
from adaptive_quiz.server.api_server import create_api_app


@pytest.fixture
def gamification() -> GamificationHook:
    return GamificationHook()


@pytest.fixture
def client(repository, clock, gamification):
    engine = QuizEngine(questions=repository, completion_hook=gamification, clock=clock)
    return TestClient(create_api_app(engine, gamification))


def _start(client, user_id="learner-1"):
    response = client.post("/quizzes/python-basics/sessions", json={"user_id": user_id})
    assert response.status_code == 201
    return response.json()


def _answer(client, session_id, question_id, option):
    return client.post(
        f"/sessions/{session_id}/answers",
        json={"question_id": question_id, "selected_option_index": option},
    )


# =============================================================================
# CATALOGUE
# =============================================================================


class TestCatalogue:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body == {"status": "ok", "quizzes": 1, "active_sessions": 0}

    def test_list_quizzes(self, client):
        quizzes = client.get("/quizzes").json()

        assert quizzes == [
            {
                "id": "python-basics",
                "course_id": "python-101",
                "title": "Python Basics",
                "difficulty": "easy",
                "time_limit": 10,
                "passing_score": 70,
                "is_adaptive": True,
                "question_count": 3,
            }
        ]

    def test_get_quiz(self, client):
        assert client.get("/quizzes/python-basics").json()["question_count"] == 3

    def test_get_missing_quiz(self, client):
        assert client.get("/quizzes/missing").status_code == 404


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:
    """Starting sessions and submitting answers over HTTP."""

    def test_full_run(self, client):
        started = _start(client)
        assert started["question_number"] == 1
        assert started["total_questions"] == 3
        assert started["time_limit"] == 10
        assert started["question"]["id"] == "q1"

        first = _answer(client, started["session_id"], "q1", 1).json()
        assert first["is_correct"] is True
        assert first["next_question"]["id"] == "q2"
        assert first["question_number"] == 2

        _answer(client, started["session_id"], "q2", 2)
        final = _answer(client, started["session_id"], "q3", 0).json()

        assert final["is_complete"] is True
        assert final["final_score"] == 100
        assert final["is_passed"] is True
        assert final["correct_answers"] == 3
        assert final["passing_score"] == 70
        assert "next_question" not in final

    def test_unknown_quiz_is_404(self, client):
        response = client.post("/quizzes/missing/sessions", json={"user_id": "learner-1"})
        assert response.status_code == 404

    def test_empty_quiz_is_422(self, client, repository):
        repository.add_quiz(Quiz(id="empty", course_id="nothing", title="Empty"))

        response = client.post("/quizzes/empty/sessions", json={"user_id": "learner-1"})

        assert response.status_code == 422
        assert client.get("/health").json()["active_sessions"] == 0

    def test_blank_user_is_422(self, client):
        response = client.post("/quizzes/python-basics/sessions", json={"user_id": "  "})
        assert response.status_code == 422

    def test_missing_body_field_is_422(self, client):
        started = _start(client)
        response = client.post(f"/sessions/{started['session_id']}/answers", json={"question_id": "q1"})
        assert response.status_code == 422

    def test_unknown_session_is_404(self, client):
        assert _answer(client, "missing", "q1", 0).status_code == 404

    def test_wrong_question_is_409(self, client):
        started = _start(client)
        assert _answer(client, started["session_id"], "q3", 0).status_code == 409

    def test_completed_session_is_409(self, client):
        started = _start(client)
        _answer(client, started["session_id"], "q1", 0)  # wrong answer ends the run early

        response = _answer(client, started["session_id"], "q1", 1)

        assert response.status_code == 409


# =============================================================================
# LEARNER PROGRESS
# =============================================================================


class TestLearnerProgress:
    def test_attempts_and_profile(self, client):
        started = _start(client)
        _answer(client, started["session_id"], "q1", 1)
        _answer(client, started["session_id"], "q2", 2)
        _answer(client, started["session_id"], "q3", 0)

        attempts = client.get("/users/learner-1/attempts").json()
        assert len(attempts) == 1
        assert attempts[0]["score"] == 100
        assert attempts[0]["difficulty"] == "hard"
        assert client.get("/users/learner-1/attempts", params={"quiz_id": "other"}).json() == []

        profile = client.get("/users/learner-1/profile").json()
        assert profile["xp"] == 1150
        assert profile["attempt_count"] == 1
        assert {badge["id"] for badge in profile["badges"]} == {"first-quiz", "perfect-score"}

    def test_progress_routes_need_tracking(self, repository):
        client = TestClient(create_api_app(QuizEngine(questions=repository)))

        assert client.get("/users/learner-1/profile").status_code == 404

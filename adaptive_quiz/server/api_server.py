"""FastAPI server that exposes the adaptive quiz endpoints."""

from __future__ import annotations

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from adaptive_quiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from adaptive_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from adaptive_quiz.core.errors import EmptyQuizError, InvalidStateError, NotFoundError
from adaptive_quiz.core.gamification import GamificationHook
from adaptive_quiz.core.models import Quiz
from adaptive_quiz.core.quiz_engine import QuizEngine


class StartSessionPayload(BaseModel):
    user_id: str


class AnswerPayload(BaseModel):
    question_id: str
    selected_option_index: int


def _get_engine_dependency(engine: QuizEngine):
    def dependency() -> QuizEngine:
        return engine

    return dependency


def _quiz_to_dict(quiz: Quiz, pool_size: int) -> dict[str, object]:
    return {
        "id": quiz.id,
        "course_id": quiz.course_id,
        "title": quiz.title,
        "difficulty": quiz.difficulty.value if quiz.difficulty else None,
        "time_limit": quiz.time_limit_minutes,
        "passing_score": quiz.passing_score,
        "is_adaptive": quiz.is_adaptive,
        "question_count": pool_size,
    }


def create_api_app(engine: QuizEngine, gamification: GamificationHook | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz engine."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    engine_dep = _get_engine_dependency(engine)

    def require_gamification() -> GamificationHook:
        if gamification is None:
            raise HTTPException(status_code=404, detail="Learner progress is not tracked by this server.")
        return gamification

    @app.get("/health")
    def health(quiz_engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        return {
            "status": "ok",
            "quizzes": len(quiz_engine.questions.list_quizzes()),
            "active_sessions": quiz_engine.sessions.active_count(),
        }

    @app.get("/quizzes")
    def list_quizzes(quiz_engine: QuizEngine = Depends(engine_dep)) -> list[dict[str, object]]:
        repository = quiz_engine.questions
        return [_quiz_to_dict(quiz, repository.pool_size(quiz.id)) for quiz in repository.list_quizzes()]

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(quiz_id: str, quiz_engine: QuizEngine = Depends(engine_dep)) -> dict[str, object]:
        repository = quiz_engine.questions
        quiz = repository.get_quiz(quiz_id)
        if quiz is None:
            raise HTTPException(status_code=404, detail=f"Quiz {quiz_id} not found.")
        return _quiz_to_dict(quiz, repository.pool_size(quiz.id))

    @app.post("/quizzes/{quiz_id}/sessions", status_code=201)
    def start_session(
        quiz_id: str,
        payload: StartSessionPayload,
        quiz_engine: QuizEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        user_id = payload.user_id.strip()
        if not user_id:
            raise HTTPException(status_code=422, detail="user_id cannot be empty.")
        try:
            started = quiz_engine.start_session(quiz_id, user_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except EmptyQuizError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return started.to_dict()

    @app.post("/sessions/{session_id}/answers")
    def submit_answer(
        session_id: str,
        payload: AnswerPayload,
        quiz_engine: QuizEngine = Depends(engine_dep),
    ) -> dict[str, object]:
        try:
            result = quiz_engine.submit_answer(session_id, payload.question_id, payload.selected_option_index)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/users/{user_id}/attempts")
    def list_attempts(
        user_id: str,
        quiz_id: str | None = None,
        hook: GamificationHook = Depends(require_gamification),
    ) -> list[dict[str, object]]:
        return [attempt.to_dict() for attempt in hook.attempts.attempts_for(user_id, quiz_id)]

    @app.get("/users/{user_id}/profile")
    def get_profile(user_id: str, hook: GamificationHook = Depends(require_gamification)) -> dict[str, object]:
        return hook.profile_summary(user_id)

    return app


def serve_api(app: FastAPI, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, log_level: str = "info") -> None:
    """Run the API with uvicorn in the current thread until interrupted."""
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    server.run()

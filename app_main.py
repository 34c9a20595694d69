"""Application entry point for the adaptive quiz service."""

from __future__ import annotations

from adaptive_quiz.config import Settings
from adaptive_quiz.core.difficulty_adapter import build_difficulty_adapter
from adaptive_quiz.core.gamification import GamificationHook
from adaptive_quiz.core.quiz_engine import QuizEngine
from adaptive_quiz.core.quiz_importer import load_bank_from_file
from adaptive_quiz.core.services.question_repository import QuestionRepository
from adaptive_quiz.server.api_server import create_api_app, serve_api
from adaptive_quiz.utils.logging_config import configure_logging


def build_repository(settings: Settings) -> QuestionRepository:
    repository = QuestionRepository()
    if settings.question_bank_path is not None:
        bank = load_bank_from_file(settings.question_bank_path)
        repository.load_bank(bank.quizzes, bank.questions)
    return repository


def main() -> None:
    """Load settings, wire the engine and serve the HTTP API."""
    settings = Settings.from_env()
    logger = configure_logging(settings.log_level)
    logger.info("Starting adaptive quiz service…")

    repository = build_repository(settings)
    logger.info(
        "Loaded %d quizzes and %d questions from %s",
        len(repository.list_quizzes()),
        repository.get_question_count(),
        settings.question_bank_path,
    )

    adapter = build_difficulty_adapter(settings)
    gamification = GamificationHook()
    engine = QuizEngine(
        questions=repository,
        adapter=adapter,
        completion_hook=gamification,
    )
    app = create_api_app(engine, gamification)
    logger.info("API available at http://%s:%d/", settings.host, settings.port)
    try:
        serve_api(app, host=settings.host, port=settings.port, log_level=settings.log_level)
    finally:
        shutdown = getattr(adapter, "shutdown", None)
        if shutdown is not None:
            shutdown()


if __name__ == "__main__":
    main()

"""Runtime settings read from the environment (and an optional ``.env`` file)."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from adaptive_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from adaptive_quiz.constants.quiz_constants import (
    DEFAULT_ADVISOR_TIMEOUT_SECONDS,
    DEFAULT_GEMINI_MODEL,
    DIFFICULTY_STRATEGY_GEMINI,
    DIFFICULTY_STRATEGY_HEURISTIC,
)

SAMPLE_BANK_PATH = Path(__file__).resolve().parent / "data" / "sample_bank.txt"

_STRATEGIES = (DIFFICULTY_STRATEGY_HEURISTIC, DIFFICULTY_STRATEGY_GEMINI)


@dataclass(frozen=True, slots=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    difficulty_strategy: str = DIFFICULTY_STRATEGY_HEURISTIC
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    advisor_timeout_seconds: float = DEFAULT_ADVISOR_TIMEOUT_SECONDS
    question_bank_path: Path | None = SAMPLE_BANK_PATH

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> Settings:
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))

        strategy = os.getenv("QUIZ_DIFFICULTY_STRATEGY", DIFFICULTY_STRATEGY_HEURISTIC).strip().lower()
        if strategy not in _STRATEGIES:
            raise ValueError(
                f"QUIZ_DIFFICULTY_STRATEGY must be one of {', '.join(_STRATEGIES)} (got {strategy!r})."
            )

        bank_path = os.getenv("QUIZ_BANK_PATH")
        return cls(
            host=os.getenv("QUIZ_HOST", DEFAULT_HOST),
            port=_int_env("QUIZ_PORT", DEFAULT_PORT),
            log_level=os.getenv("QUIZ_LOG_LEVEL", "INFO").upper(),
            difficulty_strategy=strategy,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("QUIZ_GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            advisor_timeout_seconds=_float_env("QUIZ_ADVISOR_TIMEOUT_SECONDS", DEFAULT_ADVISOR_TIMEOUT_SECONDS),
            question_bank_path=Path(bank_path) if bank_path else SAMPLE_BANK_PATH,
        )


def _int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer (got {raw_value!r}).") from exc


def _float_env(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number (got {raw_value!r}).") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive.")
    return value

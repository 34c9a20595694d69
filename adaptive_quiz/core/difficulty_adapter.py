"""Difficulty adaptation strategies for adaptive quizzes.

The local rule looks at the last five answers: an accuracy of at least 0.8
moves one tier up, an accuracy of at most 0.4 moves one tier down, anything
in between keeps the tier. The Gemini-backed advisor can propose a tier
instead, but it always runs behind a timeout with the local rule as the
fallback, so the engine never depends on the advisory call.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
import json
import logging
from typing import Any, Protocol

from google import genai
from google.genai import types

from adaptive_quiz.config import Settings
from adaptive_quiz.constants.quiz_constants import (
    ADAPTATION_WINDOW,
    DEFAULT_ADVISOR_TIMEOUT_SECONDS,
    DEFAULT_GEMINI_MODEL,
    DIFFICULTY_STRATEGY_GEMINI,
    STEP_DOWN_ACCURACY,
    STEP_UP_ACCURACY,
)
from adaptive_quiz.core.errors import AdapterUnavailableError
from adaptive_quiz.core.models import AnswerRecord, Difficulty

logger = logging.getLogger(__name__)


def adapt_difficulty(history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty:
    """Return the next tier from the most recent answers; pure and deterministic."""
    window = list(history)[-ADAPTATION_WINDOW:]
    if not window:
        return current
    accuracy = sum(1 for record in window if record.is_correct) / len(window)
    if accuracy >= STEP_UP_ACCURACY and current is not Difficulty.HARD:
        return current.step_up()
    if accuracy <= STEP_DOWN_ACCURACY and current is not Difficulty.EASY:
        return current.step_down()
    return current


class DifficultyAdapter(Protocol):
    def adapt(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty: ...


class DifficultyAdvisor(Protocol):
    """External service proposing the next tier; may raise AdapterUnavailableError."""

    def propose(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty: ...


class HeuristicDifficultyAdapter:
    """Default adapter: the local windowed-accuracy rule."""

    def adapt(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty:
        return adapt_difficulty(history, Difficulty(current))


class GeminiDifficultyAdvisor:
    """Asks a Gemini model for the next difficulty tier."""

    _PROMPT = (
        "You tune the difficulty of an adaptive multiple-choice quiz. Tiers, easiest first: "
        "easy, medium, hard. The learner is currently answering {current} questions. Their most "
        "recent answers, oldest first, were: {answers}. Choose the tier for the next question. "
        'Reply with JSON only, shaped like {{"difficulty": "easy"}}.'
    )

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout_seconds: float = DEFAULT_ADVISOR_TIMEOUT_SECONDS,
        client: Any | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ValueError("A Gemini API key is required for the difficulty advisor.")
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
            )
        self._client = client
        self._model = model

    def propose(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty:
        recent = list(history)[-ADAPTATION_WINDOW:]
        answers = ", ".join("correct" if r.is_correct else "incorrect" for r in recent) or "none yet"
        prompt = self._PROMPT.format(current=Difficulty(current).value, answers=answers)
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=0.0,
                ),
            )
        except Exception as exc:
            raise AdapterUnavailableError(f"Gemini request failed: {exc}") from exc
        return self._parse(getattr(response, "text", None))

    @staticmethod
    def _parse(text: str | None) -> Difficulty:
        if not text or not text.strip():
            raise AdapterUnavailableError("Gemini returned an empty reply.")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AdapterUnavailableError(f"Gemini reply is not JSON: {text[:80]!r}") from exc
        value = payload.get("difficulty") if isinstance(payload, dict) else None
        try:
            return Difficulty(str(value).strip().lower())
        except ValueError as exc:
            raise AdapterUnavailableError(f"Gemini proposed an unknown tier: {value!r}") from exc


class AdvisedDifficultyAdapter:
    """Consults an advisor under a timeout and falls back to the local rule.

    Proposals are clamped to one tier away from the current difficulty.
    """

    def __init__(
        self,
        advisor: DifficultyAdvisor,
        timeout_seconds: float = DEFAULT_ADVISOR_TIMEOUT_SECONDS,
        fallback: DifficultyAdapter | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._advisor = advisor
        self._timeout = timeout_seconds
        self._fallback = fallback or HeuristicDifficultyAdapter()
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="difficulty-advisor")

    def adapt(self, history: Sequence[AnswerRecord], current: Difficulty) -> Difficulty:
        current = Difficulty(current)
        snapshot = tuple(history)
        future = self._executor.submit(self._advisor.propose, snapshot, current)
        try:
            proposed = future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Difficulty advisor timed out after %.2fs; using local rule", self._timeout)
            return self._fallback.adapt(snapshot, current)
        except AdapterUnavailableError as exc:
            logger.warning("Difficulty advisor unavailable (%s); using local rule", exc)
            return self._fallback.adapt(snapshot, current)
        except Exception:
            logger.warning("Difficulty advisor failed; using local rule", exc_info=True)
            return self._fallback.adapt(snapshot, current)
        return _clamp_one_step(current, Difficulty(proposed))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def _clamp_one_step(current: Difficulty, proposed: Difficulty) -> Difficulty:
    if proposed.rank > current.rank:
        return current.step_up()
    if proposed.rank < current.rank:
        return current.step_down()
    return current


def build_difficulty_adapter(settings: Settings) -> DifficultyAdapter:
    """Pick the adapter strategy configured in ``settings``."""
    if settings.difficulty_strategy != DIFFICULTY_STRATEGY_GEMINI:
        return HeuristicDifficultyAdapter()
    if not settings.gemini_api_key:
        logger.warning("Gemini difficulty strategy selected without GEMINI_API_KEY; using local rule")
        return HeuristicDifficultyAdapter()
    advisor = GeminiDifficultyAdvisor(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout_seconds=settings.advisor_timeout_seconds,
    )
    logger.info("Using Gemini difficulty advisor (%s)", settings.gemini_model)
    return AdvisedDifficultyAdapter(advisor, timeout_seconds=settings.advisor_timeout_seconds)

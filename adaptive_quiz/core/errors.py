"""Exceptions raised by the quiz engine and its collaborators."""

from __future__ import annotations


class QuizEngineError(Exception):
    """Base class for quiz engine failures."""


class NotFoundError(QuizEngineError):
    """A quiz, session or question id does not resolve."""


class EmptyQuizError(QuizEngineError):
    """The quiz has no eligible questions at start time."""


class InvalidStateError(QuizEngineError):
    """The session cannot accept the requested transition."""


class StaleSessionError(InvalidStateError):
    """The session changed between read and write (version mismatch)."""


class AdapterUnavailableError(QuizEngineError):
    """The advisory difficulty service failed or returned nothing usable.

    Never surfaced to callers; the engine falls back to the local rule.
    """


class CompletionHookError(QuizEngineError):
    """Raised by completion hook implementations; logged, never surfaced."""


class InvalidQuestionError(ValueError):
    """Question content violates the option invariants."""

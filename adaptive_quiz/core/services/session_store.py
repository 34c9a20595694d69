"""Service persisting in-flight quiz sessions by id."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, replace
from threading import Lock
from uuid import uuid4

from adaptive_quiz.core.errors import NotFoundError, StaleSessionError
from adaptive_quiz.core.models import QuizSession

_IMMUTABLE_FIELDS = frozenset({"id", "user_id", "quiz_id", "total_questions", "started_at", "version"})
_SESSION_FIELDS = frozenset(f.name for f in fields(QuizSession))


class SessionStore:
    """Keeps the live session snapshots and the ids of retired sessions.

    Updates are compare-and-swap on ``QuizSession.version``; each successful
    update stores a new snapshot with the version bumped by one.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: dict[str, QuizSession] = {}
        self._retired: set[str] = set()

    @staticmethod
    def new_session_id() -> str:
        return uuid4().hex

    def create(self, session: QuizSession) -> QuizSession:
        with self._lock:
            if session.id in self._sessions or session.id in self._retired:
                raise ValueError(f"Session {session.id} already exists.")
            stored = replace(session, version=0)
            self._sessions[stored.id] = stored
            return stored

    def get(self, session_id: str) -> QuizSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def update(
        self,
        session_id: str,
        patch: Mapping[str, object],
        expected_version: int | None = None,
    ) -> QuizSession:
        """Apply ``patch`` atomically, rejecting it if the version moved on."""
        unknown = set(patch) - _SESSION_FIELDS
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")
        frozen = set(patch) & _IMMUTABLE_FIELDS
        if frozen:
            raise ValueError(f"Session fields cannot be changed: {sorted(frozen)}")

        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Quiz session {session_id} not found.")
            if expected_version is not None and current.version != expected_version:
                raise StaleSessionError(
                    f"Quiz session {session_id} changed concurrently "
                    f"(expected version {expected_version}, found {current.version})."
                )
            updated = replace(current, **patch, version=current.version + 1)
            self._sessions[session_id] = updated
            return updated

    def delete(self, session_id: str) -> None:
        """Drop the live record; the id stays retired and is never reused."""
        with self._lock:
            self._sessions.pop(session_id, None)
            self._retired.add(session_id)

    def is_retired(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._retired

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

"""Service tracking XP, streaks and earned badges per learner."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from threading import Lock

from adaptive_quiz.core.models import LearnerProfile


class LearnerProfiles:
    """Holds mutable learner stats; callers receive copies."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._profiles: dict[str, LearnerProfile] = {}

    def get(self, user_id: str) -> LearnerProfile:
        with self._lock:
            return _copy(self._entry(user_id))

    def add_xp(self, user_id: str, amount: int) -> LearnerProfile:
        if amount < 0:
            raise ValueError("XP amount must not be negative.")
        with self._lock:
            entry = self._entry(user_id)
            entry.xp += amount
            return _copy(entry)

    def touch_streak(self, user_id: str, active_on: date) -> LearnerProfile:
        """Count ``active_on`` towards the learner's daily streak."""
        with self._lock:
            entry = self._entry(user_id)
            last = entry.last_active_on
            if last is None or active_on - last > timedelta(days=1):
                entry.streak = 1
            elif active_on - last == timedelta(days=1):
                entry.streak += 1
            elif active_on < last:
                return _copy(entry)
            entry.last_active_on = active_on
            return _copy(entry)

    def set_streak(self, user_id: str, streak: int, last_active_on: date | None = None) -> LearnerProfile:
        if streak < 0:
            raise ValueError("Streak must not be negative.")
        with self._lock:
            entry = self._entry(user_id)
            entry.streak = streak
            entry.last_active_on = last_active_on
            return _copy(entry)

    def has_badge(self, user_id: str, badge_id: str) -> bool:
        with self._lock:
            return badge_id in self._entry(user_id).badge_ids

    def grant_badge(self, user_id: str, badge_id: str, xp_reward: int = 0) -> bool:
        """Grant a badge once; returns False when the learner already holds it."""
        with self._lock:
            entry = self._entry(user_id)
            if badge_id in entry.badge_ids:
                return False
            entry.badge_ids.append(badge_id)
            entry.xp += max(xp_reward, 0)
            return True

    def _entry(self, user_id: str) -> LearnerProfile:
        entry = self._profiles.get(user_id)
        if entry is None:
            entry = LearnerProfile(user_id=user_id)
            self._profiles[user_id] = entry
        return entry


def _copy(profile: LearnerProfile) -> LearnerProfile:
    return replace(profile, badge_ids=list(profile.badge_ids))

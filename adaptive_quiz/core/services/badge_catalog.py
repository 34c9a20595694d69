"""Catalogue of badges that quiz completion can award."""

from __future__ import annotations

from threading import Lock

from adaptive_quiz.core.models import Badge, BadgeCriteriaType


def default_badges() -> list[Badge]:
    return [
        Badge(
            id="first-quiz",
            name="First Steps",
            description="Complete your first quiz.",
            criteria_type=BadgeCriteriaType.FIRST_QUIZ,
            xp_reward=50,
        ),
        Badge(
            id="perfect-score",
            name="Perfectionist",
            description="Finish a quiz with a score of 100.",
            criteria_type=BadgeCriteriaType.PERFECT_SCORE,
            xp_reward=100,
            rarity="rare",
        ),
        Badge(
            id="week-streak",
            name="Week Warrior",
            description="Complete quizzes on seven consecutive days.",
            criteria_type=BadgeCriteriaType.STREAK,
            days=7,
            xp_reward=150,
            rarity="epic",
        ),
    ]


class BadgeCatalog:
    """Registered badge definitions, in registration order."""

    def __init__(self, badges: list[Badge] | None = None) -> None:
        self._lock = Lock()
        self._badges: dict[str, Badge] = {}
        for badge in badges if badges is not None else default_badges():
            self.register(badge)

    def register(self, badge: Badge) -> None:
        if badge.criteria_type is BadgeCriteriaType.STREAK and not badge.days:
            raise ValueError("Streak badges need a positive number of days.")
        with self._lock:
            self._badges[badge.id] = badge

    def get_badges(self) -> list[Badge]:
        with self._lock:
            return list(self._badges.values())

    def get_badge(self, badge_id: str) -> Badge | None:
        with self._lock:
            return self._badges.get(badge_id)

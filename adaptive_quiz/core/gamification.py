"""Quiz completion side effects: attempt records, XP, streaks and badges."""

from __future__ import annotations

import logging

from adaptive_quiz.constants.quiz_constants import XP_PER_SCORE_POINT
from adaptive_quiz.core.models import (
    Badge,
    BadgeCriteriaType,
    CompletedQuiz,
    LearnerProfile,
    QuizAttempt,
)
from adaptive_quiz.core.services.attempt_log import AttemptLog
from adaptive_quiz.core.services.badge_catalog import BadgeCatalog
from adaptive_quiz.core.services.learner_profiles import LearnerProfiles
from adaptive_quiz.core.xp_levels import LevelProgress, level_progress

logger = logging.getLogger(__name__)


class GamificationHook:
    """Completion hook that records the attempt and rewards the learner."""

    def __init__(
        self,
        attempts: AttemptLog | None = None,
        profiles: LearnerProfiles | None = None,
        badges: BadgeCatalog | None = None,
    ) -> None:
        self.attempts = attempts or AttemptLog()
        self.profiles = profiles or LearnerProfiles()
        self.badges = badges or BadgeCatalog()

    def on_complete(self, completed: CompletedQuiz) -> QuizAttempt:
        attempt = self.attempts.record(completed)

        xp_earned = completed.score * XP_PER_SCORE_POINT
        self.profiles.add_xp(completed.user_id, xp_earned)
        self.profiles.touch_streak(completed.user_id, completed.completed_at.date())

        awarded = self.award_badges(completed.user_id, attempt)
        logger.info(
            "Recorded attempt %s for user %s: score=%s xp=+%s badges=%s",
            attempt.id,
            completed.user_id,
            completed.score,
            xp_earned,
            [badge.id for badge in awarded] or "none",
        )
        return attempt

    def award_badges(self, user_id: str, attempt: QuizAttempt) -> list[Badge]:
        """Grant every badge whose criteria the learner now meets."""
        profile = self.profiles.get(user_id)
        awarded: list[Badge] = []
        for badge in self.badges.get_badges():
            if self.profiles.has_badge(user_id, badge.id):
                continue
            if not self._meets_criteria(badge, profile, attempt):
                continue
            if self.profiles.grant_badge(user_id, badge.id, badge.xp_reward):
                awarded.append(badge)
        return awarded

    def _meets_criteria(self, badge: Badge, profile: LearnerProfile, attempt: QuizAttempt) -> bool:
        if badge.criteria_type is BadgeCriteriaType.FIRST_QUIZ:
            return self.attempts.count_for(profile.user_id) == 1
        if badge.criteria_type is BadgeCriteriaType.PERFECT_SCORE:
            return attempt.score == 100
        if badge.criteria_type is BadgeCriteriaType.STREAK:
            return badge.days is not None and profile.streak >= badge.days
        return False

    def profile_summary(self, user_id: str) -> dict[str, object]:
        profile = self.profiles.get(user_id)
        progress: LevelProgress = level_progress(profile.xp)
        return {
            "user_id": profile.user_id,
            "xp": profile.xp,
            "level": progress.level,
            "current_level_xp": progress.current_level_xp,
            "xp_required_for_next_level": progress.xp_required_for_next_level,
            "progress_percentage": round(progress.progress_percentage, 1),
            "streak": profile.streak,
            "last_active_on": profile.last_active_on.isoformat() if profile.last_active_on else None,
            "badges": [
                {"id": badge.id, "name": badge.name, "rarity": badge.rarity}
                for badge in (self.badges.get_badge(badge_id) for badge_id in profile.badge_ids)
                if badge is not None
            ],
            "attempt_count": self.attempts.count_for(user_id),
        }

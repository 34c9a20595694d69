"""XP to level conversion.

Level 1 needs 100 XP to complete and every further level needs 20 XP more
than the one before it, so completing ``L`` levels takes ``10 L^2 + 90 L`` XP.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt


@dataclass(frozen=True, slots=True)
class LevelProgress:
    level: int
    current_level_xp: int
    xp_required_for_next_level: int
    progress_percentage: float


def total_xp_for_levels(completed_levels: int) -> int:
    return 10 * completed_levels**2 + 90 * completed_levels


def xp_required_for_level(level: int) -> int:
    return 100 + (level - 1) * 20


def level_progress(total_xp: int) -> LevelProgress:
    total_xp = max(total_xp, 0)
    # Largest L with 10L^2 + 90L <= total_xp.
    completed_levels = (isqrt(8100 + 40 * total_xp) - 90) // 20
    level = completed_levels + 1
    current_level_xp = total_xp - total_xp_for_levels(completed_levels)
    required = xp_required_for_level(level)
    percentage = min(100.0, max(0.0, current_level_xp / required * 100))
    return LevelProgress(
        level=level,
        current_level_xp=current_level_xp,
        xp_required_for_next_level=required,
        progress_percentage=percentage,
    )

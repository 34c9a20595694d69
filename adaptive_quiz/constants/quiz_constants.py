"""Quiz engine and gamification constants shared across core and server layers."""

DEFAULT_PASSING_SCORE: int = 70

# Difficulty adaptation window and thresholds.
ADAPTATION_WINDOW: int = 5
STEP_UP_ACCURACY: float = 0.8
STEP_DOWN_ACCURACY: float = 0.4

# Advisory model defaults.
DIFFICULTY_STRATEGY_HEURISTIC: str = "heuristic"
DIFFICULTY_STRATEGY_GEMINI: str = "gemini"
DEFAULT_GEMINI_MODEL: str = "gemini-2.5-flash"
DEFAULT_ADVISOR_TIMEOUT_SECONDS: float = 2.0

# XP granted per percentage point of the final score.
XP_PER_SCORE_POINT: int = 10

MIN_OPTIONS_PER_QUESTION: int = 2
MAX_OPTIONS_PER_QUESTION: int = 6

"""Static metadata describing the adaptive quiz service."""

APP_NAME = "Adaptive Quiz"
APP_VERSION = "0.2.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Adaptive quiz service: steps learners through a question sequence, adjusts "
    "difficulty from recent answers, scores the run and rewards XP and badges on completion."
)

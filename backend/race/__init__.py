"""Typing race package: keystroke matching and race progress reporting."""

from backend.race.engine import (
    CharStatus,
    InputResult,
    InputStatus,
    TypingSession,
    compute_wpm,
    player_character_progress,
)
from backend.race.progress import RaceProgressReporter
from backend.race.substitutions import SUBSTITUTIONS, special_characters

__all__ = [
    "TypingSession",
    "InputResult",
    "InputStatus",
    "CharStatus",
    "compute_wpm",
    "player_character_progress",
    "RaceProgressReporter",
    "SUBSTITUTIONS",
    "special_characters",
]

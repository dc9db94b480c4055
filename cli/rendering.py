"""Utilities for rendering typing progress in the CLI."""

from __future__ import annotations

from typing import List

import typer

from backend.race.engine import CharStatus, TypingSession

_STYLES = {
    CharStatus.CORRECT: {"fg": typer.colors.GREEN},
    CharStatus.INCORRECT: {"fg": typer.colors.WHITE, "bg": typer.colors.RED},
    CharStatus.CURRENT: {"underline": True, "bold": True},
    CharStatus.PENDING: {"fg": typer.colors.YELLOW, "underline": True},
    CharStatus.UNTYPED: {"dim": True},
}


def render_target(session: TypingSession) -> str:
    """Render the target text with one style per character status.

    A trailing cursor block is shown once the whole text has been typed.
    """
    parts: List[str] = []
    for char, status in zip(session.target, session.character_states()):
        parts.append(typer.style(char, **_STYLES[status]))
    if session.finished:
        parts.append(typer.style("▏", fg=typer.colors.GREEN))
    return "".join(parts)


def render_status_line(session: TypingSession, wpm: int) -> str:
    """One-line summary: words done, position and speed."""
    total = len(session.boundaries)
    return (
        f"{session.words_completed}/{total} words  "
        f"{session.current_index}/{len(session.target)} chars  "
        f"{wpm} WPM"
    )

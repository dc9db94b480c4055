"""Keystroke matching against a paragraph's canonical typing text.

A :class:`TypingSession` owns the confirmed cursor into the target and the
unconfirmed input buffer.  The caller hands it the full contents of the
text-entry control after every keystroke through :meth:`TypingSession.feed`;
the session answers with an :class:`InputResult` telling the caller what to
show and what the entry control should now contain.

Matching never blocks and performs no I/O.  Word completions are reported
through an optional callback, which is how race progress is published.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from backend.errors import MismatchError
from backend.race.substitutions import Match, chars_equal, match_sequence
from backend.text.normalize import typing_text, word_boundaries

WordCallback = Callable[[int], None]


class InputStatus(str, Enum):
    ACCEPTED = "accepted"
    PENDING = "pending"
    REJECTED = "rejected"
    IGNORED = "ignored"


class CharStatus(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    CURRENT = "current"
    PENDING = "pending"
    UNTYPED = "untyped"


@dataclass(frozen=True)
class InputResult:
    status: InputStatus
    current_index: int
    buffer: str
    words_completed: int
    word_completed: bool = False
    pending_position: Optional[int] = None
    error: Optional[MismatchError] = None


def compute_wpm(words: int, elapsed_seconds: float) -> int:
    """Words per minute, rounded; ``0`` until any time has elapsed."""
    if elapsed_seconds <= 0:
        return 0
    return round(words / elapsed_seconds * 60)


def player_character_progress(boundaries: list[int], words_completed: int) -> int:
    """Character offset reached by a racer who finished *words_completed* words."""
    if words_completed <= 0 or not boundaries:
        return 0
    return boundaries[min(words_completed, len(boundaries)) - 1]


class TypingSession:
    """Matching state for one racer typing one target text.

    Args:
        target: Canonical typing text (see :func:`backend.text.typing_text`).
        on_word_completed: Called with the new completed-word count each
            time an accepted input crosses a word boundary.
        start_index: Confirmed position to resume from.
    """

    def __init__(
        self,
        target: str,
        on_word_completed: Optional[WordCallback] = None,
        start_index: int = 0,
    ) -> None:
        self.target = unicodedata.normalize("NFC", target)
        self.boundaries = word_boundaries(self.target)
        self.on_word_completed = on_word_completed
        self.current_index = max(0, min(start_index, len(self.target)))
        self.buffer = ""
        self.pending_position: Optional[int] = None
        self.error_position: Optional[int] = None
        self.words_completed = self._words_at(self.current_index)

    @classmethod
    def from_content(
        cls,
        content: str,
        words_completed: int = 0,
        on_word_completed: Optional[WordCallback] = None,
    ) -> "TypingSession":
        """Build a session for stored paragraph markdown.

        A racer rejoining mid-race resumes right after their last completed
        word.
        """
        target = typing_text(content)
        start = player_character_progress(word_boundaries(target), words_completed)
        return cls(target, on_word_completed=on_word_completed, start_index=start)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.current_index >= len(self.target)

    @property
    def word_count(self) -> int:
        return len(self.target.split())

    def _words_at(self, index: int) -> int:
        return sum(1 for boundary in self.boundaries if boundary <= index)

    def _result(self, status: InputStatus, **extra) -> InputResult:
        return InputResult(
            status=status,
            current_index=self.current_index,
            buffer=self.buffer,
            words_completed=self.words_completed,
            pending_position=self.pending_position,
            **extra,
        )

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def feed(self, buffer: str) -> InputResult:
        """Match the entry control's full contents against the target.

        The buffer may only grow: a shorter buffer than the one last kept is
        ignored, so characters cannot be deleted.  A full match commits the
        typed characters and empties the buffer.  A buffer ending inside a
        substitution sequence is kept uncommitted as pending.  Anything else
        is rejected: the buffer is cleared and the cursor stays put.
        """
        buffer = unicodedata.normalize("NFC", buffer)
        self.pending_position = None
        self.error_position = None

        if self.finished or len(buffer) < len(self.buffer):
            return self._result(InputStatus.IGNORED)

        typed_pos = 0
        expected_pos = self.current_index
        while typed_pos < len(buffer):
            if expected_pos >= len(self.target):
                return self._reject(buffer, typed_pos, expected_pos)

            expected = self.target[expected_pos]
            match = match_sequence(expected, buffer, typed_pos)
            if match.kind is Match.FULL:
                typed_pos += match.consumed
                expected_pos += 1
            elif chars_equal(expected, buffer[typed_pos]):
                typed_pos += 1
                expected_pos += 1
            elif match.kind is Match.PENDING:
                self.buffer = buffer
                self.pending_position = expected_pos
                return self._result(InputStatus.PENDING)
            else:
                return self._reject(buffer, typed_pos, expected_pos)

        return self._advance(expected_pos)

    def _reject(self, buffer: str, typed_pos: int, expected_pos: int) -> InputResult:
        self.buffer = ""
        self.error_position = self.current_index
        error = MismatchError(
            position=expected_pos,
            expected=self.target[expected_pos] if expected_pos < len(self.target) else "",
            typed=buffer[typed_pos],
        )
        return self._result(InputStatus.REJECTED, error=error)

    def _advance(self, new_index: int) -> InputResult:
        self.current_index = new_index
        self.buffer = ""

        words = self._words_at(new_index)
        crossed = words > self.words_completed
        self.words_completed = words
        if crossed and self.on_word_completed is not None:
            self.on_word_completed(words)
        return self._result(InputStatus.ACCEPTED, word_completed=crossed)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def character_states(self) -> list[CharStatus]:
        """Per-character render state of the target, in order."""
        states: list[CharStatus] = []
        for index in range(len(self.target)):
            if index < self.current_index:
                states.append(CharStatus.CORRECT)
            elif index == self.error_position:
                states.append(CharStatus.INCORRECT)
            elif index == self.pending_position:
                states.append(CharStatus.PENDING)
            elif index == self.current_index:
                states.append(CharStatus.CURRENT)
            else:
                states.append(CharStatus.UNTYPED)
        return states

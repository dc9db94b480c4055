"""Keystroke sequences accepted in place of characters missing from a keyboard.

The matcher is driven entirely by :data:`SUBSTITUTIONS`: it maps an expected
character to the ASCII-friendly sequences that may be typed for it.  Adding
a symbol is a data change.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_ACCENTS = {
    "\u00b4": "\u0301",  # acute
    "`": "\u0300",  # grave
    "^": "\u0302",  # circumflex
}
_VOWELS = "aeiouAEIOU"


def _accented_vowels() -> dict[str, tuple[str, ...]]:
    table: dict[str, tuple[str, ...]] = {}
    for mark, combining in _ACCENTS.items():
        for vowel in _VOWELS:
            composed = unicodedata.normalize("NFC", vowel + combining)
            if len(composed) == 1:
                table[composed] = (mark + vowel,)
    return table


SUBSTITUTIONS: dict[str, tuple[str, ...]] = {
    "…": ("...",),
    "—": ("---",),
    "–": ("--",),
    "≤": ("<=",),
    "≥": (">=",),
    "≠": ("!=",),
    "→": ("->",),
    "←": ("<-",),
    "ç": (",c", "çc"),
    "Ç": (",C",),
    **_accented_vowels(),
}

# Plain keys that stand in for typographic quotes.
QUOTE_FOLDS: dict[str, frozenset[str]] = {
    '"': frozenset({'"', "“", "”"}),
    "'": frozenset({"'", "‘", "’"}),
}


class Match(str, Enum):
    FULL = "full"
    PENDING = "pending"
    NONE = "none"


@dataclass(frozen=True)
class SequenceMatch:
    kind: Match
    consumed: int = 0


_NO_MATCH = SequenceMatch(Match.NONE)


def chars_equal(expected: str, typed: str) -> bool:
    """Compare one typed character to one expected character.

    Both sides are NFC-normalised, and a plain quote key matches its
    typographic variants.
    """
    if unicodedata.normalize("NFC", expected) == unicodedata.normalize("NFC", typed):
        return True
    return expected in QUOTE_FOLDS.get(typed, ())


def match_sequence(expected: str, typed: str, start: int) -> SequenceMatch:
    """Try the substitution sequences for *expected* against ``typed[start:]``.

    The longest sequence fully present wins.  Failing that, when the typed
    tail is a proper prefix of one of the sequences the match is pending:
    the racer may still be in the middle of it.
    """
    sequences = SUBSTITUTIONS.get(expected)
    if not sequences:
        return _NO_MATCH

    tail = typed[start:]
    for sequence in sorted(sequences, key=len, reverse=True):
        if tail.startswith(sequence):
            return SequenceMatch(Match.FULL, len(sequence))
    for sequence in sequences:
        if tail and len(tail) < len(sequence) and sequence.startswith(tail):
            return SequenceMatch(Match.PENDING, len(tail))
    return _NO_MATCH


# ---------------------------------------------------------------------------
# Hint data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CharacterHint:
    char: str
    name: str
    sequences: tuple[str, ...]
    mac: Optional[str] = None
    windows: Optional[str] = None
    linux: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "char": self.char,
            "name": self.name,
            "sequences": list(self.sequences),
            "mac": self.mac,
            "windows": self.windows,
            "linux": self.linux,
        }


# char: (name, mac, windows, linux)
_KEYBOARD_HINTS: dict[str, tuple[str, str, str, str]] = {
    "…": ("Ellipsis", "Option + ;", "Alt + 0133", "Compose + . + ."),
    "—": ("Em dash", "Option + Shift + -", "Alt + 0151", "Compose + - + - + -"),
    "–": ("En dash", "Option + -", "Alt + 0150", "Compose + - + - + ."),
    "“": ("Left double quote", "Option + [", "Alt + 0147", 'Compose + " + <'),
    "”": ("Right double quote", "Option + Shift + [", "Alt + 0148", 'Compose + " + >'),
    "‘": ("Left single quote", "Option + ]", "Alt + 0145", "Compose + ' + <"),
    "’": ("Right single quote", "Option + Shift + ]", "Alt + 0146", "Compose + ' + >"),
    "≤": ("Less than or equal", "Option + ,", "Alt + 2264", "Compose + < + ="),
    "≥": ("Greater than or equal", "Option + .", "Alt + 2265", "Compose + > + ="),
    "≠": ("Not equal", "Option + =", "Alt + 2260", "Compose + / + ="),
    "→": ("Right arrow", "Option + Shift + Right", "Alt + 26", "Compose + - + >"),
    "←": ("Left arrow", "Option + Shift + Left", "Alt + 27", "Compose + < + -"),
    "∞": ("Infinity", "Option + 5", "Alt + 236", "Compose + o + o"),
    "°": ("Degree", "Option + Shift + 8", "Alt + 0176", "Compose + o + o"),
    "×": ("Multiplication sign", "Option + x", "Alt + 0215", "Compose + x + x"),
    "÷": ("Division sign", "Option + /", "Alt + 0247", "Compose + : + -"),
    "±": ("Plus-minus", "Option + Shift + =", "Alt + 0177", "Compose + + + -"),
    "π": ("Pi", "Option + p", "Alt + 227", "Compose + * + p"),
    "√": ("Square root", "Option + v", "Alt + 251", "Compose + / + v"),
}


def special_characters(text: str) -> list[CharacterHint]:
    """Distinct non-ASCII characters in *text* that have a typing hint.

    Returned in order of first appearance.  Each hint lists the sequences
    the matcher accepts for it plus the usual OS keyboard shortcuts, when
    known.
    """
    hints: list[CharacterHint] = []
    seen: set[str] = set()
    for char in text:
        if char in seen or char.isascii():
            continue
        seen.add(char)

        sequences = SUBSTITUTIONS.get(char, ())
        sequences += tuple(key for key, folds in QUOTE_FOLDS.items() if char in folds)
        keyboard = _KEYBOARD_HINTS.get(char)
        if keyboard is None and not sequences:
            continue

        if keyboard is not None:
            name, mac, windows, linux = keyboard
            hints.append(CharacterHint(char, name, sequences, mac, windows, linux))
        else:
            name = unicodedata.name(char, char).title()
            hints.append(CharacterHint(char, name, sequences))
    return hints

"""Canonical plain-text forms of paragraph markdown.

Three derivations live here and nowhere else:

* :func:`clean_paragraph`: applied once by the article parser before a
  paragraph is stored.
* :func:`count_words`: the stored ``word_count``; also used whenever a
  count is verified or recomputed, so WPM maths stays consistent.
* :func:`typing_text`: the string the typing engine compares keystrokes
  against.

All three are pure functions with no I/O.
"""

from __future__ import annotations

import re
import unicodedata

# Soft hyphen, zero-width space / non-joiner / joiner, BOM
_INVISIBLE_RE = re.compile("[\u00ad\u200b\u200c\u200d\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")

_INLINE_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
# The typing target also strips links with an empty URL, ``[text]()``.
_INLINE_LINK_ANY_URL_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_FOOTNOTE_RE = re.compile(r"\[\d+\]")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
_SPACE_RUN_RE = re.compile(r" +")
_WORD_START_RE = re.compile(r"\s(?=\S)")


def clean_paragraph(text: str) -> str:
    """Strip invisible characters and collapse every whitespace run to one space."""
    text = _INVISIBLE_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_markup(text: str, link_re: re.Pattern[str]) -> str:
    text = link_re.sub(r"\1", text)
    text = _FOOTNOTE_RE.sub("", text)
    text = _BOLD_RE.sub(r"\1", text)
    return _ITALIC_RE.sub(r"\1", text)


def count_words(text: str) -> int:
    """Return the number of words in *text* once markdown syntax is removed.

    Inline links collapse to their visible text, bare footnote markers
    (``[3]``) disappear, and bold/italic markers are dropped before splitting
    on whitespace.
    """
    plain = _strip_markup(text, _INLINE_LINK_RE)
    return len([word for word in plain.split() if word])


def typing_text(content: str) -> str:
    """Return the canonical target string a racer has to type for *content*.

    Link syntax is reduced to the link text, footnote markers and emphasis
    markers are removed, runs of spaces collapse, and the result is
    NFC-normalised so composed characters compare equal to keystrokes.
    """
    plain = _strip_markup(content, _INLINE_LINK_ANY_URL_RE)
    plain = _SPACE_RUN_RE.sub(" ", plain)
    return unicodedata.normalize("NFC", plain).strip()


def word_boundaries(target: str) -> list[int]:
    """Indices at which each word of *target* counts as completed.

    Every index right after a whitespace-then-non-whitespace transition marks
    the end of the preceding word (its trailing space included); the length
    of *target* closes the final word.
    """
    boundaries = [m.start() + 1 for m in _WORD_START_RE.finditer(target)]
    boundaries.append(len(target))
    return boundaries

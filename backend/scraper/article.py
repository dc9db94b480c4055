"""Article markdown → ``ParsedArticle``.

Every article page follows the same skeleton::

    # Page Title
    (optional parenthesised continuation)
    [Home][1] [Source][2] [Markdown][3] [Talk][4]

    # Page Title

    ❦

    First paragraph …

    Second paragraph …

    [ ][42]

    [1]: https://…

Parsing is strict about the header (title, second title, separator) and
lenient about the end: a missing ``[ ][N]`` marker still yields whatever
paragraphs were collected, with ``end_marker_found`` set to ``False``.
"""

from __future__ import annotations

import re
from typing import Dict, List

from backend.errors import FormatError, FormatErrorKind
from backend.scraper.models import ParsedArticle
from backend.scraper.references import collect_references, substitute_links
from backend.text.normalize import clean_paragraph

SEPARATOR = "❦"

_H1_RE = re.compile(r"^#\s+(.+)$")
_H1_START_RE = re.compile(r"^#\s+")
_END_MARKER_RE = re.compile(r"^\[\s*\]\[\d+\]$")
_NAV_MARKERS = ("[Source]", "[Home]", "[Markdown]", "[Talk]")
_FENCE = "```"


def _is_continuation(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("(") and stripped.endswith(")")


def _is_navigation(line: str) -> bool:
    return not line.strip() or any(marker in line for marker in _NAV_MARKERS)


def _line_or_eof(lines: List[str], index: int) -> str:
    return lines[index] if index < len(lines) else "EOF"


def _finish(buffer: List[str], refs: Dict[str, str], paragraphs: List[str]) -> None:
    paragraph = "\n".join(buffer)
    if paragraph.strip():
        paragraphs.append(clean_paragraph(substitute_links(paragraph, refs)))


def parse_article(markdown: str) -> ParsedArticle:
    """Extract the title and body paragraphs of one article page.

    Raises:
        FormatError: If the first H1, the second H1, or the ❦ separator is
            not where the page skeleton puts it.
    """
    lines = markdown.split("\n")
    refs = collect_references(markdown)
    i = 0

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------
    while i < len(lines) and not _H1_RE.match(lines[i]):
        i += 1
    if i >= len(lines):
        raise FormatError(FormatErrorKind.MISSING_TITLE, line=i + 1)

    title = _H1_START_RE.sub("", lines[i]).strip()
    i += 1
    if i < len(lines) and _is_continuation(lines[i]):
        title += " " + lines[i].strip()
        i += 1

    while i < len(lines) and _is_navigation(lines[i]):
        i += 1

    if i >= len(lines) or not _H1_START_RE.match(lines[i]):
        raise FormatError(
            FormatErrorKind.MISSING_SECOND_TITLE, line=i + 1, found=_line_or_eof(lines, i)
        )
    i += 1
    if i < len(lines) and _is_continuation(lines[i]):
        i += 1

    while i < len(lines) and not lines[i].strip():
        i += 1

    if i >= len(lines) or lines[i].strip() != SEPARATOR:
        raise FormatError(
            FormatErrorKind.MISSING_SEPARATOR, line=i + 1, found=_line_or_eof(lines, i)
        )
    i += 1

    while i < len(lines) and not lines[i].strip():
        i += 1

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------
    paragraphs: List[str] = []
    buffer: List[str] = []
    in_fence = False
    end_marker_found = False

    for line in lines[i:]:
        if _END_MARKER_RE.match(line):
            _finish(buffer, refs, paragraphs)
            end_marker_found = True
            break

        if line.startswith(_FENCE):
            in_fence = not in_fence
            buffer.append(line.strip())
            continue

        if in_fence:
            buffer.append(line)
            continue

        if not line.strip():
            if buffer:
                _finish(buffer, refs, paragraphs)
                buffer = []
        else:
            buffer.append(line.strip())

    # Without an end marker an unterminated trailing block is discarded.
    return ParsedArticle(title=title, paragraphs=paragraphs, end_marker_found=end_marker_found)

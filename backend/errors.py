"""Error taxonomy shared by the scraping pipeline and the typing engine.

``FetchError`` and ``FormatError`` are raised while processing a single
article and are caught at the per-article boundary by the orchestrator.
``NotFoundError`` signals a lookup miss.  ``MismatchError`` is never raised:
the typing engine returns it inside an ``InputResult`` so the caller can
flash the offending position.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScrapeError(Exception):
    """Base class for failures while fetching or parsing content."""


class FetchError(ScrapeError):
    """A network error or a non-2xx response."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FormatErrorKind(str, Enum):
    MISSING_TITLE = "missing_title"
    MISSING_SECOND_TITLE = "missing_second_title"
    MISSING_SEPARATOR = "missing_separator"


class FormatError(ScrapeError):
    """The article markdown does not follow the expected page structure.

    Attributes:
        kind: Which structural element could not be located.
        line: 1-based line number where it was expected.
        found: The line found there instead (``"EOF"`` past the end).
    """

    def __init__(self, kind: FormatErrorKind, line: int, found: str = "EOF") -> None:
        if kind is FormatErrorKind.MISSING_TITLE:
            message = "Article format error: No H1 title found in the entire document"
        elif kind is FormatErrorKind.MISSING_SECOND_TITLE:
            message = (
                f"Article format error: Expected second H1 title at line {line}, "
                f"but found: {found!r}"
            )
        else:
            message = (
                f"Article format error: Expected ❦ symbol at line {line}, "
                f"but found: {found!r}"
            )
        super().__init__(message)
        self.kind = kind
        self.line = line
        self.found = found


class NotFoundError(LookupError):
    """A record looked up by title, URL or id does not exist."""


@dataclass(frozen=True)
class MismatchError:
    """Typed input that does not match the target at ``position``."""

    position: int
    expected: str
    typed: str

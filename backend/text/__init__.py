"""Text normalisation: paragraph cleaning, word counts, typing targets."""

from backend.text.normalize import (
    clean_paragraph,
    count_words,
    typing_text,
    word_boundaries,
)

__all__ = ["clean_paragraph", "count_words", "typing_text", "word_boundaries"]

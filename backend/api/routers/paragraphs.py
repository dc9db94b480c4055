"""Paragraph endpoints used to start a race.

Routes
------
GET /paragraphs/random?min_words=&max_words=   Random paragraph in a word range
GET /paragraphs/{paragraph_id}                 Fetch one paragraph
GET /paragraphs/{paragraph_id}/typing          Canonical typing target
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from backend.api.dependencies import locked_db
from backend.db.paragraphs import get_paragraph, random_paragraph_in_range
from backend.race.substitutions import special_characters
from backend.text.normalize import typing_text, word_boundaries

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ParagraphResponse(BaseModel):
    id: int
    content: str
    book_title: str
    sequence_title: str
    article_title: str
    article_url: str
    index_in_article: int
    word_count: int
    book_order: int
    sequence_order: int
    article_order: int


class CharacterHintResponse(BaseModel):
    char: str
    name: str
    sequences: list[str]
    mac: Optional[str]
    windows: Optional[str]
    linux: Optional[str]


class TypingTargetResponse(BaseModel):
    paragraph_id: int
    text: str
    word_count: int
    word_boundaries: list[int]
    special_characters: list[CharacterHintResponse]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/random", response_model=ParagraphResponse)
def random_paragraph(
    min_words: int = Query(default=1, ge=0),
    max_words: int = Query(default=10_000, ge=0),
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Pick a random paragraph whose word count lies in ``[min_words, max_words]``."""
    if min_words > max_words:
        raise HTTPException(status_code=422, detail="min_words must not exceed max_words.")
    paragraph = random_paragraph_in_range(conn, min_words, max_words)
    if paragraph is None:
        raise HTTPException(
            status_code=404,
            detail=f"No paragraph with {min_words}-{max_words} words.",
        )
    return paragraph.to_dict()


@router.get("/{paragraph_id}", response_model=ParagraphResponse)
def get_one(
    paragraph_id: int,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    paragraph = get_paragraph(conn, paragraph_id)
    if paragraph is None:
        raise HTTPException(status_code=404, detail=f"Paragraph not found: {paragraph_id}")
    return paragraph.to_dict()


@router.get("/{paragraph_id}/typing", response_model=TypingTargetResponse)
def typing_target(
    paragraph_id: int,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Return the text a racer types for this paragraph, with its word boundaries."""
    paragraph = get_paragraph(conn, paragraph_id)
    if paragraph is None:
        raise HTTPException(status_code=404, detail=f"Paragraph not found: {paragraph_id}")

    target = typing_text(paragraph.content)
    return {
        "paragraph_id": paragraph.id,
        "text": target,
        "word_count": paragraph.word_count,
        "word_boundaries": word_boundaries(target),
        "special_characters": [h.to_dict() for h in special_characters(target)],
    }

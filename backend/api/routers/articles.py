"""Article aggregate endpoints.

Routes
------
GET  /articles                          List articles in reading order
GET  /articles/{article_title}          Fetch one article aggregate
GET  /articles/{article_title}/paragraphs  Paragraphs of one article
POST /articles/rebuild                  Regenerate every aggregate
"""

from __future__ import annotations

import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.api.dependencies import locked_db
from backend.api.routers.paragraphs import ParagraphResponse
from backend.db.articles import get_article, list_articles, rebuild_articles
from backend.db.paragraphs import list_article_paragraphs

router = APIRouter()


class ArticleResponse(BaseModel):
    article_title: str
    book_title: str
    book_order: int
    sequence_title: str
    sequence_order: int
    article_url: str
    article_order: int
    paragraph_count: int


class RebuildResponse(BaseModel):
    article_count: int


@router.get("", response_model=list[ArticleResponse])
def list_all(conn: sqlite3.Connection = Depends(locked_db)) -> list[dict[str, Any]]:
    return [a.to_dict() for a in list_articles(conn)]


@router.post("/rebuild", response_model=RebuildResponse)
def rebuild(conn: sqlite3.Connection = Depends(locked_db)) -> dict[str, Any]:
    """Drop all aggregates and recompute them from the paragraphs table."""
    count = rebuild_articles(conn)
    return {"article_count": count}


@router.get("/{article_title}", response_model=ArticleResponse)
def get_one(
    article_title: str,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    article = get_article(conn, article_title)
    if article is None:
        raise HTTPException(status_code=404, detail=f"Article not found: {article_title!r}")
    return article.to_dict()


@router.get("/{article_title}/paragraphs", response_model=list[ParagraphResponse])
def paragraphs(
    article_title: str,
    conn: sqlite3.Connection = Depends(locked_db),
) -> list[dict[str, Any]]:
    """Return the paragraphs of one article ordered by position."""
    rows = list_article_paragraphs(conn, article_title)
    if not rows:
        raise HTTPException(status_code=404, detail=f"Article not found: {article_title!r}")
    return [p.to_dict() for p in rows]

"""Scraper package: markdown fetch, redirects, TOC and article parsing."""

from backend.scraper.article import parse_article
from backend.scraper.fetcher import fetch_markdown, fetch_toc
from backend.scraper.models import (
    ArticleDescriptor,
    FetchedArticle,
    ParsedArticle,
    RawPage,
    TocEntry,
)
from backend.scraper.redirects import fetch_article
from backend.scraper.toc import assign_orders, parse_toc

__all__ = [
    "fetch_markdown",
    "fetch_toc",
    "fetch_article",
    "parse_article",
    "parse_toc",
    "assign_orders",
    "RawPage",
    "TocEntry",
    "ArticleDescriptor",
    "FetchedArticle",
    "ParsedArticle",
]

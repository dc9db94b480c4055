"""Single-hop redirect resolution for wiki pages.

A moved page keeps a stub whose markdown contains a directive such as
``(:redirect Main.Focus-Your-Uncertainty quiet=1:)``.
"""

from __future__ import annotations

import re
from typing import Optional

import httpx

from backend.config import settings
from backend.scraper.fetcher import fetch_markdown
from backend.scraper.models import FetchedArticle

_REDIRECT_RE = re.compile(r"\(:redirect\s+(\S+)\s+quiet=1\s*:\)")
_NAMESPACE_RE = re.compile(r"^[A-Z][A-Za-z0-9]*\.")


def find_redirect(markdown: str) -> Optional[str]:
    """Return the redirect target path (namespace stripped) or ``None``."""
    match = _REDIRECT_RE.search(markdown)
    if match is None:
        return None
    return _NAMESPACE_RE.sub("", match.group(1), count=1)


def fetch_article(url: str, client: Optional[httpx.Client] = None) -> FetchedArticle:
    """Fetch *url*, following one embedded redirect directive if present.

    Only a single hop is honoured: a redirect target that itself redirects
    is returned as-is.

    Raises:
        FetchError: If either the original page or the redirect target
            cannot be fetched.
    """
    markdown = fetch_markdown(url, client).markdown

    target = find_redirect(markdown)
    if target is None:
        return FetchedArticle(markdown=markdown, final_url=url)

    redirect_url = f"{settings.site_base_url}/{target}"
    print(f"[REDIRECT] {url} → {redirect_url}")
    markdown = fetch_markdown(redirect_url, client).markdown
    return FetchedArticle(markdown=markdown, final_url=redirect_url, redirected=True)

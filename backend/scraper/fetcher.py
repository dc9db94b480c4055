"""HTTP fetcher for the markdown rendition of wiki pages.

The content site serves every page as raw markdown when asked with
``?action=markdown``.  All fetches go through :func:`fetch_markdown`, which
turns transport failures and non-2xx responses into
:class:`~backend.errors.FetchError`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from backend.config import settings
from backend.errors import FetchError
from backend.scraper.models import RawPage

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (compatible; TypeHarder-Bot/1.0; +https://github.com/type-harder)"
    )
}


def markdown_url(url: str) -> str:
    """Return the markdown-export URL for the page at *url*."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}action={settings.markdown_action}"


def make_client() -> httpx.Client:
    """Build the ``httpx.Client`` shared by one scrape step."""
    return httpx.Client(
        headers=_DEFAULT_HEADERS,
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


def fetch_markdown(url: str, client: Optional[httpx.Client] = None) -> RawPage:
    """Fetch the markdown export of *url*.

    Args:
        url: Page URL without the ``action`` query.
        client: Reuse an open client; a short-lived one is created otherwise.

    Raises:
        FetchError: On network errors or a 4xx/5xx status code.
    """
    if client is None:
        with make_client() as own_client:
            return fetch_markdown(url, own_client)

    target = markdown_url(url)
    try:
        response = client.get(target)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            url,
            f"Failed to fetch {url}: HTTP {exc.response.status_code}",
            status_code=exc.response.status_code,
        ) from exc
    except httpx.HTTPError as exc:
        raise FetchError(url, f"Failed to fetch {url}: {exc}") from exc

    return RawPage(url=url, markdown=response.text, status_code=response.status_code)


def fetch_toc(client: Optional[httpx.Client] = None) -> str:
    """Fetch the table-of-contents markdown.  Any failure aborts the caller."""
    return fetch_markdown(settings.toc_url, client).markdown

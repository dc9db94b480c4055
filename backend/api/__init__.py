"""HTTP layer serving scrape control and race paragraphs.

Run with::

    uvicorn backend.api:app --reload
"""

from backend.api.app import app, create_app

__all__ = ["app", "create_app"]

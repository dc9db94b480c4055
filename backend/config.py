"""Centralised settings for the Type Harder backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("TYPERACE_WORKSPACE", Path.home() / ".typerace_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "typerace.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Content site
    # ------------------------------------------------------------------
    site_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "SITE_BASE_URL", "https://www.readthesequences.com"
        ).rstrip("/")
    )
    toc_path: str = field(
        default_factory=lambda: os.environ.get("TOC_PATH", "Contents")
    )
    markdown_action: str = field(
        default_factory=lambda: os.environ.get("MARKDOWN_ACTION", "markdown")
    )

    @property
    def toc_url(self) -> str:
        """Absolute URL of the table-of-contents page."""
        return f"{self.site_base_url}/{self.toc_path}"

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    scrape_delay: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_DELAY", "0.1"))
    )
    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_BATCH_SIZE", "20"))
    )

    # ------------------------------------------------------------------
    # Race progress
    # ------------------------------------------------------------------
    race_api_url: str = field(
        default_factory=lambda: os.environ.get(
            "RACE_API_URL", "http://localhost:3000/api"
        ).rstrip("/")
    )
    race_api_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RACE_API_TIMEOUT", "5.0"))
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from backend.config import settings
settings = Settings()

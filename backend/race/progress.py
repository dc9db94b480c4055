"""Publish a racer's completed-word count to the race room service.

Updates are fire-and-forget: :meth:`RaceProgressReporter.report` bumps the
local count immediately and posts in the background, so keystroke handling
never waits on the network.  A failed post is printed and otherwise
ignored; the local count is not rolled back.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import httpx

from backend.config import settings


class RaceProgressReporter:
    """Background poster for ``POST {race_api_url}/rooms/{room}/progress``."""

    def __init__(
        self,
        room_code: str,
        client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.room_code = room_code
        self.base_url = (base_url or settings.race_api_url).rstrip("/")
        self.words_completed = 0
        self.failures = 0
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=settings.race_api_timeout)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="race-progress")

    @property
    def url(self) -> str:
        return f"{self.base_url}/rooms/{self.room_code}/progress"

    def report(self, words_completed: int) -> Future:
        """Record *words_completed* locally and post it without blocking.

        Usable directly as a :class:`~backend.race.engine.TypingSession`
        word callback.
        """
        self.words_completed = words_completed
        return self._executor.submit(self._post, words_completed)

    def _post(self, words_completed: int) -> bool:
        try:
            response = self._client.post(self.url, json={"wordsCompleted": words_completed})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self.failures += 1
            print(f"[RACE] Failed to update progress for room {self.room_code}: {exc}")
            return False
        return True

    def close(self) -> None:
        """Wait for queued posts, then release the HTTP client."""
        self._executor.shutdown(wait=True)
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RaceProgressReporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

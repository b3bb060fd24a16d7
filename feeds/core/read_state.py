"""Per-client read state kept in a key-value store.

Keys match the sync snapshot keys so the same store can be reconciled
with ``feeds.core.sync.SyncClient``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable

from feeds.core.storage import KeyValueStore
from feeds.core.sync import LAST_VISIT_KEY, READ_ARTICLES_KEY, normalize_read_articles

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class ReadState:
    """Mark articles read or unread and track the last visit."""

    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = _now_millis) -> None:
        self._store = store
        self._clock = clock

    def get_read_articles(self) -> dict[str, int]:
        raw = self._store.get(READ_ARTICLES_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored read articles are not valid JSON, treating as empty")
            return {}
        return normalize_read_articles(data)

    def _save(self, read: dict[str, int]) -> None:
        self._store.set(READ_ARTICLES_KEY, json.dumps(read))

    def mark_as_read(self, article_id: str) -> None:
        read = self.get_read_articles()
        read[article_id] = self._clock()
        self._save(read)

    def mark_as_unread(self, article_id: str) -> None:
        read = self.get_read_articles()
        read.pop(article_id, None)
        self._save(read)

    def is_read(self, article_id: str) -> bool:
        return article_id in self.get_read_articles()

    def toggle_read(self, article_id: str) -> bool:
        """Flip an article's read state and return the new state."""
        if self.is_read(article_id):
            self.mark_as_unread(article_id)
            return False
        self.mark_as_read(article_id)
        return True

    def get_last_visit(self) -> int | None:
        raw = self._store.get(LAST_VISIT_KEY)
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def update_last_visit(self) -> int:
        now = self._clock()
        self._store.set(LAST_VISIT_KEY, str(now))
        return now

    def clear_all(self) -> None:
        """Forget read marks and the last visit; sources are kept."""
        for key in (READ_ARTICLES_KEY, LAST_VISIT_KEY):
            self._store.delete(key)

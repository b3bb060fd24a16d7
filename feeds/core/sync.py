"""Offline-first reconciliation of read state and source lists.

Provides:
- SyncSnapshot and SourceEntry, the state one participant holds
- merge(), the pure function that converges two snapshots
- load_snapshot()/save_snapshot() for key-value stores
- SyncClient, which runs one pull -> merge -> push cycle
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from feeds.core.storage import KeyValueStore

logger = logging.getLogger(__name__)

READ_ARTICLES_KEY = "read-articles"
LAST_VISIT_KEY = "last-visit"
SOURCES_KEY = "sources"


@dataclass(frozen=True)
class SourceEntry:
    """A feed source; identified by its URL."""

    name: str
    url: str
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "url": self.url, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceEntry:
        enabled = data.get("enabled", True)
        return cls(
            name=str(data.get("name") or data["url"]),
            url=str(data["url"]),
            enabled=enabled if isinstance(enabled, bool) else True,
        )


@dataclass(frozen=True)
class SyncSnapshot:
    """Read state and sources held by one sync participant.

    ``read_articles`` maps article id to the epoch millis it was marked read.
    An unread article has no entry.
    """

    read_articles: dict[str, int] = field(default_factory=dict)
    last_visit: int | None = None
    sources: list[SourceEntry] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape used on the wire."""
        return {
            "readArticles": dict(self.read_articles),
            "lastVisit": self.last_visit,
            "sources": [s.to_dict() for s in self.sources] if self.sources is not None else None,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SyncSnapshot:
        read = payload.get("readArticles") or {}
        sources = payload.get("sources")
        return cls(
            read_articles=normalize_read_articles(read),
            last_visit=_to_int(payload.get("lastVisit")),
            sources=[
                SourceEntry.from_dict(s) for s in sources if isinstance(s, dict) and s.get("url")
            ] if isinstance(sources, list) else None,
        )


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_read_articles(data: Any) -> dict[str, int]:
    """Keep only entries whose timestamp reads as an integer."""
    if not isinstance(data, dict):
        return {}
    read = {}
    for article_id, marked_at in data.items():
        millis = _to_int(marked_at)
        if millis is None:
            logger.warning(f"Dropping read mark for {article_id!r} with bad timestamp {marked_at!r}")
            continue
        read[str(article_id)] = millis
    return read


def _merge_read_articles(local: dict[str, int], remote: dict[str, int]) -> dict[str, int]:
    merged = dict(remote)
    for article_id, marked_at in local.items():
        if article_id not in merged or marked_at > merged[article_id]:
            merged[article_id] = marked_at
    return merged


def _merge_last_visit(local: int | None, remote: int | None) -> int | None:
    if local is None:
        return remote
    if remote is None:
        return local
    return max(local, remote)


def _merge_sources(
    local: list[SourceEntry] | None,
    remote: list[SourceEntry] | None,
) -> list[SourceEntry] | None:
    if local is None and remote is None:
        return None
    merged = list(remote or [])
    known = {s.url for s in merged}
    for source in local or []:
        if source.url not in known:
            merged.append(source)
            known.add(source.url)
    return merged


def merge(local: SyncSnapshot, remote: SyncSnapshot) -> SyncSnapshot:
    """Merge two snapshots into a new one; neither input is modified.

    - read_articles: union of ids, newest timestamp wins
    - last_visit: the later of the two
    - sources: remote entries first (remote wins per URL), then local-only ones

    An id present on either side stays read, so marking an article unread on
    one device is undone by a sync with a device that still has it read.
    """
    return SyncSnapshot(
        read_articles=_merge_read_articles(local.read_articles, remote.read_articles),
        last_visit=_merge_last_visit(local.last_visit, remote.last_visit),
        sources=_merge_sources(local.sources, remote.sources),
    )


def _load_json(store: KeyValueStore, key: str) -> Any:
    raw = store.get(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed JSON under {key!r}")
        return None


def load_snapshot(store: KeyValueStore) -> SyncSnapshot:
    """Read a snapshot from a store; missing or malformed values read as empty."""
    read = _load_json(store, READ_ARTICLES_KEY)
    sources = _load_json(store, SOURCES_KEY)
    return SyncSnapshot.from_payload({
        "readArticles": read if isinstance(read, dict) else {},
        "lastVisit": store.get(LAST_VISIT_KEY),
        "sources": sources if isinstance(sources, list) else None,
    })


def save_snapshot(store: KeyValueStore, snapshot: SyncSnapshot) -> None:
    """Write every present field of a snapshot to a store."""
    payload = snapshot.to_payload()
    store.set(READ_ARTICLES_KEY, json.dumps(payload["readArticles"]))
    if snapshot.last_visit is not None:
        store.set(LAST_VISIT_KEY, str(snapshot.last_visit))
    if payload["sources"] is not None:
        store.set(SOURCES_KEY, json.dumps(payload["sources"]))


class SyncError(Exception):
    """A sync cycle could not read from or write to the remote store."""


class SyncClient:
    """Reconciles a local store with a remote one.

    The merged snapshot is pushed to the remote before it is written
    locally, so a failed cycle leaves local state as it was.
    """

    def __init__(self, local: KeyValueStore, remote: KeyValueStore) -> None:
        self._local = local
        self._remote = remote

    def sync(self) -> SyncSnapshot:
        """Run one pull -> merge -> push cycle and return the merged snapshot.

        Raises:
            SyncError: If the remote store cannot be read or written.
        """
        local = load_snapshot(self._local)

        try:
            remote = load_snapshot(self._remote)
        except Exception as e:
            logger.warning(f"Sync pull failed: {e}")
            raise SyncError(f"Pull failed: {e}") from e

        merged = merge(local, remote)

        try:
            save_snapshot(self._remote, merged)
        except Exception as e:
            logger.warning(f"Sync push failed: {e}")
            raise SyncError(f"Push failed: {e}") from e

        save_snapshot(self._local, merged)
        logger.info(
            f"Synced {len(merged.read_articles)} read articles, "
            f"{len(merged.sources or [])} sources"
        )
        return merged

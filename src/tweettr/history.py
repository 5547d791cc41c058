"""Bounded, most-recent-first log of past generations.

The whole log lives as one JSON array under ``HISTORY_KEY``; every operation
reads it, changes it and writes it back.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from tweettr.errors import InvalidImportFormatError
from tweettr.kvstore import HISTORY_KEY, KeyValueStore
from tweettr.models import HistoryItem

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 50

_ITEMS = TypeAdapter(list[HistoryItem])


def _dedupe(items: list[HistoryItem]) -> list[HistoryItem]:
    """Keep each id at its first position, holding the last value seen for it."""
    by_id: dict[str, HistoryItem] = {}
    for item in items:
        by_id[item.id] = item
    return list(by_id.values())


def _matches(item: HistoryItem, needle: str) -> bool:
    if needle in item.system_prompt.lower():
        return True
    return any(needle in v.tweet.lower() for v in item.variants)


class HistoryStore:
    def __init__(self, store: KeyValueStore, capacity: int = HISTORY_CAPACITY) -> None:
        self._store = store
        self._capacity = capacity

    # ── public ──────────────────────────────────────────────────────────

    def append(self, item: HistoryItem) -> None:
        """Insert at the head; an existing item with the same id is replaced."""
        existing = [h for h in self._load() if h.id != item.id]
        updated = [item, *existing]
        evicted = len(updated) - self._capacity
        if evicted > 0:
            logger.info("History full; evicting %d oldest item(s)", evicted)
        self._save(updated[: self._capacity])

    def get(self, item_id: str) -> HistoryItem | None:
        return next((h for h in self._load() if h.id == item_id), None)

    def update(self, item_id: str, **fields: Any) -> HistoryItem | None:
        """Merge *fields* into the matching item; ``None`` if it does not exist."""
        if "id" in fields and fields["id"] != item_id:
            raise ValueError("A history item's id cannot be changed.")

        items = self._load()
        updated: HistoryItem | None = None
        for idx, item in enumerate(items):
            if item.id == item_id:
                merged = {**item.model_dump(), **fields}
                updated = HistoryItem.model_validate(merged)
                items[idx] = updated
                break
        if updated is not None:
            self._save(items)
        return updated

    def toggle_favorite(self, item_id: str) -> HistoryItem | None:
        item = self.get(item_id)
        if item is None:
            return None
        return self.update(item_id, favorite=not item.favorite)

    def delete(self, item_id: str) -> bool:
        items = self._load()
        remaining = [h for h in items if h.id != item_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._store.remove(HISTORY_KEY)

    def list(self, query: str | None = None, favorites_only: bool = False) -> list[HistoryItem]:
        items = self._load()
        if query:
            needle = query.lower()
            items = [h for h in items if _matches(h, needle)]
        if favorites_only:
            items = [h for h in items if h.favorite]
        return items

    def export_all(self, items: list[HistoryItem] | None = None) -> str:
        data = self._load() if items is None else items
        return json.dumps([h.to_wire() for h in data], indent=2, ensure_ascii=False)

    def import_merge(self, document: str) -> int:
        """Merge an exported document ahead of the current log.

        On an id collision the item already in the log keeps its value. The
        log is untouched when the document is invalid.
        """
        try:
            imported = _ITEMS.validate_json(document)
        except ValidationError as exc:
            raise InvalidImportFormatError(f"Invalid JSON format: {exc}") from exc

        merged = _dedupe([*imported, *self._load()])[: self._capacity]
        self._save(merged)
        logger.info("Imported %d item(s); history now holds %d", len(imported), len(merged))
        return len(merged)

    # ── private ─────────────────────────────────────────────────────────

    def _load(self) -> list[HistoryItem]:
        raw = self._store.get(HISTORY_KEY)
        if not raw:
            return []
        return _ITEMS.validate_json(raw)

    def _save(self, items: list[HistoryItem]) -> None:
        self._store.set(HISTORY_KEY, json.dumps([h.to_wire() for h in items]))

"""User-saved system prompts, newest first."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from pydantic import TypeAdapter

from tweettr.kvstore import SAVED_PROMPTS_KEY, KeyValueStore
from tweettr.models import SavedSystemPrompt

logger = logging.getLogger(__name__)

_PROMPTS = TypeAdapter(list[SavedSystemPrompt])


class SavedPromptStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list(self) -> list[SavedSystemPrompt]:
        raw = self._store.get(SAVED_PROMPTS_KEY)
        if not raw:
            return []
        return _PROMPTS.validate_json(raw)

    def get(self, prompt_id: str) -> SavedSystemPrompt | None:
        return next((p for p in self.list() if p.id == prompt_id), None)

    def upsert(self, name: str, prompt: str, prompt_id: str | None = None) -> SavedSystemPrompt:
        """Create a prompt, or rename/rewrite the one with *prompt_id*."""
        if not name.strip() or not prompt.strip():
            raise ValueError("Saved prompts need a name and a prompt.")

        existing = self.list()
        if prompt_id is not None:
            for idx, item in enumerate(existing):
                if item.id == prompt_id:
                    updated = item.model_copy(
                        update={
                            "name": name.strip(),
                            "prompt": prompt,
                            "updated_at": datetime.now(UTC),
                        }
                    )
                    existing[idx] = updated
                    self._save(existing)
                    return updated
            raise ValueError(f"No saved prompt with id {prompt_id}")

        created = SavedSystemPrompt(name=name.strip(), prompt=prompt)
        self._save([created, *existing])
        logger.info("Saved system prompt '%s' (%s)", created.name, created.id)
        return created

    def delete(self, prompt_id: str) -> bool:
        existing = self.list()
        remaining = [p for p in existing if p.id != prompt_id]
        if len(remaining) == len(existing):
            return False
        self._save(remaining)
        return True

    def _save(self, items: list[SavedSystemPrompt]) -> None:
        self._store.set(SAVED_PROMPTS_KEY, _PROMPTS.dump_json(items, by_alias=True).decode())

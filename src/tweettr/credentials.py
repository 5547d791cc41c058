"""Per-provider API keys, stored in the key/value store with an env fallback."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from tweettr import config
from tweettr.kvstore import KeyValueStore, api_key_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialStatus:
    provider: str
    is_configured: bool
    source: str  # "stored", "env" or ""
    preview: str | None


def mask_secret_value(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        return ""
    if len(normalized) <= 4:
        return "*" * len(normalized)
    if len(normalized) <= 8:
        visible = 2
        hidden = len(normalized) - (visible * 2)
        return f"{normalized[:visible]}{'*' * hidden}{normalized[-visible:]}"
    hidden = len(normalized) - 8
    return f"{normalized[:4]}{'*' * hidden}{normalized[-4:]}"


class CredentialStore:
    """Saved keys win over environment variables.

    The key's format is never inspected; an empty or whitespace-only value is
    treated as absent.
    """

    def __init__(
        self,
        store: KeyValueStore,
        env_vars: dict[str, str] | None = None,
    ) -> None:
        self._store = store
        self._env_vars = config.API_KEY_ENV if env_vars is None else env_vars

    def get_credential(self, provider: str) -> str | None:
        stored = self._stored(provider)
        if stored:
            return stored
        return self._from_env(provider)

    def set_credential(self, provider: str, value: str) -> None:
        normalized = value.strip()
        if not normalized:
            raise ValueError("API key must not be empty.")
        self._store.set(api_key_key(provider), normalized)
        logger.info("Saved API key for %s", provider)

    def clear_credential(self, provider: str) -> None:
        self._store.remove(api_key_key(provider))
        logger.info("Cleared API key for %s", provider)

    def status(self, providers: tuple[str, ...]) -> list[CredentialStatus]:
        statuses: list[CredentialStatus] = []
        for provider in providers:
            stored = self._stored(provider)
            env = None if stored else self._from_env(provider)
            value = stored or env
            statuses.append(
                CredentialStatus(
                    provider=provider,
                    is_configured=bool(value),
                    source="stored" if stored else ("env" if env else ""),
                    preview=mask_secret_value(value) if value else None,
                )
            )
        return statuses

    # ── private ─────────────────────────────────────────────────────────

    def _stored(self, provider: str) -> str | None:
        value = self._store.get(api_key_key(provider))
        if value is None:
            return None
        return value.strip() or None

    def _from_env(self, provider: str) -> str | None:
        var = self._env_vars.get(provider)
        if not var:
            return None
        return os.getenv(var, "").strip() or None

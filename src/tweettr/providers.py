"""Provider dispatch — one chat-completion client per supported provider.

OpenAI goes through the official SDK; Anthropic and Google are called over
their REST endpoints with ``requests``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import requests

from tweettr import config
from tweettr.errors import (
    MissingCredentialError,
    TransportError,
    UnsupportedProviderError,
)

logger = logging.getLogger(__name__)

PROVIDERS: tuple[str, ...] = ("openai", "anthropic", "google")
TEMPERATURE = 0.8

_ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
_ANTHROPIC_VERSION = "2023-06-01"
_ANTHROPIC_MAX_TOKENS = 4096
_GOOGLE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class CompletionClient(Protocol):
    def complete(self, model: str, system: str, user: str, temperature: float) -> str: ...


ClientFactory = Callable[[str], CompletionClient]


def parse_model_ref(ref: str) -> tuple[str, str]:
    """Split ``provider:model`` into its parts."""
    provider, sep, model = ref.partition(":")
    if not sep or not provider.strip() or not model.strip():
        raise ValueError(f"Model must look like 'provider:model', got {ref!r}")
    return provider.strip().lower(), model.strip()


# ── Completion clients ─────────────────────────────────────────────────────


class OpenAICompletion:
    def __init__(self, api_key: str, timeout: float = config.REQUEST_TIMEOUT) -> None:
        from openai import OpenAI

        self._client = OpenAI(api_key=api_key, timeout=timeout)

    def complete(self, model: str, system: str, user: str, temperature: float) -> str:
        resp = self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
        )
        return resp.choices[0].message.content or ""


class _RestCompletion:
    """Shared ``requests`` plumbing for the REST-only providers."""

    name = ""

    def __init__(self, api_key: str, timeout: float = config.REQUEST_TIMEOUT) -> None:
        if not api_key:
            raise ValueError(f"{self.name} API key is required but was empty.")
        self._api_key = api_key
        self._timeout = timeout
        self._session = requests.Session()

    def _post(self, url: str, payload: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        resp = self._session.post(url, json=payload, timeout=self._timeout, **kwargs)
        if resp.status_code != 200:
            raise TransportError(
                f"{self.name} API returned {resp.status_code}: {resp.text[:500]}"
            )
        return resp.json()  # type: ignore[no-any-return]


class AnthropicCompletion(_RestCompletion):
    name = "Anthropic"

    def complete(self, model: str, system: str, user: str, temperature: float) -> str:
        data = self._post(
            _ANTHROPIC_URL,
            {
                "model": model,
                "system": system,
                "messages": [{"role": "user", "content": user}],
                "max_tokens": _ANTHROPIC_MAX_TOKENS,
                "temperature": temperature,
            },
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": _ANTHROPIC_VERSION,
            },
        )
        blocks: list[dict[str, Any]] = data.get("content", [])
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")


class GoogleCompletion(_RestCompletion):
    name = "Google"

    def complete(self, model: str, system: str, user: str, temperature: float) -> str:
        data = self._post(
            _GOOGLE_URL.format(model=model),
            {
                "systemInstruction": {"parts": [{"text": system}]},
                "contents": [{"role": "user", "parts": [{"text": user}]}],
                "generationConfig": {"temperature": temperature},
            },
            params={"key": self._api_key},
        )
        candidates: list[dict[str, Any]] = data.get("candidates", [])
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(p.get("text", "") for p in parts)


DEFAULT_FACTORIES: dict[str, ClientFactory] = {
    "openai": OpenAICompletion,
    "anthropic": AnthropicCompletion,
    "google": GoogleCompletion,
}


# ── Dispatcher ─────────────────────────────────────────────────────────────


class CredentialSource(Protocol):
    def get_credential(self, provider: str) -> str | None: ...


class ProviderDispatcher:
    """Resolve a provider tag to a client and issue one completion call."""

    def __init__(
        self,
        credentials: CredentialSource,
        factories: Mapping[str, ClientFactory] | None = None,
    ) -> None:
        self._credentials = credentials
        self._factories = dict(DEFAULT_FACTORIES if factories is None else factories)
        self._clients: dict[tuple[str, str], CompletionClient] = {}

    def dispatch(self, provider: str, model: str, system_message: str, user_message: str) -> str:
        client = self._resolve(provider)
        logger.info("Requesting completion from %s:%s", provider, model)
        try:
            raw = client.complete(model, system_message, user_message, TEMPERATURE)
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError(f"{provider} request failed: {exc}") from exc
        logger.info("Received %d chars from %s:%s", len(raw), provider, model)
        return raw

    # ── private ─────────────────────────────────────────────────────────

    def _resolve(self, provider: str) -> CompletionClient:
        factory = self._factories.get(provider)
        if factory is None:
            raise UnsupportedProviderError(provider)

        api_key = self._credentials.get_credential(provider)
        if not api_key:
            raise MissingCredentialError(provider)

        # One client per provider and key; a changed key gets a fresh client.
        cached = self._clients.get((provider, api_key))
        if cached is not None:
            return cached
        try:
            client = factory(api_key)
        except ImportError as exc:
            raise TransportError(f"SDK for {provider} is not installed: {exc}") from exc
        self._clients[(provider, api_key)] = client
        return client

"""Generation orchestration — wires compose → dispatch → parse → persist."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tweettr.errors import MalformedResponseError
from tweettr.history import HistoryStore
from tweettr.kvstore import LAST_PROVIDER_KEY, KeyValueStore
from tweettr.models import GenerationOptions, HistoryItem, Sample
from tweettr.parser import parse_response
from tweettr.prompts import (
    DEFAULT_USER_MESSAGE,
    compose_system_message,
    compose_user_message,
)
from tweettr.providers import ProviderDispatcher
from tweettr.samples import SampleLibrary

logger = logging.getLogger(__name__)


class TweetGenerator:
    def __init__(
        self,
        *,
        dispatcher: ProviderDispatcher,
        samples: SampleLibrary,
        history: HistoryStore,
        store: KeyValueStore,
    ) -> None:
        self._dispatcher = dispatcher
        self._samples = samples
        self._history = history
        self._store = store

    # ── public ──────────────────────────────────────────────────────────

    def generate(
        self,
        provider: str,
        model: str,
        base_prompt: str,
        options: GenerationOptions,
        *,
        instruction: str = DEFAULT_USER_MESSAGE,
        samples: Sequence[Sample] | None = None,
    ) -> HistoryItem:
        """Run one generation and record it at the head of the history.

        *samples* defaults to the whole sample library.
        """
        if not base_prompt.strip():
            raise ValueError("Please enter a system prompt.")

        used = list(self._samples.list() if samples is None else samples)
        system_message = compose_system_message(base_prompt, options, used)
        user_message = compose_user_message(options, instruction)
        logger.info(
            "Generating %d variant(s) with %s:%s [tone=%s, samples=%d]",
            options.variants_requested,
            provider,
            model,
            options.tone,
            len(used),
        )

        raw = self._dispatcher.dispatch(provider, model, system_message, user_message)

        try:
            result = parse_response(raw)
        except MalformedResponseError as exc:
            logger.error("Unparseable response (%s stage): %s\n%s", exc.stage, exc, exc.raw_text)
            raise

        if len(result.variants) != options.variants_requested:
            logger.warning(
                "Requested %d variant(s) but received %d",
                options.variants_requested,
                len(result.variants),
            )

        item = HistoryItem(
            provider=provider,
            model=model,
            system_prompt=system_message,
            base_prompt=base_prompt,
            attached_sample_ids=[s.id for s in used],
            options=options,
            variants=result.variants,
            style_summary=result.style_summary,
        )
        self._history.append(item)
        self.remember_model(provider, model)
        logger.info("Stored generation %s with %d variant(s)", item.id, len(item.variants))
        return item

    def replay(self, item_id: str) -> HistoryItem:
        """Re-run a past generation with its provider, model, options and prompt.

        Only the samples that still exist in the library are reused.
        """
        item = self._history.get(item_id)
        if item is None:
            raise ValueError(f"No history item with id {item_id}")

        attached = set(item.attached_sample_ids)
        samples = [s for s in self._samples.list() if s.id in attached]
        if len(samples) < len(attached):
            logger.warning(
                "%d of %d original sample(s) no longer exist",
                len(attached) - len(samples),
                len(attached),
            )

        base_prompt = item.base_prompt or item.system_prompt
        return self.generate(
            item.provider, item.model, base_prompt, item.options, samples=samples
        )

    def remember_model(self, provider: str, model: str) -> None:
        self._store.set(LAST_PROVIDER_KEY, f"{provider}:{model}")

    def last_model(self) -> str | None:
        return self._store.get(LAST_PROVIDER_KEY)

"""User-supplied style exemplars ("samples") persisted in the key/value store."""

from __future__ import annotations

import logging
import math

from pydantic import TypeAdapter

from tweettr.kvstore import SAMPLES_KEY, KeyValueStore
from tweettr.models import MAX_WEIGHT, MIN_WEIGHT, Sample
from tweettr.weighting import PARAPHRASE_WORD_LIMIT, word_count

logger = logging.getLogger(__name__)

_SAMPLES = TypeAdapter(list[Sample])


def clamp_weight(weight: float) -> float:
    """Clamp to the slider range and snap to its 0.1 step."""
    if not math.isfinite(weight):
        raise ValueError(f"Sample weight must be a finite number, got {weight}")
    return round(min(max(weight, MIN_WEIGHT), MAX_WEIGHT), 1)


def is_long_sample(text: str) -> bool:
    """True when *text* will be paraphrased rather than quoted in prompts."""
    return word_count(text) > PARAPHRASE_WORD_LIMIT


class SampleLibrary:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list(self) -> list[Sample]:
        raw = self._store.get(SAMPLES_KEY)
        if not raw:
            return []
        return _SAMPLES.validate_json(raw)

    def get(self, sample_id: str) -> Sample | None:
        return next((s for s in self.list() if s.id == sample_id), None)

    def add(
        self,
        text: str,
        *,
        weight: float = 1.0,
        source_label: str | None = None,
        tags: list[str] | None = None,
        style_summary: str | None = None,
    ) -> Sample:
        sample = Sample(
            text=text.strip(),
            weight=clamp_weight(weight),
            source_label=source_label,
            tags=list(tags or []),
            style_summary=style_summary,
        )
        if is_long_sample(sample.text):
            logger.warning(
                "Sample %s has %d words; it will be paraphrased in prompts.",
                sample.id,
                word_count(sample.text),
            )
        self._save([*self.list(), sample])
        logger.info("Added sample %s", sample.id)
        return sample

    def remove(self, sample_id: str) -> bool:
        samples = self.list()
        remaining = [s for s in samples if s.id != sample_id]
        if len(remaining) == len(samples):
            return False
        self._save(remaining)
        logger.info("Removed sample %s", sample_id)
        return True

    def set_weight(self, sample_id: str, weight: float) -> Sample | None:
        samples = self.list()
        updated: Sample | None = None
        for idx, sample in enumerate(samples):
            if sample.id == sample_id:
                updated = Sample.model_validate(
                    {**sample.model_dump(), "weight": clamp_weight(weight)}
                )
                samples[idx] = updated
        if updated is not None:
            self._save(samples)
        return updated

    def replace_all(self, samples: list[Sample]) -> None:
        self._save(list(samples))

    # ── private ─────────────────────────────────────────────────────────

    def _save(self, samples: list[Sample]) -> None:
        self._store.set(SAMPLES_KEY, _SAMPLES.dump_json(samples, by_alias=True).decode())

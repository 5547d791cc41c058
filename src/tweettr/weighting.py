"""Order style exemplars by weight and apply the paraphrase policy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tweettr.models import Sample

logger = logging.getLogger(__name__)

# Samples longer than this many words are never quoted verbatim.
PARAPHRASE_WORD_LIMIT = 25
PREVIEW_CHAR_LIMIT = 100


@dataclass(frozen=True)
class WeightedExemplar:
    sample_id: str
    text: str
    weight: float
    paraphrased: bool = False


def word_count(text: str) -> int:
    return len(text.split())


def preview(text: str) -> str:
    """First words of *text*, never the whole of a long sample."""
    words = text.split()[:PARAPHRASE_WORD_LIMIT]
    return " ".join(words)[:PREVIEW_CHAR_LIMIT]


def to_exemplar(sample: Sample) -> WeightedExemplar:
    if word_count(sample.text) > PARAPHRASE_WORD_LIMIT:
        return WeightedExemplar(
            sample_id=sample.id,
            text=preview(sample.text),
            weight=sample.weight,
            paraphrased=True,
        )
    return WeightedExemplar(sample_id=sample.id, text=sample.text, weight=sample.weight)


def order_samples(samples: Sequence[Sample]) -> list[WeightedExemplar]:
    """Highest weight first; equal weights keep their input order."""
    ranked = sorted(samples, key=lambda s: s.weight, reverse=True)
    exemplars = [to_exemplar(s) for s in ranked]
    paraphrased = sum(1 for e in exemplars if e.paraphrased)
    if paraphrased:
        logger.debug("Paraphrased %d of %d samples", paraphrased, len(exemplars))
    return exemplars


def style_notes(samples: Sequence[Sample]) -> list[str]:
    return [s.style_summary for s in samples if s.style_summary]

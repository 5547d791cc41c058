"""Turn a model's free-form reply into a validated ``GenerationResult``.

Two stages that never merge: ``extract_payload`` finds the JSON object
inside surrounding prose, ``validate_payload`` decodes and checks it.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from tweettr.errors import MalformedResponseError
from tweettr.models import GenerationResult, TweetVariant, new_id

logger = logging.getLogger(__name__)


def extract_payload(raw_text: str) -> str:
    """Return the outermost ``{...}`` span of *raw_text*."""
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end < start:
        raise MalformedResponseError(
            "No JSON found in the model response.", raw_text=raw_text, stage="extract"
        )
    return raw_text[start : end + 1]


def _normalize_variant(raw: Any, seen: set[str], raw_text: str) -> TweetVariant:
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"Invalid variant entry: expected an object, got {type(raw).__name__}.",
            raw_text=raw_text,
            stage="validate",
        )

    tweet = raw.get("tweet")
    if tweet is None:
        tweet = ""
    if not isinstance(tweet, str):
        raise MalformedResponseError(
            "Invalid variant entry: 'tweet' must be a string.",
            raw_text=raw_text,
            stage="validate",
        )

    vid = raw.get("id")
    vid = str(vid) if vid not in (None, "") else ""
    if not vid or vid in seen:
        vid = new_id()
    seen.add(vid)

    # Legacy fields are left at their defaults whatever the model sent.
    return TweetVariant(id=vid, tweet=tweet)


def validate_payload(payload: str, raw_text: str) -> GenerationResult:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            f"Failed to parse AI response: {exc}", raw_text=raw_text, stage="decode"
        ) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            "Invalid response structure: expected a JSON object.",
            raw_text=raw_text,
            stage="validate",
        )

    raw_variants = data.get("variants")
    if not isinstance(raw_variants, list) or not raw_variants:
        raise MalformedResponseError(
            "No variants generated", raw_text=raw_text, stage="validate"
        )

    seen: set[str] = set()
    variants = [_normalize_variant(v, seen, raw_text) for v in raw_variants]
    return GenerationResult(variants=variants, style_summary=data.get("style_summary"))


def parse_response(raw_text: str) -> GenerationResult:
    """Extract, decode and normalize; raises ``MalformedResponseError``."""
    result = validate_payload(extract_payload(raw_text), raw_text)
    logger.debug("Parsed %d variants", len(result.variants))
    return result

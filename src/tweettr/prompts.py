"""Compose the system and user messages sent to every provider.

The output-format contract below is what ``tweettr.parser`` expects back;
change both together.
"""

from __future__ import annotations

from collections.abc import Sequence

from tweettr.models import GenerationOptions, Sample
from tweettr.weighting import PARAPHRASE_WORD_LIMIT, order_samples, style_notes

DEFAULT_USER_MESSAGE = "Create viral tweets following the system instructions."

_EXAMPLES_HEADER = "EXAMPLES (for style reference only - do NOT copy):"
_STYLE_HEADER = "STYLE ANALYSIS:"

_ANTI_PLAGIARISM = (
    "IMPORTANT: Emulate the style and patterns but NEVER copy more than "
    f"{PARAPHRASE_WORD_LIMIT} consecutive words from examples. "
    "All content must be original."
)

_OUTPUT_CONTRACT = """\
You MUST respond with valid JSON in this exact format:
{
  "variants": [
    {
      "id": "unique-id",
      "tweet": "The complete viral tweet with proper line breaks (use \\n for line breaks). Make it authentic, valuable, and shareable."
    }
  ]
}

IMPORTANT: The "tweet" field should contain the COMPLETE, FINAL tweet ready to post. Use \\n for line breaks to create clean, readable formatting."""


def _format_weight(weight: float) -> str:
    return f"{weight:g}"


def _examples_section(samples: Sequence[Sample]) -> str:
    lines = [_EXAMPLES_HEADER]
    for idx, ex in enumerate(order_samples(samples), start=1):
        text = f"[Paraphrased: {ex.text}...]" if ex.paraphrased else ex.text
        lines.append(f"{idx}. (Weight: {_format_weight(ex.weight)}) {text}")

    notes = style_notes(samples)
    section = "\n".join(lines)
    if notes:
        section += "\n\n" + "\n".join([_STYLE_HEADER, *notes])
    return section


def compose_system_message(
    base_prompt: str,
    options: GenerationOptions,
    samples: Sequence[Sample] = (),
) -> str:
    """Base prompt followed by tone, length, examples, anti-copy rule and format."""
    parts = [
        base_prompt,
        f"TONE: {options.tone}\n"
        f"TARGET LENGTH: Aim for approximately {options.char_target} "
        "characters in the final tweet.",
    ]
    if samples:
        parts.append(_examples_section(samples))
    parts.append(_ANTI_PLAGIARISM)
    parts.append(_OUTPUT_CONTRACT)
    return "\n\n".join(parts)


def compose_user_message(
    options: GenerationOptions,
    instruction: str = DEFAULT_USER_MESSAGE,
) -> str:
    return f"{instruction}\n\nGenerate {options.variants_requested} viral tweet variants."

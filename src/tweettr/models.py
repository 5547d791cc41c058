"""Domain models shared by the composer, parser and stores."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Tone = Literal["direct", "inspirational", "snarky"]

MIN_WEIGHT = 0.1
MAX_WEIGHT = 2.0


def new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(UTC)


class _Record(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Sample(_Record):
    id: str = Field(default_factory=new_id)
    text: str
    weight: float = Field(default=1.0, ge=MIN_WEIGHT, le=MAX_WEIGHT)
    created_at: datetime = Field(default_factory=_now)
    source_label: str | None = None
    style_summary: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Sample text cannot be empty")
        return value


class GenerationOptions(_Record):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    tone: Tone = "direct"
    char_target: int = Field(default=280, ge=100, le=280)
    variants_requested: int = Field(default=3, ge=1, le=5)


class TweetVariant(_Record):
    id: str = Field(default_factory=new_id)
    tweet: str = ""
    # Legacy structured fields; always empty on newly generated variants.
    hook: str = ""
    context: str = ""
    framework: list[str] = Field(default_factory=list)
    proof: str = ""
    cta: str = ""
    hashtags: list[str] = Field(default_factory=list)
    emoji: list[str] = Field(default_factory=list)


class StyleSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tone: str = ""
    common_hooks: list[str] = Field(default_factory=list)
    avg_length: float = 0
    hashtag_patterns: list[str] = Field(default_factory=list)
    emoji_usage: list[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    variants: list[TweetVariant]
    style_summary: Any = None


class HistoryItem(_Record):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=_now)
    provider: str
    model: str
    system_prompt: str
    base_prompt: str | None = None
    attached_sample_ids: list[str] = Field(default_factory=list)
    options: GenerationOptions
    variants: list[TweetVariant]
    favorite: bool = False
    tags: list[str] = Field(default_factory=list)
    style_summary: Any = None


class SavedSystemPrompt(_Record):
    id: str = Field(default_factory=new_id)
    name: str
    prompt: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime | None = None


class ProviderModel(_Record):
    provider: str
    model: str
    display_name: str = ""

    @property
    def ref(self) -> str:
        return f"{self.provider}:{self.model}"


class PromptTemplate(BaseModel):
    name: str
    prompt: str

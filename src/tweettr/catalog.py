"""Load the selectable models and system-prompt templates from ``catalog.yml``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from tweettr.models import PromptTemplate, ProviderModel

logger = logging.getLogger(__name__)

FALLBACK_SYSTEM_PROMPT = (
    "You are an expert at writing viral tweets. Create tweets that feel "
    "authentic, valuable, and shareable."
)


class Catalog(BaseModel):
    models: list[ProviderModel] = Field(default_factory=list)
    templates: list[PromptTemplate] = Field(default_factory=list)

    def models_for(self, provider: str) -> list[ProviderModel]:
        return [m for m in self.models if m.provider == provider]

    def template(self, name: str) -> PromptTemplate | None:
        wanted = name.strip().lower()
        return next((t for t in self.templates if t.name.lower() == wanted), None)

    @property
    def default_system_prompt(self) -> str:
        return self.templates[0].prompt if self.templates else FALLBACK_SYSTEM_PROMPT


def load_catalog(catalog_path: Path) -> Catalog:
    """Parse ``catalog.yml``.

    Expected shape::

        models:
          openai:
            - {model: gpt-4o, display_name: "GPT-4o"}
        templates:
          - {name: "Default", prompt: "..."}
    """
    if not catalog_path.exists():
        logger.warning("Catalog not found, using built-in defaults: %s", catalog_path)
        return Catalog()

    with open(catalog_path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    models: list[ProviderModel] = []
    for provider, entries in (cfg.get("models") or {}).items():
        for entry in entries or []:
            if isinstance(entry, str):
                entry = {"model": entry}
            models.append(
                ProviderModel(
                    provider=str(provider).lower(),
                    model=entry["model"],
                    display_name=entry.get("display_name", entry["model"]),
                )
            )

    templates = [
        PromptTemplate(name=t["name"], prompt=t["prompt"].strip())
        for t in cfg.get("templates") or []
    ]
    logger.debug("Catalog: %d models, %d templates", len(models), len(templates))
    return Catalog(models=models, templates=templates)

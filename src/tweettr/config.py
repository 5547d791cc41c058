"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR: Path = Path(os.getenv("TWEETTR_DATA_DIR", str(PROJECT_ROOT / "var")))
DB_PATH: Path = DATA_DIR / "tweettr.sqlite3"
CATALOG_PATH: Path = Path(
    os.getenv("TWEETTR_CATALOG", str(PROJECT_ROOT / "config" / "catalog.yml"))
)

# ── LLM ────────────────────────────────────────────────────────────────────
DEFAULT_MODEL_REF: str = os.getenv("TWEETTR_MODEL", "openai:gpt-4o")
REQUEST_TIMEOUT: float = float(os.getenv("TWEETTR_REQUEST_TIMEOUT", "60"))

# Env vars consulted when no key has been saved for a provider.
API_KEY_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}

# ── Logging ────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("TWEETTR_LOG_LEVEL", "INFO").upper()

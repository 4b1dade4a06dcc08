"""Prompt loader: reads AI prompts and model settings from data/prompts.yaml.

Prompts are loaded from the YAML file on first access and cached for 30 seconds,
so edits to the file are picked up without restarting the server. Anything
missing from the file falls back to the defaults below.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import yaml

_PACKAGE_ROOT = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_ROOT.parent.parent
DATA_DIR = _PROJECT_ROOT / "data"

PROMPTS_PATH = DATA_DIR / "prompts.yaml"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7

DEFAULTS: dict[str, str] = {
    "flashcards_system": (
        "You are an expert teacher writing advanced study flashcards. "
        "Return ONLY a JSON array, no extra text."
    ),
    "flashcards_user": (
        'Topic: "{topic}"\n'
        'Difficulty level: "{level}"\n'
        "Number of items: {count}\n\n"
        "For each item produce:\n"
        "1. A clear, thought-provoking question.\n"
        "2. The correct answer formatted as HTML: open with the core answer in <b>bold</b> "
        "(at most five words), then <br><br>, then a short <ul><li>...</li></ul> with "
        "<b>bold</b> technical keywords.\n"
        '3. A "cloze" text: the answer rewritten with its main keyword(s) replaced by "______".\n\n'
        'Return a JSON array where each item has "question", "answer" and "cloze_text".'
    ),
}

_cache: dict[str, Any] | None = None
_cache_time: float = 0.0
_CACHE_TTL = 30.0  # seconds


def _load_prompts() -> dict[str, Any]:
    """Load prompts from YAML file, with a short cache."""
    global _cache, _cache_time
    now = time.monotonic()
    if _cache is not None and (now - _cache_time) < _CACHE_TTL:
        return _cache
    try:
        raw = PROMPTS_PATH.read_text(encoding="utf-8")
        data = yaml.safe_load(raw) or {}
    except (OSError, yaml.YAMLError):
        data = {}
    if not isinstance(data, dict):
        data = {}
    _cache = data
    _cache_time = now
    return data


def invalidate_cache() -> None:
    """Force the next get() to re-read the YAML file."""
    global _cache, _cache_time
    _cache = None
    _cache_time = 0.0


def get(key: str, default: str | None = None) -> str:
    """Get a prompt string by key, falling back to the built-in default."""
    value = _load_prompts().get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    if default is not None:
        return default
    return DEFAULTS.get(key, "")


def get_model(operation: str) -> str:
    """Get the model name for an operation, e.g. 'flashcards'."""
    models = _load_prompts().get("models") or {}
    return str(models.get(operation, DEFAULT_MODEL))


def get_temperature(operation: str) -> float:
    temps = _load_prompts().get("temperatures") or {}
    try:
        return float(temps.get(operation, DEFAULT_TEMPERATURE))
    except (ValueError, TypeError):
        return DEFAULT_TEMPERATURE


__all__ = [
    "DEFAULTS",
    "get",
    "get_model",
    "get_temperature",
    "invalidate_cache",
]

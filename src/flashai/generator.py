"""AI flashcard generation via the OpenAI chat completions API."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Sequence

from . import prompts as prompt_config
from .models import Card, DifficultyLevel, GeneratedCard

logger = logging.getLogger(__name__)

INVERSE_ID_SUFFIX = "_inv"


class GenerationError(Exception):
    """The generator failed or returned something we cannot turn into cards."""


def ai_available() -> bool:
    """Return True if an OpenAI API key is configured."""
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return bool(os.environ.get("OPENAI_API_KEY"))


def _get_client() -> Any:
    """Lazy-load the OpenAI client."""
    from openai import OpenAI

    return OpenAI()


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[-1]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()
    return content


def _parse_items(content: str) -> list[GeneratedCard]:
    try:
        items = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Generator returned invalid JSON: {exc}") from exc
    if not isinstance(items, list) or not items:
        raise GenerationError("Generator did not return a non-empty JSON array")

    cards: list[GeneratedCard] = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise GenerationError(f"Item {position} is not an object")
        question = str(item.get("question") or "").strip()
        answer = str(item.get("answer") or "").strip()
        if not question or not answer:
            raise GenerationError(f"Item {position} is missing a question or answer")
        cloze = item.get("cloze_text")
        cards.append(
            GeneratedCard(
                question=question,
                answer=answer,
                cloze_text=str(cloze).strip() if cloze else None,
            )
        )
    return cards


def generate_flashcards(
    topic: str,
    level: DifficultyLevel,
    count: int = 5,
    *,
    client: Any = None,
) -> list[GeneratedCard]:
    """Ask the model for ``count`` cards about ``topic``. Single attempt, all or nothing."""
    if count < 1:
        raise ValueError("count must be at least 1")
    if not topic.strip():
        raise ValueError("topic must not be empty")

    if client is None:
        if not ai_available():
            raise GenerationError("OPENAI_API_KEY is not configured")
        try:
            client = _get_client()
        except ImportError as exc:
            raise GenerationError("The openai package is not installed") from exc

    try:
        user_prompt = prompt_config.get("flashcards_user").format(
            topic=topic.strip(), level=level.value, count=count
        )
    except (KeyError, IndexError, ValueError) as exc:
        raise GenerationError(f"Invalid flashcards_user prompt template: {exc}") from exc
    try:
        response = client.chat.completions.create(
            model=prompt_config.get_model("flashcards"),
            messages=[
                {"role": "system", "content": prompt_config.get("flashcards_system")},
                {"role": "user", "content": user_prompt},
            ],
            temperature=prompt_config.get_temperature("flashcards"),
            max_tokens=4000,
        )
        content = response.choices[0].message.content or ""
    except Exception as exc:
        logger.exception("Flashcard generation failed for topic %r", topic)
        raise GenerationError("Failed to generate flashcards") from exc

    if not content.strip():
        raise GenerationError("Generator returned no data")
    return _parse_items(content)


def build_cards(topic: str, generated: Sequence[GeneratedCard], now: datetime | None = None) -> list[Card]:
    """Turn generator output into fresh, never-reviewed cards."""
    moment = now or datetime.now(timezone.utc)
    stamp = int(moment.timestamp() * 1000)
    return [
        Card(
            id=f"card-{stamp}-{index}",
            topic=topic,
            question=item.question,
            answer=item.answer,
            cloze_text=item.cloze_text,
        )
        for index, item in enumerate(generated)
    ]


def invert_cards(cards: Sequence[Card]) -> list[Card]:
    """Swap question and answer so the answer is shown first.

    The cloze text embeds the answer, so it is dropped for inverse cards.
    """
    return [
        Card(
            id=card.id + INVERSE_ID_SUFFIX,
            topic=card.topic,
            question=card.answer,
            answer=card.question,
            cloze_text=None,
            is_inverse=True,
            repetition=card.repetition,
            interval=card.interval,
            ease_factor=card.ease_factor,
            next_review=card.next_review,
        )
        for card in cards
    ]


__all__ = [
    "GenerationError",
    "INVERSE_ID_SUFFIX",
    "ai_available",
    "build_cards",
    "generate_flashcards",
    "invert_cards",
]

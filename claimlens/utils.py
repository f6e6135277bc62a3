"""Utility helpers for paths, logging, and text handling."""

from __future__ import annotations

import hashlib
import logging
import re
import uuid
from pathlib import Path
from typing import Iterable, List

_NON_WORD_PATTERN = re.compile(r"\W+")

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "should", "could", "may", "might", "must", "can", "this",
        "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    }
)


def ensure_dirs(*paths: str | Path | Iterable[str | Path]) -> None:
    """Create directories if they do not exist."""
    flat: list[str | Path] = []
    for item in paths:
        if isinstance(item, (list, tuple, set)):
            flat.extend(item)
        else:
            flat.append(item)
    for raw_path in flat:
        path = Path(raw_path).expanduser()
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)


def configure_logging() -> None:
    """Ensure logging has at least a basic configuration."""
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def truncate(text: str, limit: int = 150) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def extract_key_terms(text: str) -> List[str]:
    """Return stop-word-filtered terms longer than three characters.

    Terms are lowercased and deduplicated, keeping first-occurrence order.
    """
    seen: set[str] = set()
    terms: List[str] = []
    for word in _NON_WORD_PATTERN.split(text.lower()):
        if len(word) <= 3 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        terms.append(word)
    return terms

"""Tracks what the user is currently writing about."""

from __future__ import annotations

import re
from typing import List, Optional

from .schemas import WritingContext
from .utils import extract_key_terms

RECENT_WORD_COUNT = 200
CHANGE_THRESHOLD = 0.5
DEFAULT_SECTION = "Introduction"

_HEADING_PREFIX = re.compile(r"^#+\s*")


def extract_current_paragraph(text: str, cursor: int) -> str:
    before = text[:cursor]
    start = max(before.rfind("\n\n"), 0)
    after_break = text.find("\n\n", cursor)
    end = len(text) if after_break == -1 else after_break
    return text[start:end].strip()


def extract_current_section(text: str, cursor: int) -> str:
    for raw_line in reversed(text[:cursor].split("\n")):
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("#"):
            return _HEADING_PREFIX.sub("", line)
        if line == line.upper() and any(ch.isalpha() for ch in line):
            return line
    return DEFAULT_SECTION


def extract_recent_words(text: str, cursor: int, count: int = RECENT_WORD_COUNT) -> List[str]:
    return text[:cursor].split()[-count:]


class ContextMonitor:
    """Derives the writing context from the cursor position. Keeps no history."""

    def __init__(self) -> None:
        self._current: Optional[WritingContext] = None

    @property
    def current(self) -> Optional[WritingContext]:
        return self._current

    def build_context(
        self,
        text: str,
        cursor: int,
        active_hypothesis: Optional[str] = None,
    ) -> WritingContext:
        cursor = min(max(cursor, 0), len(text))
        paragraph = extract_current_paragraph(text, cursor)
        return WritingContext(
            current_paragraph=paragraph,
            current_section=extract_current_section(text, cursor),
            recent_words=extract_recent_words(text, cursor),
            dominant_concepts=extract_key_terms(paragraph),
            active_hypothesis=active_hypothesis,
        )

    def update_context(
        self,
        text: str,
        cursor: int,
        active_hypothesis: Optional[str] = None,
    ) -> WritingContext:
        return self.commit(self.build_context(text, cursor, active_hypothesis))

    def commit(self, context: WritingContext) -> WritingContext:
        self._current = context
        return context

    def has_context_changed(self, new_context: WritingContext) -> bool:
        if self._current is None:
            return True
        old_concepts = set(self._current.dominant_concepts)
        new_concepts = set(new_context.dominant_concepts)
        largest = max(len(old_concepts), len(new_concepts))
        if largest == 0:
            return False
        overlap = len(old_concepts & new_concepts) / largest
        return overlap < CHANGE_THRESHOLD

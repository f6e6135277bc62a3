"""Heuristic detection of claim-like sentences in prose."""

from __future__ import annotations

import logging
import re
from typing import List, Pattern, Sequence, Tuple

from .errors import DetectionError
from .schemas import (
    Claim,
    ClaimType,
    MarkerSpan,
    MarkerType,
    StrongLanguageMarker,
    TextPosition,
)
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

CLAIM_INDICATORS = (
    "shows", "proves", "demonstrates", "indicates", "suggests", "reveals",
    "cause", "causes", "leads to", "results in", "affects", "impacts",
    "more than", "less than", "better", "worse",
    "will", "would", "should", "perform",
)
ABSOLUTE_WORDS = (
    "definitely", "certainly", "always", "never", "all", "none",
    "proves", "guarantees", "ensures", "must",
)
HEDGE_WORDS = (
    "might", "could", "possibly", "probably", "likely",
    "suggests", "indicates", "some", "many", "often",
)

ABSOLUTE_INTENSITY = 0.9
HEDGE_INTENSITY = 0.3

# Checked in this order; the first class that matches wins.
_TYPE_PATTERNS: Tuple[Tuple[ClaimType, Pattern[str]], ...] = (
    (
        ClaimType.causal,
        re.compile(
            r"\b(?:caus(?:e|es|ed|ing)|leads? to|led to|results? in|affects?|"
            r"due to|because|harms?|hurts?|damages?|drives?|undermines?)\b",
            re.IGNORECASE,
        ),
    ),
    (
        ClaimType.comparative,
        re.compile(
            r"\b(?:more|less|better|worse|higher|lower|greater|smaller|fewer|larger)\b",
            re.IGNORECASE,
        ),
    ),
    (
        ClaimType.predictive,
        re.compile(
            r"\b(?:will|would|going to|expect(?:s|ed)?|predicts?|forecasts?)\b",
            re.IGNORECASE,
        ),
    ),
)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+(?=\s|$)|\n[ \t]*\n")


def _word_pattern(phrase: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


_INDICATOR_PATTERNS = {word: _word_pattern(word) for word in CLAIM_INDICATORS}
_ABSOLUTE_PATTERNS = {word: _word_pattern(word) for word in ABSOLUTE_WORDS}
_HEDGE_PATTERNS = {word: _word_pattern(word) for word in HEDGE_WORDS}


def _matched(patterns: dict[str, Pattern[str]], sentence: str) -> List[Tuple[str, re.Match]]:
    hits = []
    for word, pattern in patterns.items():
        match = pattern.search(sentence)
        if match:
            hits.append((word, match))
    return hits


def split_sentences(text: str) -> List[Tuple[int, int, int]]:
    """Return ``(start, end, paragraph_index)`` spans of non-blank sentences."""
    spans: List[Tuple[int, int, int]] = []
    paragraph = 0
    start = 0

    def _append(seg_start: int, seg_end: int) -> None:
        segment = text[seg_start:seg_end]
        stripped = segment.strip()
        if not stripped:
            return
        lead = len(segment) - len(segment.lstrip())
        begin = seg_start + lead
        spans.append((begin, begin + len(stripped), paragraph))

    for match in _SENTENCE_BOUNDARY.finditer(text):
        is_paragraph_break = match.group().startswith("\n")
        _append(start, match.start() if is_paragraph_break else match.end())
        if is_paragraph_break:
            paragraph += 1
        start = match.end()
    _append(start, len(text))
    return spans


def is_claim(sentence: str) -> bool:
    if _matched(_INDICATOR_PATTERNS, sentence) or _matched(_ABSOLUTE_PATTERNS, sentence):
        return True
    # Causal, comparative and predictive phrasing is a claim even without an indicator.
    return any(pattern.search(sentence) for _, pattern in _TYPE_PATTERNS)


def classify_claim_type(sentence: str) -> ClaimType:
    for claim_type, pattern in _TYPE_PATTERNS:
        if pattern.search(sentence):
            return claim_type
    return ClaimType.descriptive


def calculate_confidence(sentence: str) -> float:
    score = 0.5
    score += 0.1 * len(_matched(_INDICATOR_PATTERNS, sentence))
    score += 0.15 * len(_matched(_ABSOLUTE_PATTERNS, sentence))
    score -= 0.05 * len(_matched(_HEDGE_PATTERNS, sentence))
    return min(max(score, 0.0), 1.0)


def detect_strong_language(sentence: str, offset: int = 0) -> List[StrongLanguageMarker]:
    markers: List[StrongLanguageMarker] = []
    groups: Sequence[Tuple[dict[str, Pattern[str]], MarkerType, float]] = (
        (_ABSOLUTE_PATTERNS, MarkerType.absolute, ABSOLUTE_INTENSITY),
        (_HEDGE_PATTERNS, MarkerType.hedge, HEDGE_INTENSITY),
    )
    for patterns, marker_type, intensity in groups:
        for word, match in _matched(patterns, sentence):
            markers.append(
                StrongLanguageMarker(
                    word=word,
                    type=marker_type,
                    position=MarkerSpan(start=offset + match.start(), end=offset + match.end()),
                    intensity=intensity,
                )
            )
    return markers


def _validate_text(text: object) -> str:
    if not isinstance(text, str):
        raise DetectionError(f"Expected text, got {type(text).__name__}")
    return text


def detect_claims(text: str) -> List[Claim]:
    """Flag claim-like sentences in ``text``.

    Never raises: malformed or empty input yields an empty list.
    """
    try:
        text = _validate_text(text)
    except DetectionError as exc:
        logger.warning("Skipping claim detection: %s", exc)
        return []

    claims: List[Claim] = []
    for start, end, paragraph_index in split_sentences(text):
        sentence = text[start:end]
        if not is_claim(sentence):
            continue
        claims.append(
            Claim(
                text=sentence,
                position=TextPosition(start=start, end=end, paragraph_index=paragraph_index),
                type=classify_claim_type(sentence),
                confidence=calculate_confidence(sentence),
                strong_language=detect_strong_language(sentence, offset=start),
            )
        )
    logger.debug("Detected %d claims in %d characters", len(claims), len(text))
    return claims

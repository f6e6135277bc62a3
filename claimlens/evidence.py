"""Evidence retrieval: score notebook content against a claim."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from .schemas import Evidence, EvidenceSourceType, ExtractedStatistic, NotebookContent, StatisticType
from .utils import configure_logging, extract_key_terms

configure_logging()
logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLD = 0.3
MAX_EVIDENCE = 10
BIGRAM_BONUS = 0.2
CONTEXT_WINDOW = 100

INSIGHT_STRENGTH = 0.8
INSIGHT_CONFIDENCE = 0.7
CELL_OUTPUT_STRENGTH = 0.6
CELL_OUTPUT_CONFIDENCE = 0.5

_STATISTIC_PATTERNS: Tuple[Tuple[StatisticType, Pattern[str], Optional[str]], ...] = (
    (StatisticType.percentage, re.compile(r"(\d+(?:\.\d+)?)\s*%"), "%"),
    (
        StatisticType.correlation,
        re.compile(r"(?:correlation[:\s]+|\br\s*=\s*)(-?\d*\.\d+)", re.IGNORECASE),
        None,
    ),
    (StatisticType.p_value, re.compile(r"\bp[:\s]*[=<>]\s*(\d*\.\d+)", re.IGNORECASE), None),
    (
        StatisticType.regression,
        re.compile(
            r"(?:coefficient|coef|beta|slope|r-squared|r²|r\^2)[:\s=]+(-?\d*\.\d+)",
            re.IGNORECASE,
        ),
        None,
    ),
)


def _surrounding(text: str, position: int, window: int = CONTEXT_WINDOW) -> str:
    start = max(0, position - window)
    end = min(len(text), position + window)
    return text[start:end].strip()


def extract_statistics(text: str) -> List[ExtractedStatistic]:
    """Scan ``text`` for percentages, correlations, p-values and regression figures."""
    statistics: List[ExtractedStatistic] = []
    for stat_type, pattern, unit in _STATISTIC_PATTERNS:
        for match in pattern.finditer(text):
            try:
                value = float(match.group(1))
            except ValueError:
                continue
            statistics.append(
                ExtractedStatistic(
                    type=stat_type,
                    value=value,
                    unit=unit,
                    context=_surrounding(text, match.start()),
                )
            )
    return statistics


def calculate_relevance(claim_text: str, evidence_text: str, claim_terms: Sequence[str]) -> float:
    evidence_lower = evidence_text.lower()
    claim_lower = claim_text.lower().strip()

    if claim_lower and claim_lower in evidence_lower:
        return 1.0
    if not claim_terms:
        return 0.0

    matched = sum(1 for term in claim_terms if term in evidence_lower)
    score = matched / len(claim_terms)

    words = claim_lower.split()
    for first, second in zip(words, words[1:]):
        if f"{first} {second}" in evidence_lower:
            score += BIGRAM_BONUS
    return min(score, 1.0)


def find_evidence(claim_text: str, notebook: NotebookContent) -> List[Evidence]:
    """Return up to ten notebook items relevant to ``claim_text``, best first."""
    claim_terms = extract_key_terms(claim_text)
    evidence: List[Evidence] = []

    for insight in notebook.insights:
        relevance = calculate_relevance(claim_text, insight.content, claim_terms)
        if relevance <= RELEVANCE_THRESHOLD:
            continue
        evidence.append(
            Evidence(
                source_id=insight.id,
                source_type=EvidenceSourceType.insight,
                content=insight.content,
                relevance_score=relevance,
                strength_score=INSIGHT_STRENGTH,
                confidence_score=INSIGHT_CONFIDENCE,
                hypothesis_tags=list(insight.hypothesis_tags),
                extracted_statistics=extract_statistics(insight.content),
            )
        )

    for cell in notebook.cells:
        if cell.output is None or not cell.output.text:
            continue
        relevance = calculate_relevance(claim_text, cell.output.text, claim_terms)
        if relevance <= RELEVANCE_THRESHOLD:
            continue
        evidence.append(
            Evidence(
                source_id=cell.id,
                source_type=EvidenceSourceType.cell_output,
                content=cell.output.text,
                relevance_score=relevance,
                strength_score=CELL_OUTPUT_STRENGTH,
                confidence_score=CELL_OUTPUT_CONFIDENCE,
                hypothesis_tags=list(cell.hypothesis_tags),
                extracted_statistics=extract_statistics(cell.output.text),
                cell_query=cell.query or None,
                plot_url=cell.output.plot,
            )
        )

    evidence.sort(key=lambda item: item.relevance_score, reverse=True)
    logger.debug("Found %d evidence items for claim %r", len(evidence), claim_text[:60])
    return evidence[:MAX_EVIDENCE]

"""Alternative phrasings for claims that overreach their evidence."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .schemas import (
    IssueType,
    ModificationCandidate,
    ModificationKind,
    ModificationResult,
    ToulminDiagram,
)
from .utils import STOP_WORDS, configure_logging

configure_logging()
logger = logging.getLogger(__name__)

MAX_CANDIDATES = 5
REPLACEMENT_CONFIDENCE = 0.85

# Ordered: the first matching row leads the candidate list.
WEAKENING_REPLACEMENTS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("definitely", ("suggests", "indicates", "appears to")),
    ("certainly", ("likely", "probably", "appears")),
    ("proves", ("suggests", "indicates", "shows")),
    ("always", ("often", "typically", "generally")),
    ("never", ("rarely", "seldom", "infrequently")),
    ("all", ("most", "many", "the majority of")),
    ("causes", ("is associated with", "correlates with", "relates to")),
    ("guarantees", ("suggests", "indicates", "may lead to")),
)

POLARITY_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("increase", "decrease"),
    ("decrease", "increase"),
    ("harm", "benefit"),
    ("benefit", "harm"),
    ("positive", "negative"),
    ("negative", "positive"),
)

QUANTIFIERS = frozenset({"some", "many", "most", "all", "few", "several", "none"})
DETERMINERS = frozenset({"the", "these", "those"})
REMOVAL_PLACEHOLDER = "[Consider removing this claim]"

_REPLACEMENT_PATTERNS = {
    word: re.compile(rf"\b{word}\b", re.IGNORECASE) for word, _ in WEAKENING_REPLACEMENTS
}
_POLARITY_PATTERNS = tuple(
    (re.compile(rf"\b{word}(?P<suffix>s|d|ed|ing)?\b", re.IGNORECASE), opposite)
    for word, opposite in POLARITY_PAIRS
)
_COPULA = re.compile(r"\b(is|are)\b", re.IGNORECASE)


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _substitute(pattern: re.Pattern[str], replacement: str, text: str) -> str:
    return pattern.sub(
        lambda m: _match_case(m.group(0), replacement) + (m.groupdict().get("suffix") or ""),
        text,
    )


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def _strip_period(text: str) -> str:
    return text.strip().rstrip(".")


def weaken_claim(claim_text: str) -> List[ModificationCandidate]:
    """Swap absolute and causal wording for softer equivalents.

    Every candidate replaces all matched words, so no candidate keeps any of
    the absolute terms the claim started with. The first matched word's
    alternatives drive the variety; other matches take their first alternative.
    """
    matched = [
        (word, alternatives)
        for word, alternatives in WEAKENING_REPLACEMENTS
        if _REPLACEMENT_PATTERNS[word].search(claim_text)
    ]
    candidates: List[ModificationCandidate] = []
    for word, alternatives in matched:
        for alternative in alternatives:
            text = _substitute(_REPLACEMENT_PATTERNS[word], alternative, claim_text)
            for other, other_alternatives in matched:
                if other != word:
                    text = _substitute(_REPLACEMENT_PATTERNS[other], other_alternatives[0], text)
            candidates.append(
                ModificationCandidate(
                    text=text,
                    explanation=f'Replaced "{word}" with "{alternative}" to reduce claim strength',
                    confidence=REPLACEMENT_CONFIDENCE,
                )
            )

    if not candidates:
        candidates = [
            ModificationCandidate(
                text=f"The evidence suggests that {_lower_first(claim_text.strip())}",
                explanation="Added qualifying phrase to indicate uncertainty",
                confidence=0.7,
            ),
            ModificationCandidate(
                text=f"{_strip_period(claim_text)} in some cases.",
                explanation="Added scope limitation",
                confidence=0.7,
            ),
        ]
    return candidates[:MAX_CANDIDATES]


def _insert_some(claim_text: str) -> Optional[str]:
    words = claim_text.split()
    if len(words) <= 2:
        return None
    bare = [re.sub(r"\W", "", word).lower() for word in words]
    if QUANTIFIERS.intersection(bare):
        return None

    if bare[0] in DETERMINERS:
        return " ".join(["Some"] + words[1:])
    for index, word in enumerate(bare):
        if word and word not in STOP_WORDS:
            break
    else:
        return None
    if index == 0:
        return " ".join(["Some", _lower_first(words[0])] + words[1:])
    return " ".join(words[:index] + ["some"] + words[index:])


def add_caveats(claim_text: str) -> List[ModificationCandidate]:
    lowered = _lower_first(claim_text.strip())
    candidates = [
        ModificationCandidate(
            text=f"Based on the available data, {lowered}",
            explanation="Added caveat acknowledging data limitations",
            confidence=0.9,
        ),
        ModificationCandidate(
            text=f"In this analysis, {lowered}",
            explanation="Limited scope to current analysis",
            confidence=0.85,
        ),
    ]
    with_some = _insert_some(claim_text.strip())
    if with_some:
        candidates.append(
            ModificationCandidate(
                text=with_some,
                explanation='Added "some" to acknowledge not all cases apply',
                confidence=0.8,
            )
        )
    candidates.append(
        ModificationCandidate(
            text=f"Preliminary analysis suggests {lowered}",
            explanation="Framed as preliminary to acknowledge need for further validation",
            confidence=0.8,
        )
    )
    return candidates[:MAX_CANDIDATES]


def reverse_statement(statement: str) -> Optional[str]:
    for pattern, opposite in _POLARITY_PATTERNS:
        if pattern.search(statement):
            return _substitute(pattern, opposite, statement)
    if _COPULA.search(statement):
        return _COPULA.sub(lambda m: f"{m.group(1)} not", statement, count=1)
    return None


def reverse_or_remove(claim_text: str, has_contradictory_evidence: bool) -> List[ModificationCandidate]:
    candidates: List[ModificationCandidate] = []
    if has_contradictory_evidence:
        reversed_text = reverse_statement(claim_text)
        if reversed_text:
            candidates.append(
                ModificationCandidate(
                    text=reversed_text,
                    explanation="Evidence suggests the opposite conclusion",
                    confidence=0.7,
                )
            )

    core = _lower_first(_strip_period(claim_text))
    candidates.extend(
        [
            ModificationCandidate(
                text=f"It is unclear whether {core}.",
                explanation="Acknowledged uncertainty due to insufficient evidence",
                confidence=0.85,
            ),
            ModificationCandidate(
                text=f"Does {core}?",
                explanation="Reframed as research question rather than assertion",
                confidence=0.8,
            ),
            ModificationCandidate(
                text=REMOVAL_PLACEHOLDER,
                explanation="No supporting evidence found - consider removing entirely",
                confidence=0.9,
            ),
        ]
    )
    return candidates[:MAX_CANDIDATES]


_ISSUE_ROUTES: Dict[IssueType, Callable[[str], List[ModificationCandidate]]] = {
    IssueType.overclaim: weaken_claim,
    IssueType.missing_qualifier: weaken_claim,
    IssueType.unqualified_absolute: weaken_claim,
    IssueType.causation_correlation: weaken_claim,
    IssueType.weak_evidence: add_caveats,
    IssueType.weak_warrant: add_caveats,
    IssueType.unaddressed_rebuttal: add_caveats,
    IssueType.unacknowledged_rebuttal: add_caveats,
    IssueType.no_evidence: lambda text: reverse_or_remove(text, False),
    IssueType.no_grounds: lambda text: reverse_or_remove(text, False),
    IssueType.contradicts_evidence: lambda text: reverse_or_remove(text, True),
}


def generate_for_issue(claim_text: str, issue_type: IssueType | str) -> List[ModificationCandidate]:
    """Route an issue type to the matching generator; unknown types weaken."""
    try:
        issue = IssueType(issue_type)
    except ValueError:
        return weaken_claim(claim_text)
    return _ISSUE_ROUTES.get(issue, weaken_claim)(claim_text)


_CONTRADICTION_ISSUES = frozenset(
    {IssueType.contradicts_evidence, IssueType.incorrect_value, IssueType.factual_error}
)


def _suggested_path(evaluation: ToulminDiagram, kind: ModificationKind) -> Optional[str]:
    paths = evaluation.modification_paths
    if kind == ModificationKind.weaken:
        return paths.weaken
    if kind == ModificationKind.caveat:
        return paths.caveat
    return paths.reverse or paths.remove


def generate_modifications(
    claim_text: str,
    evaluation: ToulminDiagram,
    kind: ModificationKind | str,
) -> ModificationResult:
    """Build rewrite options of the requested kind.

    Rewrites proposed by the semantic evaluator come first, followed by the
    local generator's candidates.

    Raises:
        ValueError: ``kind`` is not weaken, caveat or reverse.
    """
    kind = ModificationKind(kind)
    candidates: List[ModificationCandidate] = []

    path = _suggested_path(evaluation, kind)
    if path and path.strip():
        candidates.append(
            ModificationCandidate(
                text=path.strip(),
                explanation="Rewrite proposed during evaluation",
                confidence=0.9,
            )
        )

    if kind == ModificationKind.weaken:
        candidates.extend(weaken_claim(claim_text))
    elif kind == ModificationKind.caveat:
        candidates.extend(add_caveats(claim_text))
    else:
        contradicted = any(issue.type in _CONTRADICTION_ISSUES for issue in evaluation.issues)
        candidates.extend(reverse_or_remove(claim_text, contradicted))

    result = ModificationResult()
    for candidate in _dedupe(candidates)[:MAX_CANDIDATES]:
        result.suggestions.append(candidate.text)
        result.explanations.append(candidate.explanation)
    logger.debug("Generated %d %s modifications", len(result.suggestions), kind.value)
    return result


def _dedupe(candidates: Sequence[ModificationCandidate]) -> List[ModificationCandidate]:
    seen: set[str] = set()
    unique = []
    for candidate in candidates:
        if candidate.text in seen:
            continue
        seen.add(candidate.text)
        unique.append(candidate)
    return unique

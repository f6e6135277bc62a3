"""Toulmin argument evaluation.

The local heuristic pass always runs and owns the numbers: grounds, warrant,
qualifier analysis, overall score and strength band. When a semantic
evaluator (the LLM judgment service) is supplied, its issues and gaps are
merged after the local ones and its recommended action is adopted, except
that a ``claim-is-fine`` verdict is escalated to the local action when the
local pass found a critical issue.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Awaitable, Callable, List, Optional, Sequence

from .errors import EvaluationError
from .evidence import calculate_relevance, find_evidence
from .schemas import (
    ArgumentIssue,
    ArgumentStrength,
    Backing,
    Claim,
    ClaimType,
    EvidenceGap,
    Evidence,
    GapType,
    Importance,
    IssueType,
    MarkerSpan,
    NotebookContent,
    Qualifier,
    QualifierPhrase,
    QualifierSuggestion,
    RecommendedAction,
    Rebuttal,
    SemanticJudgment,
    Severity,
    StatisticType,
    ToulminDiagram,
    Warrant,
    WarrantType,
)
from .tracing import log_trace_event
from .utils import configure_logging, extract_key_terms
from .warrant import identify_warrant

configure_logging()
logger = logging.getLogger(__name__)

SemanticEvaluator = Callable[[Claim, NotebookContent], Awaitable[SemanticJudgment]]

QUALIFIER_WORDS = (
    "some", "many", "most", "often", "typically", "generally",
    "likely", "probably", "might", "could",
)
ABSOLUTE_WORDS = ("all", "always", "never", "none", "definitely", "certainly", "proves")

ABSOLUTE_STRENGTH_FLOOR = 0.7
STRONG_EVIDENCE_FLOOR = 0.7
UNQUALIFIED_STRENGTH_FLOOR = 0.6
NEUTRAL_QUALIFIER_POINTS = 15.0
BACKING_THRESHOLD = 0.3

_QUALIFIER_PATTERNS = {word: re.compile(rf"\b{word}\b", re.IGNORECASE) for word in QUALIFIER_WORDS}
_ABSOLUTE_PATTERNS = {word: re.compile(rf"\b{word}\b", re.IGNORECASE) for word in ABSOLUTE_WORDS}


def effective_evidence_strength(grounds: Sequence[Evidence]) -> float:
    """Mean of strength weighted by how closely each item matches the claim."""
    if not grounds:
        return 0.0
    return sum(item.strength_score * item.relevance_score for item in grounds) / len(grounds)


def analyze_qualifiers(claim_text: str, grounds: Sequence[Evidence]) -> Optional[Qualifier]:
    detected: List[QualifierPhrase] = []
    for word, pattern in _QUALIFIER_PATTERNS.items():
        match = pattern.search(claim_text)
        if match:
            detected.append(
                QualifierPhrase(text=word, position=MarkerSpan(start=match.start(), end=match.end()))
            )
    has_absolute = any(pattern.search(claim_text) for pattern in _ABSOLUTE_PATTERNS.values())
    strength = effective_evidence_strength(grounds)

    missing: List[QualifierSuggestion] = []
    score = 0.5
    if has_absolute and strength < ABSOLUTE_STRENGTH_FLOOR:
        score = 0.2
        missing.append(
            QualifierSuggestion(
                reason="Claim uses absolute language but evidence is not strong enough",
                suggested_phrases=["some", "many", "often", "typically"],
                importance=Importance.critical,
            )
        )
    elif detected and not grounds:
        # Hedging alone never lifts an unsupported claim out of the lowest band.
        score = 0.3
        missing.append(
            QualifierSuggestion(
                reason="No evidence supports this claim, even as qualified",
                suggested_phrases=["may", "might", "possibly"],
                importance=Importance.important,
            )
        )
    elif detected and strength >= STRONG_EVIDENCE_FLOOR:
        score = 0.9
    elif not detected and strength < UNQUALIFIED_STRENGTH_FLOOR:
        score = 0.3
        missing.append(
            QualifierSuggestion(
                reason="Evidence is limited, claim should be more qualified",
                suggested_phrases=["suggests", "indicates", "some", "may"],
                importance=Importance.important,
            )
        )

    if not detected and not missing:
        return None
    return Qualifier(detected=detected, missing=missing, appropriateness_score=score)


def evidence_quantity_points(count: int) -> float:
    if count == 0:
        return 0.0
    if count < 2:
        return 15.0
    if count < 4:
        return 25.0
    return 40.0


def score_argument(evidence_count: int, warrant_confidence: float, appropriateness: Optional[float]) -> int:
    score = evidence_quantity_points(evidence_count)
    score += warrant_confidence * 30
    score += NEUTRAL_QUALIFIER_POINTS if appropriateness is None else appropriateness * 30
    return int(min(max(math.floor(score + 0.5), 0), 100))


def band_strength(overall_score: float) -> ArgumentStrength:
    if overall_score >= 80:
        return ArgumentStrength.strong
    if overall_score >= 50:
        return ArgumentStrength.moderate
    if overall_score >= 20:
        return ArgumentStrength.weak
    return ArgumentStrength.unsupported


def identify_issues(
    claim: Claim,
    grounds: Sequence[Evidence],
    warrant: Warrant,
    qualifier: Optional[Qualifier],
) -> List[ArgumentIssue]:
    issues: List[ArgumentIssue] = []
    if not grounds:
        issues.append(
            ArgumentIssue(
                type=IssueType.no_evidence,
                severity=Severity.critical,
                message="No evidence found to support this claim",
                explanation=(
                    "This claim is not supported by any analysis in your notebook. "
                    "Consider doing relevant analysis or removing this claim."
                ),
            )
        )
    elif len(grounds) < 2:
        issues.append(
            ArgumentIssue(
                type=IssueType.weak_evidence,
                severity=Severity.warning,
                message="Limited evidence for this claim",
                explanation=(
                    "Only one piece of supporting evidence was found. "
                    "Consider adding more analysis to strengthen this claim."
                ),
            )
        )

    if qualifier is not None and qualifier.missing:
        first = qualifier.missing[0]
        issues.append(
            ArgumentIssue(
                type=IssueType.missing_qualifier,
                severity=Severity.critical if first.importance == Importance.critical else Severity.warning,
                message="Claim needs qualifying language",
                explanation=first.reason,
            )
        )

    if claim.type == ClaimType.causal and warrant.type == WarrantType.statistical:
        has_regression = any(
            stat.type == StatisticType.regression
            for item in grounds
            for stat in item.extracted_statistics
        )
        if not has_regression:
            issues.append(
                ArgumentIssue(
                    type=IssueType.causation_correlation,
                    severity=Severity.warning,
                    message="Causal claim based on correlation",
                    explanation=(
                        "This claim suggests causation but evidence shows correlation. "
                        'Consider using language like "is associated with" instead of "causes".'
                    ),
                )
            )
    return issues


def find_gaps(claim: Claim, grounds: Sequence[Evidence]) -> List[EvidenceGap]:
    if grounds:
        return []
    terms = [
        term
        for term in extract_key_terms(claim.text)
        if term not in ABSOLUTE_WORDS and term not in QUALIFIER_WORDS
    ][:4]
    query = f"Analyze the relationship between {', '.join(terms)}" if terms else None
    return [
        EvidenceGap(
            type=GapType.missing_variable,
            description="No analysis found related to this claim",
            missing_concepts=[claim.text],
            importance=Importance.critical,
            suggested_query=query,
        )
    ]


def find_backing(claim_text: str, notebook: NotebookContent) -> List[Backing]:
    terms = extract_key_terms(claim_text)
    backing: List[Backing] = []
    for hypothesis in notebook.hypotheses:
        relevance = calculate_relevance(claim_text, hypothesis.content, terms)
        if relevance > BACKING_THRESHOLD:
            backing.append(
                Backing(
                    type="hypothesis",
                    content=hypothesis.content,
                    source_id=hypothesis.id,
                    strength=relevance,
                )
            )
    return backing


def local_action(issues: Sequence[ArgumentIssue]) -> RecommendedAction:
    if not issues:
        return RecommendedAction.claim_is_fine
    if any(issue.type == IssueType.no_evidence for issue in issues):
        return RecommendedAction.claim_might_need_change
    return RecommendedAction.claim_needs_change


def evaluate_locally(claim: Claim, notebook: NotebookContent) -> ToulminDiagram:
    """Run the deterministic heuristic pass."""
    grounds = find_evidence(claim.text, notebook)
    warrant = identify_warrant(claim.type, grounds)
    qualifier = analyze_qualifiers(claim.text, grounds)
    overall = score_argument(
        len(grounds),
        warrant.confidence,
        qualifier.appropriateness_score if qualifier else None,
    )
    issues = identify_issues(claim, grounds, warrant, qualifier)
    action = local_action(issues)
    return ToulminDiagram(
        claim_id=claim.id,
        claim=claim.text,
        grounds=grounds,
        warrant=warrant,
        backing=find_backing(claim.text, notebook) if warrant.needs_backing else [],
        qualifier=qualifier,
        strength=band_strength(overall),
        overall_score=overall,
        issues=issues,
        gaps=find_gaps(claim, grounds),
        recommended_action=action,
        action_reasoning=f"Local evaluation found {len(issues)} issue(s).",
        snapshot_hash=notebook.content_hash(),
    )


def _judgment_rebuttals(judgment: SemanticJudgment) -> List[Rebuttal]:
    raw = judgment.rebuttal
    if not isinstance(raw, dict):
        return []
    acknowledged = bool(raw.get("acknowledged", False))
    return [
        Rebuttal(type="alternative-explanation", content=str(text), addressed=acknowledged)
        for text in raw.get("possibleRebuttals") or []
        if str(text).strip()
    ]


def merge_judgment(diagram: ToulminDiagram, judgment: SemanticJudgment) -> ToulminDiagram:
    seen = {issue.type for issue in diagram.issues}
    issues = list(diagram.issues)
    for raw in judgment.issues:
        if raw.type in seen:
            continue
        seen.add(raw.type)
        issues.append(
            ArgumentIssue(
                type=raw.type,
                severity=raw.severity,
                message=raw.message,
                explanation=raw.explanation,
                suggested_fix=raw.suggested_fix,
            )
        )

    gaps = [
        EvidenceGap(
            type=GapType.fundamentally_unsupportable if raw.can_be_resolved is False else raw.type,
            description=raw.description,
            missing_concepts=list(raw.missing_concepts),
            importance=raw.importance,
            suggested_query=raw.suggested_query,
            can_be_resolved=raw.can_be_resolved,
            purpose=raw.purpose,
        )
        for raw in judgment.gaps
    ]
    gaps.extend(diagram.gaps)

    action = judgment.recommended_action
    reasoning = judgment.action_reasoning
    has_critical = any(issue.severity == Severity.critical for issue in diagram.issues)
    if action == RecommendedAction.claim_is_fine and has_critical:
        action = diagram.recommended_action
        reasoning = f"{reasoning} Escalated: local evaluation found a critical issue.".strip()

    return diagram.model_copy(
        update={
            "issues": issues,
            "gaps": gaps,
            "rebuttal": list(diagram.rebuttal) + _judgment_rebuttals(judgment),
            "recommended_action": action,
            "action_reasoning": reasoning,
            "modification_paths": judgment.modification_paths,
        }
    )


async def evaluate_claim(
    claim: Claim,
    notebook: NotebookContent,
    semantic_evaluator: Optional[SemanticEvaluator] = None,
) -> ToulminDiagram:
    """Build the Toulmin diagram for ``claim`` against ``notebook``.

    Raises:
        EvaluationError: the semantic evaluator failed or returned an invalid payload.
    """
    diagram = evaluate_locally(claim, notebook)
    if semantic_evaluator is not None:
        try:
            judgment = await semantic_evaluator(claim, notebook)
        except EvaluationError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise EvaluationError(f"Semantic evaluation failed: {exc}") from exc
        diagram = merge_judgment(diagram, judgment)

    log_trace_event(
        agent="evaluator",
        stage="evaluated",
        topic=claim.id,
        details={
            "score": diagram.overall_score,
            "strength": diagram.strength.value,
            "action": diagram.recommended_action.value,
            "issues": [issue.type.value for issue in diagram.issues],
        },
    )
    logger.info(
        "Evaluated claim %s: %s (%d)", claim.id, diagram.strength.value, diagram.overall_score
    )
    return diagram

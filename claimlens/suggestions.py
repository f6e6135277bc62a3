"""Decision tree turning a Toulmin evaluation into writing suggestions."""

from __future__ import annotations

from typing import Dict, List

from .schemas import (
    ArgumentIssue,
    Claim,
    EvidenceGap,
    GapPurpose,
    Importance,
    IssueType,
    RecommendedAction,
    Severity,
    SuggestionType,
    ToulminDiagram,
    WritingSuggestion,
)

ISSUE_TO_SUGGESTION: Dict[IssueType, SuggestionType] = {
    IssueType.no_evidence: SuggestionType.add_analysis,
    IssueType.weak_evidence: SuggestionType.add_analysis,
    IssueType.overclaim: SuggestionType.weaken_claim,
    IssueType.missing_qualifier: SuggestionType.add_qualifier,
    IssueType.unaddressed_rebuttal: SuggestionType.acknowledge_limitation,
    IssueType.weak_warrant: SuggestionType.add_caveat,
    IssueType.causation_correlation: SuggestionType.add_caveat,
    IssueType.missing_hypothesis: SuggestionType.cite_evidence,
    IssueType.contradicts_evidence: SuggestionType.remove_claim,
    IssueType.incorrect_value: SuggestionType.reverse_claim,
    IssueType.factual_error: SuggestionType.remove_claim,
    IssueType.invalid_warrant: SuggestionType.weaken_claim,
    IssueType.no_grounds: SuggestionType.add_analysis,
    IssueType.unqualified_absolute: SuggestionType.add_qualifier,
    IssueType.weak_backing: SuggestionType.cite_evidence,
    IssueType.unacknowledged_rebuttal: SuggestionType.acknowledge_limitation,
}

SEVERITY_PRIORITY: Dict[Severity, int] = {
    Severity.critical: 90,
    Severity.warning: 60,
    Severity.info: 30,
}

UNSUPPORTABLE_PRIORITY = 95
URGENT_ANALYSIS_PRIORITY = 95
ANALYSIS_PRIORITY = 70


def _issue_suggestion(issue: ArgumentIssue, claim: Claim) -> WritingSuggestion:
    return WritingSuggestion(
        claim_id=claim.id,
        type=ISSUE_TO_SUGGESTION[issue.type],
        severity=issue.severity,
        message=issue.message,
        explanation=issue.explanation,
        position=claim.position,
        priority=SEVERITY_PRIORITY[issue.severity],
        replacement_text=issue.suggested_fix,
        metadata={"issue_type": issue.type.value},
    )


def _removal_suggestion(diagram: ToulminDiagram, claim: Claim) -> WritingSuggestion:
    explanation = diagram.modification_paths.remove or diagram.modification_paths.reverse or (
        "The evidence needed to support this claim is not available in your dataset or methodology"
    )
    return WritingSuggestion(
        claim_id=claim.id,
        type=SuggestionType.remove_claim,
        severity=Severity.critical,
        message="This claim cannot be supported with available data",
        explanation=explanation,
        position=claim.position,
        priority=UNSUPPORTABLE_PRIORITY,
        metadata={"reason": "fundamentally-unsupportable"},
    )


def _analysis_suggestion(gap: EvidenceGap, claim: Claim) -> WritingSuggestion:
    urgent = gap.importance == Importance.critical or gap.purpose == GapPurpose.justify_removal
    return WritingSuggestion(
        claim_id=claim.id,
        type=SuggestionType.add_analysis,
        severity=Severity.critical if gap.importance == Importance.critical else Severity.warning,
        message=gap.description,
        explanation=f'Suggested analysis: "{gap.suggested_query}"',
        position=claim.position,
        priority=URGENT_ANALYSIS_PRIORITY if urgent else ANALYSIS_PRIORITY,
        metadata={
            "suggested_query": gap.suggested_query,
            "missing_concepts": list(gap.missing_concepts),
            "gap_type": gap.type.value,
            "purpose": gap.purpose.value,
        },
    )


def build_suggestions(diagram: ToulminDiagram, claim: Claim) -> List[WritingSuggestion]:
    """Map a recommended action to concrete suggestions for ``claim``."""
    action = diagram.recommended_action
    if action == RecommendedAction.claim_is_fine:
        return []
    if action == RecommendedAction.claim_needs_change:
        return [_issue_suggestion(issue, claim) for issue in diagram.issues]

    if any(gap.can_be_resolved is False for gap in diagram.gaps):
        return [_removal_suggestion(diagram, claim)]
    return [_analysis_suggestion(gap, claim) for gap in diagram.gaps if gap.suggested_query]

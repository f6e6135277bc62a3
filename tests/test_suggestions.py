"""Suggestion decision tree tests."""

from __future__ import annotations

from claimlens.detector import detect_claims
from claimlens.evaluator import evaluate_locally
from claimlens.schemas import (
    EvidenceGap,
    GapPurpose,
    GapType,
    IssueType,
    ModificationPaths,
    NotebookContent,
    RecommendedAction,
    Severity,
    SuggestionType,
)
from claimlens.suggestions import ISSUE_TO_SUGGESTION, build_suggestions


def test_every_issue_type_has_a_suggestion() -> None:
    assert set(ISSUE_TO_SUGGESTION) == set(IssueType)
    assert ISSUE_TO_SUGGESTION[IssueType.incorrect_value] == SuggestionType.reverse_claim
    assert ISSUE_TO_SUGGESTION[IssueType.missing_qualifier] == SuggestionType.add_qualifier


def test_needs_change_maps_each_issue(tariff_notebook: NotebookContent) -> None:
    claim = detect_claims("Tariffs definitely harm farmers.")[0]
    diagram = evaluate_locally(claim, tariff_notebook)
    assert diagram.recommended_action == RecommendedAction.claim_needs_change

    suggestions = build_suggestions(diagram, claim)
    assert len(suggestions) == len(diagram.issues)
    by_issue = {s.metadata["issue_type"]: s for s in suggestions}
    qualifier = by_issue[IssueType.missing_qualifier.value]
    assert qualifier.type == SuggestionType.add_qualifier
    assert qualifier.priority == 90
    assert by_issue[IssueType.weak_evidence.value].priority == 60
    assert by_issue[IssueType.causation_correlation.value].type == SuggestionType.add_caveat
    assert all(s.claim_id == claim.id and s.position == claim.position for s in suggestions)


def test_claim_is_fine_yields_nothing(tariff_notebook: NotebookContent) -> None:
    claim = detect_claims("Tariffs definitely harm farmers.")[0]
    diagram = evaluate_locally(claim, tariff_notebook).model_copy(
        update={"recommended_action": RecommendedAction.claim_is_fine}
    )
    assert build_suggestions(diagram, claim) == []


def test_unresolvable_gap_yields_single_removal(empty_notebook: NotebookContent) -> None:
    claim = detect_claims("Tariffs definitely harm farmers.")[0]
    local = evaluate_locally(claim, empty_notebook)
    gaps = local.gaps + [
        EvidenceGap(
            type=GapType.fundamentally_unsupportable,
            description="No farm-level data",
            can_be_resolved=False,
        )
    ]
    diagram = local.model_copy(
        update={"gaps": gaps, "modification_paths": ModificationPaths(remove="The dataset has no farm incomes.")}
    )

    suggestions = build_suggestions(diagram, claim)
    assert len(suggestions) == 1
    removal = suggestions[0]
    assert removal.type == SuggestionType.remove_claim
    assert removal.priority == 95
    assert removal.severity == Severity.critical
    assert removal.explanation == "The dataset has no farm incomes."
    assert removal.metadata == {"reason": "fundamentally-unsupportable"}


def test_resolvable_gaps_become_analysis_suggestions(empty_notebook: NotebookContent) -> None:
    claim = detect_claims("Tariffs definitely harm farmers.")[0]
    local = evaluate_locally(claim, empty_notebook)
    gaps = local.gaps + [
        EvidenceGap(description="Regional split", suggested_query="Compare income by region"),
        EvidenceGap(
            description="Check the reverse",
            suggested_query="Did income rise anywhere?",
            purpose=GapPurpose.justify_removal,
        ),
        EvidenceGap(description="Nothing to run yet", can_be_resolved=True),
    ]
    diagram = local.model_copy(update={"gaps": gaps})

    suggestions = build_suggestions(diagram, claim)
    assert [s.type for s in suggestions] == [SuggestionType.add_analysis] * 3
    assert [s.priority for s in suggestions] == [95, 70, 95]
    first = suggestions[0]
    assert first.severity == Severity.critical
    assert first.explanation == 'Suggested analysis: "Analyze the relationship between tariffs, harm, farmers"'
    assert first.metadata["gap_type"] == GapType.missing_variable.value
    assert first.metadata["missing_concepts"] == [claim.text]
    assert suggestions[1].metadata["suggested_query"] == "Compare income by region"
    assert suggestions[1].metadata["purpose"] == "strengthen"

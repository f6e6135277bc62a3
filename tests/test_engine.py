"""Claim engine tests: incremental analysis, suggestion lifecycle and error isolation."""

from __future__ import annotations

from typing import List, Sequence

import pytest

from claimlens.engine import ClaimEngine
from claimlens.errors import EvaluationError
from claimlens.llm import evaluate_claim_semantics
from claimlens.schemas import (
    AnalysisSuggestion,
    Claim,
    ClaimStatus,
    EvidenceGap,
    NotebookContent,
    RecommendedAction,
    SemanticJudgment,
    SuggestionStatus,
    SuggestionType,
)

DRAFT = "Tariffs definitely harm farmers. The sky is blue."
FINE = SemanticJudgment(recommended_action=RecommendedAction.claim_is_fine, action_reasoning="Looks supported.")


@pytest.mark.asyncio
async def test_analyze_detects_and_evaluates(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)
    claims = await engine.analyze(DRAFT)

    assert [claim.text for claim in claims] == ["Tariffs definitely harm farmers."]
    claim = claims[0]
    assert claim.status == ClaimStatus.evaluated
    assert engine.evaluations[claim.id].overall_score == 48
    active = engine.active_suggestions()
    assert len(active) == 3
    assert active[0].priority == 90
    assert active[0].type == SuggestionType.add_qualifier
    assert [s.priority for s in active] == sorted((s.priority for s in active), reverse=True)


@pytest.mark.asyncio
async def test_unchanged_claims_keep_their_suggestions(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)
    claim = (await engine.analyze(DRAFT))[0]
    original_ids = set(engine.suggestions)
    dismissed = engine.active_suggestions()[0]
    engine.dismiss_suggestion(dismissed.id)

    shifted = "Some context first. " + DRAFT
    claims = await engine.analyze(shifted)

    assert claims[0].id == claim.id
    assert set(engine.suggestions) == original_ids
    assert engine.suggestions[dismissed.id].status == SuggestionStatus.dismissed
    assert dismissed.id not in {s.id for s in engine.active_suggestions()}
    assert all(s.position.start == 20 for s in engine.suggestions.values())


@pytest.mark.asyncio
async def test_notebook_change_triggers_reevaluation(
    tariff_notebook: NotebookContent, research_notebook: NotebookContent, embed_fn
) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)
    claim = (await engine.analyze(DRAFT))[0]
    before = set(engine.suggestions)

    await engine.reindex(research_notebook)
    await engine.analyze(DRAFT)

    assert engine.evaluations[claim.id].snapshot_hash == research_notebook.content_hash()
    assert not before & set(engine.suggestions)


@pytest.mark.asyncio
async def test_removed_claims_are_dropped(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)
    await engine.analyze(DRAFT)
    assert await engine.analyze("The sky is blue.") == []
    assert engine.suggestions == {}
    assert engine.evaluations == {}


@pytest.mark.asyncio
async def test_one_failed_evaluation_does_not_block_others(tariff_notebook: NotebookContent, embed_fn) -> None:
    failing = {"on": True}

    async def evaluator(claim: Claim, notebook: NotebookContent) -> SemanticJudgment:
        if failing["on"] and claim.text.startswith("Exports"):
            raise EvaluationError("Invalid semantic judgment", raw_response="not json")
        return FINE

    engine = ClaimEngine(embed_fn=embed_fn, semantic_evaluator=evaluator, notebook=tariff_notebook)
    text = "Tariffs definitely harm farmers. Exports will rise next year."
    claims = {claim.text: claim for claim in await engine.analyze(text)}

    tariffs = claims["Tariffs definitely harm farmers."]
    exports = claims["Exports will rise next year."]
    assert tariffs.status == ClaimStatus.evaluated
    assert exports.status == ClaimStatus.detected
    assert engine.errors == {exports.id: "Invalid semantic judgment"}
    assert exports.id not in engine.evaluations
    assert {s.claim_id for s in engine.suggestions.values()} == {tariffs.id}

    failing["on"] = False
    await engine.analyze(text)
    assert engine.errors == {}
    assert engine.claims[exports.id].status == ClaimStatus.evaluated


@pytest.mark.asyncio
async def test_stale_results_are_discarded(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)

    async def evaluator(claim: Claim, notebook: NotebookContent) -> SemanticJudgment:
        engine.current_text = "The writer rewrote this paragraph entirely."
        return FINE

    engine.semantic_evaluator = evaluator
    claim = (await engine.analyze(DRAFT))[0]

    assert claim.status == ClaimStatus.detected
    assert engine.evaluations == {}
    assert engine.suggestions == {}


@pytest.mark.asyncio
async def test_accepting_marks_claim_actioned(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=tariff_notebook)
    claim = (await engine.analyze(DRAFT))[0]
    accepted = engine.accept_suggestion(engine.active_suggestions()[0].id)

    assert accepted.status == SuggestionStatus.accepted
    assert engine.claims[claim.id].status == ClaimStatus.actioned
    await engine.analyze(DRAFT)
    assert engine.claims[claim.id].status == ClaimStatus.actioned
    with pytest.raises(KeyError):
        engine.dismiss_suggestion("suggestion-missing")


@pytest.mark.asyncio
async def test_operations_accept_wire_dicts(tariff_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn)
    claim = engine.detect_claims(DRAFT)[0]

    diagram = await engine.evaluate_claim(claim.to_wire(), tariff_notebook.to_wire())
    assert diagram.overall_score == 48

    result = engine.generate_modifications(claim.text, diagram.to_wire(), "caveat")
    assert result.suggestions[0] == "Based on the available data, tariffs definitely harm farmers."
    assert len(result.suggestions) == len(result.explanations)


@pytest.mark.asyncio
async def test_relevant_analyses_use_session_notebook(research_notebook: NotebookContent, embed_fn) -> None:
    engine = ClaimEngine(embed_fn=embed_fn, notebook=research_notebook)
    analyses = await engine.get_relevant_analyses("Tariffs hurt farm incomes.", 0, "h1")
    assert len(analyses) == 4
    assert analyses[0].hypothesis_alignment == 1.0


@pytest.mark.asyncio
async def test_relevant_analyses_survive_provider_errors(research_notebook: NotebookContent) -> None:
    async def unreachable(text: str) -> List[float]:
        raise ConnectionError("provider down")

    engine = ClaimEngine(embed_fn=unreachable, notebook=research_notebook)
    assert await engine.get_relevant_analyses("Tariffs hurt farm incomes.", 0) == []


@pytest.mark.asyncio
async def test_suggest_analyses_for_gaps(empty_notebook: NotebookContent, embed_fn) -> None:
    calls: List[Sequence[EvidenceGap]] = []

    async def designer(
        claim_text: str, gaps: Sequence[EvidenceGap], notebook: NotebookContent
    ) -> List[AnalysisSuggestion]:
        calls.append(gaps)
        return [AnalysisSuggestion(title="Income by year", natural_language_query="Plot income by year")]

    engine = ClaimEngine(embed_fn=embed_fn, analysis_designer=designer, notebook=empty_notebook)
    claim = (await engine.analyze(DRAFT))[0]

    suggestions = await engine.suggest_analyses(claim.id)
    assert [s.title for s in suggestions] == ["Income by year"]
    assert len(calls) == 1 and calls[0][0].suggested_query
    assert await engine.suggest_analyses("claim-unknown") == []


def test_from_env_wires_gemini_only_with_key(monkeypatch: pytest.MonkeyPatch) -> None:
    assert ClaimEngine.from_env().semantic_evaluator is None
    monkeypatch.setenv("GEMINI_API_KEY", "gm-test")
    assert ClaimEngine.from_env().semantic_evaluator is evaluate_claim_semantics

"""Evidence retrieval and statistic extraction tests."""

from __future__ import annotations

import pytest

from claimlens.evidence import calculate_relevance, extract_statistics, find_evidence
from claimlens.schemas import EvidenceSourceType, NotebookContent, StatisticType
from claimlens.utils import extract_key_terms


def test_extract_statistics_finds_each_kind() -> None:
    text = "Income fell 23% (p < 0.05), correlation: 0.82, coefficient = -0.4, R² = 0.61"
    stats = extract_statistics(text)
    by_type = {}
    for stat in stats:
        by_type.setdefault(stat.type, []).append(stat.value)
    assert by_type[StatisticType.percentage] == [23.0]
    assert by_type[StatisticType.p_value] == [0.05]
    assert by_type[StatisticType.correlation] == [0.82]
    assert sorted(by_type[StatisticType.regression]) == [-0.4, 0.61]
    percentage = next(s for s in stats if s.type == StatisticType.percentage)
    assert percentage.unit == "%"
    assert "Income fell" in percentage.context


def test_relevance_scoring() -> None:
    claim = "Tariffs definitely harm farmers."
    terms = extract_key_terms(claim)
    assert calculate_relevance(claim, "Note: tariffs definitely harm farmers. More text.", terms) == 1.0
    score = calculate_relevance(claim, "Tariffs harm farmers: a 23% income decline.", terms)
    assert score == pytest.approx(0.75)
    assert calculate_relevance(claim, "Weather was mild.", terms) == 0.0
    assert calculate_relevance("", "anything", []) == 0.0


def test_bigram_overlap_adds_bonus() -> None:
    claim = "farm income fell"
    terms = extract_key_terms(claim)
    assert calculate_relevance(claim, "we saw farm income drop", terms) == pytest.approx(2 / 3 + 0.2)


def test_find_evidence_reads_insights_and_cells(research_notebook: NotebookContent) -> None:
    evidence = find_evidence("Tariffs reduce farm income.", research_notebook)
    assert evidence
    sources = {item.source_id: item for item in evidence}
    assert sources["insight-1"].source_type == EvidenceSourceType.insight
    assert sources["insight-1"].strength_score == pytest.approx(0.8)
    assert sources["insight-1"].confidence_score == pytest.approx(0.7)
    assert sources["cell-1"].source_type == EvidenceSourceType.cell_output
    assert sources["cell-1"].strength_score == pytest.approx(0.6)
    assert sources["cell-1"].cell_query == "Compare farm income before and after tariffs"
    assert "cell-2" not in sources
    scores = [item.relevance_score for item in evidence]
    assert scores == sorted(scores, reverse=True)


def test_find_evidence_caps_results() -> None:
    notebook = NotebookContent.model_validate(
        {"insights": [{"id": f"i{n}", "content": f"Tariffs harm farmers in region {n}."} for n in range(15)]}
    )
    evidence = find_evidence("Tariffs harm farmers.", notebook)
    assert len(evidence) == 10


def test_no_evidence_for_unrelated_claim(empty_notebook: NotebookContent) -> None:
    assert find_evidence("Tariffs definitely harm farmers.", empty_notebook) == []

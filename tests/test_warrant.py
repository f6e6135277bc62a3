"""Warrant identification tests."""

from __future__ import annotations

from typing import List

import pytest

from claimlens.evidence import extract_statistics
from claimlens.schemas import AcceptanceLevel, ClaimType, Evidence, EvidenceSourceType, WarrantType
from claimlens.warrant import identify_warrant, warrant_confidence


def _evidence(count: int, with_stats: bool = False, strength: float = 0.8) -> List[Evidence]:
    content = "Income fell 23% after tariffs." if with_stats else "Income fell after tariffs."
    return [
        Evidence(
            source_id=f"insight-{n}",
            source_type=EvidenceSourceType.insight,
            content=content,
            relevance_score=0.6,
            strength_score=strength,
            extracted_statistics=extract_statistics(content),
        )
        for n in range(count)
    ]


def test_causal_without_evidence_is_controversial() -> None:
    warrant = identify_warrant(ClaimType.causal, [])
    assert warrant.type == WarrantType.causal
    assert warrant.acceptance_level == AcceptanceLevel.controversial
    assert warrant.needs_backing
    assert warrant.confidence == pytest.approx(0.2)
    assert not warrant.is_explicit


def test_causal_with_statistics_becomes_statistical() -> None:
    warrant = identify_warrant(ClaimType.causal, _evidence(1, with_stats=True))
    assert warrant.type == WarrantType.statistical
    assert warrant.acceptance_level == AcceptanceLevel.domain_specific
    assert "correlation" in warrant.statement.lower()


def test_statistical_with_enough_evidence_is_widely_accepted() -> None:
    warrant = identify_warrant(ClaimType.descriptive, _evidence(3, with_stats=True))
    assert warrant.type == WarrantType.statistical
    assert warrant.acceptance_level == AcceptanceLevel.widely_accepted
    assert not warrant.needs_backing


def test_comparative_and_predictive_types() -> None:
    comparative = identify_warrant(ClaimType.comparative, [])
    assert comparative.type == WarrantType.comparative
    assert comparative.acceptance_level == AcceptanceLevel.widely_accepted
    predictive = identify_warrant(ClaimType.predictive, _evidence(1))
    assert predictive.type == WarrantType.logical
    assert predictive.acceptance_level == AcceptanceLevel.domain_specific


def test_causal_with_many_items_is_domain_specific() -> None:
    warrant = identify_warrant(ClaimType.causal, _evidence(4))
    assert warrant.type == WarrantType.causal
    assert warrant.acceptance_level == AcceptanceLevel.domain_specific


def test_confidence_includes_quantity_bonus_and_is_capped() -> None:
    assert warrant_confidence(_evidence(1)) == pytest.approx(0.9)
    assert warrant_confidence(_evidence(2, strength=0.5)) == pytest.approx(0.7)
    assert warrant_confidence(_evidence(5)) == pytest.approx(1.0)

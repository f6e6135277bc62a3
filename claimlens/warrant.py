"""Warrant identification: the logical link between evidence and a claim."""

from __future__ import annotations

from typing import Sequence

from .schemas import AcceptanceLevel, ClaimType, Evidence, Warrant, WarrantType

NO_EVIDENCE_CONFIDENCE = 0.2

WARRANT_STATEMENTS = {
    WarrantType.causal: "Observed patterns indicate a cause-and-effect relationship",
    WarrantType.statistical: "Statistical relationships in the data support this assertion",
    WarrantType.comparative: "Comparing values across groups reveals relative differences",
    WarrantType.logical: "The available evidence supports this assertion",
    WarrantType.definitional: "The claim follows from how its terms are defined",
    WarrantType.expert: "Domain experts accept the link between evidence and claim",
}
_PREDICTIVE_STATEMENT = "Historical trends and current data support future projections"
_CAUSAL_STATISTICAL_STATEMENT = (
    "Statistical correlation between variables suggests a causal relationship"
)


def has_statistics(evidence: Sequence[Evidence]) -> bool:
    return any(item.extracted_statistics for item in evidence)


def determine_warrant_type(claim_type: ClaimType, evidence: Sequence[Evidence]) -> WarrantType:
    stats = has_statistics(evidence)
    if claim_type == ClaimType.causal:
        return WarrantType.statistical if stats else WarrantType.causal
    if claim_type == ClaimType.comparative:
        return WarrantType.comparative
    if claim_type == ClaimType.predictive:
        return WarrantType.logical
    return WarrantType.statistical if stats else WarrantType.logical


def warrant_statement(claim_type: ClaimType, warrant_type: WarrantType) -> str:
    if claim_type == ClaimType.causal and warrant_type == WarrantType.statistical:
        return _CAUSAL_STATISTICAL_STATEMENT
    if claim_type == ClaimType.predictive:
        return _PREDICTIVE_STATEMENT
    return WARRANT_STATEMENTS[warrant_type]


def assess_acceptance_level(warrant_type: WarrantType, evidence: Sequence[Evidence]) -> AcceptanceLevel:
    if warrant_type == WarrantType.statistical and len(evidence) > 2:
        return AcceptanceLevel.widely_accepted
    if warrant_type == WarrantType.comparative:
        return AcceptanceLevel.widely_accepted
    if warrant_type == WarrantType.causal:
        return AcceptanceLevel.domain_specific if len(evidence) > 3 else AcceptanceLevel.controversial
    return AcceptanceLevel.domain_specific


def warrant_confidence(evidence: Sequence[Evidence]) -> float:
    if not evidence:
        return NO_EVIDENCE_CONFIDENCE
    average = sum(item.strength_score for item in evidence) / len(evidence)
    quantity_bonus = min(0.1 * len(evidence), 0.3)
    return min(average + quantity_bonus, 1.0)


def identify_warrant(claim_type: ClaimType, evidence: Sequence[Evidence]) -> Warrant:
    warrant_type = determine_warrant_type(claim_type, evidence)
    acceptance = assess_acceptance_level(warrant_type, evidence)
    return Warrant(
        statement=warrant_statement(claim_type, warrant_type),
        type=warrant_type,
        is_explicit=False,
        acceptance_level=acceptance,
        needs_backing=acceptance != AcceptanceLevel.widely_accepted,
        confidence=warrant_confidence(evidence),
    )

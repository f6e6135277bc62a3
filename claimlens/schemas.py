"""Data models for claims, evidence, arguments, and notebook snapshots."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .utils import generate_id, hash_text


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Accepts and emits the camelCase keys used by the editor front end."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ClaimType(str, Enum):
    causal = "causal"
    comparative = "comparative"
    predictive = "predictive"
    descriptive = "descriptive"


class ClaimStatus(str, Enum):
    detected = "detected"
    evaluating = "evaluating"
    evaluated = "evaluated"
    actioned = "actioned"


class MarkerType(str, Enum):
    absolute = "absolute"
    hedge = "hedge"


class EvidenceSourceType(str, Enum):
    cell_output = "cell_output"
    insight = "insight"
    hypothesis = "hypothesis"
    dataset_summary = "dataset_summary"


class StatisticType(str, Enum):
    percentage = "percentage"
    correlation = "correlation"
    p_value = "p-value"
    regression = "regression"


class WarrantType(str, Enum):
    causal = "causal"
    statistical = "statistical"
    comparative = "comparative"
    definitional = "definitional"
    expert = "expert"
    logical = "logical"


class AcceptanceLevel(str, Enum):
    widely_accepted = "widely-accepted"
    domain_specific = "domain-specific"
    controversial = "controversial"
    unknown = "unknown"


class ArgumentStrength(str, Enum):
    strong = "strong"
    moderate = "moderate"
    weak = "weak"
    unsupported = "unsupported"


class Severity(str, Enum):
    critical = "critical"
    warning = "warning"
    info = "info"


class IssueType(str, Enum):
    no_evidence = "no-evidence"
    weak_evidence = "weak-evidence"
    overclaim = "overclaim"
    missing_qualifier = "missing-qualifier"
    unaddressed_rebuttal = "unaddressed-rebuttal"
    weak_warrant = "weak-warrant"
    causation_correlation = "causation-correlation"
    missing_hypothesis = "missing-hypothesis"
    contradicts_evidence = "contradicts-evidence"
    incorrect_value = "incorrect-value"
    factual_error = "factual-error"
    invalid_warrant = "invalid-warrant"
    no_grounds = "no-grounds"
    unqualified_absolute = "unqualified-absolute"
    weak_backing = "weak-backing"
    unacknowledged_rebuttal = "unacknowledged-rebuttal"


class GapType(str, Enum):
    missing_variable = "missing-variable"
    missing_relationship = "missing-relationship"
    confounding_variable = "confounding-variable"
    temporal_issue = "temporal-issue"
    fundamentally_unsupportable = "fundamentally-unsupportable"


class Importance(str, Enum):
    critical = "critical"
    important = "important"
    optional = "optional"


class GapPurpose(str, Enum):
    strengthen = "strengthen"
    add_caveat = "add-caveat"
    justify_removal = "justify-removal"


class SuggestionType(str, Enum):
    weaken_claim = "weaken-claim"
    add_caveat = "add-caveat"
    add_qualifier = "add-qualifier"
    remove_claim = "remove-claim"
    reverse_claim = "reverse-claim"
    add_analysis = "add-analysis"
    cite_evidence = "cite-evidence"
    acknowledge_limitation = "acknowledge-limitation"
    relevance = "relevance"


class SuggestionStatus(str, Enum):
    active = "active"
    dismissed = "dismissed"
    accepted = "accepted"


class RecommendedAction(str, Enum):
    claim_is_fine = "claim-is-fine"
    claim_needs_change = "claim-needs-change"
    claim_might_need_change = "claim-might-need-change"


class ModificationKind(str, Enum):
    weaken = "weaken"
    caveat = "caveat"
    reverse = "reverse"


class IndexEntryType(str, Enum):
    cell = "cell"
    insight = "insight"
    hypothesis = "hypothesis"


# --- notebook snapshot -----------------------------------------------------


class CellOutput(WireModel):
    text: str = ""
    plot: Optional[str] = None


class NotebookCell(WireModel):
    id: str
    query: str = ""
    output: Optional[CellOutput] = None
    hypothesis_tags: List[str] = Field(default_factory=list)


class NotebookInsight(WireModel):
    id: str
    content: str
    cell_id: Optional[str] = None
    tag_id: Optional[str] = None
    hypothesis_tags: List[str] = Field(default_factory=list)


class Hypothesis(WireModel):
    id: str
    content: str


class DatasetSummary(WireModel):
    column_names: List[str] = Field(default_factory=list)
    rows: Optional[int] = None


class DatasetInfo(WireModel):
    filename: str
    summary: Optional[DatasetSummary] = None


class NotebookContent(WireModel):
    cells: List[NotebookCell] = Field(default_factory=list)
    insights: List[NotebookInsight] = Field(default_factory=list)
    hypotheses: List[Hypothesis] = Field(default_factory=list)
    dataset: Optional[DatasetInfo] = None

    def content_hash(self) -> str:
        payload = json.dumps(self.model_dump(mode="json"), sort_keys=True)
        return hash_text(payload)


# --- claims ----------------------------------------------------------------


class TextPosition(WireModel):
    start: int = Field(alias="from", ge=0)
    end: int = Field(alias="to", ge=0)
    paragraph_index: int = 0

    @model_validator(mode="after")
    def _check_order(self) -> "TextPosition":
        if self.start >= self.end:
            raise ValueError("position.from must be smaller than position.to")
        return self


class MarkerSpan(WireModel):
    start: int = Field(alias="from")
    end: int = Field(alias="to")


class StrongLanguageMarker(WireModel):
    word: str
    type: MarkerType
    position: MarkerSpan
    intensity: float = Field(ge=0.0, le=1.0)


class Claim(WireModel):
    id: str = Field(default_factory=lambda: generate_id("claim"))
    text: str
    position: TextPosition
    type: ClaimType = ClaimType.descriptive
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    strong_language: List[StrongLanguageMarker] = Field(default_factory=list)
    status: ClaimStatus = ClaimStatus.detected
    detected_at: datetime = Field(default_factory=_utcnow)

    @property
    def absolute_markers(self) -> List[StrongLanguageMarker]:
        return [m for m in self.strong_language if m.type == MarkerType.absolute]


# --- evidence and argument structure ---------------------------------------


class ExtractedStatistic(WireModel):
    type: StatisticType
    value: float
    unit: Optional[str] = None
    context: str


class Evidence(WireModel):
    id: str = Field(default_factory=lambda: generate_id("evidence"))
    source_id: str
    source_type: EvidenceSourceType
    content: str
    relevance_score: float = Field(ge=0.0, le=1.0)
    strength_score: float = Field(ge=0.0, le=1.0)
    recency_score: float = Field(default=1.0, ge=0.0, le=1.0)
    confidence_score: float = Field(default=0.5, ge=0.0, le=1.0)
    hypothesis_tags: List[str] = Field(default_factory=list)
    extracted_statistics: List[ExtractedStatistic] = Field(default_factory=list)
    cell_query: Optional[str] = None
    plot_url: Optional[str] = None


class Warrant(WireModel):
    statement: str
    type: WarrantType
    is_explicit: bool = False
    acceptance_level: AcceptanceLevel = AcceptanceLevel.unknown
    needs_backing: bool = True
    confidence: float = Field(ge=0.0, le=1.0)


class QualifierPhrase(WireModel):
    text: str
    position: MarkerSpan
    strength: str = "moderate"


class QualifierSuggestion(WireModel):
    reason: str
    suggested_phrases: List[str] = Field(default_factory=list)
    importance: Importance


class Qualifier(WireModel):
    detected: List[QualifierPhrase] = Field(default_factory=list)
    missing: List[QualifierSuggestion] = Field(default_factory=list)
    appropriateness_score: float = Field(ge=0.0, le=1.0)


class Backing(WireModel):
    id: str = Field(default_factory=lambda: generate_id("backing"))
    type: str
    content: str
    source_id: Optional[str] = None
    strength: float = Field(default=0.5, ge=0.0, le=1.0)


class Rebuttal(WireModel):
    id: str = Field(default_factory=lambda: generate_id("rebuttal"))
    type: str
    content: str
    source_id: Optional[str] = None
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    addressed: bool = False


class ArgumentIssue(WireModel):
    id: str = Field(default_factory=lambda: generate_id("issue"))
    type: IssueType
    severity: Severity
    message: str
    explanation: str = ""
    suggested_fix: Optional[str] = None


class EvidenceGap(WireModel):
    id: str = Field(default_factory=lambda: generate_id("gap"))
    type: GapType = GapType.missing_variable
    description: str
    missing_concepts: List[str] = Field(default_factory=list)
    importance: Importance = Importance.important
    suggested_query: Optional[str] = None
    can_be_resolved: Optional[bool] = None
    purpose: GapPurpose = GapPurpose.strengthen

    @model_validator(mode="after")
    def _default_resolvable(self) -> "EvidenceGap":
        if self.can_be_resolved is None:
            self.can_be_resolved = self.suggested_query is not None
        return self


class ModificationPaths(WireModel):
    weaken: Optional[str] = None
    caveat: Optional[str] = None
    reverse: Optional[str] = None
    remove: Optional[str] = None


class ToulminDiagram(WireModel):
    claim_id: str
    claim: str
    grounds: List[Evidence] = Field(default_factory=list)
    warrant: Warrant
    backing: List[Backing] = Field(default_factory=list)
    qualifier: Optional[Qualifier] = None
    rebuttal: List[Rebuttal] = Field(default_factory=list)
    strength: ArgumentStrength
    overall_score: int = Field(ge=0, le=100)
    issues: List[ArgumentIssue] = Field(default_factory=list)
    gaps: List[EvidenceGap] = Field(default_factory=list)
    recommended_action: RecommendedAction = RecommendedAction.claim_is_fine
    action_reasoning: str = ""
    modification_paths: ModificationPaths = Field(default_factory=ModificationPaths)
    evaluated_at: datetime = Field(default_factory=_utcnow)
    snapshot_hash: Optional[str] = None


class WritingSuggestion(WireModel):
    id: str = Field(default_factory=lambda: generate_id("suggestion"))
    claim_id: str
    type: SuggestionType
    severity: Severity
    message: str
    explanation: str = ""
    position: TextPosition
    priority: int
    status: SuggestionStatus = SuggestionStatus.active
    replacement_text: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class ModificationCandidate(WireModel):
    text: str
    explanation: str
    confidence: float = Field(ge=0.0, le=1.0)


class ModificationResult(WireModel):
    suggestions: List[str] = Field(default_factory=list)
    explanations: List[str] = Field(default_factory=list)


class AnalysisSuggestion(WireModel):
    id: str = Field(default_factory=lambda: generate_id("analysis"))
    title: str
    natural_language_query: str
    explanation: str = ""
    expected_output: str = ""
    priority: str = "medium"
    estimated_complexity: str = "moderate"


# --- semantic judgment returned by the LLM ---------------------------------


class JudgmentIssue(WireModel):
    type: IssueType
    severity: Severity
    message: str
    explanation: str = ""
    suggested_fix: Optional[str] = None


class JudgmentGap(WireModel):
    description: str
    type: GapType = GapType.missing_relationship
    suggested_query: Optional[str] = None
    can_be_resolved: Optional[bool] = None
    purpose: GapPurpose = GapPurpose.strengthen
    missing_concepts: List[str] = Field(default_factory=list)
    importance: Importance = Importance.important


class SemanticJudgment(WireModel):
    recommended_action: RecommendedAction
    action_reasoning: str = ""
    issues: List[JudgmentIssue] = Field(default_factory=list)
    gaps: List[JudgmentGap] = Field(default_factory=list)
    grounds: Optional[Any] = None
    warrant: Optional[Any] = None
    qualifier: Optional[Any] = None
    rebuttal: Optional[Any] = None
    modification_paths: ModificationPaths = Field(default_factory=ModificationPaths)

    @model_validator(mode="before")
    @classmethod
    def _lift_toulmin_analysis(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("toulminAnalysis"), dict):
            data = dict(data)
            analysis = data.pop("toulminAnalysis")
            for key in ("grounds", "warrant", "qualifier", "rebuttal"):
                data.setdefault(key, analysis.get(key))
        return data


# --- semantic index and remembrance ----------------------------------------


class IndexMetadata(WireModel):
    model_config = ConfigDict(frozen=True)

    cell_id: Optional[str] = None
    hypothesis_tags: tuple[str, ...] = ()
    timestamp: datetime = Field(default_factory=_utcnow)


class SearchIndexEntry(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: IndexEntryType
    content: str
    embedding: tuple[float, ...]
    metadata: IndexMetadata


class SearchResult(WireModel):
    entry: SearchIndexEntry
    similarity: float


class WritingContext(WireModel):
    current_paragraph: str = ""
    current_section: str = "Introduction"
    recent_words: List[str] = Field(default_factory=list)
    dominant_concepts: List[str] = Field(default_factory=list)
    active_hypothesis: Optional[str] = None
    updated_at: datetime = Field(default_factory=_utcnow)


class RelevantAnalysis(WireModel):
    cell_id: str
    insight_id: Optional[str] = None
    type: str
    content: str
    snippet: str
    relevance_score: float
    hypothesis_alignment: float
    recency_score: float
    overall_score: float
    hypothesis_tags: List[str] = Field(default_factory=list)
    highlighted_terms: List[str] = Field(default_factory=list)

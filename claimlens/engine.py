"""Session-scoped claim engine.

One ``ClaimEngine`` owns the claims, suggestions, semantic index and writing
context of a single editing session. External services are injected: an
async embedding function and an optional async semantic evaluator.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .detector import detect_claims
from .embeddings import generate_embedding
from .errors import EvaluationError
from .evaluator import SemanticEvaluator, evaluate_claim
from .indexer import EmbedFn
from .llm import evaluate_claim_semantics, suggest_analyses
from .modifier import generate_modifications
from .remembrance import RemembranceAgent
from .schemas import (
    AnalysisSuggestion,
    Claim,
    ClaimStatus,
    EvidenceGap,
    ModificationKind,
    ModificationResult,
    NotebookContent,
    RelevantAnalysis,
    SuggestionStatus,
    ToulminDiagram,
    WritingSuggestion,
)
from .suggestions import build_suggestions
from .tracing import log_trace_event
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

AnalysisDesigner = Callable[[str, Sequence[EvidenceGap], NotebookContent], Awaitable[List[AnalysisSuggestion]]]

ClaimLike = Union[Claim, Dict[str, Any]]
NotebookLike = Union[NotebookContent, Dict[str, Any]]
EvaluationLike = Union[ToulminDiagram, Dict[str, Any]]


def _as_claim(claim: ClaimLike) -> Claim:
    return claim if isinstance(claim, Claim) else Claim.model_validate(claim)


def _as_notebook(notebook: NotebookLike) -> NotebookContent:
    return notebook if isinstance(notebook, NotebookContent) else NotebookContent.model_validate(notebook)


def _as_diagram(evaluation: EvaluationLike) -> ToulminDiagram:
    return evaluation if isinstance(evaluation, ToulminDiagram) else ToulminDiagram.model_validate(evaluation)


class ClaimEngine:
    def __init__(
        self,
        embed_fn: Optional[EmbedFn] = None,
        semantic_evaluator: Optional[SemanticEvaluator] = None,
        analysis_designer: Optional[AnalysisDesigner] = None,
        notebook: Optional[NotebookContent] = None,
    ) -> None:
        self.semantic_evaluator = semantic_evaluator
        self.analysis_designer = analysis_designer
        self.notebook = notebook or NotebookContent()
        self.remembrance = RemembranceAgent(embed_fn or generate_embedding)
        self.claims: Dict[str, Claim] = {}
        self.evaluations: Dict[str, ToulminDiagram] = {}
        self.suggestions: Dict[str, WritingSuggestion] = {}
        self.errors: Dict[str, str] = {}
        self.current_text = ""
        self._evaluated: Dict[str, Tuple[str, str]] = {}

    @classmethod
    def from_env(cls, notebook: Optional[NotebookContent] = None) -> "ClaimEngine":
        """Wire the Gemini evaluator when ``GEMINI_API_KEY`` is set, else heuristics only."""
        if os.getenv("GEMINI_API_KEY"):
            return cls(
                semantic_evaluator=evaluate_claim_semantics,
                analysis_designer=suggest_analyses,
                notebook=notebook,
            )
        logger.warning("GEMINI_API_KEY not set; evaluating claims with local heuristics only.")
        return cls(notebook=notebook)

    # --- exposed operations --------------------------------------------

    def detect_claims(self, text: str) -> List[Claim]:
        claims = detect_claims(text)
        log_trace_event(
            agent="detector",
            stage="detected",
            details={"claims": len(claims), "characters": len(text) if isinstance(text, str) else 0},
        )
        return claims

    async def evaluate_claim(
        self,
        claim: ClaimLike,
        notebook: Optional[NotebookLike] = None,
    ) -> ToulminDiagram:
        """Evaluate one claim.

        Raises:
            EvaluationError: the semantic evaluator failed.
        """
        snapshot = _as_notebook(notebook) if notebook is not None else self.notebook
        return await evaluate_claim(_as_claim(claim), snapshot, self.semantic_evaluator)

    def generate_modifications(
        self,
        claim_text: str,
        evaluation: EvaluationLike,
        kind: Union[ModificationKind, str],
    ) -> ModificationResult:
        return generate_modifications(claim_text, _as_diagram(evaluation), kind)

    async def get_relevant_analyses(
        self,
        text: str,
        cursor: int,
        active_hypothesis: Optional[str] = None,
    ) -> List[RelevantAnalysis]:
        return await self.remembrance.get_relevant_analyses(
            text, cursor, self.notebook, active_hypothesis
        )

    async def reindex(self, notebook: NotebookLike) -> None:
        self.notebook = _as_notebook(notebook)
        await self.remembrance.reindex(self.notebook)

    # --- editing session support ---------------------------------------

    def _is_stale(self, claim: Claim) -> bool:
        start, end = claim.position.start, claim.position.end
        return self.current_text[start:end] != claim.text

    def _carry_over(self, detected: Claim, previous: Dict[str, Claim]) -> Claim:
        prior = previous.pop(detected.text, None)
        if prior is None:
            return detected
        return detected.model_copy(update={"id": prior.id, "status": prior.status, "detected_at": prior.detected_at})

    def _replace_suggestions(self, claim_id: str, suggestions: List[WritingSuggestion]) -> None:
        for suggestion_id in [s.id for s in self.suggestions.values() if s.claim_id == claim_id]:
            del self.suggestions[suggestion_id]
        for suggestion in suggestions:
            self.suggestions[suggestion.id] = suggestion

    def _move_suggestions(self, claim: Claim) -> None:
        for suggestion_id, suggestion in list(self.suggestions.items()):
            if suggestion.claim_id == claim.id:
                self.suggestions[suggestion_id] = suggestion.model_copy(update={"position": claim.position})

    def _drop_claim(self, claim_id: str) -> None:
        self.claims.pop(claim_id, None)
        self.evaluations.pop(claim_id, None)
        self.errors.pop(claim_id, None)
        self._evaluated.pop(claim_id, None)
        self._replace_suggestions(claim_id, [])

    async def analyze(self, text: str) -> List[Claim]:
        """Detect claims in ``text`` and evaluate those not yet judged against this snapshot.

        Claims are evaluated one at a time. A failed evaluation reverts its
        claim to ``detected`` and records the error without stopping the batch.
        Results whose claim text moved or changed while awaiting are discarded.
        """
        self.current_text = text
        snapshot_hash = self.notebook.content_hash()
        previous = {claim.text: claim for claim in self.claims.values()}
        detected = [self._carry_over(claim, previous) for claim in self.detect_claims(text)]

        kept_ids = {claim.id for claim in detected}
        for claim_id in [cid for cid in self.claims if cid not in kept_ids]:
            self._drop_claim(claim_id)

        for claim in detected:
            self.claims[claim.id] = claim
            if self._evaluated.get(claim.id) == (claim.text, snapshot_hash):
                self._move_suggestions(claim)
                continue

            self.claims[claim.id] = claim.model_copy(update={"status": ClaimStatus.evaluating})
            try:
                diagram = await evaluate_claim(claim, self.notebook, self.semantic_evaluator)
            except EvaluationError as exc:
                logger.warning("Evaluation failed for claim %s: %s", claim.id, exc)
                self.errors[claim.id] = str(exc)
                if claim.id in self.claims:
                    self.claims[claim.id] = claim.model_copy(update={"status": ClaimStatus.detected})
                continue

            if claim.id not in self.claims or self._is_stale(claim):
                logger.warning("Discarding stale evaluation for claim %s", claim.id)
                if claim.id in self.claims:
                    self.claims[claim.id] = claim
                continue

            status = ClaimStatus.actioned if claim.status == ClaimStatus.actioned else ClaimStatus.evaluated
            committed = claim.model_copy(update={"status": status})
            self.claims[claim.id] = committed
            self.evaluations[claim.id] = diagram
            self.errors.pop(claim.id, None)
            self._evaluated[claim.id] = (claim.text, snapshot_hash)
            self._replace_suggestions(committed.id, build_suggestions(diagram, committed))

        return list(self.claims.values())

    def active_suggestions(self) -> List[WritingSuggestion]:
        active = [s for s in self.suggestions.values() if s.status == SuggestionStatus.active]
        return sorted(active, key=lambda s: s.priority, reverse=True)

    def _set_suggestion_status(self, suggestion_id: str, status: SuggestionStatus) -> WritingSuggestion:
        suggestion = self.suggestions.get(suggestion_id)
        if suggestion is None:
            raise KeyError(f"Unknown suggestion: {suggestion_id}")
        updated = suggestion.model_copy(update={"status": status})
        self.suggestions[suggestion_id] = updated
        return updated

    def dismiss_suggestion(self, suggestion_id: str) -> WritingSuggestion:
        return self._set_suggestion_status(suggestion_id, SuggestionStatus.dismissed)

    def accept_suggestion(self, suggestion_id: str) -> WritingSuggestion:
        updated = self._set_suggestion_status(suggestion_id, SuggestionStatus.accepted)
        claim = self.claims.get(updated.claim_id)
        if claim is not None:
            self.claims[claim.id] = claim.model_copy(update={"status": ClaimStatus.actioned})
        return updated

    async def suggest_analyses(self, claim_id: str) -> List[AnalysisSuggestion]:
        """Ask the analysis designer for follow-ups that would close a claim's evidence gaps."""
        diagram = self.evaluations.get(claim_id)
        if diagram is None or not diagram.gaps or self.analysis_designer is None:
            return []
        return await self.analysis_designer(diagram.claim, diagram.gaps, self.notebook)

"""Surfaces notebook analyses relevant to what the user is writing."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from .context import ContextMonitor
from .errors import DimensionMismatchError, EmbeddingError
from .indexer import EmbedFn, SemanticIndexer, guard_embed_fn
from .schemas import IndexEntryType, NotebookContent, RelevantAnalysis, SearchResult, WritingContext
from .utils import configure_logging, truncate

configure_logging()
logger = logging.getLogger(__name__)

TOP_K = 5
SIMILARITY_WEIGHT = 0.5
ALIGNMENT_WEIGHT = 0.3
RECENCY_WEIGHT = 0.2
RECENCY_HALF_LIFE_HOURS = 24.0
SNIPPET_LENGTH = 150


def hypothesis_alignment(tags: List[str], active_hypothesis: Optional[str]) -> float:
    if not active_hypothesis:
        return 0.5
    return 1.0 if active_hypothesis in tags else 0.3


def recency_score(timestamp: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    age_hours = max((now - timestamp).total_seconds() / 3600.0, 0.0)
    return math.exp(-age_hours / RECENCY_HALF_LIFE_HOURS)


def _display_type(entry_type: IndexEntryType) -> str:
    return "analysis" if entry_type == IndexEntryType.cell else entry_type.value


class RemembranceAgent:
    """Watches the writing context and ranks indexed notebook content against it."""

    def __init__(
        self,
        embed_fn: EmbedFn,
        indexer: Optional[SemanticIndexer] = None,
        context_monitor: Optional[ContextMonitor] = None,
    ) -> None:
        self.embed_fn = guard_embed_fn(embed_fn)
        self.indexer = indexer or SemanticIndexer()
        self.context_monitor = context_monitor or ContextMonitor()
        self._indexed_hash: Optional[str] = None
        self._last_analyses: Optional[List[RelevantAnalysis]] = None
        self._last_hypothesis: Optional[str] = None

    async def reindex(self, notebook: NotebookContent) -> None:
        """Rebuild the index for ``notebook``.

        The snapshot only counts as indexed when every item embedded, so a
        provider outage is retried on the next lookup.
        """
        self._last_analyses = None
        await self.indexer.index_notebook(notebook, self.embed_fn)
        self._indexed_hash = notebook.content_hash() if self.indexer.last_skipped == 0 else None

    def _to_analysis(
        self,
        result: SearchResult,
        context: WritingContext,
        now: datetime,
    ) -> RelevantAnalysis:
        entry = result.entry
        tags = list(entry.metadata.hypothesis_tags)
        alignment = hypothesis_alignment(tags, context.active_hypothesis)
        recency = recency_score(entry.metadata.timestamp, now)
        lowered = entry.content.lower()
        return RelevantAnalysis(
            cell_id=entry.metadata.cell_id or entry.id,
            insight_id=entry.id if entry.type == IndexEntryType.insight else None,
            type=_display_type(entry.type),
            content=entry.content,
            snippet=truncate(entry.content, SNIPPET_LENGTH),
            relevance_score=result.similarity,
            hypothesis_alignment=alignment,
            recency_score=recency,
            overall_score=(
                SIMILARITY_WEIGHT * result.similarity
                + ALIGNMENT_WEIGHT * alignment
                + RECENCY_WEIGHT * recency
            ),
            hypothesis_tags=tags,
            highlighted_terms=[term for term in context.dominant_concepts if term in lowered],
        )

    async def get_relevant_analyses(
        self,
        text: str,
        cursor: int,
        notebook: NotebookContent,
        active_hypothesis: Optional[str] = None,
    ) -> List[RelevantAnalysis]:
        """Rank notebook content against the paragraph around ``cursor``.

        Embedding failures degrade to an empty list. While the dominant
        concepts and the notebook stay the same, the previous ranking is
        returned without embedding the paragraph again.
        """
        context = self.context_monitor.build_context(text, cursor, active_hypothesis)
        if not context.current_paragraph:
            self.context_monitor.commit(context)
            self._last_analyses = None
            return []
        if not self.indexer.is_built or self._indexed_hash != notebook.content_hash():
            await self.reindex(notebook)
        elif (
            self._last_analyses is not None
            and self._last_hypothesis == active_hypothesis
            and not self.context_monitor.has_context_changed(context)
        ):
            return list(self._last_analyses)
        self.context_monitor.commit(context)

        try:
            query_embedding = await self.embed_fn(context.current_paragraph)
            results = self.indexer.search(query_embedding, top_k=TOP_K)
        except DimensionMismatchError as exc:
            logger.warning("Query embedding does not match the index: %s", exc)
            return []
        except EmbeddingError as exc:
            logger.warning("Could not embed writing context: %s", exc)
            return []

        now = datetime.now(timezone.utc)
        analyses = [self._to_analysis(result, context, now) for result in results]
        analyses.sort(key=lambda analysis: analysis.overall_score, reverse=True)
        self._last_analyses = analyses
        self._last_hypothesis = active_hypothesis
        return list(analyses)

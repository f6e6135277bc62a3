"""In-memory semantic index over notebook content.

Rebuilds never mutate the live index: a fresh tuple of entries is built and
swapped in with a single assignment, so readers always see either the old or
the new generation in full.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatchError, EmbeddingError, IndexStateError
from .schemas import (
    IndexEntryType,
    IndexMetadata,
    NotebookContent,
    SearchIndexEntry,
    SearchResult,
)
from .tracing import log_trace_event
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

EmbedFn = Callable[[str], Awaitable[List[float]]]

DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0.0 when either has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatchError(f"Vectors must have same length ({va.size} != {vb.size})")
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


@dataclass(frozen=True)
class SearchFilters:
    hypothesis_ids: Tuple[str, ...] = ()
    content_types: Tuple[IndexEntryType, ...] = ()

    def accepts(self, entry: SearchIndexEntry) -> bool:
        if self.hypothesis_ids and not set(entry.metadata.hypothesis_tags) & set(self.hypothesis_ids):
            return False
        if self.content_types and entry.type not in self.content_types:
            return False
        return True


@dataclass(frozen=True)
class _Snapshot:
    entries: Tuple[SearchIndexEntry, ...]
    generation: int
    indexed_at: Optional[datetime]
    skipped: int = 0


@dataclass(frozen=True)
class _Document:
    id: str
    type: IndexEntryType
    content: str
    cell_id: Optional[str]
    hypothesis_tags: Tuple[str, ...]


def guard_embed_fn(embed_fn: EmbedFn) -> EmbedFn:
    """Wrap ``embed_fn`` so any provider failure surfaces as ``EmbeddingError``."""

    async def _embed(text: str) -> List[float]:
        try:
            return await embed_fn(text)
        except EmbeddingError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc

    return _embed


def _collect_documents(content: NotebookContent) -> List[_Document]:
    documents = [
        _Document(h.id, IndexEntryType.hypothesis, h.content, None, (h.id,))
        for h in content.hypotheses
    ]
    documents.extend(
        _Document(i.id, IndexEntryType.insight, i.content, i.cell_id, tuple(i.hypothesis_tags))
        for i in content.insights
    )
    for cell in content.cells:
        if cell.output is None or not cell.output.text:
            continue
        documents.append(
            _Document(
                cell.id,
                IndexEntryType.cell,
                f"{cell.query}\n{cell.output.text}",
                cell.id,
                tuple(cell.hypothesis_tags),
            )
        )
    return documents


class SemanticIndexer:
    def __init__(self) -> None:
        self._snapshot: Optional[_Snapshot] = None
        self._generation = 0

    @property
    def is_built(self) -> bool:
        return self._snapshot is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_skipped(self) -> int:
        snapshot = self._snapshot
        return snapshot.skipped if snapshot else 0

    @property
    def entries(self) -> Tuple[SearchIndexEntry, ...]:
        return self._current().entries

    def _current(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise IndexStateError("Semantic index has not been built.")
        return snapshot

    async def index_notebook(self, content: NotebookContent, embed_fn: EmbedFn) -> int:
        """Rebuild the index from ``content`` and return the number of entries.

        Items whose embedding fails for any reason are skipped and counted in
        ``last_skipped``. An unchanged item keeps the timestamp it was first
        indexed with.
        """
        embed = guard_embed_fn(embed_fn)
        previous: Dict[Tuple[str, str], SearchIndexEntry] = {}
        if self._snapshot is not None:
            previous = {(e.id, e.content): e for e in self._snapshot.entries}

        entries: List[SearchIndexEntry] = []
        skipped = 0
        now = datetime.now(timezone.utc)
        for document in _collect_documents(content):
            try:
                embedding = await embed(document.content)
            except EmbeddingError as exc:
                skipped += 1
                logger.warning("Skipping %s %s: %s", document.type.value, document.id, exc)
                continue
            prior = previous.get((document.id, document.content))
            entries.append(
                SearchIndexEntry(
                    id=document.id,
                    type=document.type,
                    content=document.content,
                    embedding=tuple(float(v) for v in embedding),
                    metadata=IndexMetadata(
                        cell_id=document.cell_id,
                        hypothesis_tags=document.hypothesis_tags,
                        timestamp=prior.metadata.timestamp if prior else now,
                    ),
                )
            )

        self._generation += 1
        self._snapshot = _Snapshot(
            entries=tuple(entries),
            generation=self._generation,
            indexed_at=now,
            skipped=skipped,
        )
        log_trace_event(
            agent="indexer",
            stage="reindexed",
            details={"entries": len(entries), "skipped": skipped, "generation": self.generation},
        )
        logger.info("Indexed %d notebook items (skipped %d)", len(entries), skipped)
        return len(entries)

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
        filters: Optional[SearchFilters] = None,
    ) -> List[SearchResult]:
        """Rank indexed entries by cosine similarity to ``query_embedding``.

        Raises:
            DimensionMismatchError: the query and an entry differ in length.
        """
        if len(query_embedding) == 0 or top_k <= 0:
            return []
        try:
            entries: Iterable[SearchIndexEntry] = self._current().entries
        except IndexStateError as exc:
            logger.debug("%s Returning no results.", exc)
            return []
        if filters is not None:
            entries = [entry for entry in entries if filters.accepts(entry)]

        results = [
            SearchResult(entry=entry, similarity=cosine_similarity(query_embedding, entry.embedding))
            for entry in entries
        ]
        results.sort(key=lambda result: result.similarity, reverse=True)
        return results[:top_k]

    def status(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        entries = snapshot.entries if snapshot else ()
        by_type = {entry_type.value: 0 for entry_type in IndexEntryType}
        for entry in entries:
            by_type[entry.type.value] += 1
        return {
            "items_indexed": len(entries),
            "by_type": by_type,
            "last_indexed_at": snapshot.indexed_at.isoformat() if snapshot and snapshot.indexed_at else None,
            "generation": self._generation,
            "skipped": snapshot.skipped if snapshot else 0,
        }

    def clear(self) -> None:
        self._snapshot = None

"""Remembrance agent tests."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from claimlens.remembrance import RemembranceAgent, hypothesis_alignment, recency_score
from claimlens.schemas import NotebookContent

PARAGRAPH = "Tariffs hurt farm incomes."


def test_alignment_and_recency() -> None:
    assert hypothesis_alignment(["h1"], None) == 0.5
    assert hypothesis_alignment(["h1"], "h1") == 1.0
    assert hypothesis_alignment([], "h1") == 0.3
    now = datetime.now(timezone.utc)
    assert recency_score(now, now) == pytest.approx(1.0)
    assert recency_score(now - timedelta(hours=24), now) == pytest.approx(math.exp(-1))


@pytest.mark.asyncio
async def test_embedding_failure_returns_empty_list(research_notebook: NotebookContent, broken_embed_fn) -> None:
    agent = RemembranceAgent(broken_embed_fn)
    assert await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook) == []


@pytest.mark.asyncio
async def test_results_are_ranked_by_overall_score(research_notebook: NotebookContent, embed_fn) -> None:
    agent = RemembranceAgent(embed_fn)
    analyses = await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook, active_hypothesis="h1")

    assert len(analyses) == 4
    scores = [a.overall_score for a in analyses]
    assert scores == sorted(scores, reverse=True)
    for analysis in analyses:
        expected = (
            0.5 * analysis.relevance_score
            + 0.3 * analysis.hypothesis_alignment
            + 0.2 * analysis.recency_score
        )
        assert analysis.overall_score == pytest.approx(expected)

    weather = analyses[-1]
    assert weather.cell_id == "cell-2"
    assert weather.type == "analysis"
    assert weather.hypothesis_alignment == 0.3

    insight = next(a for a in analyses if a.insight_id == "insight-1")
    assert insight.type == "insight"
    assert insight.cell_id == "cell-1"
    assert insight.hypothesis_alignment == 1.0
    assert {"tariffs", "farm"} <= set(insight.highlighted_terms)
    assert "hurt" not in insight.highlighted_terms


@pytest.mark.asyncio
async def test_snippet_is_truncated(embed_fn) -> None:
    content = "Farm income after tariffs " + "x" * 300
    notebook = NotebookContent.model_validate({"insights": [{"id": "long", "content": content}]})
    agent = RemembranceAgent(embed_fn)
    analyses = await agent.get_relevant_analyses(PARAGRAPH, 0, notebook)
    assert analyses[0].snippet == content[:150] + "..."
    assert analyses[0].content == content
    assert analyses[0].hypothesis_alignment == 0.5


@pytest.mark.asyncio
async def test_index_is_built_lazily_and_refreshed(research_notebook: NotebookContent, embed_fn) -> None:
    agent = RemembranceAgent(embed_fn)
    assert await agent.get_relevant_analyses("", 0, research_notebook) == []
    assert not agent.indexer.is_built

    await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook)
    assert agent.indexer.generation == 1
    await agent.get_relevant_analyses(PARAGRAPH, 3, research_notebook)
    assert agent.indexer.generation == 1

    changed = research_notebook.model_copy(deep=True)
    changed.insights[0].content = "Export income rose."
    await agent.get_relevant_analyses(PARAGRAPH, 0, changed)
    assert agent.indexer.generation == 2


@pytest.mark.asyncio
async def test_any_provider_exception_degrades_to_empty(research_notebook: NotebookContent) -> None:
    async def unreachable(text: str) -> List[float]:
        raise ConnectionError("provider down")

    agent = RemembranceAgent(unreachable)
    assert await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook) == []
    assert agent.indexer.status()["items_indexed"] == 0


@pytest.mark.asyncio
async def test_index_recovers_after_provider_outage(research_notebook: NotebookContent, embed_fn) -> None:
    outage = {"down": True}

    async def recovering(text: str) -> List[float]:
        if outage["down"]:
            raise RuntimeError("rate limited")
        return await embed_fn(text)

    agent = RemembranceAgent(recovering)
    assert await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook) == []

    outage["down"] = False
    analyses = await agent.get_relevant_analyses(PARAGRAPH, 0, research_notebook)
    assert len(analyses) == 4
    assert agent.indexer.status()["items_indexed"] == 4
    assert agent.indexer.generation == 2


@pytest.mark.asyncio
async def test_unchanged_context_reuses_ranking(research_notebook: NotebookContent, embed_fn) -> None:
    calls: List[str] = []

    async def counting(text: str) -> List[float]:
        calls.append(text)
        return await embed_fn(text)

    text = PARAGRAPH + "\n\nExports fell sharply in spring."
    agent = RemembranceAgent(counting)
    first = await agent.get_relevant_analyses(text, 3, research_notebook)
    embedded = len(calls)
    assert embedded == 5

    again = await agent.get_relevant_analyses(text, 10, research_notebook)
    assert len(calls) == embedded
    assert [a.cell_id for a in again] == [a.cell_id for a in first]

    await agent.get_relevant_analyses(text, 3, research_notebook, active_hypothesis="h1")
    assert len(calls) == embedded + 1
    await agent.get_relevant_analyses(text, len(text), research_notebook, active_hypothesis="h1")
    assert calls[-1] == "Exports fell sharply in spring."

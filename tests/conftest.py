"""Shared fixtures: isolated cache/trace paths, sample notebooks, fake services."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from claimlens.errors import EmbeddingError  # noqa: E402
from claimlens.schemas import NotebookContent  # noqa: E402

KEYWORDS = ("tariff", "farm", "export", "weather", "income")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("TRACE_PATH", str(tmp_path / "traces.jsonl"))
    monkeypatch.setenv("EMBED_PROVIDER", "hash")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


async def keyword_embedding(text: str) -> List[float]:
    """Bag-of-keywords vector with a constant component so it is never all zeros."""
    lowered = text.lower()
    return [1.0 if word in lowered else 0.0 for word in KEYWORDS] + [0.1]


async def failing_embedding(text: str) -> List[float]:
    raise EmbeddingError("provider unavailable")


@pytest.fixture()
def empty_notebook() -> NotebookContent:
    return NotebookContent()


@pytest.fixture()
def tariff_notebook() -> NotebookContent:
    return NotebookContent.model_validate(
        {
            "insights": [
                {
                    "id": "insight-1",
                    "content": "Tariffs harm farmers: we observed a 23% income decline.",
                    "cellId": "cell-1",
                    "hypothesisTags": ["h1"],
                }
            ],
        }
    )


@pytest.fixture()
def research_notebook() -> NotebookContent:
    return NotebookContent.model_validate(
        {
            "hypotheses": [{"id": "h1", "content": "Tariffs reduce farm income"}],
            "insights": [
                {
                    "id": "insight-1",
                    "content": "Farm income dropped 23% after tariffs were introduced.",
                    "cellId": "cell-1",
                    "hypothesisTags": ["h1"],
                }
            ],
            "cells": [
                {
                    "id": "cell-1",
                    "query": "Compare farm income before and after tariffs",
                    "output": {"text": "Mean farm income fell from 52k to 40k (p < 0.01)."},
                    "hypothesisTags": ["h1"],
                },
                {
                    "id": "cell-2",
                    "query": "Plot rainfall by month",
                    "output": {"text": "Weather was mild across the season."},
                },
                {"id": "cell-3", "query": "Load the dataset"},
            ],
            "dataset": {
                "filename": "farm_income.csv",
                "summary": {"columnNames": ["year", "income", "tariff_rate"], "rows": 1200},
            },
        }
    )


@pytest.fixture()
def embed_fn():
    return keyword_embedding


@pytest.fixture()
def broken_embed_fn():
    return failing_embedding

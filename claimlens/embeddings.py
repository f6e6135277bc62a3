"""Embedding providers for the semantic index."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from typing import List

import google.generativeai as genai
from openai import OpenAI

from .cache import embedding_cache_get, embedding_cache_set
from .errors import EmbeddingError
from .utils import configure_logging, hash_text

configure_logging()
logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai", "hash")
HASH_EMBEDDING_DIM = 32


def get_embed_provider() -> str:
    provider = os.getenv("EMBED_PROVIDER")
    if provider:
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown EMBED_PROVIDER: {provider}")
        return provider
    if os.getenv("GEMINI_API_KEY"):
        return "gemini"
    if os.getenv("OPENAI_API_KEY"):
        return "openai"
    return "hash"


def _model_for(provider: str) -> str:
    if provider == "gemini":
        return os.getenv("GEMINI_EMBED_MODEL", "models/text-embedding-004")
    if provider == "openai":
        return os.getenv("EMBED_MODEL", "text-embedding-3-small")
    return f"sha256-{HASH_EMBEDDING_DIM}"


def hash_embedding(text: str, dim: int = HASH_EMBEDDING_DIM) -> List[float]:
    """Deterministic pseudo-embedding used when no provider key is configured."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    if len(digest) < dim:
        digest = (digest * (dim // len(digest) + 1))[:dim]
    return [b / 255.0 for b in digest[:dim]]


def _embed_gemini(text: str, model: str) -> List[float]:
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY is missing.")
    genai.configure(api_key=api_key)
    result = genai.embed_content(model=model, content=text, task_type="retrieval_document")
    return [float(value) for value in result["embedding"]]


def _embed_openai(text: str, model: str) -> List[float]:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is missing.")
    client = OpenAI(api_key=api_key)
    response = client.embeddings.create(model=model, input=[text])
    return [float(value) for value in response.data[0].embedding]


def embed_text(text: str) -> List[float]:
    """Embed ``text`` with the configured provider, consulting the embedding cache.

    Raises:
        EmbeddingError: empty input or a provider failure.
    """
    if not text or not text.strip():
        raise EmbeddingError("Cannot embed empty text.")
    provider = get_embed_provider()
    model = _model_for(provider)
    cache_key = hash_text(f"{provider}:{model}:{text}")
    cached = embedding_cache_get(cache_key)
    if cached:
        return cached

    try:
        if provider == "gemini":
            embedding = _embed_gemini(text, model)
        elif provider == "openai":
            embedding = _embed_openai(text, model)
        else:
            embedding = hash_embedding(text)
    except Exception as exc:  # noqa: BLE001
        raise EmbeddingError(f"{provider} embedding failed: {exc}") from exc

    if not embedding:
        raise EmbeddingError(f"{provider} returned an empty embedding.")
    embedding_cache_set(cache_key, embedding)
    logger.debug("Generated %d-dim embedding via %s", len(embedding), model)
    return embedding


async def generate_embedding(text: str) -> List[float]:
    return await asyncio.to_thread(embed_text, text)

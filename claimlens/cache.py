"""JSON-file caches for embeddings and LLM responses."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .utils import configure_logging, ensure_dirs

configure_logging()
logger = logging.getLogger(__name__)

CACHE_FILES = {
    "embeddings": "embeddings.json",
    "llm": "llm_responses.json",
}

_CACHES: Dict[str, Optional[Dict[str, Any]]] = {name: None for name in CACHE_FILES}
_LOADED_FROM: Dict[str, Optional[Path]] = {name: None for name in CACHE_FILES}


def get_cache_dir() -> Path:
    return Path(os.getenv("CACHE_DIR", ".data/cache")).expanduser()


def _cache_file(cache_type: str) -> Path:
    if cache_type not in CACHE_FILES:
        raise ValueError(f"Unknown cache type: {cache_type}")
    return get_cache_dir() / CACHE_FILES[cache_type]


def _load_cache(cache_type: str) -> Dict[str, Any]:
    cache_file = _cache_file(cache_type)
    if _CACHES[cache_type] is None or _LOADED_FROM[cache_type] != cache_file:
        if cache_file.exists():
            try:
                _CACHES[cache_type] = json.loads(cache_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("Discarding unreadable %s cache at %s", cache_type, cache_file)
                _CACHES[cache_type] = {}
        else:
            _CACHES[cache_type] = {}
        _LOADED_FROM[cache_type] = cache_file
    return _CACHES[cache_type]


def _save_cache(cache_type: str) -> None:
    cache_file = _cache_file(cache_type)
    ensure_dirs(cache_file.parent)
    data = _CACHES.get(cache_type) or {}
    cache_file.write_text(json.dumps(data, indent=2), encoding="utf-8")


def cache_get(key: str, cache_type: str) -> Optional[Any]:
    data = _load_cache(cache_type)
    value = data.get(key)
    if value is not None:
        logger.debug("Cache hit for %s entry: %s", cache_type, key[:16])
    return value


def cache_set(key: str, value: Any, cache_type: str) -> None:
    data = _load_cache(cache_type)
    data[key] = value
    _save_cache(cache_type)
    logger.debug("Cached %s entry: %s", cache_type, key[:16])


def embedding_cache_get(key: str) -> Optional[list[float]]:
    return cache_get(key, cache_type="embeddings")


def embedding_cache_set(key: str, value: list[float]) -> None:
    cache_set(key, value, cache_type="embeddings")


def llm_cache_get(key: str) -> Optional[str]:
    return cache_get(key, cache_type="llm")


def llm_cache_set(key: str, value: str) -> None:
    cache_set(key, value, cache_type="llm")


def get_cache_stats() -> Dict[str, int]:
    return {name: len(_load_cache(name)) for name in CACHE_FILES}


def clear_cache(cache_type: Optional[str] = None) -> None:
    if cache_type:
        _load_cache(cache_type)
        _CACHES[cache_type] = {}
        _save_cache(cache_type)
        logger.info("Cleared %s cache", cache_type)
    else:
        for name in CACHE_FILES:
            _load_cache(name)
            _CACHES[name] = {}
            _save_cache(name)
        logger.info("Cleared all caches")

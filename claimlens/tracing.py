"""Trace logging for detection, evaluation and indexing milestones."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import ensure_dirs


def get_trace_path() -> Path:
    return Path(os.getenv("TRACE_PATH", "artifacts/traces.jsonl")).expanduser()


def log_trace_event(
    agent: str,
    stage: str,
    topic: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Append one engine milestone (``agent`` is detector, evaluator or indexer)."""
    event: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "agent": agent,
        "stage": stage,
        "topic": topic,
    }
    if details:
        event["details"] = details
    trace_path = get_trace_path()
    ensure_dirs(trace_path.parent)
    with trace_path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(event, default=str) + "\n")


def read_trace_events(agent: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load recorded events, oldest first, optionally only those of ``agent``."""
    trace_path = get_trace_path()
    if not trace_path.exists():
        return []
    events = []
    for line in trace_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        event = json.loads(line)
        if agent is None or event.get("agent") == agent:
            events.append(event)
    return events

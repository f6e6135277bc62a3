"""Editing sessions: debounced triggers feeding a server-sent-event queue."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from .engine import ClaimEngine
from .schemas import NotebookContent, WritingSuggestion
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)


def _env_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), 0.0)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


class Debouncer:
    """Runs the most recent trigger once ``delay`` seconds pass without another.

    A newer trigger cancels one still waiting out its delay; a run that has
    already started is left to finish.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.generation = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._started = False

    def trigger(self, action: Callable[[], Awaitable[None]]) -> asyncio.Task[None]:
        self.generation += 1
        if self._task is not None and not self._task.done() and not self._started:
            self._task.cancel()
        self._started = False
        self._task = asyncio.create_task(self._run(action, self.generation))
        return self._task

    async def _run(self, action: Callable[[], Awaitable[None]], generation: int) -> None:
        await asyncio.sleep(self.delay)
        if generation != self.generation:
            return
        self._started = True
        await action()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass


@dataclass
class EditingSession:
    id: str
    engine: ClaimEngine
    text: str = ""
    cursor: int = 0
    active_hypothesis: Optional[str] = None
    status: str = "idle"
    error: Optional[str] = None
    claim_debouncer: Debouncer = field(
        default_factory=lambda: Debouncer(_env_seconds("CLAIM_DEBOUNCE_SECONDS", 1.0))
    )
    relevance_debouncer: Debouncer = field(
        default_factory=lambda: Debouncer(_env_seconds("RELEVANCE_DEBOUNCE_SECONDS", 1.5))
    )
    event_queue: asyncio.Queue[str] = field(default_factory=asyncio.Queue)
    analysis_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


_SESSIONS: Dict[str, EditingSession] = {}


def _queue_payload(session: EditingSession, event: str, data: str) -> None:
    payload = f"event: {event}\ndata: {data}\n\n"
    session.event_queue.put_nowait(payload)


def _queue_json(session: EditingSession, event: str, data: object) -> None:
    _queue_payload(session, event, json.dumps(data))


def create_session(
    notebook: Optional[NotebookContent] = None,
    engine: Optional[ClaimEngine] = None,
) -> EditingSession:
    session_id = str(uuid.uuid4())
    if engine is None:
        engine = ClaimEngine.from_env(notebook=notebook)
    elif notebook is not None:
        engine.notebook = notebook
    session = EditingSession(id=session_id, engine=engine)
    _SESSIONS[session_id] = session
    return session


def get_session(session_id: str) -> Optional[EditingSession]:
    return _SESSIONS.get(session_id)


def close_session(session_id: str) -> None:
    session = _SESSIONS.pop(session_id, None)
    if session is not None:
        session.claim_debouncer.cancel()
        session.relevance_debouncer.cancel()


def on_text_change(session: EditingSession, text: str, cursor: Optional[int] = None) -> None:
    session.text = text
    session.engine.current_text = text
    session.claim_debouncer.trigger(lambda: run_analysis(session))
    if cursor is not None:
        on_cursor_move(session, cursor)


def on_cursor_move(
    session: EditingSession,
    cursor: int,
    active_hypothesis: Optional[str] = None,
) -> None:
    session.cursor = cursor
    if active_hypothesis is not None:
        session.active_hypothesis = active_hypothesis
    session.relevance_debouncer.trigger(lambda: run_relevance(session))


async def on_notebook_change(session: EditingSession, notebook: NotebookContent) -> None:
    """Rebuild the index for the new snapshot and re-evaluate the current text."""
    await session.engine.reindex(notebook)
    await run_analysis(session)


def _suggestions_payload(session: EditingSession) -> list:
    return [suggestion.to_wire() for suggestion in session.engine.active_suggestions()]


async def run_analysis(session: EditingSession) -> None:
    async with session.analysis_lock:
        session.status = "analyzing"
        try:
            claims = await session.engine.analyze(session.text)
        except Exception as exc:  # noqa: BLE001
            session.status = "failed"
            session.error = str(exc)
            logger.exception("Claim analysis failed for session %s", session.id)
            _queue_json(session, "error", {"error": str(exc)})
            return
        session.status = "idle"
        _queue_json(session, "claims", [claim.to_wire() for claim in claims])
        _queue_json(session, "suggestions", _suggestions_payload(session))
        for claim_id, message in session.engine.errors.items():
            _queue_json(session, "error", {"claim_id": claim_id, "error": message})


async def run_relevance(session: EditingSession) -> None:
    try:
        analyses = await session.engine.get_relevant_analyses(
            session.text, session.cursor, session.active_hypothesis
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Relevance lookup failed for session %s", session.id)
        _queue_json(session, "error", {"error": str(exc)})
        return
    _queue_json(session, "relevant", [analysis.to_wire() for analysis in analyses])


def dismiss_suggestion(session: EditingSession, suggestion_id: str) -> WritingSuggestion:
    suggestion = session.engine.dismiss_suggestion(suggestion_id)
    _queue_json(session, "suggestions", _suggestions_payload(session))
    return suggestion


def accept_suggestion(session: EditingSession, suggestion_id: str) -> WritingSuggestion:
    suggestion = session.engine.accept_suggestion(suggestion_id)
    _queue_json(session, "suggestions", _suggestions_payload(session))
    return suggestion


async def event_stream(session: EditingSession) -> AsyncIterator[str]:
    yield "retry: 2000\n\n"
    while True:
        payload = await session.event_queue.get()
        yield payload

"""Gemini helpers for semantic claim judgment and analysis design."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import Any, List, Sequence

import google.generativeai as genai
from pydantic import ValidationError

from .cache import llm_cache_get, llm_cache_set
from .errors import EvaluationError
from .schemas import AnalysisSuggestion, Claim, EvidenceGap, NotebookContent, SemanticJudgment
from .utils import configure_logging, hash_text

configure_logging()
logger = logging.getLogger(__name__)

_JSON_PATTERN = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)

EVALUATION_SYSTEM_PROMPT = """You are a data journalism editor evaluating claims against a
research notebook. Help the writer fix claims rather than just rejecting them.
Judge the claim with the Toulmin model (grounds, warrant, backing, qualifier,
rebuttal) using only the notebook evidence and dataset description provided.

Decision rules:
- A specific number that contradicts the notebook is an "incorrect-value" issue
  whose suggestedFix is the corrected sentence. Never recommend removal for it.
- A number or assertion that cannot be verified with this dataset is a
  "factual-error" issue with a gap whose canBeResolved is false.
- A claim that could be verified by running an analysis gets a gap with a
  concrete suggestedQuery, canBeResolved true and purpose "strengthen".
- A claim that is descriptive, suitably qualified or supported is
  "claim-is-fine" with zero issues.
- Return at most one issue, specific to this claim.

Return ONLY a JSON object with this structure:
{
  "recommendedAction": "claim-is-fine" | "claim-needs-change" | "claim-might-need-change",
  "actionReasoning": "one or two sentences",
  "toulminAnalysis": {
    "grounds": {"evidence": ["..."], "sufficient": true | false},
    "warrant": {"statement": "...", "isValid": true | false},
    "backing": {"exists": true | false, "description": "..." | null},
    "qualifier": {"present": ["..."], "missing": ["..."], "appropriate": true | false},
    "rebuttal": {"possibleRebuttals": ["..."], "acknowledged": true | false}
  },
  "issues": [
    {"severity": "critical" | "warning", "type": "invalid-warrant" | "no-grounds" |
     "contradicts-evidence" | "unqualified-absolute" | "missing-qualifier" |
     "unacknowledged-rebuttal" | "weak-backing" | "incorrect-value" | "factual-error",
     "message": "direct instruction, 10 words max",
     "explanation": "why this matters",
     "suggestedFix": "complete rewritten claim" | null}
  ],
  "gaps": [
    {"description": "what analysis is missing",
     "suggestedQuery": "exact query to run" | null,
     "canBeResolved": true | false,
     "purpose": "strengthen" | "add-caveat" | "justify-removal",
     "missingConcepts": ["..."]}
  ],
  "modificationPaths": {
    "weaken": "version with softer language",
    "caveat": "version with scope limitations",
    "remove": "what to write instead if the claim is cut"
  }
}"""

ANALYSIS_SYSTEM_PROMPT = """You are an expert data analyst helping writers design analyses
that support their claims. Suggest 2-3 specific analyses that fill the identified
gaps, mention exact variables or groups, prefer analyses that directly test the
claim, and do not repeat analyses that already exist.

Return ONLY a JSON object:
{
  "suggestions": [
    {"title": "short title",
     "naturalLanguageQuery": "query ready for code generation",
     "explanation": "why this analysis is needed",
     "expectedOutput": "what the results look like",
     "priority": "high" | "medium" | "low",
     "estimatedComplexity": "simple" | "moderate" | "complex"}
  ]
}"""


def get_chat_model() -> str:
    raw = os.getenv("CHAT_MODEL", "models/gemini-2.0-flash-exp")
    if raw.startswith(("models/", "tunedModels/")):
        return raw
    return f"models/{raw}"


def _configure_gemini() -> str:
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY is missing.")
    genai.configure(api_key=api_key)
    return api_key


def _extract_json_block(text: str) -> str:
    text = text.strip()
    try:
        json.loads(text)
        return text
    except json.JSONDecodeError:
        pass
    match = _JSON_PATTERN.search(text)
    if match:
        return match.group(1)
    raise ValueError("No JSON block found in LLM response.")


def call_llm(system_prompt: str, user_prompt: str) -> str:
    """Call the Gemini model and return raw text."""
    _configure_gemini()
    model = genai.GenerativeModel(get_chat_model())
    prompt = f"System:\n{system_prompt.strip()}\n\nUser:\n{user_prompt.strip()}"
    response = model.generate_content(
        prompt,
        generation_config=genai.types.GenerationConfig(
            temperature=0.2,
            top_p=0.9,
        ),
    )
    if not response.candidates:
        raise RuntimeError("No candidates returned from Gemini.")
    parts = response.candidates[0].content.parts
    text = "".join(getattr(part, "text", "") for part in parts)
    if not text.strip():
        raise RuntimeError("Empty Gemini response.")
    return text


def parse_json_reply(raw: str) -> Any:
    """Decode the JSON payload of a model reply, fenced or not."""
    return json.loads(_extract_json_block(raw))


def _dataset_lines(notebook: NotebookContent) -> List[str]:
    dataset = notebook.dataset
    filename = dataset.filename if dataset else "unknown dataset"
    columns = ", ".join(dataset.summary.column_names) if dataset and dataset.summary else ""
    lines = [f"- Filename: {filename}", f"- Available columns: {columns or 'Unknown'}"]
    if dataset and dataset.summary and dataset.summary.rows is not None:
        lines.append(f"- Rows: {dataset.summary.rows}")
    return lines


def build_evaluation_prompt(claim: Claim, notebook: NotebookContent) -> str:
    hypotheses = "\n".join(f"- {h.content}" for h in notebook.hypotheses) or "None"
    cells = "\n".join(
        f"Query: {cell.query}\nOutput: {cell.output.text if cell.output and cell.output.text else 'No output'}"
        for cell in notebook.cells
    ) or "None"
    insights = "\n".join(f"- {insight.content}" for insight in notebook.insights) or "None"
    sections = [
        f'CLAIM TO EVALUATE:\n"{claim.text}"',
        "DATASET INFO:\n" + "\n".join(_dataset_lines(notebook)),
        f"HYPOTHESES:\n{hypotheses}",
        f"ANALYSIS RESULTS:\n{cells}",
        f"SAVED INSIGHTS:\n{insights}",
    ]
    return "\n\n".join(sections)


def parse_judgment(raw: str) -> SemanticJudgment:
    """Parse a raw model response into a judgment.

    Raises:
        EvaluationError: no JSON object or a payload that fails validation.
    """
    try:
        payload = parse_json_reply(raw)
        if not isinstance(payload, dict):
            raise ValueError("Expected a JSON object.")
        return SemanticJudgment.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.error("Unusable semantic judgment (%s). Raw response: %s", exc, raw)
        raise EvaluationError(f"Invalid semantic judgment: {exc}", raw_response=raw) from exc


async def evaluate_claim_semantics(claim: Claim, notebook: NotebookContent) -> SemanticJudgment:
    """Ask Gemini for a Toulmin judgment of ``claim``; responses are cached per snapshot."""
    cache_key = hash_text(f"{claim.text}\n{notebook.content_hash()}")
    cached = llm_cache_get(cache_key)
    if cached is not None:
        return parse_judgment(cached)

    prompt = build_evaluation_prompt(claim, notebook)
    try:
        raw = await asyncio.to_thread(call_llm, EVALUATION_SYSTEM_PROMPT, prompt)
    except Exception as exc:  # noqa: BLE001
        raise EvaluationError(f"Gemini call failed: {exc}") from exc

    judgment = parse_judgment(raw)
    llm_cache_set(cache_key, raw)
    logger.info("Semantic judgment for %s: %s", claim.id, judgment.recommended_action.value)
    return judgment


def build_analysis_prompt(
    claim_text: str,
    gaps: Sequence[EvidenceGap],
    notebook: NotebookContent,
) -> str:
    gap_lines = "\n".join(
        f"- {gap.description} (missing: {', '.join(gap.missing_concepts) or 'unspecified'})"
        for gap in gaps
    ) or "None"
    existing = "\n".join(f"- {cell.query}" for cell in notebook.cells if cell.query) or "None yet"
    return "\n\n".join(
        [
            f'USER\'S CLAIM:\n"{claim_text}"',
            f"IDENTIFIED GAPS:\n{gap_lines}",
            "AVAILABLE DATA:\n" + "\n".join(_dataset_lines(notebook)),
            f"EXISTING ANALYSES:\n{existing}",
        ]
    )


async def suggest_analyses(
    claim_text: str,
    gaps: Sequence[EvidenceGap],
    notebook: NotebookContent,
) -> List[AnalysisSuggestion]:
    """Design follow-up analyses for the gaps; an unparseable reply yields ``[]``."""
    prompt = build_analysis_prompt(claim_text, gaps, notebook)
    try:
        raw = await asyncio.to_thread(call_llm, ANALYSIS_SYSTEM_PROMPT, prompt)
    except Exception as exc:  # noqa: BLE001
        raise EvaluationError(f"Gemini call failed: {exc}") from exc

    try:
        payload = parse_json_reply(raw)
        items = payload.get("suggestions", []) if isinstance(payload, dict) else []
        return [AnalysisSuggestion.model_validate(item) for item in items]
    except (ValueError, ValidationError, AttributeError) as exc:
        logger.warning("Failed to parse analysis suggestions: %s", exc)
        return []

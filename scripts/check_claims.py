"""CLI to detect and evaluate claims in a draft against a notebook snapshot."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from claimlens.engine import ClaimEngine
from claimlens.graph import render_toulmin_dot
from claimlens.schemas import NotebookContent
from claimlens.utils import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check the claims in a draft against notebook evidence")
    parser.add_argument("--text", required=True, help="Path to the draft text file")
    parser.add_argument(
        "--notebook",
        default=None,
        help="Optional path to a notebook snapshot JSON (cells, insights, hypotheses, dataset)",
    )
    parser.add_argument(
        "--dot-dir",
        default=None,
        help="Optional directory to write one Graphviz DOT diagram per claim",
    )
    parser.add_argument("--json", action="store_true", help="Print the full evaluation as JSON")
    return parser.parse_args()


def load_notebook(path: str | None) -> NotebookContent:
    if not path:
        return NotebookContent()
    notebook_path = Path(path).expanduser()
    if not notebook_path.exists():
        raise FileNotFoundError(f"{notebook_path} not found")
    return NotebookContent.model_validate(json.loads(notebook_path.read_text(encoding="utf-8")))


async def run(args: argparse.Namespace) -> int:
    text_path = Path(args.text).expanduser()
    if not text_path.exists():
        raise FileNotFoundError(f"{text_path} not found")
    text = text_path.read_text(encoding="utf-8")

    engine = ClaimEngine.from_env(notebook=load_notebook(args.notebook))
    claims = await engine.analyze(text)
    logging.getLogger(__name__).info("Checked %d claims", len(claims))

    if args.dot_dir:
        dot_dir = Path(args.dot_dir).expanduser()
        dot_dir.mkdir(parents=True, exist_ok=True)
        for claim_id, diagram in engine.evaluations.items():
            (dot_dir / f"{claim_id}.dot").write_text(render_toulmin_dot(diagram), encoding="utf-8")

    if args.json:
        payload = {
            "claims": [claim.to_wire() for claim in claims],
            "evaluations": [diagram.to_wire() for diagram in engine.evaluations.values()],
            "suggestions": [suggestion.to_wire() for suggestion in engine.active_suggestions()],
            "errors": engine.errors,
        }
        print(json.dumps(payload, indent=2))
        return 0

    for claim in claims:
        diagram = engine.evaluations.get(claim.id)
        if diagram is None:
            print(f"- {claim.text}\n    not evaluated: {engine.errors.get(claim.id, 'unknown error')}")
            continue
        print(f"- {claim.text}\n    {diagram.strength.value} ({diagram.overall_score}) -> {diagram.recommended_action.value}")
        for suggestion in engine.active_suggestions():
            if suggestion.claim_id == claim.id:
                print(f"    [{suggestion.type.value}] {suggestion.message}")
    return 0


def main() -> None:
    configure_logging()
    args = parse_args()
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

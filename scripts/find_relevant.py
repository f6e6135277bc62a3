"""CLI to surface notebook analyses relevant to a cursor position in a draft."""

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
from claimlens.schemas import NotebookContent
from claimlens.utils import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find notebook content relevant to the text being written")
    parser.add_argument("--text", required=True, help="Path to the draft text file")
    parser.add_argument("--notebook", required=True, help="Path to a notebook snapshot JSON")
    parser.add_argument(
        "--cursor",
        type=int,
        default=None,
        help="Cursor offset in the draft (defaults to the end of the text)",
    )
    parser.add_argument("--hypothesis", default=None, help="Optional active hypothesis id")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    text = Path(args.text).expanduser().read_text(encoding="utf-8")
    notebook_path = Path(args.notebook).expanduser()
    if not notebook_path.exists():
        raise FileNotFoundError(f"{notebook_path} not found")
    notebook = NotebookContent.model_validate(json.loads(notebook_path.read_text(encoding="utf-8")))

    engine = ClaimEngine(notebook=notebook)
    await engine.reindex(notebook)
    cursor = len(text) if args.cursor is None else args.cursor
    analyses = await engine.get_relevant_analyses(text, cursor, args.hypothesis)
    logging.getLogger(__name__).info("Found %d relevant items", len(analyses))
    for analysis in analyses:
        print(f"{analysis.overall_score:.2f} [{analysis.type}] {analysis.snippet}")


def main() -> None:
    configure_logging()
    args = parse_args()
    asyncio.run(run(args))


if __name__ == "__main__":
    main()

"""Toulmin argument diagram rendering."""

from __future__ import annotations

from typing import List

from .schemas import ArgumentStrength, ToulminDiagram
from .utils import truncate

LABEL_LIMIT = 60

STRENGTH_COLORS = {
    ArgumentStrength.strong: "#34A853",
    ArgumentStrength.moderate: "#4C8BF5",
    ArgumentStrength.weak: "#F9AB00",
    ArgumentStrength.unsupported: "#EA4335",
}


def _dot_header() -> str:
    return "digraph toulmin {\n  rankdir=LR;\n  node [fontsize=12];\n"


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def _node(node_id: str, label: str, color: str) -> str:
    label = _escape(truncate(label, LABEL_LIMIT))
    return f'{node_id} [label="{label}", shape=box, style="filled", color="{color}", fontcolor="white"]'


def render_toulmin_dot(diagram: ToulminDiagram) -> str:
    """Return a Graphviz DOT string laying out grounds, warrant and claim."""
    dot = _dot_header()
    nodes: List[str] = []
    edges: List[str] = []

    claim_label = f"{diagram.claim} ({diagram.strength.value}, {diagram.overall_score})"
    nodes.append(_node("Claim", claim_label, STRENGTH_COLORS[diagram.strength]))
    nodes.append(_node("Warrant", diagram.warrant.statement, "#5f6368"))

    if diagram.grounds:
        for index, evidence in enumerate(diagram.grounds):
            node_id = f"Ground{index}"
            nodes.append(_node(node_id, evidence.content, "#A142F4"))
            edges.append(f"{node_id} -> Claim")
            edges.append(f"{node_id} -> Warrant [style=dashed]")
    else:
        nodes.append(_node("NoGrounds", "No supporting evidence", "#EA4335"))
        edges.append("NoGrounds -> Claim [style=dotted]")
    edges.append("Warrant -> Claim")

    for index, backing in enumerate(diagram.backing):
        node_id = f"Backing{index}"
        nodes.append(_node(node_id, backing.content, "#5f6368"))
        edges.append(f"{node_id} -> Warrant")

    if diagram.qualifier and diagram.qualifier.detected:
        words = ", ".join(phrase.text for phrase in diagram.qualifier.detected)
        nodes.append(_node("Qualifier", words, "#F9AB00"))
        edges.append("Qualifier -> Claim")

    for index, rebuttal in enumerate(diagram.rebuttal):
        node_id = f"Rebuttal{index}"
        nodes.append(_node(node_id, rebuttal.content, "#EA4335"))
        edges.append(f"{node_id} -> Claim [arrowhead=tee]")

    dot += "  " + ";\n  ".join(nodes) + ";\n"
    dot += "  " + ";\n  ".join(edges) + ";\n"
    dot += "}\n"
    return dot

"""Human-readable rendering of the report tree."""
from __future__ import annotations

import textwrap
from typing import List

from common.models import ReportNode

BORDER = "-" * 36


def render_node(node: ReportNode) -> str:
    return "\n".join(
        [
            BORDER,
            node.path,
            BORDER,
            f"{node.marked_lines} marked lines",
            f"{node.total_lines} total lines",
            f"marked ratio: {node.ratio:.2f}%",
        ]
    )


def render_report(report: ReportNode) -> str:
    """Bordered block per node, pre-order, one tab of indent per depth level."""

    blocks: List[str] = []
    for depth, node in report.iter_nodes():
        blocks.append(textwrap.indent(render_node(node), "\t" * depth))
    return "\n\n".join(blocks) + "\n"

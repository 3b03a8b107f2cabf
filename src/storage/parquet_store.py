"""Flattened Parquet export of a scan report (one row per node)."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from common.errors import WriteError
from common.models import ReportNode

REPORT_SCHEMA = pa.schema(
    [
        ("path", pa.string()),
        ("parent", pa.string()),
        ("depth", pa.int32()),
        ("is_dir", pa.bool_()),
        ("marked_lines", pa.int64()),
        ("total_lines", pa.int64()),
        ("ratio", pa.float64()),
    ]
)


def flatten_report(report: ReportNode) -> List[Dict[str, object]]:
    """Return pre-order rows; ``parent`` is ``None`` for the root."""

    rows: List[Dict[str, object]] = []

    def visit(node: ReportNode, parent: Optional[str], depth: int) -> None:
        rows.append(
            {
                "path": node.path,
                "parent": parent,
                "depth": depth,
                "is_dir": node.is_dir,
                "marked_lines": node.marked_lines,
                "total_lines": node.total_lines,
                "ratio": node.ratio,
            }
        )
        for child in node.children:
            visit(child, node.path, depth + 1)

    visit(report, None, 0)
    return rows


def report_to_table(report: ReportNode) -> pa.Table:
    rows = flatten_report(report)
    columns = {name: [row[name] for row in rows] for name in REPORT_SCHEMA.names}
    return pa.table(columns, schema=REPORT_SCHEMA)


def save_report_parquet(report: ReportNode, path: Path) -> None:
    table = report_to_table(report)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        pq.write_table(table, path)
    except OSError as exc:
        raise WriteError(f"Could not write report to {path}: {exc}", context={"path": str(path)}) from exc

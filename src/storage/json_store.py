"""JSON persistence helpers for scan reports."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from common.errors import NotFoundError, ReadError, WriteError
from common.models import ReportNode
from common.versioning import REPORT_FORMAT_VERSION


def save_report(report: ReportNode, path: Path) -> None:
    """Serialize the report tree to JSON; the root carries artifact metadata."""

    data = serialize_node(report)
    data["formatVersion"] = REPORT_FORMAT_VERSION
    data["generatedAt"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Could not write report to {path}: {exc}", context={"path": str(path)}) from exc


def load_report(path: Path) -> ReportNode:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise NotFoundError(f"Report file '{path}' not found", context={"path": str(path)}) from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ReadError(f"Could not read report {path}: {exc}", context={"path": str(path)}) from exc
    try:
        return deserialize_node(data)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ReadError(f"Malformed report {path}: {exc!r}", context={"path": str(path)}) from exc


def serialize_node(node: ReportNode) -> Dict[str, object]:
    return {
        "path": node.path,
        "markedLines": node.marked_lines,
        "totalLines": node.total_lines,
        "isDir": node.is_dir,
        "children": [serialize_node(child) for child in node.children],
    }


def deserialize_node(data: Dict[str, object]) -> ReportNode:
    children = [deserialize_node(item) for item in data.get("children", [])]
    return ReportNode(
        path=str(data["path"]),
        marked_lines=int(data.get("markedLines", 0)),
        total_lines=int(data.get("totalLines", 0)),
        children=children,
        is_dir=bool(data.get("isDir", bool(children))),
    )

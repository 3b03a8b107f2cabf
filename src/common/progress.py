"""Structured progress logging utilities."""
from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from .errors import WriteError
from .models import ScanProgress


class ProgressLogger:
    """Writes scan progress events to JSONL for later inspection."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        if path:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise WriteError(f"Cannot create progress log directory for {path}: {exc}") from exc

    def emit(self, progress: ScanProgress) -> None:
        if not self.path:
            return
        payload = asdict(progress)
        payload["file_path"] = str(progress.file_path)
        payload["timestamp"] = time.time()
        try:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload))
                handle.write("\n")
        except OSError as exc:
            raise WriteError(
                f"Cannot append to progress log {self.path}: {exc}", context={"path": str(self.path)}
            ) from exc

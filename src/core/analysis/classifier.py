"""Marked-block line classification with a single brace-depth counter."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from common.errors import InvalidInputError, NotFoundError, PatternError, ReadError
from common.models import ScanResult
from common.text import split_lines

if TYPE_CHECKING:  # pragma: no cover
    from core.instrumentation import Instrumenter

DEFAULT_BLOCK_PATTERN = r"\bunsafe\s+\{"
DEFAULT_SOURCE_SUFFIX = ".rs"

OPEN_BRACE = "{"
CLOSE_BRACE = "}"


def compile_block_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise PatternError(
            f"Invalid block pattern {pattern!r}: {exc}",
            context={"pattern": pattern},
        ) from exc


class LineClassifier:
    """Classifies each line of a source file as inside or outside a marked block.

    A line is marked when it matches the block-open pattern or when a block
    is already open. Braces on marked lines move the depth counter; the block
    closes once the depth returns to zero. No string or comment awareness.
    """

    def __init__(
        self,
        *,
        block_pattern: str = DEFAULT_BLOCK_PATTERN,
        source_suffix: str = DEFAULT_SOURCE_SUFFIX,
        count_blank_lines_in_block: bool = True,
        encoding: str = "utf-8",
        errors: str = "strict",
        instrumenter: Optional["Instrumenter"] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.pattern = compile_block_pattern(block_pattern)
        self.source_suffix = source_suffix
        self.count_blank_lines_in_block = count_blank_lines_in_block
        self.encoding = encoding
        self.errors = errors
        self.instrumenter = instrumenter
        self.logger = logger or logging.getLogger(__name__)

    def accepts(self, name: str) -> bool:
        return name.endswith(self.source_suffix)

    def mark_lines(self, text: str) -> List[bool]:
        flags: List[bool] = []
        in_block = False
        depth = 0
        for line_number, line in enumerate(split_lines(text), start=1):
            continues_block = in_block and (self.count_blank_lines_in_block or bool(line.strip()))
            marked = bool(self.pattern.search(line)) or continues_block
            flags.append(marked)
            if not marked:
                continue
            self.logger.debug("%d: %s", line_number, line)
            in_block = True
            for char in line:
                if char == OPEN_BRACE:
                    depth += 1
                elif char == CLOSE_BRACE and depth:
                    depth -= 1
            if depth == 0:
                in_block = False
        return flags

    def classify_text(self, text: str) -> ScanResult:
        flags = self.mark_lines(text)
        return ScanResult(marked_lines=sum(flags), total_lines=len(flags), flags=tuple(flags))

    def classify(self, path: Path) -> ScanResult:
        """Read ``path``, classify it, and instrument it when enabled.

        Counts always describe the file as it was read, before any rewrite.
        The rewrite decodes with ``surrogateescape`` so undecodable bytes are
        written back unchanged whatever the read error policy.
        """

        path = Path(path)
        if not self.accepts(path.name):
            raise InvalidInputError(
                f"File must carry the '{self.source_suffix}' suffix: {path}",
                context={"path": str(path)},
            )
        if not path.exists():
            raise NotFoundError(f"File does not exist: {path}", context={"path": str(path)})
        try:
            raw = path.read_bytes()
            text = raw.decode(self.encoding, self.errors)
        except (OSError, UnicodeDecodeError, LookupError) as exc:
            raise ReadError(f"Could not read file {path}: {exc}", context={"path": str(path)}) from exc

        result = self.classify_text(text)
        if self.instrumenter is not None:
            source = raw.decode(self.encoding, "surrogateescape")
            result.instrumented = self.instrumenter.apply(
                path, source, result.flags, encoding=self.encoding, errors="surrogateescape"
            )
        return result

"""Data models shared across UI, core scanner, and storage layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Literal, Sequence, Tuple

ScanPhase = Literal["scanned", "instrumented"]


@dataclass(slots=True)
class ScanResult:
    """Counts produced by classifying a single file."""

    marked_lines: int = 0
    total_lines: int = 0
    flags: Tuple[bool, ...] = ()
    instrumented: bool = False

    def as_pair(self) -> Tuple[int, int]:
        return self.marked_lines, self.total_lines


@dataclass(slots=True)
class ReportNode:
    """One file or directory in the report tree.

    Directory counts are the sums over ``children``; file leaves hold the raw
    scan result. Nodes are built bottom-up and never mutated once attached.
    """

    path: str
    marked_lines: int = 0
    total_lines: int = 0
    children: List["ReportNode"] = field(default_factory=list)
    is_dir: bool = False

    @classmethod
    def leaf(cls, path: str, result: ScanResult) -> "ReportNode":
        return cls(path=path, marked_lines=result.marked_lines, total_lines=result.total_lines)

    @classmethod
    def from_children(cls, path: str, children: Sequence["ReportNode"]) -> "ReportNode":
        """Create a finalized directory node whose counts sum its children."""

        return cls(
            path=path,
            marked_lines=sum(child.marked_lines for child in children),
            total_lines=sum(child.total_lines for child in children),
            children=list(children),
            is_dir=True,
        )

    @property
    def ratio(self) -> float:
        """Marked lines as a percentage of total lines (0.0 for empty nodes)."""

        if not self.total_lines:
            return 0.0
        return self.marked_lines / self.total_lines * 100

    def iter_nodes(self, depth: int = 0) -> Iterator[Tuple[int, "ReportNode"]]:
        """Yield ``(depth, node)`` pairs in pre-order."""

        yield depth, self
        for child in self.children:
            yield from child.iter_nodes(depth + 1)


@dataclass(slots=True)
class ScanProgress:
    """Per-file progress event for callbacks and the JSONL progress log."""

    file_path: Path
    marked_lines: int
    total_lines: int
    phase: ScanPhase = "scanned"


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = "utf-8"
    error_policy: str = "fail-fast"  # fail-fast | replace
    source_suffix: str = ".rs"
    block_pattern: str = r"\bunsafe\s+\{"
    statement_terminator: str = ";"
    listener_host: str = "127.0.0.1"
    listener_port: int = 7910
    listener_max_workers: int = 32
    default_output: str = "output.json"


@dataclass(slots=True)
class ProfileSettings:
    """Profile-specific scan behaviour."""

    description: str
    count_blank_lines_in_block: bool = True
    instrument: bool = False
    follow_symlinks: bool = False


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a single run."""

    global_settings: GlobalSettings
    profile: ProfileSettings

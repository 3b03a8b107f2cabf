"""Recursive directory walk producing the marked-line report tree."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from common.errors import DirectoryPermissionError, InvalidInputError, NotFoundError, ReadError
from common.models import ReportNode, ScanProgress
from common.progress import ProgressLogger
from .classifier import LineClassifier

ProgressCallback = Optional[Callable[[ScanProgress], None]]


class TreeAggregator:
    """Walks a directory depth-first and builds a ``ReportNode`` per entry.

    Entries are visited in ``os.scandir`` order. Each subtree is finalized
    before it is attached to its parent, so directory counts are always the
    sums of their children. Recursion depth follows the directory depth.
    """

    def __init__(
        self,
        classifier: LineClassifier,
        *,
        follow_symlinks: bool = False,
        logger: Optional[logging.Logger] = None,
        progress_logger: Optional[ProgressLogger] = None,
    ) -> None:
        self.classifier = classifier
        self.follow_symlinks = follow_symlinks
        self.logger = logger or logging.getLogger(__name__)
        self.progress_logger = progress_logger

    def aggregate(
        self,
        root_path: str | os.PathLike[str],
        progress_callback: ProgressCallback = None,
    ) -> ReportNode:
        root = os.fspath(root_path)
        if not os.path.exists(root):
            raise NotFoundError(f"Directory does not exist: {root}", context={"path": root})
        if not os.path.isdir(root):
            raise InvalidInputError(f"Not a directory: {root}", context={"path": root})
        return self._scan_directory(root, progress_callback)

    def _scan_directory(self, dir_path: str, progress_callback: ProgressCallback) -> ReportNode:
        children: List[ReportNode] = []
        for entry in self._list_directory(dir_path):
            child = self._visit(entry, progress_callback)
            if child is not None:
                children.append(child)
        return ReportNode.from_children(dir_path, children)

    def _list_directory(self, dir_path: str) -> List[os.DirEntry]:
        try:
            with os.scandir(dir_path) as entries:
                return list(entries)
        except PermissionError as exc:
            raise DirectoryPermissionError(
                f"Cannot list directory {dir_path}: {exc}", context={"path": dir_path}
            ) from exc
        except FileNotFoundError as exc:
            raise NotFoundError(f"Directory vanished during scan: {dir_path}", context={"path": dir_path}) from exc
        except NotADirectoryError as exc:
            raise InvalidInputError(f"Not a directory: {dir_path}", context={"path": dir_path}) from exc
        except OSError as exc:
            raise ReadError(f"Cannot list directory {dir_path}: {exc}", context={"path": dir_path}) from exc

    def _visit(self, entry: os.DirEntry, progress_callback: ProgressCallback) -> Optional[ReportNode]:
        # Symlinked files are always classified; symlinked directories only when following.
        if entry.is_dir():
            if entry.is_symlink() and not self.follow_symlinks:
                self.logger.debug("Skipping symlinked directory %s", entry.path)
                return None
            return self._scan_directory(entry.path, progress_callback)
        if not (self.classifier.accepts(entry.name) and entry.is_file()):
            self.logger.debug("Ignoring %s", entry.path)
            return None

        result = self.classifier.classify(Path(entry.path))
        self.logger.info(
            "%s: %d marked / %d total lines", entry.path, result.marked_lines, result.total_lines
        )
        self._emit(
            ScanProgress(
                file_path=Path(entry.path),
                marked_lines=result.marked_lines,
                total_lines=result.total_lines,
                phase="instrumented" if result.instrumented else "scanned",
            ),
            progress_callback,
        )
        return ReportNode.leaf(entry.path, result)

    def _emit(self, progress: ScanProgress, progress_callback: ProgressCallback) -> None:
        if progress_callback:
            progress_callback(progress)
        if self.progress_logger:
            self.progress_logger.emit(progress)

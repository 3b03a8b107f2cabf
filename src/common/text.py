"""Lightweight text helpers shared across modules."""
from __future__ import annotations

from typing import List


def split_lines(text: str, *, keep_cr: bool = False) -> List[str]:
    """Split on ``\\n`` only; a trailing newline does not add an empty line.

    Form feeds, ``\\x85`` and Unicode line separators stay inside their line.
    A trailing ``\\r`` is dropped unless ``keep_cr`` is set.
    """

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    if keep_cr:
        return lines
    return [line[:-1] if line.endswith("\r") else line for line in lines]

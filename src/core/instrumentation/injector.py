"""Rewrites scanned sources so marked statements ping the counting listener."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from common.errors import WriteError
from common.text import split_lines

HELPER_HEADER = "pub fn ping() {"
PING_CALL = "ping();"

_HELPER_TEMPLATE = """pub fn ping() {{
  let mut stream = match std::net::TcpStream::connect("{host}:{port}") {{
    Ok(stream) => stream,
    Err(_) => return,
  }};
  let _ = std::io::Write::write(&mut stream, &[1]);
}}"""


class Instrumenter:
    """Second pass over a classified file: prepend the helper, insert pings.

    A ping call follows every marked line ending in the statement terminator.
    Files that already start with the helper are left alone.
    """

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 7910,
        terminator: str = ";",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.terminator = terminator
        self.logger = logger or logging.getLogger(__name__)

    def render_helper(self) -> str:
        return _HELPER_TEMPLATE.format(host=self.host, port=self.port)

    def is_instrumented(self, text: str) -> bool:
        return text.lstrip().startswith(HELPER_HEADER)

    def instrument_text(self, text: str, flags: Sequence[bool], *, source: str = "<text>") -> Optional[str]:
        """Return the rewritten text, or ``None`` when nothing should change.

        Lines are split on ``\\n`` only and rejoined with it, so every other
        character of the input (``\\r``, form feeds, line separators) survives.
        """

        if not any(flags):
            return None
        if self.is_instrumented(text):
            self.logger.warning("%s already instrumented; skipping rewrite", source)
            return None

        lines = split_lines(text, keep_cr=True)
        cr = "\r" if lines and lines[0].endswith("\r") else ""
        output: List[str] = [f"{helper_line}{cr}" for helper_line in self.render_helper().split("\n")]
        for line, marked in zip(lines, flags):
            output.append(line)
            if marked and line.rstrip().endswith(self.terminator):
                indent = line[: len(line) - len(line.lstrip(" \t"))]
                line_cr = "\r" if line.endswith("\r") else ""
                output.append(f"{indent}{PING_CALL}{line_cr}")
        rewritten = "\n".join(output)
        if text.endswith("\n"):
            rewritten += "\n"
        return rewritten

    def apply(
        self,
        path: Path,
        text: str,
        flags: Sequence[bool],
        *,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> bool:
        """Persist the instrumented text back to ``path``; return whether it changed."""

        rewritten = self.instrument_text(text, flags, source=str(path))
        if rewritten is None:
            return False
        try:
            path.write_bytes(rewritten.encode(encoding, errors))
        except (OSError, UnicodeEncodeError) as exc:
            raise WriteError(f"Could not write to file {path}: {exc}", context={"path": str(path)}) from exc
        self.logger.warning("Instrumented %s", path)
        return True

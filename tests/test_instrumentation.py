"""Tests for ping injection into scanned sources."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from common.errors import WriteError
from core.analysis import LineClassifier, TreeAggregator
from core.instrumentation import HELPER_HEADER, PING_CALL, Instrumenter

SOURCE = "fn main() {\n    let v = unsafe {\n        read();\n        7\n    };\n}\n"


def build_classifier(**kwargs) -> LineClassifier:
    return LineClassifier(instrumenter=Instrumenter(**kwargs))


def test_instrument_text_inserts_pings_after_terminated_marked_lines() -> None:
    instrumenter = Instrumenter(host="127.0.0.1", port=9000)
    flags = LineClassifier().mark_lines(SOURCE)

    rewritten = instrumenter.instrument_text(SOURCE, flags)

    assert rewritten is not None
    assert rewritten.startswith(HELPER_HEADER)
    assert '"127.0.0.1:9000"' in rewritten
    body = rewritten[len(instrumenter.render_helper()) + 1 :]
    assert body.splitlines() == [
        "fn main() {",
        "    let v = unsafe {",
        "        read();",
        f"        {PING_CALL}",
        "        7",
        "    };",
        f"    {PING_CALL}",
        "}",
    ]
    assert rewritten.endswith("}\n")


def test_unmarked_text_is_left_alone() -> None:
    text = "fn main() {\n    work();\n}\n"
    instrumenter = Instrumenter()
    assert instrumenter.instrument_text(text, LineClassifier().mark_lines(text)) is None


def test_classify_rewrites_file_and_reports_original_counts(tmp_path: Path) -> None:
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")

    result = build_classifier().classify(path)

    assert result.as_pair() == (4, 6)
    assert result.instrumented
    content = path.read_text(encoding="utf-8")
    assert content.startswith(HELPER_HEADER)
    assert content.count(PING_CALL) == 2


def test_second_run_does_not_inject_twice(tmp_path: Path) -> None:
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")
    classifier = build_classifier()

    classifier.classify(path)
    once = path.read_text(encoding="utf-8")
    second = classifier.classify(path)

    assert not second.instrumented
    assert path.read_text(encoding="utf-8") == once


def test_write_failure_raises_write_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")

    def refuse(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "write_bytes", refuse)

    with pytest.raises(WriteError):
        build_classifier().classify(path)


def test_aggregator_marks_instrumented_progress(tmp_path: Path) -> None:
    (tmp_path / "main.rs").write_text(SOURCE, encoding="utf-8")
    (tmp_path / "plain.rs").write_text("fn plain() {}\n", encoding="utf-8")
    phases = {}

    TreeAggregator(build_classifier()).aggregate(
        tmp_path, progress_callback=lambda event: phases.update({event.file_path.name: event.phase})
    )

    assert phases == {"main.rs": "instrumented", "plain.rs": "scanned"}
    assert (tmp_path / "plain.rs").read_text(encoding="utf-8") == "fn plain() {}\n"


def test_rewrite_keeps_separator_characters_inside_lines(tmp_path: Path) -> None:
    path = tmp_path / "main.rs"
    source = 'fn main() {\x0c\n    let s = unsafe {\n        "a\u2028b";\n    };\n}\n'
    path.write_text(source, encoding="utf-8")

    result = build_classifier().classify(path)

    assert result.as_pair() == (3, 5)
    with path.open(encoding="utf-8", newline="") as handle:
        content = handle.read()
    assert '"a\u2028b";' in content
    assert "fn main() {\x0c\n" in content
    assert content.count(PING_CALL) == 2


def test_rewrite_preserves_crlf_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "main.rs"
    path.write_bytes(SOURCE.replace("\n", "\r\n").encode("utf-8"))

    build_classifier().classify(path)

    raw = path.read_bytes()
    assert b"\r\n" in raw
    assert b"\n" not in raw.replace(b"\r\n", b"")
    assert raw.endswith(b"}\r\n")


def test_replace_policy_does_not_alter_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "main.rs"
    path.write_bytes(b"// caf\xe9\nfn f() {\n    unsafe { g(); }\n}\n")
    classifier = LineClassifier(errors="replace", instrumenter=Instrumenter())

    result = classifier.classify(path)

    assert result.instrumented
    raw = path.read_bytes()
    assert b"// caf\xe9\n" in raw
    assert b"\xef\xbf\xbd" not in raw


def test_already_instrumented_warning_logged_once(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")
    classifier = build_classifier()
    classifier.classify(path)
    caplog.clear()

    with caplog.at_level(logging.WARNING, logger="core.instrumentation.injector"):
        classifier.classify(path)

    skipped = [record for record in caplog.records if "already instrumented" in record.getMessage()]
    assert len(skipped) == 1
    assert str(path) in skipped[0].getMessage()

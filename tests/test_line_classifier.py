"""Tests for marked-block line classification."""
from __future__ import annotations

from pathlib import Path

import pytest

from common.errors import ErrorCode, InvalidInputError, NotFoundError, PatternError, ReadError
from common.text import split_lines
from core.analysis.classifier import LineClassifier, compile_block_pattern

SAMPLE_SOURCE = """use std::ptr;

fn read(p: *const i32) -> i32 {
    let value = unsafe {
        ptr::read(p)
    };
    value
}

fn main() {
    let x = 5;
    let y = read(&x);
    println!("{}", y);
}
"""


def test_text_without_blocks_counts_only_totals() -> None:
    text = "fn main() {\n    let unsafe_name = 1;\n}\n"
    result = LineClassifier().classify_text(text)
    assert result.as_pair() == (0, 3)


def test_single_line_block_counts_once_and_closes() -> None:
    text = "fn f() {\n    let v = unsafe { *p };\n    v\n}\n"
    classifier = LineClassifier()
    assert classifier.mark_lines(text) == [False, True, False, False]


def test_multi_line_block_counts_inclusive_range() -> None:
    result = LineClassifier().classify_text(SAMPLE_SOURCE)
    assert result.as_pair() == (3, 14)
    assert [idx for idx, flag in enumerate(result.flags, start=1) if flag] == [4, 5, 6]


def test_nested_braces_keep_block_open() -> None:
    text = "\n".join(
        [
            "unsafe {",
            "    if ready {",
            "        go();",
            "    }",
            "    done();",
            "}",
            "after();",
        ]
    )
    flags = LineClassifier().mark_lines(text)
    assert flags == [True, True, True, True, True, True, False]


def test_second_block_starts_after_first_closes() -> None:
    text = "unsafe {\n}\nplain();\n  unsafe { a(); }\nplain();\n"
    flags = LineClassifier().mark_lines(text)
    assert flags == [True, True, False, True, False]


def test_blank_lines_inside_block_follow_policy() -> None:
    text = "unsafe {\n\n    a();\n}\n"
    counting = LineClassifier(count_blank_lines_in_block=True)
    skipping = LineClassifier(count_blank_lines_in_block=False)

    assert counting.mark_lines(text) == [True, True, True, True]
    assert skipping.mark_lines(text) == [True, False, True, True]


def test_unbalanced_block_stays_open_until_eof() -> None:
    text = "fn f() {}\nunsafe {\n    a();\nb();\n"
    result = LineClassifier().classify_text(text)
    assert result.as_pair() == (3, 4)


def test_extra_closing_brace_does_not_underflow() -> None:
    text = "unsafe { } }\nnext();\nunsafe {\nx();\n}\n"
    flags = LineClassifier().mark_lines(text)
    assert flags == [True, False, True, True, True]


def test_empty_text_returns_zero_counts() -> None:
    assert LineClassifier().classify_text("").as_pair() == (0, 0)


def test_custom_pattern_is_honoured() -> None:
    classifier = LineClassifier(block_pattern=r"\bcritical\s+\{")
    assert classifier.classify_text("critical {\n x\n}\nunsafe {}\n").as_pair() == (3, 4)


def test_invalid_pattern_raises_pattern_error() -> None:
    with pytest.raises(PatternError) as exc:
        compile_block_pattern(r"unsafe\s+(")
    assert exc.value.code == ErrorCode.PATTERN_ERROR


def test_classify_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "sample.rs"
    path.write_text(SAMPLE_SOURCE, encoding="utf-8")
    assert LineClassifier().classify(path).as_pair() == (3, 14)


def test_classify_rejects_wrong_suffix(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("unsafe {}\n", encoding="utf-8")
    with pytest.raises(InvalidInputError):
        LineClassifier().classify(path)


def test_classify_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        LineClassifier().classify(tmp_path / "missing.rs")


def test_classify_unreadable_path_raises_read_error(tmp_path: Path) -> None:
    path = tmp_path / "module.rs"
    path.mkdir()
    with pytest.raises(ReadError):
        LineClassifier().classify(path)


def test_classify_invalid_encoding_raises_read_error(tmp_path: Path) -> None:
    path = tmp_path / "binary.rs"
    path.write_bytes(b"unsafe {\xff\xfe}\n")
    with pytest.raises(ReadError):
        LineClassifier().classify(path)
    replaced = LineClassifier(errors="replace").classify(path)
    assert replaced.as_pair() == (1, 1)


def test_only_newline_separates_lines() -> None:
    text = 'fn a() {}\n\x0c\nfn b() {\n    let s = "x\u2028y\x85z";\n}\n'
    result = LineClassifier().classify_text(text)
    assert result.as_pair() == (0, 5)


def test_crlf_and_lone_carriage_return(tmp_path: Path) -> None:
    path = tmp_path / "crlf.rs"
    path.write_bytes(b"unsafe {\r\n    a();\r\n}\r\nlet r = '\r';\n")
    result = LineClassifier().classify(path)
    assert result.as_pair() == (3, 4)


def test_split_lines_matches_newline_only_rules() -> None:
    assert split_lines("") == []
    assert split_lines("a\r\nb\n") == ["a", "b"]
    assert split_lines("a\r\nb", keep_cr=True) == ["a\r", "b"]
    assert split_lines("a\x0cb\u2028c\n\n") == ["a\x0cb\u2028c", ""]

"""Tests for the Pygments highlighter and language resolution."""

import re

import pytest

from cargo_explain.fences import highlight_text
from cargo_explain.highlight import (
    ANSI_RESET,
    Highlighter,
    HighlightError,
    PygmentsHighlighter,
    check_style,
    resolve_language,
)

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

RUST_SNIPPET = 'fn main() {\n    let s = String::from("hi");\n    println!("{}", s);\n}\n'


def _strip_ansi(text):
    return ANSI_RE.sub("", text)


@pytest.mark.parametrize(
    "hint, expected",
    [
        (None, "rust"),
        ("", "rust"),
        ("rust", "rust"),
        ("compile_fail,E0382", "rust"),
        ("compile_fail, E0382", "rust"),
        ("ignore", "rust"),
        ("ignore-wasm32", "rust"),
        ("should_panic no_run", "rust"),
        ("edition2021,compile_fail", "rust"),
        ("text", "text"),
        ("plain", "text"),
        ("compile_fail,text", "text"),
        ("toml", "toml"),
        ("Python", "python"),
        ("ignore (illustrative)", "rust"),
        ("compile_fail,(example) toml", "toml"),
        ("c++", "c++"),
    ],
)
def test_resolve_language(hint, expected):
    assert resolve_language(hint) == expected


def test_resolve_language_custom_default():
    assert resolve_language("ignore", default="c") == "c"


def test_identity_highlighter():
    assert Highlighter().highlight(RUST_SNIPPET, "rust") == RUST_SNIPPET


def test_pygments_highlights_rust():
    """Output is colored, ends with a reset, and keeps the code text."""
    out = PygmentsHighlighter().highlight(RUST_SNIPPET, None)
    assert "\x1b[" in out
    assert out.endswith(ANSI_RESET + "\n")
    assert _strip_ansi(out) == RUST_SNIPPET


def test_pygments_rustdoc_attributes_use_rust():
    plain = PygmentsHighlighter().highlight(RUST_SNIPPET, None)
    tagged = PygmentsHighlighter().highlight(RUST_SNIPPET, "compile_fail,E0382")
    assert plain == tagged


def test_pygments_keeps_surrounding_newlines():
    code = "\nlet x = 1;\n\n"
    out = PygmentsHighlighter().highlight(code, "rust")
    assert _strip_ansi(out) == code


def test_pygments_no_trailing_newline():
    out = PygmentsHighlighter().highlight("let x = 1;", "rust")
    assert out.endswith(ANSI_RESET)
    assert _strip_ansi(out) == "let x = 1;"


def test_pygments_empty_code():
    assert PygmentsHighlighter().highlight("", "rust") == ""


def test_pygments_text_language():
    out = PygmentsHighlighter().highlight("error[E0382]: use of moved value\n", "text")
    assert _strip_ansi(out) == "error[E0382]: use of moved value\n"


def test_pygments_unknown_language():
    with pytest.raises(HighlightError, match="klingon"):
        PygmentsHighlighter().highlight("qapla'\n", "klingon")


def test_pygments_named_style_uses_true_color():
    out = PygmentsHighlighter(style="monokai").highlight(RUST_SNIPPET, "rust")
    assert "\x1b[38;2;" in out
    assert _strip_ansi(out) == RUST_SNIPPET


def test_pygments_unknown_style():
    with pytest.raises(HighlightError, match="no-such-style"):
        PygmentsHighlighter(style="no-such-style")


def test_check_style():
    check_style("monokai")
    with pytest.raises(HighlightError, match="no-such-style"):
        check_style("no-such-style")


def test_pygments_keeps_crlf_line_endings():
    code = "let a = 1;\r\nlet b = 2;\r\n"
    out = PygmentsHighlighter().highlight(code, "rust")
    assert out.endswith(ANSI_RESET + "\r\n")
    assert _strip_ansi(out) == code


def test_pygments_keeps_mixed_line_endings():
    code = "let a = 1;\rlet b = 2;\r\n\nlet c = 3;"
    out = PygmentsHighlighter().highlight(code, "rust")
    assert _strip_ansi(out) == code


def test_pygments_keeps_bom():
    code = "\ufefflet x = 1;\n"
    out = PygmentsHighlighter().highlight(code, "rust")
    assert out.startswith("\ufeff")
    assert _strip_ansi(out) == code


def test_highlighted_crlf_document():
    """Stripping the colors from a highlighted CRLF document gives it back."""
    text = "intro\r\n```\r\nlet a = 1;\r\nlet b = 2;\r\n```\r\nend\r\n"
    out = highlight_text(text, PygmentsHighlighter())
    assert "\x1b[" in out
    assert _strip_ansi(out) == text

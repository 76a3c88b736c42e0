"""Terminal syntax highlighting for code blocks, backed by Pygments."""

import re

import pygments
from pygments.formatters import Terminal256Formatter, TerminalTrueColorFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.style import Style
from pygments.token import (
    Comment,
    Error,
    Generic,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Token,
    Whitespace,
)
from pygments.util import ClassNotFound

ANSI_RESET = "\033[0m"
BOM = "\ufeff"

# One line including its terminator. The final line may have none.
LINE_RE = re.compile(r".*?(?:\r\n|\r|\n)|.+", re.DOTALL)

# Explanations are written about Rust; unlabelled blocks are Rust.
DEFAULT_LANGUAGE = "rust"

PLAIN_LANGUAGES = {"text", "plain", "txt"}

# Doc-test attributes that can appear in place of a language name,
# e.g. ```compile_fail,E0382
_RUSTDOC_ATTRIBUTE_RE = re.compile(
    r"^(?:ignore(?:-\S+)?|compile_fail|should_panic|no_run|test_harness"
    r"|allow_fail|standalone_crate|edition\d{4}|E\d{4})$"
)

_LANGUAGE_TOKEN_RE = re.compile(r"[\w+#.-]+")


class HighlightError(Exception):
    """A code block could not be highlighted."""


class ExplainAnsiStyle(Style):
    """
    Rust-oriented style using ANSI color names, so the terminal's own theme
    decides the actual colors.
    """

    default_style = ""

    styles = {
        Whitespace: "",
        Comment: "ansibrightblack italic",
        Comment.Preproc: "ansibrightyellow",  # #[attributes]
        Keyword: "ansimagenta bold",
        Keyword.Constant: "ansicyan",
        Keyword.Declaration: "ansimagenta",
        Keyword.Namespace: "ansibrightblue",
        Keyword.Reserved: "ansimagenta",
        Keyword.Type: "ansibrightcyan",  # i32, str, bool...
        Name: "",
        Name.Attribute: "ansiyellow",  # 'a lifetimes
        Name.Builtin: "ansibrightcyan",  # Some, None, Ok, Err
        Name.Class: "ansibrightgreen",
        Name.Function: "ansigreen",
        Name.Function.Magic: "ansibrightmagenta",  # println!, vec!
        Name.Label: "ansiyellow italic",  # loop labels
        Name.Namespace: "ansibrightblue",
        Name.Variable: "ansicyan",
        String: "ansibrightgreen",
        String.Char: "ansigreen",
        String.Escape: "ansiyellow bold",
        String.Doc: "ansibrightblack",
        Number: "ansibrightred",
        Operator: "ansiwhite",
        Punctuation: "",
        Generic.Deleted: "ansired",
        Generic.Inserted: "ansigreen",
        Generic.Emph: "italic",
        Generic.Strong: "bold",
        Error: "ansiwhite bg:ansired",
        Token.Other: "",
    }


def resolve_language(hint, default=DEFAULT_LANGUAGE):
    """
    Pick a lexer name from a fence info string.

    Rustdoc attributes and tokens that cannot name a lexer are skipped; the
    first other token wins. When nothing but attributes (or nothing at all) is
    given, the default language is used.
    """
    if not hint:
        return default
    for token in re.split(r"[\s,]+", hint.strip()):
        if not _LANGUAGE_TOKEN_RE.fullmatch(token):
            continue  # e.g. "(illustrative)"
        if _RUSTDOC_ATTRIBUTE_RE.match(token):
            continue
        token = token.lower()
        return "text" if token in PLAIN_LANGUAGES else token
    return default


class Highlighter:
    """Identity highlighter: returns code unchanged. Base for real ones."""

    def highlight(self, code, language=None):
        return code


def check_style(name):
    """Raise HighlightError unless name is an installed Pygments style."""
    try:
        get_style_by_name(name)
    except ClassNotFound as e:
        raise HighlightError(f"Unknown style '{name}'") from e


def _line_endings(code):
    endings = []
    for line in LINE_RE.findall(code):
        ending = line[len(line.rstrip("\r\n")):]
        if ending:
            endings.append(ending)
    return endings


class PygmentsHighlighter(Highlighter):
    def __init__(self, style=None, default_language=DEFAULT_LANGUAGE):
        if style is None:
            self.formatter = Terminal256Formatter(style=ExplainAnsiStyle)
        else:
            check_style(style)
            self.formatter = TerminalTrueColorFormatter(style=style)
        self.default_language = default_language
        self._lexers = {}

    def _lexer(self, name):
        if name not in self._lexers:
            try:
                # Keep leading/trailing newlines; fence lines are emitted separately.
                self._lexers[name] = get_lexer_by_name(
                    name, stripnl=False, ensurenl=False
                )
            except ClassNotFound as e:
                raise HighlightError(f"Lexer '{name}' not found") from e
        return self._lexers[name]

    def highlight(self, code, language=None):
        # Pygments drops a leading BOM and turns \r\n and \r into \n;
        # both are put back so the code text survives unchanged.
        bom = ""
        if code.startswith(BOM):
            bom, code = BOM, code[len(BOM):]
        if not code:
            return bom + code

        lexer = self._lexer(resolve_language(language, self.default_language))
        try:
            styled = pygments.highlight(code, lexer, self.formatter)
        except Exception as e:
            raise HighlightError(f"Error during highlighting: {e}") from e

        endings = _line_endings(code)
        parts = styled.split("\n")
        if len(parts) != len(endings) + 1:
            raise HighlightError("Highlighted output does not line up with the code")

        tail = parts.pop()
        lines = [part + ending for part, ending in zip(parts, endings)]
        if tail:
            return bom + "".join(lines) + tail + ANSI_RESET
        # Reset before the last line ending so no color leaks into the fence line.
        lines[-1] = parts[-1] + ANSI_RESET + endings[-1]
        return bom + "".join(lines)

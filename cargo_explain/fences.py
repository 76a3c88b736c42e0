"""
Split explanation text into prose and fenced code segments, and put it back
together with the code blocks highlighted.

Only fenced code blocks are recognized. Everything else in the text is prose
and is reproduced byte for byte.
"""

import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from cargo_explain.highlight import LINE_RE, HighlightError

# At most three spaces of indentation, then a run of backticks or tildes.
_OPENING_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_CLOSING_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")


class SegmentKind(Enum):
    PROSE = "prose"
    CODE = "code"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str
    language: str | None = None
    opening: str = ""  # fence lines, only set for code segments
    closing: str = ""

    @property
    def is_code(self) -> bool:
        return self.kind is SegmentKind.CODE

    @property
    def source(self) -> str:
        """The exact input text this segment was cut from."""
        return self.opening + self.text + self.closing


@dataclass(frozen=True)
class Document:
    segments: tuple[Segment, ...] = ()

    def __iter__(self):
        return iter(self.segments)

    def __len__(self):
        return len(self.segments)

    def __getitem__(self, index):
        return self.segments[index]

    @property
    def code_blocks(self) -> list[Segment]:
        return [segment for segment in self.segments if segment.is_code]


class _Fence(NamedTuple):
    char: str
    length: int
    language: str | None
    opening: str


def _strip_line_ending(line: str) -> str:
    return line.rstrip("\r\n")


def _open_fence(line: str) -> _Fence | None:
    match = _OPENING_FENCE_RE.match(_strip_line_ending(line))
    if not match:
        return None
    run, info = match.groups()
    # A backtick inside the info string means this is an inline code span.
    if run[0] == "`" and "`" in info:
        return None
    return _Fence(run[0], len(run), info.strip() or None, line)


def _closes(line: str, fence: _Fence) -> bool:
    match = _CLOSING_FENCE_RE.match(_strip_line_ending(line))
    if not match:
        return False
    run = match.group(1)
    return run[0] == fence.char and len(run) >= fence.length


def scan(text: str) -> Document:
    """
    Split text into an ordered Document of prose and code segments.

    Fence lines are kept on the code segment (opening/closing) so that the
    segments together always reproduce the input exactly. A fence that is
    never closed runs to the end of the text.
    """
    segments = []
    prose = []
    code = []
    fence = None

    def flush_prose():
        if prose:
            segments.append(Segment(SegmentKind.PROSE, "".join(prose)))
            prose.clear()

    for line in LINE_RE.findall(text):
        if fence is None:
            fence = _open_fence(line)
            if fence is None:
                prose.append(line)
            else:
                flush_prose()
            continue

        if _closes(line, fence):
            segments.append(
                Segment(
                    SegmentKind.CODE,
                    "".join(code),
                    language=fence.language,
                    opening=fence.opening,
                    closing=line,
                )
            )
            code.clear()
            fence = None
        else:
            code.append(line)

    if fence is not None:
        # Unterminated block
        segments.append(
            Segment(
                SegmentKind.CODE,
                "".join(code),
                language=fence.language,
                opening=fence.opening,
            )
        )
    flush_prose()

    return Document(tuple(segments))


def _highlight_segment(segment: Segment, highlighter) -> str:
    if highlighter is None:
        return segment.text
    try:
        return highlighter.highlight(segment.text, segment.language)
    except HighlightError as e:
        print(f"Warning: {e}. Printing raw code.", file=sys.stderr)
        return segment.text


def render(doc: Document, highlighter=None) -> str:
    """
    Concatenate the segments of doc back into one string.

    Code block bodies go through highlighter.highlight() once each; prose and
    fence lines are emitted unchanged. If a block cannot be highlighted its
    raw text is used instead.
    """
    parts = []
    for segment in doc:
        if not segment.is_code:
            parts.append(segment.text)
            continue
        parts.append(segment.opening)
        parts.append(_highlight_segment(segment, highlighter))
        parts.append(segment.closing)
    return "".join(parts)


def highlight_text(text: str, highlighter=None) -> str:
    return render(scan(text), highlighter)

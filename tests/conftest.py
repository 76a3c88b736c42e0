"""Shared fixtures for cargo-explain tests."""

import pytest

from cargo_explain.highlight import Highlighter, HighlightError
from cargo_explain.provider import ExplanationProvider, UnknownCodeError


# Trimmed copy of what `rustc --explain E0382` prints.
E0382_TEXT = """A variable was used after its contents have been moved elsewhere.

Erroneous code example:

```compile_fail,E0382
struct MyStruct { s: u32 }

fn main() {
    let mut x = MyStruct{ s: 5u32 };
    let y = x;
    x.s = 6;
    println!("{}", x.s);
}
```

Since `MyStruct` is a type that is not marked `Copy`, the data gets moved out
of `x` when we set `y`.

```
use std::rc::Rc;

let x = Rc::new(5);
```

You can find more information about borrowing in the rust-book:
http://doc.rust-lang.org/book/ch04-02-references-and-borrowing.html
"""


class FakeProvider(ExplanationProvider):
    """Serves explanations from a dict; anything else is an unknown code."""

    def __init__(self, explanations):
        self.explanations = explanations
        self.calls = []

    def explain(self, code):
        self.calls.append(code)
        if code not in self.explanations:
            raise UnknownCodeError(code)
        return self.explanations[code]


class BracketHighlighter(Highlighter):
    """Wraps each block in markers so tests can see what was highlighted."""

    def __init__(self):
        self.calls = []

    def highlight(self, code, language=None):
        self.calls.append((code, language))
        return f"<{language}>{code}</{language}>"


class FailingHighlighter(Highlighter):
    def highlight(self, code, language=None):
        raise HighlightError("Lexer 'klingon' not found")


@pytest.fixture
def e0382_text():
    return E0382_TEXT


@pytest.fixture
def fake_provider():
    return FakeProvider({"E0382": E0382_TEXT})


@pytest.fixture
def bracket_highlighter():
    return BracketHighlighter()

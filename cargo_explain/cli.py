"""
cargo-explain: print `rustc --explain` output with highlighted code blocks.

Works both as `cargo explain E0382` (cargo passes "explain" as the first
argument) and standalone as `cargo-explain E0382` / `cargo-explain --explain E0382`.
"""

import argparse
import os
import sys

from cargo_explain import __version__
from cargo_explain.fences import render, scan
from cargo_explain.highlight import (
    Highlighter,
    HighlightError,
    PygmentsHighlighter,
    check_style,
)
from cargo_explain.provider import (
    ProviderUnavailableError,
    RustcExplainer,
    UnknownCodeError,
)


def debug_log(args, *print_args, **print_kwargs):
    """Prints debug messages to stderr if --debug is enabled."""
    if args.debug:
        print("[DEBUG]", *print_args, file=sys.stderr, **print_kwargs)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cargo-explain",
        description="Show the explanation of a Rust compiler error with highlighted code examples.",
        epilog="Example: cargo explain E0382",
    )
    parser.add_argument("code", nargs="?", help="Error code to explain, e.g. E0382")
    parser.add_argument(
        "--explain",
        metavar="CODE",
        dest="explain_code",
        help="Same as the positional CODE (mirrors `rustc --explain`)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Highlight code blocks: auto (only when stdout is a terminal), always or never",
    )
    parser.add_argument(
        "--style",
        help="Pygments style name for 24-bit color output. Defaults to an ANSI style that follows the terminal theme.",
    )
    parser.add_argument(
        "--rustc",
        default="rustc",
        help="rustc binary used to fetch the explanation (default: rustc)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print debug information to stderr",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def resolve_code(parser, args):
    """Pick the error code from the positional or --explain form."""
    if args.code and args.explain_code and args.code != args.explain_code:
        parser.error(
            f"conflicting error codes: '{args.code}' and --explain '{args.explain_code}'"
        )
    code = args.explain_code or args.code
    if not code:
        parser.error("missing error code to explain")
    return code


def _stream_is_tty(stream):
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def choose_highlighter(args, stream):
    if args.color == "never" or (args.color == "auto" and not _stream_is_tty(stream)):
        return Highlighter()
    return PygmentsHighlighter(style=args.style)


def _detach_stdout():
    """Point stdout at devnull so the interpreter's final flush cannot fail again."""
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        # stdout has no real file descriptor (replaced or captured)
        pass
    finally:
        os.close(devnull)


def run_explain(code, provider, highlighter, out=None, args=None):
    """
    Fetch, highlight and print the explanation for code.

    Returns the process exit status. Nothing is written to out unless the
    explanation was obtained.
    """
    if out is None:
        out = sys.stdout

    try:
        text = provider.explain(code)
    except UnknownCodeError as e:
        print(str(e), file=sys.stderr)
        return 1
    except ProviderUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    doc = scan(text)
    if args is not None:
        debug_log(
            args, f"Found {len(doc.code_blocks)} code blocks in {len(doc)} segments"
        )
    output = render(doc, highlighter)

    try:
        out.write(output)
        out.flush()
    except BrokenPipeError:
        if out is sys.stdout:
            _detach_stdout()
        print("Error: output pipe closed before the explanation was written", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: could not write output: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    # Invoked as `cargo explain ...`
    if argv and argv[0] == "explain":
        argv = argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)
    debug_log(args, "Arguments parsed:", args)

    code = resolve_code(parser, args)

    try:
        # Checked even when color is off so a typo is never silently ignored.
        if args.style:
            check_style(args.style)
        highlighter = choose_highlighter(args, sys.stdout)
    except HighlightError as e:
        parser.error(str(e))
    debug_log(args, "Using highlighter:", type(highlighter).__name__)

    provider = RustcExplainer(args.rustc)
    debug_log(args, "Running:", " ".join(provider.command(code)))

    try:
        return run_explain(code, provider, highlighter, args=args)
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

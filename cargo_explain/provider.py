"""Fetch the explanation text for a compiler error code."""

import subprocess

# Substrings rustc uses on stderr when it has no explanation for a code.
_UNKNOWN_CODE_MARKERS = ("not a valid error code", "no extended information")


class ExplainError(Exception):
    pass


class UnknownCodeError(ExplainError):
    def __init__(self, code, message=None):
        self.code = code
        super().__init__(message or f"error: {code} is not a valid error code")


class ProviderUnavailableError(ExplainError):
    pass


class ExplanationProvider:
    def explain(self, code: str) -> str:
        """Return the explanation for code, or raise an ExplainError."""
        raise NotImplementedError


class RustcExplainer(ExplanationProvider):
    """Runs `rustc --explain <code>` and returns what it prints."""

    def __init__(self, rustc: str = "rustc"):
        self.rustc = rustc

    def command(self, code: str) -> list[str]:
        return [self.rustc, "--explain", code]

    def explain(self, code: str) -> str:
        cmd = self.command(code)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise ProviderUnavailableError(
                f"'{self.rustc}' command not found. Is Rust installed and in your PATH?"
            ) from e
        except OSError as e:
            raise ProviderUnavailableError(f"Could not run '{self.rustc}': {e}") from e

        stderr = (result.stderr or "").strip()
        if result.returncode != 0:
            if not stderr or any(m in stderr for m in _UNKNOWN_CODE_MARKERS):
                raise UnknownCodeError(code, stderr or None)
            # e.g. a rustup proxy with no toolchain installed
            raise ProviderUnavailableError(
                f"Command '{' '.join(cmd)}' failed with exit code {result.returncode}:\n{stderr}"
            )

        if not result.stdout.strip():
            raise UnknownCodeError(code, stderr or None)
        return result.stdout

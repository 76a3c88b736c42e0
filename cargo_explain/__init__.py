"""Highlighted `rustc --explain` output for the terminal."""

__version__ = "0.1.0"

"""Indentation and splicing helpers for line-oriented files."""

from __future__ import annotations

import textwrap


def ensure_newline(text: str) -> str:
    """Return ``text`` terminated by exactly one trailing newline."""
    return text.rstrip("\n") + "\n"


def indent(text: str, amount: int = 2) -> str:
    """Indent every non-blank line by ``amount`` spaces."""
    return textwrap.indent(text, " " * amount)


def optimize_indentation(text: str, amount: int = 0) -> str:
    """
    Normalise a snippet to a given indentation depth.

    Common leading whitespace is removed, every non-blank line is indented by
    ``amount`` spaces and the result ends with a single newline.
    """
    return ensure_newline(indent(textwrap.dedent(text), amount))


def insert_at(contents: str, index: int, text: str) -> str:
    """Splice ``text`` into ``contents`` at ``index``."""
    return contents[:index] + text + contents[index:]


def replace_span(contents: str, start: int, end: int, text: str) -> str:
    """Replace ``contents[start:end]`` with ``text``."""
    return contents[:start] + text + contents[end:]

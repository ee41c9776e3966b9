"""Anchored pattern lookup inside text files.

Every mutator decides between insert, replace and skip by asking this module
whether a line, block or sentinel is present. A missing match is a normal
outcome (``None``), never an error.

First-match semantics are authoritative: when a pattern matches more than
one place, the earliest match wins and later ones are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

PatternLike = str | re.Pattern[str]

_QUOTES = re.compile(r"""['"]""")


@dataclass(frozen=True)
class Span:
    """A matched region of a file's contents."""

    start: int
    end: int
    text: str

    def __len__(self) -> int:
        return self.end - self.start


def compile_pattern(pattern: PatternLike) -> re.Pattern[str]:
    """Compile a string pattern with ``^``/``$`` anchored to line boundaries."""
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.MULTILINE)


def locate(contents: str, pattern: PatternLike, start: int = 0) -> Span | None:
    """
    Find the first match of ``pattern`` at or after ``start``.

    Args:
        contents: Full text of the target file.
        pattern: Regular expression; string patterns are compiled multi-line.
        start: Offset to begin searching from.

    Returns:
        The first matching span, or None if nothing matches.
    """
    match = compile_pattern(pattern).search(contents, start)
    if match is None:
        return None
    return Span(match.start(), match.end(), match.group(0))


def locate_all(contents: str, pattern: PatternLike) -> list[Span]:
    """Find every non-overlapping match, in file order."""
    return [
        Span(m.start(), m.end(), m.group(0))
        for m in compile_pattern(pattern).finditer(contents)
    ]


def contains(contents: str, pattern: PatternLike) -> bool:
    """Whether ``pattern`` matches anywhere in ``contents``."""
    return locate(contents, pattern) is not None


def config_pattern(text: str) -> re.Pattern[str]:
    """
    Convert a config string into a line-anchored pattern.

    The text is matched literally from the start of a line, except that single
    and double quotes match each other, so ``x = 'a'`` also finds ``x = "a"``.
    """
    escaped = _QUOTES.sub(r"""['"]""", re.escape(text))
    return re.compile("^" + escaped, re.MULTILINE)


def literal_line(text: str) -> re.Pattern[str]:
    """Pattern matching ``text`` as a complete line."""
    return re.compile("^" + re.escape(text.rstrip("\n")) + "$", re.MULTILINE)

"""Utility module for text splicing and indentation."""

from scaffold_kit.utils.text import (
    ensure_newline,
    indent,
    insert_at,
    optimize_indentation,
    replace_span,
)


def split_directive(data: str) -> str:
    """
    Extract the assignment target of a config line.

    Args:
        data: A config line such as ``config.time_zone = "UTC"``.

    Returns:
        The stripped text before the first ``=``, or the whole stripped line
        when there is no assignment.
    """
    return data.split("=", 1)[0].strip()


__all__ = [
    "ensure_newline",
    "indent",
    "insert_at",
    "optimize_indentation",
    "replace_span",
    "split_directive",
]

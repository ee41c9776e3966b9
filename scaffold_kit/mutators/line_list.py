"""Flat newline-delimited list files (ignore lists, require manifests)."""

from __future__ import annotations

import logging
from pathlib import Path

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import InvalidDirectiveError

logger = logging.getLogger(__name__)


def append_line(contents: str, line: str) -> str:
    """
    Append ``line`` unless an identical line is already present.

    A file whose last line lacks a terminator gets one first, so the new entry
    never fuses with the previous one.
    """
    line = line.rstrip("\n")
    if line in contents.splitlines():
        return contents
    if contents and not contents.endswith("\n"):
        contents += "\n"
    return f"{contents}{line}\n"


def append_unique(
    ctx: ExecutionContext,
    rel_path: str | Path,
    line: str,
    create: bool = True,
    action: str = "append_unique",
) -> MutationStatus:
    """
    Ensure ``line`` is present in a list file, appending it at the end if not.

    Args:
        ctx: Execution context.
        rel_path: Target file, relative to the project root.
        line: The entry to add (without terminator).
        create: Create the file when missing. When False a missing file is a
            precondition fault.
        action: Name recorded in the change log.
    """
    if not line.strip() or "\n" in line.rstrip("\n"):
        raise InvalidDirectiveError(f"Expected a single non-empty line, got {line!r}")

    if create:
        ctx.ensure_file(rel_path, action)

    ctx.log(action, line)
    return ctx.mutate(rel_path, lambda contents: append_line(contents, line), action)


def gitignore(ctx: ExecutionContext, *entries: str) -> None:
    """Insert the given entries into the project's ignore list."""
    rel_path = ctx.settings.paths.gitignore
    # One at a time so that entries repeated within the same call are caught
    for entry in entries:
        append_unique(ctx, rel_path, entry, action="gitignore")


def register_package(ctx: ExecutionContext, namespace: str) -> MutationStatus:
    """
    Require a package engine from the packages manifest.

    The manifest is part of the host application and must already exist.
    """
    line = f'require_relative "../packages/{namespace}/lib/engine"'
    return append_unique(
        ctx,
        ctx.settings.paths.packages,
        line,
        create=False,
        action="register_package",
    )

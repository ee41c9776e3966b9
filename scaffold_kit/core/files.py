"""Whole-file operations: create, duplicate, and the Ruby version pin."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import ScaffoldError, TargetFileMissingError

logger = logging.getLogger(__name__)

RUBY_DIRECTIVE = re.compile(r"""^ruby ["'].*["']""", re.MULTILINE)


def create_file(
    ctx: ExecutionContext,
    rel_path: str | Path,
    content: str,
    force: bool | None = None,
) -> MutationStatus:
    """
    Create a file unless it already exists.

    Args:
        ctx: Execution context.
        rel_path: Destination, relative to the project root.
        content: File content.
        force: Overwrite an existing file. Defaults to ``ctx.force``.

    Returns:
        The recorded status.
    """
    force = ctx.force if force is None else force
    existing = ctx.read_optional(rel_path)

    if existing is None:
        ctx.log("create", str(rel_path))
        return ctx.write(rel_path, content, "create_file", MutationStatus.CREATED)

    if existing == content:
        ctx.record("create_file", rel_path, MutationStatus.UNCHANGED)
        return MutationStatus.UNCHANGED

    if not force:
        ctx.log("skip", f"{rel_path} (exists)")
        ctx.record("create_file", rel_path, MutationStatus.SKIPPED)
        return MutationStatus.SKIPPED

    ctx.log("force", str(rel_path))
    return ctx.write(rel_path, content, "create_file")


def duplicate_file(ctx: ExecutionContext, src: str | Path, dest: str | Path) -> MutationStatus:
    """
    Copy one project file to another location in the project.

    Raises:
        TargetFileMissingError: If the source file does not exist.
        ScaffoldError: If the copy fails.
    """
    ctx.log("duplicate_file", f"{src} -> {dest}")
    content = ctx.read(src)
    status = MutationStatus.UPDATED if ctx.exists(dest) else MutationStatus.CREATED

    try:
        return ctx.write(dest, content, "duplicate_file", status)
    except OSError as e:
        raise ScaffoldError(
            f"An error occurred while copying the file '{src}' to '{dest}': {e}"
        ) from e


def set_ruby_version(ctx: ExecutionContext, version: str | None = None) -> None:
    """
    Pin the project's Ruby version.

    Force-writes the version file and rewrites the Gemfile ``ruby`` directive
    to ``ruby '~> <version>'``.
    """
    version = version or ctx.settings.ruby_version
    paths = ctx.settings.paths
    ctx.log("set_ruby_version", version)

    if not ctx.exists(paths.gemfile):
        raise TargetFileMissingError(paths.gemfile)

    create_file(ctx, paths.ruby_version_file, version, force=True)
    ctx.mutate(
        paths.gemfile,
        lambda content: RUBY_DIRECTIVE.sub(f"ruby '~> {version}'", content, count=1),
        "set_ruby_version",
    )

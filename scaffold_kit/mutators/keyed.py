"""Single-line directives identified by a stable key.

A keyed directive is one line such as ``web: bundle exec puma`` in a process
manifest. Upserting replaces the live line for the key in place; removing it
also drops the comment lines directly above it, but never comments separated
from it by a blank line or another directive.
"""

from __future__ import annotations

import logging
from pathlib import Path
import re

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import AnchorNotFoundError, InvalidDirectiveError
from scaffold_kit.core.locator import PatternLike, locate
from scaffold_kit.mutators.line_list import append_line
from scaffold_kit.mutators.sentinel import insert_relative
from scaffold_kit.utils import replace_span

logger = logging.getLogger(__name__)


class KeyedDirectiveMutator:
    """
    Insert, update and delete keyed directive lines.

    Subclasses change how a key is recognised by overriding
    :meth:`key_pattern`; the default matches ``<key>:`` as used by process
    manifests.
    """

    comment_marker = "#"
    action = "directive"

    def key_pattern(self, key: str) -> str:
        """Regex fragment matching the start of a live directive for ``key``."""
        return re.escape(key) + r"[ \t]*:"

    def active_pattern(self, key: str) -> re.Pattern[str]:
        """Pattern matching the whole live (uncommented) directive line."""
        self._validate_key(key)
        return re.compile(rf"^[ \t]*{self.key_pattern(key)}[^\n]*", re.MULTILINE)

    def commented_directive(self) -> str:
        """Regex fragment matching a commented-out directive for any key."""
        marker = re.escape(self.comment_marker)
        return rf"[ \t]*{marker}[ \t]*[\w-]+[ \t]*:"

    def removal_pattern(self, key: str) -> re.Pattern[str]:
        """
        Pattern matching a live directive plus its contiguous leading comments.

        Each comment line must start a line and be directly followed by either
        another comment line or the directive, so the match cannot reach back
        across a blank line or an unrelated directive. Commented-out
        directives for other keys are never part of the run.
        """
        self._validate_key(key)
        marker = re.escape(self.comment_marker)
        guard = self.commented_directive()
        return re.compile(
            rf"(?:^(?!{guard})[ \t]*{marker}[^\n]*\n)*"
            rf"^[ \t]*{self.key_pattern(key)}[^\n]*(?:\n|\Z)",
            re.MULTILINE,
        )

    # -- pure transforms -------------------------------------------------

    def upsert_text(
        self,
        contents: str,
        key: str,
        line: str,
        *,
        after: PatternLike | None = None,
        before: PatternLike | None = None,
    ) -> str:
        """
        Make ``line`` the single live directive for ``key``.

        The first live directive is replaced in place and any later copies are
        removed. When there is none, the line is inserted.

        Without an anchor the line is appended at the end of the file.

        Raises:
            AnchorNotFoundError: If an anchor is given but does not match.
        """
        line = self._single_line(line)
        existing = locate(contents, self.active_pattern(key))
        if existing is not None:
            head = contents[:existing.start] + line
            return head + self.remove_text(contents[existing.end:], key)

        if after is None and before is None:
            return append_line(contents, line)

        result = insert_relative(contents, f"{line}\n", after=after, before=before)
        if result is None:
            anchor = after if after is not None else before
            raise AnchorNotFoundError("<text>", getattr(anchor, "pattern", str(anchor)))
        return result

    def remove_text(self, contents: str, key: str) -> str:
        """Delete every live directive for ``key`` with its leading comments."""
        return self.removal_pattern(key).sub("", contents)

    def find(self, contents: str, key: str) -> str | None:
        """Return the first live directive line for ``key``, if any."""
        span = locate(contents, self.active_pattern(key))
        return span.text if span else None

    # -- file operations -------------------------------------------------

    def upsert(
        self,
        ctx: ExecutionContext,
        rel_path: str | Path,
        key: str,
        line: str,
        *,
        after: PatternLike | None = None,
        before: PatternLike | None = None,
        create: bool = False,
    ) -> MutationStatus:
        """
        Make ``line`` the single live directive for ``key`` in a file.

        Args:
            ctx: Execution context.
            rel_path: Target file, relative to the project root.
            key: Directive identity, e.g. a process name.
            line: The full directive line to write.
            after: Optional anchor to insert after when the key is new.
            before: Optional anchor to insert before when the key is new.
            create: Create the file when it is missing.
        """
        if create:
            ctx.ensure_file(rel_path, self.action)

        ctx.log(self.action, line)
        return ctx.mutate(
            rel_path,
            lambda contents: self.upsert_text(contents, key, line, after=after, before=before),
            self.action,
        )

    def remove(self, ctx: ExecutionContext, rel_path: str | Path, key: str) -> MutationStatus:
        """Delete the directive for ``key`` and its preceding comment lines."""
        ctx.log(f"remove_{self.action}", key)
        return ctx.mutate(
            rel_path,
            lambda contents: self.remove_text(contents, key),
            f"remove_{self.action}",
        )

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _validate_key(key: str) -> None:
        if not key or not key.strip() or "\n" in key:
            raise InvalidDirectiveError(f"Invalid directive key: {key!r}")

    @staticmethod
    def _single_line(line: str) -> str:
        line = line.rstrip("\n")
        if not line.strip() or "\n" in line:
            raise InvalidDirectiveError(f"Expected a single directive line, got {line!r}")
        return line


class ProcessManifest(KeyedDirectiveMutator):
    """Process manifests: ``<name>: <command>`` per line."""

    action = "proc_file"


def proc_file(
    ctx: ExecutionContext,
    name: str,
    command: str,
    env: str | None = None,
) -> MutationStatus:
    """
    Insert or update a process in the Procfile.

    Args:
        ctx: Execution context.
        name: Process name, e.g. ``web``.
        command: Command that starts the process.
        env: Use an environment specific manifest, e.g. ``dev`` for
            ``Procfile.dev``.
    """
    base = ctx.settings.paths.procfile
    filename = f"{base}.{env}" if env else base
    return ProcessManifest().upsert(ctx, filename, name, f"{name}: {command}", create=True)

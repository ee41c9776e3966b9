"""Execution context shared by every mutation in one scaffold invocation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import os
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from scaffold_kit.config.settings import Settings, load_project_settings
from scaffold_kit.core.errors import PathTraversalError, TargetFileMissingError

logger = logging.getLogger(__name__)


class MutationStatus(str, Enum):
    """Outcome of a single file mutation."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass
class MutationRecord:
    """One entry of the invocation's change log."""

    action: str
    path: str
    status: MutationStatus
    dry_run: bool = False

    def to_dict(self) -> dict[str, str | bool]:
        """Convert to dictionary for serialization."""
        return {
            "action": self.action,
            "path": self.path,
            "status": self.status.value,
            "dry_run": self.dry_run,
        }


class ExecutionContext(BaseModel):
    """
    Explicit replacement for ambient dry-run/verbosity state.

    Carries the project root and run flags into every mutator, and owns all
    file I/O so mutators stay pure ``str -> str`` transforms. In dry-run mode
    writes go to an in-memory overlay: later mutations in the same run see
    earlier results, but nothing reaches the disk.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: Path
    dry_run: bool = False
    verbose: bool = False
    force: bool = False
    settings: Settings = Field(default_factory=Settings)
    records: list[MutationRecord] = Field(default_factory=list)

    _overlay: dict[Path, str] = PrivateAttr(default_factory=dict)

    @classmethod
    def for_project(cls, root: Path | str, **flags: bool) -> ExecutionContext:
        """Build a context for ``root``, honouring its .scaffold_kit.yaml."""
        project_root = Path(root).resolve()
        settings = load_project_settings(project_root)
        verbose = flags.pop("verbose", False) or settings.verbose
        return cls(root=project_root, settings=settings, verbose=verbose, **flags)

    # -- paths -----------------------------------------------------------

    def resolve(self, rel_path: str | Path) -> Path:
        """
        Map a project-relative path to an absolute one.

        Raises:
            PathTraversalError: If the path points outside the project root.
        """
        root = self.root.resolve()
        path = (root / rel_path).resolve()
        if not path.is_relative_to(root):
            raise PathTraversalError(f"Path escapes project root: {rel_path}")
        return path

    def exists(self, rel_path: str | Path) -> bool:
        """Whether the file exists (on disk or in the dry-run overlay)."""
        path = self.resolve(rel_path)
        return path in self._overlay or path.exists()

    # -- reading ---------------------------------------------------------

    def read(self, rel_path: str | Path) -> str:
        """
        Read a target file.

        Raises:
            TargetFileMissingError: If the file does not exist.
        """
        path = self.resolve(rel_path)
        if path in self._overlay:
            return self._overlay[path]
        if not path.is_file():
            raise TargetFileMissingError(rel_path)
        return path.read_text(encoding="utf-8")

    def read_optional(self, rel_path: str | Path) -> str | None:
        """Read a file, returning None when it does not exist."""
        if not self.exists(rel_path):
            return None
        return self.read(rel_path)

    # -- writing ---------------------------------------------------------

    def ensure_file(self, rel_path: str | Path, action: str) -> None:
        """Create an empty file if it is missing (self-initialising targets)."""
        if self.exists(rel_path):
            return
        self.write(rel_path, "", action, MutationStatus.CREATED)

    def write(
        self,
        rel_path: str | Path,
        content: str,
        action: str,
        status: MutationStatus = MutationStatus.UPDATED,
    ) -> MutationStatus:
        """Write ``content`` to a project file and record the outcome."""
        path = self.resolve(rel_path)

        if self.dry_run:
            self._overlay[path] = content
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(path, content)

        self.record(action, rel_path, status)
        return status

    def mutate(
        self,
        rel_path: str | Path,
        transform: Callable[[str], str],
        action: str,
    ) -> MutationStatus:
        """
        Read, transform and rewrite one file as a single unit.

        The file is only written when the transform changed its content.

        Raises:
            TargetFileMissingError: If the file does not exist.
        """
        before = self.read(rel_path)
        after = transform(before)

        if after == before:
            self.record(action, rel_path, MutationStatus.UNCHANGED)
            return MutationStatus.UNCHANGED

        return self.write(rel_path, after, action)

    # -- reporting -------------------------------------------------------

    def log(self, action: str, detail: str) -> None:
        """Report an action at INFO when verbose, DEBUG otherwise."""
        level = logging.INFO if self.verbose else logging.DEBUG
        logger.log(level, "%s %s", action, detail)

    def record(self, action: str, rel_path: str | Path, status: MutationStatus) -> None:
        """Append an entry to the change log."""
        self.records.append(MutationRecord(action, str(rel_path), status, self.dry_run))
        logger.debug("%s %s: %s", action, rel_path, status.value)

    def changed_paths(self) -> list[str]:
        """Paths created or updated so far, in order, without duplicates."""
        seen: dict[str, None] = {}
        for record in self.records:
            if record.status in (MutationStatus.CREATED, MutationStatus.UPDATED):
                seen.setdefault(record.path, None)
        return list(seen)


def _atomic_write(target_path: Path, content: str) -> None:
    """Write via a temporary sibling file so readers never see partial content."""
    temp_file = target_path.with_name(f"{target_path.name}.scaffold_kit.tmp")
    try:
        temp_file.write_text(content, encoding="utf-8")
        os.replace(temp_file, target_path)
    except OSError:
        if temp_file.exists():
            temp_file.unlink()
        raise

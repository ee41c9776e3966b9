"""Faults raised by the project-mutation engine."""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all engine faults."""

    pass


class TargetFileMissingError(ScaffoldError):
    """A required target file does not exist in the project."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Required file is missing: {self.path}")


class PathTraversalError(ScaffoldError):
    """Raised when a path attempts to escape the project root."""

    pass


class InvalidDirectiveError(ScaffoldError, ValueError):
    """A directive payload is malformed (empty key, bad group name, ...)."""

    pass


class AnchorNotFoundError(ScaffoldError):
    """An insertion anchor (sentinel or structural end-marker) is absent."""

    def __init__(self, path: str | Path, anchor: str) -> None:
        self.path = str(path)
        self.anchor = anchor
        super().__init__(f"Anchor {anchor!r} not found in {self.path}")

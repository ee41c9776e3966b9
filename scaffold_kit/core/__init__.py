"""Execution context, faults, pattern lookup and whole-file operations."""

from scaffold_kit.core.context import ExecutionContext, MutationRecord, MutationStatus
from scaffold_kit.core.errors import (
    AnchorNotFoundError,
    InvalidDirectiveError,
    PathTraversalError,
    ScaffoldError,
    TargetFileMissingError,
)
from scaffold_kit.core.files import create_file, duplicate_file, set_ruby_version
from scaffold_kit.core.locator import Span, config_pattern, contains, locate, locate_all
from scaffold_kit.core.shell import CommandResult, run_eval

__all__ = [
    "AnchorNotFoundError",
    "CommandResult",
    "ExecutionContext",
    "InvalidDirectiveError",
    "MutationRecord",
    "MutationStatus",
    "PathTraversalError",
    "ScaffoldError",
    "Span",
    "TargetFileMissingError",
    "config_pattern",
    "contains",
    "create_file",
    "duplicate_file",
    "locate",
    "locate_all",
    "run_eval",
    "set_ruby_version",
]

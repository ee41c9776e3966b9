"""scaffold-kit: idempotent edits to a project's manifests and settings files."""

from scaffold_kit.core import ExecutionContext, MutationStatus, ScaffoldError

__version__ = "0.1.0"

__all__ = ["ExecutionContext", "MutationStatus", "ScaffoldError", "__version__"]

"""Idempotent mutators for the files a scaffold touches."""

from scaffold_kit.mutators.concern import ConcernBlock, upsert_concern
from scaffold_kit.mutators.grouped import GemDirective, GemfileMutator, gem, remove_gem
from scaffold_kit.mutators.keyed import KeyedDirectiveMutator, ProcessManifest, proc_file
from scaffold_kit.mutators.line_list import append_unique, gitignore, register_package
from scaffold_kit.mutators.sentinel import (
    ensure_sentinel,
    environment,
    environment_generator,
    include_model_concern,
    inject_after,
    inject_before,
    settings_targets,
)
from scaffold_kit.mutators.structured import deep_merge, docker_compose, merge, merge_file

__all__ = [
    "ConcernBlock",
    "GemDirective",
    "GemfileMutator",
    "KeyedDirectiveMutator",
    "ProcessManifest",
    "append_unique",
    "deep_merge",
    "docker_compose",
    "ensure_sentinel",
    "environment",
    "environment_generator",
    "gem",
    "gitignore",
    "include_model_concern",
    "inject_after",
    "inject_before",
    "merge",
    "merge_file",
    "proc_file",
    "register_package",
    "remove_gem",
    "settings_targets",
    "upsert_concern",
]

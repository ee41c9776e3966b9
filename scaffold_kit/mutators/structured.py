"""Deep-merge generated fragments into YAML documents."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import InvalidDirectiveError, ScaffoldError

logger = logging.getLogger(__name__)


def stringify_keys(value: Any) -> Any:
    """Recursively convert mapping keys to strings."""
    if isinstance(value, Mapping):
        return {str(k): stringify_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [stringify_keys(v) for v in value]
    return value


def deep_merge(existing: Mapping[str, Any], fragment: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge ``fragment`` into ``existing`` without mutating either.

    Keys only in ``existing`` survive untouched. For keys in both, two
    mappings are merged recursively; any other pair takes the fragment's
    value, so lists are replaced wholesale rather than concatenated.
    """
    merged = copy.deepcopy(dict(existing))
    for key, value in fragment.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge(
    existing: Mapping[str, Any] | None,
    fragment: Mapping[str, Any],
    skeleton: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Merge a fragment into an existing document, or into ``skeleton`` if absent.

    Args:
        existing: The current document, or None when there is none.
        fragment: Newly generated data.
        skeleton: Top-level document used in place of a missing one.

    Returns:
        The merged document with all keys stringified.
    """
    base = existing if existing is not None else (skeleton or {})
    return deep_merge(stringify_keys(base), stringify_keys(fragment))


def load_document(text: str, source: str | Path = "<fragment>") -> dict[str, Any] | None:
    """
    Parse YAML text into a mapping.

    Returns:
        The mapping, or None for an empty document.

    Raises:
        ScaffoldError: If the text is not valid YAML or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ScaffoldError(f"Failed to parse {source}: {e}") from e

    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise ScaffoldError(f"Expected a mapping at the top of {source}, got {type(data).__name__}")
    return dict(data)


def dump_document(document: Mapping[str, Any]) -> str:
    """Serialise a document in block style, preserving key order."""
    return yaml.safe_dump(dict(document), default_flow_style=False, sort_keys=False)


def merge_file(
    ctx: ExecutionContext,
    rel_path: str | Path,
    fragment: Mapping[str, Any] | str,
    skeleton: Mapping[str, Any] | None = None,
    action: str = "merge",
) -> MutationStatus:
    """
    Merge a fragment into a YAML file and rewrite the whole file.

    A missing file is created from ``skeleton`` plus the fragment.
    """
    if isinstance(fragment, str):
        parsed = load_document(fragment)
        if parsed is None:
            raise InvalidDirectiveError("Fragment is empty")
        fragment = parsed

    ctx.log(action, str(rel_path))
    current = ctx.read_optional(rel_path)

    if current is None:
        document = merge(None, fragment, skeleton)
        return ctx.write(rel_path, dump_document(document), action, MutationStatus.CREATED)

    existing = load_document(current, rel_path)
    document = merge(existing, fragment, skeleton)
    return ctx.mutate(rel_path, lambda _: dump_document(document), action)


def docker_compose(ctx: ExecutionContext, fragment: Mapping[str, Any] | str) -> MutationStatus:
    """Merge service definitions into the project's compose file."""
    return merge_file(
        ctx,
        ctx.settings.paths.compose,
        fragment,
        skeleton=ctx.settings.compose.skeleton(),
        action="docker_compose",
    )

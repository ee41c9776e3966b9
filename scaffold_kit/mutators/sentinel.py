"""Insert blocks relative to named anchors inside block-structured files.

Settings files come in two scopes. The global application file nests its
configuration two levels deep (``module`` / ``class``) and ends with
``  end\\nend``; each environment file nests one level deep and ends with
``end``. The same logical directive is applied once to the global file, or
once to every requested environment file, at that file's depth.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Iterable

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import AnchorNotFoundError, InvalidDirectiveError
from scaffold_kit.core.locator import PatternLike, config_pattern, contains, locate
from scaffold_kit.utils import insert_at, optimize_indentation, replace_span, split_directive

logger = logging.getLogger(__name__)

GLOBAL_END = re.compile(r"^  end\nend", re.MULTILINE)
SCOPED_END = re.compile(r"^end", re.MULTILINE)


@dataclass(frozen=True)
class SettingsTarget:
    """One settings file and the conventions for editing it."""

    path: str
    depth: int
    end_pattern: re.Pattern[str]
    scoped: bool = False


def settings_targets(
    ctx: ExecutionContext,
    env: str | Iterable[str] | None = None,
) -> list[SettingsTarget]:
    """
    Select the settings files a directive applies to.

    Args:
        ctx: Execution context.
        env: None for the global application file, or one or more
            environment names for the per-environment files.
    """
    paths = ctx.settings.paths
    if env is None:
        return [SettingsTarget(paths.application, 4, GLOBAL_END)]

    names = [env] if isinstance(env, str) else list(env)
    if not names:
        raise InvalidDirectiveError("At least one environment name is required")

    return [
        SettingsTarget(f"{paths.environments_dir}/{name}.rb", 2, SCOPED_END, scoped=True)
        for name in dict.fromkeys(str(n) for n in names)
    ]


# -- pure transforms -----------------------------------------------------


def insert_relative(
    contents: str,
    body: str,
    *,
    after: PatternLike | None = None,
    before: PatternLike | None = None,
) -> str | None:
    """
    Insert ``body`` right after or right before the first match of an anchor.

    The insertion is skipped when ``body`` already sits at that position.

    Returns:
        The new contents, or None if the anchor does not match.
    """
    if (after is None) == (before is None):
        raise ValueError("Exactly one of 'after' or 'before' is required")

    span = locate(contents, after if after is not None else before)
    if span is None:
        return None

    if after is not None:
        if contents.startswith(body, span.end):
            return contents
        return insert_at(contents, span.end, body)

    if contents[:span.start].endswith(body):
        return contents
    return insert_at(contents, span.start, body)


def sentinel_pattern(sentinel: str) -> re.Pattern[str]:
    """Pattern matching a sentinel line verbatim from the start of a line."""
    return re.compile("^" + re.escape(sentinel), re.MULTILINE)


def ensure_sentinel_text(
    contents: str,
    sentinel: str,
    closing: str,
    end_pattern: PatternLike,
    path: str | Path = "<text>",
) -> str:
    """Add ``sentinel`` and its ``closing`` text before the end marker if absent."""
    if contains(contents, sentinel_pattern(sentinel)):
        return contents

    result = insert_relative(contents, f"\n{sentinel}{closing}", before=end_pattern)
    if result is None:
        raise AnchorNotFoundError(path, _describe(end_pattern))
    return result


def replace_existing_setting(contents: str, data: str) -> str:
    """
    Overwrite an existing assignment to the same target as ``data``.

    An active line wins over a commented-out one; only the first match of
    either kind is rewritten.
    """
    target = re.escape(split_directive(data))
    active = re.compile(rf"^[ \t]*{target}[ \t]*=.*\n", re.MULTILINE)
    commented = re.compile(rf"^[ \t]*#[ \t]*{target}[ \t]*=.*\n", re.MULTILINE)

    for pattern in (active, commented):
        span = locate(contents, pattern)
        if span is not None:
            return replace_span(contents, span.start, span.end, data)
    return contents


def apply_setting(
    contents: str,
    data: str,
    target: SettingsTarget,
) -> str:
    """Upsert one configuration line into a settings file's outer block."""
    if contains(contents, config_pattern(data)):
        return contents
    replaced = replace_existing_setting(contents, data)
    if replaced != contents:
        return replaced

    body = data if target.scoped else f"\n{data}"
    result = insert_relative(contents, body, before=target.end_pattern)
    if result is None:
        raise AnchorNotFoundError(target.path, target.end_pattern.pattern)
    return result


def apply_generator_setting(
    contents: str,
    data: str,
    sentinel: str,
    target: SettingsTarget,
) -> str:
    """Upsert one line inside the generators block, creating the block on demand."""
    if contains(contents, config_pattern(data)):
        return contents
    replaced = replace_existing_setting(contents, data)
    if replaced != contents:
        return replaced

    closing = optimize_indentation("end", target.depth)
    contents = ensure_sentinel_text(contents, sentinel, closing, target.end_pattern, target.path)
    result = insert_relative(contents, data, after=sentinel_pattern(sentinel))
    if result is None:
        raise AnchorNotFoundError(target.path, sentinel)
    return result


def _describe(pattern: PatternLike) -> str:
    return pattern.pattern if isinstance(pattern, re.Pattern) else pattern


# -- file operations -----------------------------------------------------


def ensure_sentinel(
    ctx: ExecutionContext,
    rel_path: str | Path,
    sentinel: str,
    closing: str = "",
    end_pattern: PatternLike = SCOPED_END,
) -> MutationStatus:
    """
    Make sure a sentinel line exists, creating it before the end marker.

    A second call that needs the same sentinel detects it and changes nothing.
    """
    ctx.log("ensure_sentinel", sentinel.strip())
    return ctx.mutate(
        rel_path,
        lambda contents: ensure_sentinel_text(contents, sentinel, closing, end_pattern, rel_path),
        "ensure_sentinel",
    )


def inject_after(
    ctx: ExecutionContext,
    rel_path: str | Path,
    anchor: PatternLike,
    body: str,
) -> MutationStatus:
    """Place ``body`` immediately after the first match of ``anchor``."""
    return _inject(ctx, rel_path, body, "inject_after", after=anchor)


def inject_before(
    ctx: ExecutionContext,
    rel_path: str | Path,
    anchor: PatternLike,
    body: str,
) -> MutationStatus:
    """Place ``body`` immediately before the first match of ``anchor``."""
    return _inject(ctx, rel_path, body, "inject_before", before=anchor)


def _inject(
    ctx: ExecutionContext,
    rel_path: str | Path,
    body: str,
    action: str,
    **anchor: PatternLike,
) -> MutationStatus:
    (anchor_value,) = anchor.values()
    ctx.log(action, body.strip())

    def transform(contents: str) -> str:
        result = insert_relative(contents, body, **anchor)
        if result is None:
            raise AnchorNotFoundError(rel_path, _describe(anchor_value))
        return result

    return ctx.mutate(rel_path, transform, action)


def environment(
    ctx: ExecutionContext,
    data: str,
    env: str | Iterable[str] | None = None,
) -> None:
    """
    Set a configuration line in the application or environment settings.

    An existing assignment to the same target is updated in place; otherwise
    the line is added at the end of the outermost configuration block.
    """
    for target in settings_targets(ctx, env):
        line = optimize_indentation(data, target.depth)
        ctx.log("environment", f"{target.path}: {line.strip()}")
        ctx.mutate(
            target.path,
            lambda contents, line=line, target=target: apply_setting(contents, line, target),
            "environment",
        )


def environment_generator(
    ctx: ExecutionContext,
    data: str,
    env: str | Iterable[str] | None = None,
) -> None:
    """
    Set a configuration line inside the ``config.generators`` block.

    The block is created before the file's end marker the first time it is
    needed. Existing settings with the same target are updated.
    """
    block = ctx.settings.markers.generators_block
    for target in settings_targets(ctx, env):
        sentinel = optimize_indentation(block, target.depth)
        line = optimize_indentation(data, target.depth + 2)
        ctx.log("environment_generator", f"{target.path}: {line.strip()}")
        ctx.mutate(
            target.path,
            lambda contents, line=line, sentinel=sentinel, target=target: apply_generator_setting(
                contents, line, sentinel, target
            ),
            "environment_generator",
        )


def include_model_concern(
    ctx: ExecutionContext,
    model_path: str | Path,
    line: str = "include ResourceModel",
) -> MutationStatus:
    """
    Add a mixin line to a model, directly above its concerns marker.

    The inserted line takes the marker line's indentation.
    """
    marker = re.escape(ctx.settings.markers.model_concerns)
    pattern = re.compile(rf"^([ \t]*){marker}.*\n", re.MULTILINE)
    present = re.compile(rf"^[ \t]*{re.escape(line.strip())}[ \t]*$", re.MULTILINE)

    def transform(contents: str) -> str:
        if contains(contents, present):
            return contents
        match = pattern.search(contents)
        if match is None:
            raise AnchorNotFoundError(model_path, ctx.settings.markers.model_concerns)
        return insert_at(contents, match.start(), f"{match.group(1)}{line.strip()}\n")

    ctx.log("include_model_concern", f"{model_path}: {line.strip()}")
    return ctx.mutate(model_path, transform, "include_model_concern")

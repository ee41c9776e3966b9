"""Dependency manifest (Gemfile) directives with optional named groups.

Layout maintained by this module::

    ruby '~> 3.2.2'

    group :development, :test do
      gem "rspec-rails"
    end

    # Project gems

    gem "pundit"

Ungrouped directives go directly below the ``# Project gems`` sentinel.
Group blocks are kept in sorted order of their group names; a new block
goes before the first block that sorts after it, after the last block when
none does, and directly above the sentinel when there are no blocks yet.
New directives become the first line of their section.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import re
from typing import Any, Iterable

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import InvalidDirectiveError
from scaffold_kit.core.locator import Span, locate, locate_all
from scaffold_kit.mutators.keyed import KeyedDirectiveMutator
from scaffold_kit.utils import insert_at, replace_span

logger = logging.getLogger(__name__)

SYMBOL = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
GROUP_BLOCK = re.compile(
    r"^group\b(?P<args>[^\n]*?)\bdo[ \t]*\n.*?^end[ \t]*(?:\n|\Z)",
    re.MULTILINE | re.DOTALL,
)
GROUP_NAME = re.compile(r""":(\w+)|["'](\w+)["']""")
RUBY_DIRECTIVE_LINE = re.compile(r"^ruby .*\n", re.MULTILINE)
GROUP_INDENT = 2

# Stands in for a rewritten placeholder while stale copies are removed
_HOLD = "\x00scaffold_kit:hold\x00"


def render_value(value: Any) -> str:
    """Render a Python value as a Ruby literal."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "nil"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    return json.dumps(str(value))


def canonical_groups(groups: str | Iterable[str] | None) -> tuple[str, ...]:
    """
    Sort and deduplicate group names.

    Raises:
        InvalidDirectiveError: If a name is not a symbol-like token.
    """
    if groups is None:
        return ()
    names = [groups] if isinstance(groups, str) else [str(g) for g in groups]
    for name in names:
        if not SYMBOL.match(name.lstrip(":")):
            raise InvalidDirectiveError(f"Invalid group name: {name!r}")
    return tuple(sorted({name.lstrip(":") for name in names}))


def group_header(groups: Iterable[str]) -> str:
    """Render the opening line of a group block, e.g. ``group :a, :b do``."""
    return "group " + ", ".join(f":{name}" for name in groups) + " do"


@dataclass(frozen=True)
class GroupBlock:
    """A ``group ... do`` / ``end`` block found in a manifest."""

    groups: tuple[str, ...]
    span: Span
    body_start: int


def group_blocks(contents: str) -> list[GroupBlock]:
    """Find all top-level group blocks, in file order."""
    blocks = []
    for match in GROUP_BLOCK.finditer(contents):
        names = {a or b for a, b in GROUP_NAME.findall(match.group("args"))}
        body_start = contents.index("\n", match.start()) + 1
        blocks.append(
            GroupBlock(
                groups=tuple(sorted(names)),
                span=Span(match.start(), match.end(), match.group(0)),
                body_start=body_start,
            )
        )
    return blocks


@dataclass
class GemDirective:
    """A dependency requirement such as ``gem "rails", "~> 7.1", require: false``."""

    name: str
    versions: tuple[str, ...] = ()
    options: dict[str, Any] = field(default_factory=dict)
    comment: str | None = None

    def render_line(self) -> str:
        """The directive line itself, without comment or indentation."""
        parts = [render_value(self.name)]
        parts.extend(render_value(v) for v in self.versions)
        parts.extend(f"{key}: {render_value(value)}" for key, value in self.options.items())
        return "gem " + ", ".join(parts)

    def render(self, indent: int = 0) -> str:
        """Full text including comment lines, newline-terminated."""
        pad = " " * indent
        lines = [f"{pad}# {text}".rstrip() for text in (self.comment or "").splitlines()]
        lines.append(pad + self.render_line())
        return "\n".join(lines) + "\n"


class GemfileMutator(KeyedDirectiveMutator):
    """Keyed directives for a Gemfile, placed by group."""

    action = "gem"

    def __init__(self, project_gems_marker: str = "# Project gems") -> None:
        self.sentinel_line = re.compile(rf"^{re.escape(project_gems_marker)}[ \t]*$", re.MULTILINE)
        self.marker = project_gems_marker

    def key_pattern(self, key: str) -> str:
        return rf"""gem[ \t]+["']{re.escape(key)}["']"""

    def commented_directive(self) -> str:
        return r"""[ \t]*#[ \t]*gem[ \t]+["']"""

    def placeholder_pattern(self, key: str) -> re.Pattern[str]:
        """Pattern matching a commented-out directive for ``key``."""
        self._validate_key(key)
        return re.compile(
            rf"""^(?P<indent>[ \t]*)#[ \t]*gem[ \t]+["']{re.escape(key)}["'][^\n]*""",
            re.MULTILINE,
        )

    # -- pure transforms -------------------------------------------------

    def apply_text(
        self,
        contents: str,
        directive: GemDirective,
        groups: str | Iterable[str] | None = None,
    ) -> str:
        """
        Converge the manifest so ``directive`` is the single live copy.

        Nothing changes when an identical live copy already sits in the
        wanted section. A commented-out placeholder inside the wanted section
        is rewritten in place. Otherwise live copies and any placeholder line
        are removed and the directive is inserted at the top of its section.
        """
        groups = canonical_groups(groups)
        name = directive.name

        if self._in_section(contents, directive, groups):
            return contents

        placeholder = self.placeholder_pattern(name).search(contents)
        if placeholder is not None:
            if self._section_of(group_blocks(contents), placeholder.start()) == groups:
                indent = len(placeholder.group("indent"))
                contents = replace_span(contents, placeholder.start(), placeholder.end(), _HOLD)
                contents = self.remove_text(contents, name)
                return contents.replace(_HOLD, directive.render(indent).rstrip("\n"), 1)
            # The description comment above the placeholder stays where it is
            end = placeholder.end()
            if contents.startswith("\n", end):
                end += 1
            contents = replace_span(contents, placeholder.start(), end, "")

        contents = self.remove_text(contents, name)

        if groups:
            contents, block = self._ensure_group(contents, groups)
            return insert_at(contents, block.body_start, directive.render(GROUP_INDENT))

        contents, index = self._ensure_project_sentinel(contents)
        return insert_at(contents, index, directive.render())

    def _in_section(
        self,
        contents: str,
        directive: GemDirective,
        groups: tuple[str, ...],
    ) -> bool:
        """Whether an identical live copy already sits in the wanted section."""
        blocks = group_blocks(contents)
        wanted = directive.render_line()

        for span in locate_all(contents, self.active_pattern(directive.name)):
            if span.text.strip() != wanted:
                continue
            if self._section_of(blocks, span.start) == groups:
                return True
        return False

    @staticmethod
    def _section_of(blocks: list[GroupBlock], offset: int) -> tuple[str, ...]:
        """Groups of the block containing ``offset``; ``()`` at top level."""
        for block in blocks:
            if block.span.start <= offset < block.span.end:
                return block.groups
        return ()

    def _ensure_project_sentinel(self, contents: str) -> tuple[str, int]:
        """
        Make sure the ungrouped section exists.

        Returns:
            The contents and the offset just below the sentinel's blank line.
        """
        span = locate(contents, self.sentinel_line)

        if span is None:
            ruby = locate(contents, RUBY_DIRECTIVE_LINE)
            if ruby is not None and contents.startswith("\n", ruby.end):
                contents = insert_at(contents, ruby.end + 1, f"{self.marker}\n\n")
            elif ruby is not None:
                contents = insert_at(contents, ruby.end, f"\n{self.marker}\n\n")
            else:
                if contents and not contents.endswith("\n"):
                    contents += "\n"
                contents += f"\n{self.marker}\n\n" if contents else f"{self.marker}\n\n"
            span = locate(contents, self.sentinel_line)
            assert span is not None

        # A blank line always separates the sentinel from the first directive
        tail = contents[span.end:]
        if tail.startswith("\n\n"):
            return contents, span.end + 2
        if tail.startswith("\n"):
            return insert_at(contents, span.end + 1, "\n"), span.end + 2
        return insert_at(contents, span.end, "\n\n"), span.end + 2

    def _ensure_group(self, contents: str, groups: tuple[str, ...]) -> tuple[str, GroupBlock]:
        """Find or create the block for ``groups`` at its sorted position."""
        blocks = group_blocks(contents)
        for block in blocks:
            if block.groups == groups:
                return contents, block

        text = f"{group_header(groups)}\nend\n"
        later = [b for b in blocks if b.groups > groups]

        if later:
            contents = insert_at(contents, later[0].span.start, text + "\n")
        elif blocks:
            end = blocks[-1].span.end
            prefix = "\n" if contents[:end].endswith("\n") else "\n\n"
            contents = insert_at(contents, end, prefix + text)
        else:
            contents, _ = self._ensure_project_sentinel(contents)
            sentinel = locate(contents, self.sentinel_line)
            assert sentinel is not None
            contents = insert_at(contents, sentinel.start, text + "\n")

        block = next(b for b in group_blocks(contents) if b.groups == groups)
        return contents, block


def _mutator(ctx: ExecutionContext) -> GemfileMutator:
    return GemfileMutator(ctx.settings.markers.project_gems)


def gem(
    ctx: ExecutionContext,
    name: str,
    *versions: str,
    group: str | Iterable[str] | None = None,
    comment: str | None = None,
    **options: Any,
) -> MutationStatus:
    """
    Add a gem to the Gemfile, or update its existing directive.

    Args:
        ctx: Execution context.
        name: Gem name.
        *versions: Version requirements, e.g. ``"~> 7.1"``.
        group: Group name(s); the directive goes into the matching block.
        comment: Comment written on the line(s) above the directive.
        **options: Extra directive options, e.g. ``require=False``.
    """
    directive = GemDirective(name, tuple(versions), dict(options), comment)
    ctx.log("gem", directive.render_line())
    return ctx.mutate(
        ctx.settings.paths.gemfile,
        lambda contents: _mutator(ctx).apply_text(contents, directive, group),
        "gem",
    )


def remove_gem(ctx: ExecutionContext, name: str) -> MutationStatus:
    """Remove a gem and any comment lines directly above it from the Gemfile."""
    return _mutator(ctx).remove(ctx, ctx.settings.paths.gemfile, name)

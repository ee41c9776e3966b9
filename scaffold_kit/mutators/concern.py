"""Routing concern blocks keyed by resource.

A scaffolded resource owns one block in the routes file::

    concern :widget_routes do
      widget_concerns = %i[taggable]
      widget_concerns += shared_resource_concerns
      resources :widgets, concerns: widget_concerns do
        # pu:routes:widgets
      end
    end
    entity_resource_routes << :widget_routes
    admin_resource_routes << :widget_routes

The first scaffold inserts it above the ``# pu:add ... routes above`` marker.
Scaffolding the same resource again replaces the whole block, from the
``concern`` line through its last registration line, so repeated runs never
accumulate copies. Blocks are never deleted here.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import AnchorNotFoundError, InvalidDirectiveError
from scaffold_kit.core.locator import Span, locate
from scaffold_kit.utils import indent, insert_at, replace_span

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
ROUTES_INDENT = 2


@dataclass(frozen=True)
class ConcernBlock:
    """A resource's routing concern and its registrations."""

    resource: str
    plural: str
    concerns: tuple[str, ...] = ()
    register_entity: bool = True
    register_admin: bool = True

    def __post_init__(self) -> None:
        for value in (self.resource, self.plural, *self.concerns):
            if not IDENTIFIER.match(value):
                raise InvalidDirectiveError(f"Invalid route identifier: {value!r}")

    @classmethod
    def build(
        cls,
        resource: str,
        plural: str,
        concerns: Iterable[str] = (),
        restricted: bool = False,
    ) -> ConcernBlock:
        """
        Describe a resource's block.

        A restricted (admin-only) resource is not registered in the entity
        listing.
        """
        return cls(
            resource=resource,
            plural=plural,
            concerns=tuple(concerns),
            register_entity=not restricted,
            register_admin=True,
        )

    @property
    def key(self) -> str:
        """Name of the concern, e.g. ``widget_routes``."""
        return f"{self.resource}_routes"

    def render(self, depth: int = ROUTES_INDENT) -> str:
        """Block text indented to ``depth``, newline-terminated."""
        var = f"{self.resource}_concerns"
        lines = [
            f"concern :{self.key} do",
            f"  {var} = %i[{' '.join(self.concerns)}]",
            f"  {var} += shared_resource_concerns",
            f"  resources :{self.plural}, concerns: {var} do",
            f"    # pu:routes:{self.plural}",
            "  end",
            "end",
        ]
        if self.register_entity:
            lines.append(f"entity_resource_routes << :{self.key}")
        if self.register_admin:
            lines.append(f"admin_resource_routes << :{self.key}")
        return indent("\n".join(lines) + "\n", depth)


def locate_block(contents: str, key: str, path: str = "<text>") -> Span | None:
    """
    Find the full extent of an existing concern block.

    The search is two-step: the ``concern :<key> do`` opener first, then its
    closing ``end`` at the opener's own indentation, searching only after the
    opener. Registration lines for the same key that follow, possibly after
    blank lines, are included. This cannot run into another resource's block.

    Raises:
        AnchorNotFoundError: If the opener has no matching ``end``.
    """
    opener = re.compile(rf"^(?P<indent>[ \t]*)concern :{re.escape(key)} do[ \t]*\n", re.MULTILINE)
    match = opener.search(contents)
    if match is None:
        return None

    closer = re.compile(rf"^{match.group('indent')}end[ \t]*(?:\n|\Z)", re.MULTILINE)
    close = locate(contents, closer, match.end())
    if close is None:
        raise AnchorNotFoundError(path, f"end of concern :{key}")

    registration = re.compile(rf"(?:[ \t]*\n)*[ \t]*\w+ << :{re.escape(key)}[ \t]*(?:\n|\Z)")
    end = close.end
    while end < len(contents):
        reg = registration.match(contents, end)
        if reg is None:
            break
        end = reg.end()

    return Span(match.start(), end, contents[match.start():end])


def upsert_concern_text(
    contents: str,
    block: ConcernBlock,
    marker: str,
    path: str = "<text>",
) -> str:
    """Replace the resource's block, or insert it above ``marker``."""
    text = block.render()
    existing = locate_block(contents, block.key, path)
    if existing is not None:
        return replace_span(contents, existing.start, existing.end, text)

    anchor = locate(contents, re.compile(rf"^.*{re.escape(marker)}.*$", re.MULTILINE))
    if anchor is None:
        raise AnchorNotFoundError(path, marker)
    return insert_at(contents, anchor.start, text + "\n")


def upsert_concern(
    ctx: ExecutionContext,
    block: ConcernBlock,
    entity: bool = False,
    skip_existing: bool = False,
) -> MutationStatus:
    """
    Write a resource's routing concern into the routes file.

    Args:
        ctx: Execution context.
        block: The block to write.
        entity: Insert above the entity marker instead of the resource one.
        skip_existing: Leave an existing block for this resource untouched.
    """
    markers = ctx.settings.markers
    routes = ctx.settings.paths.routes
    marker = markers.entity_routes if entity else markers.resource_routes

    if skip_existing and locate_block(ctx.read(routes), block.key, routes) is not None:
        ctx.log("skip", f"concern :{block.key} (exists)")
        ctx.record("route", routes, MutationStatus.SKIPPED)
        return MutationStatus.SKIPPED

    ctx.log("route", f"concern :{block.key}")
    return ctx.mutate(
        routes,
        lambda contents: upsert_concern_text(contents, block, marker, routes),
        "route",
    )

"""Tests for routing concern blocks."""

import pytest

from scaffold_kit.core.context import MutationStatus
from scaffold_kit.core.errors import AnchorNotFoundError, InvalidDirectiveError
from scaffold_kit.mutators.concern import ConcernBlock, locate_block, upsert_concern, upsert_concern_text


def routes(ctx):
    return (ctx.root / "config/routes.rb").read_text()


class TestConcernBlock:
    """Tests for ConcernBlock."""

    def test_render(self):
        """Test the rendered block."""
        block = ConcernBlock.build("blog_post", "blog_posts", concerns=["taggable"])

        assert block.render() == (
            "  concern :blog_post_routes do\n"
            "    blog_post_concerns = %i[taggable]\n"
            "    blog_post_concerns += shared_resource_concerns\n"
            "    resources :blog_posts, concerns: blog_post_concerns do\n"
            "      # pu:routes:blog_posts\n"
            "    end\n"
            "  end\n"
            "  entity_resource_routes << :blog_post_routes\n"
            "  admin_resource_routes << :blog_post_routes\n"
        )

    def test_restricted_skips_entity_registration(self):
        """Test that admin-only resources are not listed as entities."""
        block = ConcernBlock.build("audit_log", "audit_logs", restricted=True)

        assert "entity_resource_routes" not in block.render()
        assert "admin_resource_routes << :audit_log_routes" in block.render()

    def test_invalid_identifier(self):
        """Test that resource names must be underscored identifiers."""
        with pytest.raises(InvalidDirectiveError):
            ConcernBlock.build("Blog-Post", "blog_posts")

    def test_locate_block_stops_at_own_end(self):
        """Test that the block extent does not run into the next block."""
        first = ConcernBlock.build("widget", "widgets").render()
        second = ConcernBlock.build("gadget", "gadgets").render()

        span = locate_block(first + second, "widget_routes")

        assert span is not None
        assert span.text == first

    def test_locate_block_skips_blank_lines_before_registration(self):
        """Test that a registration after a blank line belongs to the block."""
        block = ConcernBlock.build("widget", "widgets").render()
        body, registrations = block.split("  end\n  entity", 1)
        text = body + "  end\n\n  entity" + registrations + "\n  # pu:add resource routes above\n"

        span = locate_block(text, "widget_routes")

        assert span is not None
        assert span.text.endswith("admin_resource_routes << :widget_routes\n")

    def test_missing_marker(self):
        """Test inserting without the marker."""
        block = ConcernBlock.build("widget", "widgets")

        with pytest.raises(AnchorNotFoundError):
            upsert_concern_text("Rails.application.routes.draw do\nend\n", block, "# pu:add resource routes above")


class TestUpsertConcern:
    """Tests for upsert_concern."""

    def test_inserts_above_resource_marker(self, ctx):
        """Test the first scaffold of a resource."""
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts", concerns=["taggable"]))

        content = routes(ctx)
        assert content.index("concern :blog_post_routes do") < content.index("# pu:add resource routes above")
        assert "  entity_resource_routes << :blog_post_routes\n" in content

    def test_replaces_instead_of_accumulating(self, ctx):
        """Test that re-scaffolding replaces the whole block."""
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts", concerns=["taggable"]))
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts", concerns=["taggable", "commentable"]))

        content = routes(ctx)
        assert content.count("concern :blog_post_routes do") == 1
        assert content.count("admin_resource_routes << :blog_post_routes") == 1
        assert "%i[taggable commentable]" in content
        assert "%i[taggable]\n" not in content

    def test_idempotent(self, ctx):
        """Test that the same block twice changes nothing."""
        block = ConcernBlock.build("blog_post", "blog_posts")
        upsert_concern(ctx, block)

        assert upsert_concern(ctx, block) == MutationStatus.UNCHANGED

    def test_restricted_replacement_drops_entity_registration(self, ctx):
        """Test that switching to restricted removes the entity registration."""
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts"))
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts", restricted=True))

        content = routes(ctx)
        assert "entity_resource_routes" not in content
        assert content.count("admin_resource_routes << :blog_post_routes") == 1

    def test_other_blocks_untouched(self, ctx):
        """Test that replacing one resource leaves others alone."""
        upsert_concern(ctx, ConcernBlock.build("widget", "widgets"))
        upsert_concern(ctx, ConcernBlock.build("gadget", "gadgets"))
        gadget = ConcernBlock.build("gadget", "gadgets").render()

        upsert_concern(ctx, ConcernBlock.build("widget", "widgets", concerns=["archivable"]))

        content = routes(ctx)
        assert gadget in content
        assert "%i[archivable]" in content

    def test_replaces_registration_after_blank_line(self, ctx):
        """Test that re-scaffolding does not duplicate a detached registration."""
        path = ctx.root / "config/routes.rb"
        text = ConcernBlock.build("widget", "widgets").render().replace(
            "  end\n  entity_resource_routes", "  end\n\n  entity_resource_routes"
        )
        marker = "  # pu:add resource routes above"
        path.write_text(path.read_text().replace(marker, text + "\n" + marker))

        upsert_concern(ctx, ConcernBlock.build("widget", "widgets", concerns=["taggable"]))

        content = routes(ctx)
        assert content.count("entity_resource_routes << :widget_routes") == 1
        assert content.count("admin_resource_routes << :widget_routes") == 1

    def test_entity_marker(self, ctx):
        """Test inserting above the entity marker."""
        upsert_concern(ctx, ConcernBlock.build("author", "authors"), entity=True)

        content = routes(ctx)
        position = content.index("concern :author_routes do")
        assert content.index("# pu:add resource routes above") < position
        assert position < content.index("# pu:add entity routes above")

    def test_skip_existing(self, ctx):
        """Test leaving an existing block untouched."""
        upsert_concern(ctx, ConcernBlock.build("blog_post", "blog_posts"))
        before = routes(ctx)

        status = upsert_concern(
            ctx,
            ConcernBlock.build("blog_post", "blog_posts", concerns=["taggable"]),
            skip_existing=True,
        )

        assert status == MutationStatus.SKIPPED
        assert routes(ctx) == before

"""Tests for whole-file operations."""

from pathlib import Path

import pytest

from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import TargetFileMissingError
from scaffold_kit.core.files import create_file, duplicate_file, set_ruby_version


class TestCreateFile:
    """Tests for create_file."""

    def test_creates_missing_file(self, empty_ctx):
        """Test creating a new file."""
        status = create_file(empty_ctx, "config/initializers/app.rb", "# app\n")

        assert status == MutationStatus.CREATED
        assert (empty_ctx.root / "config/initializers/app.rb").read_text() == "# app\n"

    def test_skips_existing_file(self, ctx):
        """Test that an existing file is kept without force."""
        original = (ctx.root / "Gemfile").read_text()

        status = create_file(ctx, "Gemfile", "replaced\n")

        assert status == MutationStatus.SKIPPED
        assert (ctx.root / "Gemfile").read_text() == original

    def test_force_overwrites(self, ctx):
        """Test that force overwrites an existing file."""
        status = create_file(ctx, "Gemfile", "replaced\n", force=True)

        assert status == MutationStatus.UPDATED
        assert (ctx.root / "Gemfile").read_text() == "replaced\n"

    def test_context_force_is_default(self, rails_project: Path):
        """Test that the context's force flag applies when not given."""
        ctx = ExecutionContext.for_project(rails_project, force=True)

        assert create_file(ctx, "Gemfile", "replaced\n") == MutationStatus.UPDATED

    def test_identical_content_unchanged(self, ctx):
        """Test that identical content is not rewritten."""
        content = (ctx.root / "Gemfile").read_text()

        assert create_file(ctx, "Gemfile", content) == MutationStatus.UNCHANGED


class TestDuplicateFile:
    """Tests for duplicate_file."""

    def test_copies_file(self, ctx):
        """Test copying a project file."""
        status = duplicate_file(ctx, "config/environments/production.rb", "config/environments/staging.rb")

        assert status == MutationStatus.CREATED
        assert (ctx.root / "config/environments/staging.rb").read_text() == (
            ctx.root / "config/environments/production.rb"
        ).read_text()

    def test_missing_source(self, ctx):
        """Test copying a missing file."""
        with pytest.raises(TargetFileMissingError):
            duplicate_file(ctx, "missing.rb", "copy.rb")


class TestSetRubyVersion:
    """Tests for set_ruby_version."""

    def test_pins_version(self, ctx):
        """Test that both the version file and the Gemfile are updated."""
        set_ruby_version(ctx, "3.3.0")

        assert (ctx.root / ".ruby-version").read_text() == "3.3.0"
        gemfile = (ctx.root / "Gemfile").read_text()
        assert "ruby '~> 3.3.0'" in gemfile
        assert 'ruby "3.2.2"' not in gemfile

    def test_default_version_from_settings(self, ctx):
        """Test that the configured version is used by default."""
        set_ruby_version(ctx)

        assert (ctx.root / ".ruby-version").read_text() == ctx.settings.ruby_version

    def test_requires_gemfile(self, empty_ctx):
        """Test that a project without a Gemfile is rejected."""
        with pytest.raises(TargetFileMissingError):
            set_ruby_version(empty_ctx, "3.3.0")

        assert not (empty_ctx.root / ".ruby-version").exists()

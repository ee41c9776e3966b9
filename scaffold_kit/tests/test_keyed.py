"""Tests for keyed single-line directives."""

import pytest

from scaffold_kit.core.context import MutationStatus
from scaffold_kit.core.errors import AnchorNotFoundError, InvalidDirectiveError
from scaffold_kit.mutators.keyed import ProcessManifest, proc_file


class TestKeyedDirectiveMutator:
    """Tests for the pure keyed transforms."""

    def test_replaces_in_place(self):
        """Test that an existing directive is rewritten where it is."""
        text = "web: bin/rails server\nworker: bundle exec sidekiq\n"

        result = ProcessManifest().upsert_text(text, "web", "web: bundle exec puma")

        assert result == "web: bundle exec puma\nworker: bundle exec sidekiq\n"

    def test_duplicates_collapse_to_first_position(self):
        """Test that later live copies are removed after the in-place rewrite."""
        text = "web: a\nworker: x\n# old web\nweb: b\n"

        result = ProcessManifest().upsert_text(text, "web", "web: c")

        assert result == "web: c\nworker: x\n"

    def test_key_prefix_does_not_match(self):
        """Test that a key is not matched as a prefix of another key."""
        result = ProcessManifest().upsert_text("webpack: npx webpack\n", "web", "web: puma")

        assert result == "webpack: npx webpack\nweb: puma\n"

    def test_insert_before_anchor(self):
        """Test placing a new directive before an anchor."""
        result = ProcessManifest().upsert_text("a: 1\nc: 3\n", "b", "b: 2", before=r"^c:")

        assert result == "a: 1\nb: 2\nc: 3\n"

    def test_missing_anchor(self):
        """Test that a missing anchor is reported."""
        with pytest.raises(AnchorNotFoundError):
            ProcessManifest().upsert_text("a: 1\n", "b", "b: 2", after=r"^zzz")

    def test_remove_with_leading_comments(self):
        """Test removal takes the comment lines directly above."""
        text = "# Web server\n# port 3000\nweb: puma\n\n# Worker\nworker: sidekiq\n"

        result = ProcessManifest().remove_text(text, "web")

        assert result == "\n# Worker\nworker: sidekiq\n"

    def test_remove_keeps_other_commented_directive(self):
        """Test that another key's commented-out directive is not removed."""
        text = "# Background jobs\n# worker: sidekiq\nweb: puma\n"

        result = ProcessManifest().remove_text(text, "web")

        assert result == "# Background jobs\n# worker: sidekiq\n"

    def test_remove_stops_at_blank_line(self):
        """Test that comments separated by a blank line are kept."""
        result = ProcessManifest().remove_text("# unrelated\n\nweb: puma\n", "web")

        assert result == "# unrelated\n\n"

    def test_remove_missing_is_noop(self):
        """Test removing a key that is not present."""
        assert ProcessManifest().remove_text("worker: x\n", "web") == "worker: x\n"

    def test_find(self):
        """Test looking up the live directive."""
        manifest = ProcessManifest()

        assert manifest.find("# web: old\nweb: new\n", "web") == "web: new"
        assert manifest.find("worker: x\n", "web") is None

    def test_invalid_key(self):
        """Test that empty keys are rejected."""
        with pytest.raises(InvalidDirectiveError):
            ProcessManifest().find("web: x\n", "")


class TestProcFile:
    """Tests for proc_file."""

    def test_replace_keeps_line_count(self, empty_ctx):
        """Test that updating a process does not grow the file."""
        path = empty_ctx.root / "Procfile"
        path.write_text("web: bin/rails server\nworker: bundle exec sidekiq\n")

        proc_file(empty_ctx, "web", "bundle exec puma -C config/puma.rb")

        content = path.read_text()
        assert len(content.splitlines()) == 2
        assert content.startswith("web: bundle exec puma -C config/puma.rb\n")

    def test_environment_manifest_created(self, empty_ctx):
        """Test that Procfile.<env> is created on demand."""
        proc_file(empty_ctx, "css", "bin/rails tailwindcss:watch", env="dev")

        assert (empty_ctx.root / "Procfile.dev").read_text() == "css: bin/rails tailwindcss:watch\n"
        assert not (empty_ctx.root / "Procfile").exists()

    def test_idempotent(self, empty_ctx):
        """Test that a repeated call changes nothing."""
        proc_file(empty_ctx, "web", "puma")

        assert proc_file(empty_ctx, "web", "puma") == MutationStatus.UNCHANGED
        assert (empty_ctx.root / "Procfile").read_text() == "web: puma\n"

    def test_remove(self, empty_ctx):
        """Test removing a process from the manifest."""
        path = empty_ctx.root / "Procfile"
        path.write_text("# Web\nweb: puma\nworker: sidekiq\n")

        status = ProcessManifest().remove(empty_ctx, "Procfile", "web")

        assert status == MutationStatus.UPDATED
        assert path.read_text() == "worker: sidekiq\n"

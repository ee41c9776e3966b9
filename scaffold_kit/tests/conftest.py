"""Test fixtures for scaffold-kit."""

from __future__ import annotations

from pathlib import Path
from typing import Generator
import tempfile
import shutil

import pytest

from scaffold_kit.core.context import ExecutionContext

GEMFILE = """source "https://rubygems.org"

ruby "3.2.2"

gem "rails", "~> 7.1"
"""

APPLICATION_RB = """require_relative "boot"

module Blog
  class Application < Rails::Application
    config.load_defaults 7.1
  end
end
"""

ENVIRONMENT_RB = """Rails.application.configure do
  config.cache_classes = false
  # config.action_mailer.raise_delivery_errors = true
end
"""

ROUTES_RB = """Rails.application.routes.draw do
  # pu:add resource routes above

  # pu:add entity routes above
end
"""

PACKAGES_RB = """# Package engines
"""


@pytest.fixture
def temp_project_dir() -> Generator[Path, None, None]:
    """Create a temporary project directory."""
    temp_dir = tempfile.mkdtemp(prefix="scaffold_kit_test_")
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def rails_project(temp_project_dir: Path) -> Path:
    """Create a temp project with the usual Rails settings and manifests."""
    files = {
        "Gemfile": GEMFILE,
        "config/application.rb": APPLICATION_RB,
        "config/environments/development.rb": ENVIRONMENT_RB,
        "config/environments/production.rb": ENVIRONMENT_RB,
        "config/routes.rb": ROUTES_RB,
        "config/packages.rb": PACKAGES_RB,
    }
    for rel_path, content in files.items():
        path = temp_project_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return temp_project_dir


@pytest.fixture
def ctx(rails_project: Path) -> ExecutionContext:
    """Execution context for the Rails-like project."""
    return ExecutionContext.for_project(rails_project)


@pytest.fixture
def empty_ctx(temp_project_dir: Path) -> ExecutionContext:
    """Execution context for an empty project."""
    return ExecutionContext.for_project(temp_project_dir)

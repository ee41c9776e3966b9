"""Pydantic settings for scaffold-kit configuration."""

from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = ".scaffold_kit.yaml"


class PathsConfig(BaseModel):
    """Project-relative locations of the files the engine edits."""

    gemfile: str = "Gemfile"
    ruby_version_file: str = ".ruby-version"
    procfile: str = "Procfile"
    gitignore: str = ".gitignore"
    application: str = "config/application.rb"
    environments_dir: str = "config/environments"
    routes: str = "config/routes.rb"
    compose: str = "docker-compose.yml"
    packages: str = "config/packages.rb"


class MarkersConfig(BaseModel):
    """Sentinel comments and block openers used as insertion anchors."""

    project_gems: str = "# Project gems"
    generators_block: str = "config.generators do |g|"
    resource_routes: str = "# pu:add resource routes above"
    entity_routes: str = "# pu:add entity routes above"
    model_concerns: str = "# pu:add concerns"


class ComposeConfig(BaseModel):
    """Skeleton for a compose document created from scratch."""

    version: str = "3.7"

    def skeleton(self) -> dict[str, Any]:
        """Top-level document used when no compose file exists yet."""
        return {"version": self.version, "services": {}}


class Settings(BaseSettings):
    """Main settings for scaffold-kit."""

    model_config = SettingsConfigDict(
        env_prefix="SCAFFOLD_KIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # General
    debug: bool = False
    verbose: bool = False
    log_level: str = "WARNING"

    # Written to .ruby-version and the Gemfile ruby directive
    ruby_version: str = "3.2.2"

    paths: PathsConfig = Field(default_factory=PathsConfig)
    markers: MarkersConfig = Field(default_factory=MarkersConfig)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_settings_from_yaml(yaml_path: Path) -> Settings:
    """Load settings from a YAML file."""
    with open(yaml_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return Settings.model_validate(data or {})


def load_project_settings(project_root: Path) -> Settings:
    """
    Load settings from the project's .scaffold_kit.yaml if it exists.

    Args:
        project_root: Path to the project root directory.

    Returns:
        Settings from the file, or defaults when it is absent or invalid.
    """
    config_path = project_root / PROJECT_CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("No %s found in %s", PROJECT_CONFIG_FILENAME, project_root)
        return Settings()

    try:
        settings = load_settings_from_yaml(config_path)
        logger.info("Loaded project settings from %s", config_path)
        return settings
    except yaml.YAMLError as e:
        logger.error("Failed to parse %s: %s", config_path, e)
    except ValidationError as e:
        logger.error("Invalid config in %s: %s", config_path, e)

    return Settings()


def get_default_config() -> dict[str, Any]:
    """Get default configuration as a dictionary."""
    return Settings().model_dump()

"""Configuration module for scaffold-kit."""

from scaffold_kit.config.settings import (
    Settings,
    get_settings,
    load_project_settings,
    load_settings_from_yaml,
)

__all__ = ["Settings", "get_settings", "load_project_settings", "load_settings_from_yaml"]

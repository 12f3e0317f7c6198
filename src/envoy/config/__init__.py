"""
Configuration module for Envoy.

Uses pydantic-settings for environment variable loading and layered
YAML config files.
"""

from envoy.config.settings import (
    Settings,
    find_git_root,
    find_project_root,
)
from envoy.config.sources import ConfigFileError

__all__ = ["ConfigFileError", "Settings", "find_git_root", "find_project_root"]

"""
Shared constants for Envoy.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Skill layout
SKILL_FILE_NAME = "SKILL.md"
"""Fixed file name of a skill definition inside its directory."""

PLUGIN_NAMESPACE = "envoy"
"""Prefix (before ':') that forces resolution to the plugin copy of a skill."""

DEFAULT_SKILL_MAX_DEPTH = 3
"""Maximum subdirectory depth searched for SKILL.md files."""

FRONTMATTER_DELIMITER = "---"
"""Line that opens and closes a frontmatter block."""

# Stack detection
DEFAULT_FILE_MAX_DEPTH = 3
"""Maximum depth below the project root for file-existence rules."""

DEFAULT_QUERY_TIMEOUT_SECONDS = 5.0
"""Per-rule time budget for a filesystem query."""

DEFAULT_IGNORED_DIRS = (".git", "node_modules")
"""Directory names never descended into during stack detection."""

STACK_PROFILE_SUFFIX = ".md"
"""File suffix of stack profile documents."""

# Well-known locations
PLUGIN_ROOT_ENV = "CLAUDE_PLUGIN_ROOT"
"""Environment variable the host sets to the plugin's install directory."""

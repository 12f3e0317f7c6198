"""Configuration type definitions for Envoy settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:
- SkillsConfig: skill roots, search depth, plugin namespace
- StacksConfig: profile directory, detection depth, timeout, ignored dirs
- LoggingConfig: log level

Design decision: All types use `extra="allow"` to preserve unknown fields,
so `config show` can point out typos. Use `get_extra_fields()` to inspect
unknown fields.
"""

import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import envoy.constants as constants
import envoy.skills.discovery as skill_discovery

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    All config types use `extra="allow"` so unknown fields are preserved
    rather than silently dropped.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this config and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"skills.max_dept": 2, "stacks.timout_seconds": 1}
        """
        result: dict[str, _typing.Any] = {}

        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))

        return result


def _expand_path(value: _typing.Any) -> _typing.Any:
    """Expand ~ in path-like config values."""
    if isinstance(value, (str, _pathlib.Path)):
        return _pathlib.Path(value).expanduser()
    return value


# =============================================================================
# Skills
# =============================================================================


class SkillsConfig(ConfigBase):
    """
    Skill resolution settings.

    YAML section: skills.*
    """

    plugin_dir: _pathlib.Path | None = None
    """Plugin skills directory (default: <plugin_root>/skills)."""

    personal_dir: _pathlib.Path | None = _pydantic.Field(
        default_factory=skill_discovery.get_personal_skills_path
    )
    """Personal skills directory; null disables personal skills."""

    max_depth: int = _pydantic.Field(default=constants.DEFAULT_SKILL_MAX_DEPTH, ge=0, le=16)
    """Deepest subdirectory level searched for SKILL.md files."""

    namespace: str = _pydantic.Field(default=constants.PLUGIN_NAMESPACE, min_length=1)
    """Prefix that forces a reference to resolve to the plugin copy."""

    @_pydantic.field_validator("plugin_dir", "personal_dir", mode="before")
    @classmethod
    def _expand_dirs(cls, value: _typing.Any) -> _typing.Any:
        return _expand_path(value)


# =============================================================================
# Stacks
# =============================================================================


class StacksConfig(ConfigBase):
    """
    Stack detection and profile settings.

    YAML section: stacks.*
    """

    profiles_dir: _pathlib.Path | None = None
    """Stack profile directory (default: <plugin_root>/stacks)."""

    file_max_depth: int = _pydantic.Field(default=constants.DEFAULT_FILE_MAX_DEPTH, ge=1, le=32)
    """Depth bound for file-existence rules."""

    timeout_seconds: float | None = _pydantic.Field(
        default=constants.DEFAULT_QUERY_TIMEOUT_SECONDS, gt=0
    )
    """Time budget per rule evaluation; null for no limit."""

    ignored_dirs: list[str] = _pydantic.Field(
        default_factory=lambda: list(constants.DEFAULT_IGNORED_DIRS)
    )
    """Directory names never descended into."""

    @_pydantic.field_validator("profiles_dir", mode="before")
    @classmethod
    def _expand_dirs(cls, value: _typing.Any) -> _typing.Any:
        return _expand_path(value)


# =============================================================================
# Logging
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Diagnostic logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    """Root log level for the CLI."""

    @_pydantic.field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: _typing.Any) -> _typing.Any:
        return value.upper() if isinstance(value, str) else value

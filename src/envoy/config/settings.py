"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with ENVOY_ prefix
3. .env file (if ENVOY_ENV_FILE points at one)
4. Layered YAML config files:
   - Project config: .envoy/config.yaml (highest)
   - User config: ~/.config/envoy/config.yaml

Nested config uses double underscore delimiter:
  ENVOY_SKILLS__MAX_DEPTH=2
  ENVOY_STACKS__TIMEOUT_SECONDS=10
"""

import os as _os
import pathlib as _pathlib
import subprocess as _subprocess
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import envoy.config.sources as sources
import envoy.config.types as types
import envoy.constants as constants


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only ENVOY_ENV_FILE is honoured; if it is set but missing, no .env is
    loaded rather than silently falling back.
    """
    if env_file := _os.environ.get("ENVOY_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


def _default_plugin_root() -> _pathlib.Path:
    """Plugin install directory as set by the host, else the cwd."""
    if plugin_root := _os.environ.get(constants.PLUGIN_ROOT_ENV):
        return _pathlib.Path(plugin_root).expanduser()
    return _pathlib.Path.cwd()


def find_git_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path | None:
    """Find the git repository root from the given path or current directory."""
    if start_path is None:
        start_path = _pathlib.Path.cwd()

    try:
        result = _subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            cwd=start_path,
            timeout=5,
        )
        if result.returncode == 0:
            return _pathlib.Path(result.stdout.strip())
    except (_subprocess.TimeoutExpired, FileNotFoundError, OSError):
        pass
    return None


def find_project_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path:
    """
    Find the project root directory.

    Tries (in order):
    1. Git repository root
    2. Nearest ancestor containing .envoy/ or .git
    3. Current working directory
    """
    if start_path is None:
        start_path = _pathlib.Path.cwd()

    git_root = find_git_root(start_path)
    if git_root:
        return git_root

    current = start_path.resolve()
    markers = [".envoy", ".git"]
    while current != current.parent:
        if any((current / marker).exists() for marker in markers):
            return current
        current = current.parent

    return _pathlib.Path.cwd()


class Settings(_pydantic_settings.BaseSettings):
    """
    Envoy configuration settings.

    All settings can be overridden via environment variables with ENVOY_ prefix.
    For nested config, use double underscore: ENVOY_SKILLS__MAX_DEPTH=2

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (ENVOY_*)
    3. .env file
    4. Project config (.envoy/config.yaml)
    5. User config (~/.config/envoy/config.yaml)
    6. Field defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="ENVOY_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # ENVOY_SKILLS__MAX_DEPTH
        extra="allow",  # Preserve unknown fields so config show can flag them
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (ENVOY_* env vars)
        3. dotenv_settings (.env file)
        4. yaml settings (project + user config.yaml)
        5. (defaults via Field definitions), lowest
        """
        if project_root_env := _os.environ.get("ENVOY_PROJECT_ROOT"):
            project_root = _pathlib.Path(project_root_env)
        else:
            project_root = find_project_root()

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.YamlSettingsSource(settings_cls, project_root),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables only, without loading .env file.

        Useful for test isolation and CI, where a stray .env must not leak in.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    # =========================================================================
    # Locations
    # =========================================================================

    plugin_root: _pathlib.Path = _pydantic.Field(default_factory=_default_plugin_root)
    """Envoy plugin install directory (holds skills/ and stacks/)."""

    project_root: _pathlib.Path = _pydantic.Field(default_factory=find_project_root)
    """Project being worked on (default target for stack detection)."""

    # =========================================================================
    # Nested config sections
    # =========================================================================

    skills: types.SkillsConfig = _pydantic.Field(default_factory=types.SkillsConfig)
    """Skill resolution settings."""

    stacks: types.StacksConfig = _pydantic.Field(default_factory=types.StacksConfig)
    """Stack detection and profile settings."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    @_pydantic.field_validator("plugin_root", "project_root", mode="before")
    @classmethod
    def _expand_roots(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            return _pathlib.Path(value).expanduser()
        return value

    # =========================================================================
    # Derived paths
    # =========================================================================

    @property
    def plugin_skills_dir(self) -> _pathlib.Path:
        """Plugin skills directory."""
        return self.skills.plugin_dir or self.plugin_root / "skills"

    @property
    def personal_skills_dir(self) -> _pathlib.Path | None:
        """Personal skills directory, or None if disabled."""
        return self.skills.personal_dir

    @property
    def stacks_dir(self) -> _pathlib.Path:
        """Stack profile directory."""
        return self.stacks.profiles_dir or self.plugin_root / "stacks"

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Collect every unrecognized config key, with dotted paths.

        Top-level unknown keys come from Settings.model_extra; nested ones
        from each section.
        """
        result: dict[str, _typing.Any] = dict(self.model_extra or {})
        for name in ("skills", "stacks", "logging"):
            section: types.ConfigBase = getattr(self, name)
            result.update(section.collect_all_extra_fields(name))
        return result

    def to_dict(self) -> dict[str, _typing.Any]:
        """Effective configuration for display (paths as strings)."""
        return {
            "plugin_root": str(self.plugin_root),
            "project_root": str(self.project_root),
            "plugin_skills_dir": str(self.plugin_skills_dir),
            "personal_skills_dir": (
                str(self.personal_skills_dir) if self.personal_skills_dir else None
            ),
            "stacks_dir": str(self.stacks_dir),
            "skills": {
                "max_depth": self.skills.max_depth,
                "namespace": self.skills.namespace,
            },
            "stacks": {
                "file_max_depth": self.stacks.file_max_depth,
                "timeout_seconds": self.stacks.timeout_seconds,
                "ignored_dirs": list(self.stacks.ignored_dirs),
            },
            "logging": {"level": self.logging.level},
        }

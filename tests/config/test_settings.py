"""
Tests for configuration settings.

Every test runs with ENVOY_CONFIG_DIR and ENVOY_PROJECT_ROOT pointed at
empty temporary directories (see conftest.isolated_env).
"""

import os as _os
import pathlib as _pathlib
import subprocess as _subprocess
import unittest.mock as _mock

import pydantic as _pydantic
import pytest as _pytest

import envoy.config as config
import envoy.config.settings as settings_module
import envoy.config.types as types


def _user_config(content: str) -> _pathlib.Path:
    path = _pathlib.Path(_os.environ["ENVOY_CONFIG_DIR"]) / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def _project_config(content: str) -> _pathlib.Path:
    path = _pathlib.Path(_os.environ["ENVOY_PROJECT_ROOT"]) / ".envoy" / "config.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestSettingsDefaults:
    """Test Settings default values when environment is clean."""

    def test_default_skill_settings(self) -> None:
        """Skill settings have their documented defaults."""
        settings = config.Settings.construct_without_dotenv()
        assert settings.skills.max_depth == 3
        assert settings.skills.namespace == "envoy"
        assert settings.personal_skills_dir == _pathlib.Path.home() / ".claude" / "skills"

    def test_default_stack_settings(self) -> None:
        """Stack settings have their documented defaults."""
        settings = config.Settings.construct_without_dotenv()
        assert settings.stacks.file_max_depth == 3
        assert settings.stacks.timeout_seconds == 5.0
        assert settings.stacks.ignored_dirs == [".git", "node_modules"]

    def test_default_log_level(self) -> None:
        """Logging is quiet by default."""
        assert config.Settings.construct_without_dotenv().logging.level == "WARNING"

    def test_plugin_root_from_host_env(
        self,
        monkeypatch: _pytest.MonkeyPatch,
        tmp_path: _pathlib.Path,
    ) -> None:
        """CLAUDE_PLUGIN_ROOT sets the plugin root and derived directories."""
        monkeypatch.setenv("CLAUDE_PLUGIN_ROOT", str(tmp_path))
        settings = config.Settings.construct_without_dotenv()
        assert settings.plugin_root == tmp_path
        assert settings.plugin_skills_dir == tmp_path / "skills"
        assert settings.stacks_dir == tmp_path / "stacks"

    def test_plugin_root_falls_back_to_cwd(self) -> None:
        """Without a host setting the plugin root is the cwd."""
        assert config.Settings.construct_without_dotenv().plugin_root == _pathlib.Path.cwd()

    def test_project_root_from_env(self) -> None:
        """ENVOY_PROJECT_ROOT sets the project root."""
        settings = config.Settings.construct_without_dotenv()
        assert settings.project_root == _pathlib.Path(_os.environ["ENVOY_PROJECT_ROOT"])

    def test_project_root_discovered_without_env(
        self,
        monkeypatch: _pytest.MonkeyPatch,
        tmp_path: _pathlib.Path,
    ) -> None:
        """Without ENVOY_PROJECT_ROOT the project root is discovered."""
        monkeypatch.delenv("ENVOY_PROJECT_ROOT")
        monkeypatch.setattr(settings_module, "find_git_root", lambda *_args: tmp_path)
        assert config.Settings.construct_without_dotenv().project_root == tmp_path


class TestSettingsLayers:
    """Test precedence between YAML layers, env vars and arguments."""

    def test_user_config_applies(self) -> None:
        """User config values are used."""
        _user_config("skills:\n  max_depth: 5\n")
        assert config.Settings.construct_without_dotenv().skills.max_depth == 5

    def test_project_overrides_user(self) -> None:
        """Project config wins over user config, key by key."""
        _user_config("skills:\n  max_depth: 5\n  namespace: mine\n")
        _project_config("skills:\n  max_depth: 1\n")

        settings = config.Settings.construct_without_dotenv()

        assert settings.skills.max_depth == 1
        assert settings.skills.namespace == "mine"

    def test_env_overrides_yaml(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Nested env vars win over config files."""
        _project_config("stacks:\n  timeout_seconds: 2\n  file_max_depth: 4\n")
        monkeypatch.setenv("ENVOY_STACKS__TIMEOUT_SECONDS", "9")

        settings = config.Settings.construct_without_dotenv()

        assert settings.stacks.timeout_seconds == 9.0
        assert settings.stacks.file_max_depth == 4

    def test_arguments_override_env(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Constructor arguments have the final say."""
        monkeypatch.setenv("ENVOY_SKILLS__MAX_DEPTH", "2")
        settings = config.Settings.construct_without_dotenv(
            skills=types.SkillsConfig(max_depth=0)
        )
        assert settings.skills.max_depth == 0

    def test_explicit_directories(self, tmp_path: _pathlib.Path) -> None:
        """Configured directories replace the plugin-root defaults."""
        _user_config(
            f"skills:\n  plugin_dir: {tmp_path / 'skills'}\n"
            f"stacks:\n  profiles_dir: {tmp_path / 'profiles'}\n"
        )
        settings = config.Settings.construct_without_dotenv()
        assert settings.plugin_skills_dir == tmp_path / "skills"
        assert settings.stacks_dir == tmp_path / "profiles"

    def test_personal_skills_can_be_disabled(self) -> None:
        """A null personal_dir turns personal skills off."""
        _user_config("skills:\n  personal_dir: null\n")
        assert config.Settings.construct_without_dotenv().personal_skills_dir is None

    def test_home_is_expanded(self) -> None:
        """~ in configured paths is expanded."""
        _user_config("skills:\n  personal_dir: ~/my-skills\n")
        settings = config.Settings.construct_without_dotenv()
        assert settings.personal_skills_dir == _pathlib.Path.home() / "my-skills"

    def test_malformed_config_raises(self) -> None:
        """Broken config files are reported."""
        _user_config("skills: [\n")
        with _pytest.raises(config.ConfigFileError):
            config.Settings.construct_without_dotenv()


class TestSettingsValidation:
    """Test value validation."""

    def test_negative_depth_rejected(self) -> None:
        """max_depth cannot be negative."""
        _user_config("skills:\n  max_depth: -1\n")
        with _pytest.raises(_pydantic.ValidationError):
            config.Settings.construct_without_dotenv()

    def test_zero_timeout_rejected(self) -> None:
        """A zero time budget is invalid."""
        with _pytest.raises(_pydantic.ValidationError):
            types.StacksConfig(timeout_seconds=0)

    def test_null_timeout_allowed(self) -> None:
        """null disables the time budget."""
        assert types.StacksConfig(timeout_seconds=None).timeout_seconds is None

    def test_log_level_is_case_insensitive(self) -> None:
        """Lower-case levels are accepted."""
        assert types.LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        """Only standard level names are accepted."""
        with _pytest.raises(_pydantic.ValidationError):
            types.LoggingConfig(level="LOUD")


class TestExtraFields:
    """Test reporting of unrecognized config keys."""

    def test_nested_typo_is_reported(self) -> None:
        """Misspelled section keys are kept with dotted paths."""
        _user_config("skills:\n  max_dept: 2\n")
        extras = config.Settings.construct_without_dotenv().get_extra_fields()
        assert extras["skills.max_dept"] == 2

    def test_top_level_unknown_key_is_reported(self) -> None:
        """Unknown top-level keys are kept too."""
        _user_config("colour: blue\n")
        extras = config.Settings.construct_without_dotenv().get_extra_fields()
        assert extras["colour"] == "blue"

    def test_clean_config_has_no_extras(self) -> None:
        """A valid config reports nothing."""
        _user_config("skills:\n  max_depth: 2\n")
        extras = config.Settings.construct_without_dotenv().get_extra_fields()
        assert not any(key.startswith("skills.") for key in extras)


class TestToDict:
    """Test the display form of settings."""

    def test_contains_effective_values(self, tmp_path: _pathlib.Path) -> None:
        """to_dict shows derived paths and section values."""
        settings = config.Settings.construct_without_dotenv(plugin_root=tmp_path)
        data = settings.to_dict()

        assert data["plugin_root"] == str(tmp_path)
        assert data["plugin_skills_dir"] == str(tmp_path / "skills")
        assert data["stacks_dir"] == str(tmp_path / "stacks")
        assert data["skills"] == {"max_depth": 3, "namespace": "envoy"}
        assert data["stacks"]["ignored_dirs"] == [".git", "node_modules"]
        assert data["logging"] == {"level": "WARNING"}


class TestProjectRoot:
    """Test project root discovery."""

    def test_marker_directory(
        self,
        monkeypatch: _pytest.MonkeyPatch,
        tmp_path: _pathlib.Path,
    ) -> None:
        """The nearest ancestor with .envoy/ is the project root."""
        monkeypatch.setattr(settings_module, "find_git_root", lambda *_args: None)
        (tmp_path / ".envoy").mkdir()
        nested = tmp_path / "src" / "deep"
        nested.mkdir(parents=True)

        assert config.find_project_root(nested) == tmp_path.resolve()

    def test_git_root_wins(
        self,
        monkeypatch: _pytest.MonkeyPatch,
        tmp_path: _pathlib.Path,
    ) -> None:
        """A git repository root is preferred."""
        monkeypatch.setattr(settings_module, "find_git_root", lambda *_args: tmp_path)
        assert config.find_project_root(tmp_path / "anything") == tmp_path

    def test_find_git_root_parses_output(self, tmp_path: _pathlib.Path) -> None:
        """git's reported top level is returned."""
        completed = _subprocess.CompletedProcess([], 0, stdout=f"{tmp_path}\n", stderr="")
        with _mock.patch.object(settings_module._subprocess, "run", return_value=completed):
            assert config.find_git_root(tmp_path) == tmp_path

    def test_find_git_root_without_git(self, tmp_path: _pathlib.Path) -> None:
        """A missing git executable means no git root."""
        with _mock.patch.object(
            settings_module._subprocess, "run", side_effect=FileNotFoundError("git")
        ):
            assert config.find_git_root(tmp_path) is None

    def test_find_git_root_outside_repository(self, tmp_path: _pathlib.Path) -> None:
        """A failing git command means no git root."""
        completed = _subprocess.CompletedProcess([], 128, stdout="", stderr="fatal")
        with _mock.patch.object(settings_module._subprocess, "run", return_value=completed):
            assert config.find_git_root(tmp_path) is None

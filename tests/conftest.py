"""
Shared pytest fixtures for Envoy tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports. Helpers that tests
call directly are imported with `import tests.conftest as conftest`.
"""

import pathlib as _pathlib
import re as _re
import typing as _typing

import pytest as _pytest

import envoy.stacks.query as query

# Environment keys that should be cleared for isolated tests
ENV_KEYS_TO_CLEAR = [
    "CLAUDE_PLUGIN_ROOT",
    "ENVOY_ENV_FILE",
    "ENVOY_PLUGIN_ROOT",
    "ENVOY_SKILLS__MAX_DEPTH",
    "ENVOY_SKILLS__NAMESPACE",
    "ENVOY_SKILLS__PERSONAL_DIR",
    "ENVOY_SKILLS__PLUGIN_DIR",
    "ENVOY_STACKS__FILE_MAX_DEPTH",
    "ENVOY_STACKS__IGNORED_DIRS",
    "ENVOY_STACKS__PROFILES_DIR",
    "ENVOY_STACKS__TIMEOUT_SECONDS",
    "ENVOY_LOGGING__LEVEL",
]


@_pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: _pytest.MonkeyPatch,
    tmp_path_factory: _pytest.TempPathFactory,
) -> None:
    """Keep the user's config files and ENVOY_* variables out of tests."""
    for key in ENV_KEYS_TO_CLEAR:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ENVOY_CONFIG_DIR", str(tmp_path_factory.mktemp("user-config")))
    monkeypatch.setenv("ENVOY_PROJECT_ROOT", str(tmp_path_factory.mktemp("project-root")))


# =============================================================================
# Skill helpers
# =============================================================================


def write_skill(
    parent: _pathlib.Path,
    dir_name: str,
    name: str | None = None,
    description: str = "Test skill",
    body: str | None = None,
) -> _pathlib.Path:
    """
    Create <parent>/<dir_name>/SKILL.md with valid frontmatter.

    Returns the path to the SKILL.md file.
    """
    skill_name = name if name is not None else dir_name.rsplit("/", 1)[-1]
    skill_dir = parent / dir_name
    skill_dir.mkdir(parents=True, exist_ok=True)
    skill_file = skill_dir / "SKILL.md"
    skill_file.write_text(
        f"---\nname: {skill_name}\ndescription: {description}\n---\n\n"
        + (body if body is not None else f"# {skill_name}\n\nInstructions for {skill_name}.\n"),
        encoding="utf-8",
    )
    return skill_file


@_pytest.fixture
def plugin_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """Empty plugin skills root."""
    path = tmp_path / "plugin" / "skills"
    path.mkdir(parents=True)
    return path


@_pytest.fixture
def personal_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """Empty personal skills root."""
    path = tmp_path / "personal" / "skills"
    path.mkdir(parents=True)
    return path


# =============================================================================
# Stack helpers
# =============================================================================


class MemoryFilesystemQuery(query.FilesystemQuery):
    """
    In-memory filesystem for detection tests.

    Files are given as {relative_posix_path: content}. Patterns listed in
    `failing` raise QueryError instead of answering.
    """

    def __init__(
        self,
        files: dict[str, str],
        *,
        failing: _typing.Iterable[str] = (),
    ) -> None:
        self.files = dict(files)
        self.failing = set(failing)
        self.calls: list[tuple[str, str]] = []

    def file_exists(
        self,
        pattern: str,
        root: _pathlib.Path,  # noqa: ARG002 - interface
        max_depth: int,
    ) -> bool:
        self.calls.append(("file", pattern))
        if pattern in self.failing:
            raise query.QueryError(f"failing pattern: {pattern}")
        return any(
            len(path.split("/")) <= max_depth and query.matches_glob(pattern, path)
            for path in self.files
        )

    def grep_content(
        self,
        pattern: _re.Pattern[str],
        file_globs: _typing.Sequence[str],
        root: _pathlib.Path,  # noqa: ARG002 - interface
    ) -> bool:
        self.calls.append(("content", pattern.pattern))
        if pattern.pattern in self.failing:
            raise query.QueryError(f"failing pattern: {pattern.pattern}")
        return any(
            any(query.matches_glob(glob, path) for glob in file_globs)
            and pattern.search(content) is not None
            for path, content in self.files.items()
        )


def write_files(root: _pathlib.Path, files: dict[str, str]) -> _pathlib.Path:
    """Write {relative_path: content} under root and return root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root

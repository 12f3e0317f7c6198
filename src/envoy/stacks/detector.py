"""
Stack detection.

Two independent detectors:
- detect_stacks scans a project tree against the rule table
- detect_stacks_from_files classifies a list of changed paths (for reviews)

Both return stack names, each at most once, in first-detected order.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import posixpath as _posixpath
import typing as _typing

import envoy.constants as constants
import envoy.stacks.query as query_module
import envoy.stacks.rules as rules_module

_logger = _logging.getLogger(__name__)


def _rule_matches(
    rule: rules_module.StackRule,
    root: _pathlib.Path,
    query: query_module.FilesystemQuery,
    file_max_depth: int,
) -> bool:
    """Evaluate one rule; any failure counts as no match."""
    try:
        if isinstance(rule, rules_module.FileExistenceRule):
            return query.file_exists(rule.pattern, root, file_max_depth)
        return query.grep_content(rule.regex, rule.file_globs, root)
    except (query_module.QueryError, OSError) as e:
        _logger.debug("Rule %s not evaluated: %s", rule.name, e)
        return False


def detect_stacks(
    project_dir: _pathlib.Path | str,
    rules: _typing.Iterable[rules_module.StackRule] = rules_module.STACK_RULES,
    query: query_module.FilesystemQuery | None = None,
    *,
    file_max_depth: int = constants.DEFAULT_FILE_MAX_DEPTH,
) -> list[str]:
    """
    Detect the technology stacks present in a project.

    Every rule is evaluated; a rule that fails to evaluate is treated as
    unmatched and the rest still run. If any web application indicator
    matched, "security" is appended.

    Args:
        project_dir: Project root to scan.
        rules: Detection rules, in evaluation order.
        query: Filesystem query implementation (default: local disk).
        file_max_depth: Depth bound for file-existence rules.

    Returns:
        Detected stack names in rule order.
    """
    root = _pathlib.Path(project_dir)
    if query is None:
        query = query_module.LocalFilesystemQuery()

    detected: list[str] = []
    for rule in rules:
        if rule.name in detected:
            continue
        if _rule_matches(rule, root, query, file_max_depth):
            detected.append(rule.name)

    if rules_module.SECURITY_STACK not in detected and any(
        name in rules_module.WEB_INDICATOR_STACKS for name in detected
    ):
        detected.append(rules_module.SECURITY_STACK)

    _logger.debug("Detected stacks in %s: %s", root, detected)
    return detected


def detect_stacks_from_files(changed_files: _typing.Iterable[str]) -> list[str]:
    """
    Detect relevant stacks from a list of changed file paths.

    Classifies each path by extension and path components only; the
    filesystem is never touched.

    Args:
        changed_files: File paths, e.g. from a diff.

    Returns:
        Relevant stack names in first-seen order.
    """
    detected: dict[str, None] = {}

    def add(*names: str) -> None:
        for name in names:
            detected.setdefault(name, None)

    for raw_path in changed_files:
        path = str(raw_path).replace("\\", "/")
        basename = _posixpath.basename(path).lower()
        ext = _posixpath.splitext(basename)[1]

        if ext == ".cs":
            add("dotnet", "api-patterns")
        if ext == ".csproj":
            add("dotnet")
        if ext in (".ts", ".tsx"):
            add("typescript")
            if ext == ".tsx":
                add("react")
        if ext in (".js", ".jsx") and "components" in path:
            add("react")
        if ext == ".bicep":
            add("bicep")
            if "container" in path:
                add("azure-container-apps")
        if basename in ("docker-compose.yml", "docker-compose.yaml"):
            add("docker-compose")
        if ".github/workflows" in path:
            add("github-actions")
        if "test" in path or "spec" in path:
            if ext == ".cs":
                add("testing-dotnet")
            if ext in (".ts", ".tsx"):
                add("testing-playwright")
        if basename in ("tailwind.config.js", "tailwind.config.ts"):
            add("tailwind")

    return list(detected)

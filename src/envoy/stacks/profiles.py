"""
Stack profile loading.

A stack profile is a markdown document of best practices for one
technology, stored as <stacks_dir>/<stack-name>.md. Profiles use two
conventional sections that reviews pull out on their own:

    ## Common Mistakes
    ## Review Checklist
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import re as _re
import typing as _typing

import envoy.constants as constants

_logger = _logging.getLogger(__name__)


def _section_re(heading: str) -> _re.Pattern[str]:
    """Regex capturing the text under a level-2 heading up to the next one."""
    return _re.compile(
        rf"^## {_re.escape(heading)}[ \t]*\r?\n(.*?)(?=\n## |\Z)",
        _re.DOTALL | _re.MULTILINE,
    )


_COMMON_MISTAKES_RE = _section_re("Common Mistakes")
_REVIEW_CHECKLIST_RE = _section_re("Review Checklist")


def _is_safe_stack_name(name: str) -> bool:
    """Check that a stack name is a single plain path component."""
    return bool(name) and name not in (".", "..") and not any(sep in name for sep in "/\\")


def get_stack_profile_path(stack_name: str, stacks_dir: _pathlib.Path | str) -> _pathlib.Path:
    """
    Get the path a stack's profile would live at.

    Raises:
        ValueError: If the name would point outside stacks_dir.
    """
    if not _is_safe_stack_name(stack_name):
        raise ValueError(f"Invalid stack name: {stack_name!r}")
    return _pathlib.Path(stacks_dir) / f"{stack_name}{constants.STACK_PROFILE_SUFFIX}"


def load_stack_profile(stack_name: str, stacks_dir: _pathlib.Path | str) -> str | None:
    """
    Load a stack profile.

    Args:
        stack_name: Stack name, e.g. "react".
        stacks_dir: Directory containing stack profiles.

    Returns:
        Profile content, or None if the name is invalid or the
        profile cannot be read.
    """
    if not _is_safe_stack_name(stack_name):
        _logger.debug("Rejecting stack name %r", stack_name)
        return None
    path = get_stack_profile_path(stack_name, stacks_dir)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.debug("No stack profile for %s: %s", stack_name, e)
        return None


def load_stack_profiles(
    stack_names: _typing.Iterable[str],
    stacks_dir: _pathlib.Path | str,
) -> dict[str, str]:
    """
    Load several stack profiles.

    Missing and empty profiles are left out.

    Returns:
        Dict mapping stack name to profile content.
    """
    profiles: dict[str, str] = {}
    for name in stack_names:
        content = load_stack_profile(name, stacks_dir)
        if content:
            profiles[name] = content
    return profiles


def list_stack_profiles(stacks_dir: _pathlib.Path | str) -> list[str]:
    """List the stack names that have a profile, sorted."""
    directory = _pathlib.Path(stacks_dir)
    try:
        return sorted(
            p.stem
            for p in directory.iterdir()
            if p.is_file() and p.suffix == constants.STACK_PROFILE_SUFFIX
        )
    except OSError:
        return []


def _extract_section(pattern: _re.Pattern[str], content: str) -> str | None:
    match = pattern.search(content)
    return match.group(1).strip() if match else None


def extract_common_mistakes(profile_content: str) -> str | None:
    """Extract the "Common Mistakes" section, or None if absent."""
    return _extract_section(_COMMON_MISTAKES_RE, profile_content)


def extract_review_checklist(profile_content: str) -> str | None:
    """Extract the "Review Checklist" section, or None if absent."""
    return _extract_section(_REVIEW_CHECKLIST_RE, profile_content)

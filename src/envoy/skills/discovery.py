"""
Skill discovery and resolution across the plugin and personal roots.

Skills live at <root>/<skill-name>/SKILL.md, where <root> is either the
plugin's skills directory or the user's personal skills directory
(~/.claude/skills by default).

Personal skills shadow plugin skills of the same name. A reference
prefixed with the plugin namespace (e.g. "envoy:brainstorming") always
resolves to the plugin copy.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib

import envoy.constants as constants
import envoy.skills.skill as skill_module

_logger = _logging.getLogger(__name__)


def get_personal_skills_path() -> _pathlib.Path:
    """Get the default personal skills directory."""
    return _pathlib.Path.home() / ".claude" / "skills"


def find_skills_in_dir(
    root_dir: _pathlib.Path | str,
    source_type: skill_module.SourceType,
    max_depth: int = constants.DEFAULT_SKILL_MAX_DEPTH,
) -> list[skill_module.SkillDescriptor]:
    """
    Find all valid skills below a directory.

    Children of root_dir are depth 0. Every directory up to max_depth is
    checked for a SKILL.md; recursion continues whether or not the
    directory held a valid skill. Unreadable directories are skipped.

    Args:
        root_dir: Directory to search.
        source_type: Tag applied to every descriptor found.
        max_depth: Deepest level of subdirectories to inspect.

    Returns:
        Descriptors in depth-first visit order.
    """
    skills: list[skill_module.SkillDescriptor] = []

    def search(current_dir: _pathlib.Path, depth: int) -> None:
        if depth > max_depth:
            return

        try:
            entries = sorted(current_dir.iterdir())
        except OSError as e:
            _logger.debug("Skipping unreadable directory %s: %s", current_dir, e)
            return

        for entry in entries:
            try:
                if not entry.is_dir():
                    continue
            except OSError as e:
                _logger.debug("Skipping unreadable entry %s: %s", entry, e)
                continue

            skill_file = entry / constants.SKILL_FILE_NAME
            if _is_skill_file(skill_file):
                frontmatter = skill_module.extract_frontmatter(skill_file)
                if frontmatter is not None:
                    skills.append(
                        skill_module.SkillDescriptor(
                            name=frontmatter.name,
                            description=frontmatter.description,
                            file_path=skill_file.absolute(),
                            source_type=source_type,
                        )
                    )

            search(entry, depth + 1)

    search(_pathlib.Path(root_dir), 0)
    return skills


def _candidate_path(root: _pathlib.Path | str, name: str) -> _pathlib.Path:
    """Path where a skill named `name` would live under `root`."""
    return _pathlib.Path(root) / name / constants.SKILL_FILE_NAME


def _is_skill_file(path: _pathlib.Path) -> bool:
    """Check for a skill file; a path that cannot be inspected is absent."""
    try:
        return path.is_file()
    except OSError as e:
        _logger.debug("Cannot inspect %s: %s", path, e)
        return False


def _is_safe_skill_name(name: str) -> bool:
    """Check that a skill name stays inside its root."""
    if not name:
        return False
    path = _pathlib.PurePosixPath(name.replace("\\", "/"))
    return not path.is_absolute() and ".." not in path.parts


def resolve_skill_path(
    skill_name: str,
    plugin_dir: _pathlib.Path | str,
    personal_dir: _pathlib.Path | str | None = None,
    *,
    namespace: str = constants.PLUGIN_NAMESPACE,
) -> skill_module.ResolvedSkill | None:
    """
    Resolve a skill reference to its SKILL.md file.

    Personal skills win over plugin skills unless the reference carries
    the plugin namespace prefix, in which case only the plugin root is
    consulted.

    Args:
        skill_name: Skill name, e.g. "brainstorming" or "envoy:brainstorming".
        plugin_dir: Plugin skills directory.
        personal_dir: Personal skills directory, or None if not configured.
        namespace: Prefix that forces plugin resolution.

    Returns:
        The resolved skill, or None if no matching file exists.
    """
    prefix = f"{namespace}:"
    force_plugin = skill_name.startswith(prefix)
    clean_name = skill_name[len(prefix) :] if force_plugin else skill_name

    if not _is_safe_skill_name(clean_name):
        _logger.debug("Rejecting skill reference %r", skill_name)
        return None

    plugin_path = _candidate_path(plugin_dir, clean_name)

    if not force_plugin and personal_dir is not None:
        personal_path = _candidate_path(personal_dir, clean_name)
        if _is_skill_file(personal_path):
            return skill_module.ResolvedSkill(
                skill_file=personal_path,
                source_type=skill_module.SourceType.PERSONAL,
            )

    if _is_skill_file(plugin_path):
        return skill_module.ResolvedSkill(
            skill_file=plugin_path,
            source_type=skill_module.SourceType.PLUGIN,
        )

    return None


def list_all_skills(
    plugin_dir: _pathlib.Path | str,
    personal_dir: _pathlib.Path | str | None = None,
    max_depth: int = constants.DEFAULT_SKILL_MAX_DEPTH,
) -> list[skill_module.SkillDescriptor]:
    """
    List skills from both roots, flagging shadowed plugin skills.

    Personal skills come first, then plugin skills. A plugin skill whose
    name also exists as a personal skill is kept but marked shadowed.

    Args:
        plugin_dir: Plugin skills directory.
        personal_dir: Personal skills directory, or None if not configured.
        max_depth: Deepest level of subdirectories to inspect.

    Returns:
        All discovered skill descriptors.
    """
    plugin_skills = find_skills_in_dir(
        plugin_dir, skill_module.SourceType.PLUGIN, max_depth
    )
    personal_skills = (
        find_skills_in_dir(personal_dir, skill_module.SourceType.PERSONAL, max_depth)
        if personal_dir is not None
        else []
    )

    personal_names = {s.name for s in personal_skills}
    for descriptor in plugin_skills:
        descriptor.shadowed = descriptor.name in personal_names

    return [*personal_skills, *plugin_skills]


def read_skill_body(skill_file: _pathlib.Path | str) -> str | None:
    """
    Read a skill file and return its body without frontmatter.

    Args:
        skill_file: Path to a SKILL.md file.

    Returns:
        Skill body, or None if the file cannot be read.
    """
    path = _pathlib.Path(skill_file)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.debug("Cannot read skill file %s: %s", path, e)
        return None
    return skill_module.strip_frontmatter(content)

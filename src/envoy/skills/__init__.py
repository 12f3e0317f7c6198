"""
Skill resolution for Envoy.

Skills are markdown workflow instructions discovered from two roots:
1. The plugin's skills/ directory - shipped with Envoy
2. ~/.claude/skills/ - the user's personal skills

A personal skill shadows the plugin skill of the same name. Prefix a
reference with "envoy:" to force the plugin copy.
"""

from envoy.skills.discovery import (
    find_skills_in_dir,
    get_personal_skills_path,
    list_all_skills,
    read_skill_body,
    resolve_skill_path,
)
from envoy.skills.skill import (
    ResolvedSkill,
    SkillDescriptor,
    SkillFrontmatter,
    SourceType,
    extract_frontmatter,
    parse_frontmatter_block,
    parse_skill_markdown,
    strip_frontmatter,
)

__all__ = [
    # Core
    "ResolvedSkill",
    "SkillDescriptor",
    "SkillFrontmatter",
    "SourceType",
    # Parsing
    "extract_frontmatter",
    "parse_frontmatter_block",
    "parse_skill_markdown",
    "strip_frontmatter",
    # Discovery and resolution
    "find_skills_in_dir",
    "get_personal_skills_path",
    "list_all_skills",
    "read_skill_body",
    "resolve_skill_path",
]

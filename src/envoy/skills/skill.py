"""
Skill definition and SKILL.md frontmatter parsing.

Skills are defined by a SKILL.md file that opens with a frontmatter block:

    ---
    name: brainstorming
    description: Use when starting any creative work
    ---
    <body>

Frontmatter is parsed line by line as `key: value` pairs rather than as
YAML, since descriptions routinely contain unquoted colons.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import envoy.constants as constants

_logger = _logging.getLogger(__name__)


class SourceType(_enum.Enum):
    """Which skills root a skill was found under."""

    PLUGIN = "plugin"
    """Shipped with the Envoy plugin."""

    PERSONAL = "personal"
    """User's personal skills directory (shadows plugin skills)."""


class SkillFrontmatter(_pydantic.BaseModel):
    """
    Frontmatter parsed from a SKILL.md file.

    Only `name` is required. Unknown keys are preserved as extras.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    name: str = _pydantic.Field(
        ...,
        min_length=1,
        description="Skill identifier",
    )

    description: str | None = _pydantic.Field(
        default=None,
        description="When the skill should be used",
    )


@_dataclasses.dataclass
class SkillDescriptor:
    """A skill discovered under one of the skills roots."""

    name: str
    """Skill name from frontmatter."""

    description: str | None
    """Skill description from frontmatter."""

    file_path: _pathlib.Path
    """Absolute path to the SKILL.md file."""

    source_type: SourceType
    """Root the skill was found under."""

    shadowed: bool = False
    """True for a plugin skill that a personal skill of the same name overrides."""

    @property
    def skill_path(self) -> _pathlib.Path:
        """Directory containing the SKILL.md file."""
        return self.file_path.parent

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "file_path": str(self.file_path),
            "skill_path": str(self.skill_path),
            "source_type": self.source_type.value,
            "shadowed": self.shadowed,
        }


@_dataclasses.dataclass(frozen=True)
class ResolvedSkill:
    """Result of resolving a skill reference to a definition file."""

    skill_file: _pathlib.Path
    source_type: SourceType

    @property
    def skill_path(self) -> _pathlib.Path:
        """Directory containing the SKILL.md file."""
        return self.skill_file.parent

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "skill_file": str(self.skill_file),
            "skill_path": str(self.skill_path),
            "source_type": self.source_type.value,
        }


def _split_frontmatter(content: str) -> tuple[list[str], str] | None:
    """
    Split content into frontmatter lines and body.

    Returns None unless the first line is a delimiter and a closing
    delimiter line follows.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != constants.FRONTMATTER_DELIMITER:
        return None

    for index in range(1, len(lines)):
        if lines[index].strip() == constants.FRONTMATTER_DELIMITER:
            block = [line.rstrip("\r\n") for line in lines[1:index]]
            body = "".join(lines[index + 1 :])
            return block, body

    return None


def parse_frontmatter_block(lines: _typing.Iterable[str]) -> dict[str, str]:
    """
    Parse frontmatter lines into a mapping.

    Each line is split on its first colon. The first occurrence of a key
    wins. Blank lines, comments and lines without a colon are ignored.

    Args:
        lines: Lines between the opening and closing delimiters.

    Returns:
        Mapping of key to trimmed value.
    """
    fields: dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or ":" not in stripped:
            continue
        # Indented lines belong to a nested value, not a top-level key
        if line[:1].isspace():
            continue
        key, _, value = stripped.partition(":")
        key = key.strip()
        if key and key not in fields:
            fields[key] = value.strip()
    return fields


def parse_skill_markdown(content: str) -> tuple[SkillFrontmatter, str]:
    """
    Parse SKILL.md content into frontmatter and body.

    Args:
        content: Raw markdown content.

    Returns:
        Tuple of (frontmatter, body).

    Raises:
        ValueError: If the frontmatter block is missing or has no name.
    """
    split = _split_frontmatter(content)
    if split is None:
        raise ValueError("SKILL.md must open with a frontmatter block (---)")

    block, body = split
    fields = parse_frontmatter_block(block)
    # An empty description is treated as absent
    if not fields.get("description"):
        fields.pop("description", None)

    try:
        frontmatter = SkillFrontmatter.model_validate(fields)
    except _pydantic.ValidationError as e:
        raise ValueError(f"Invalid skill frontmatter: {e}") from e

    return frontmatter, body


def extract_frontmatter(file_path: _pathlib.Path | str) -> SkillFrontmatter | None:
    """
    Read a SKILL.md file and return its frontmatter.

    Unreadable files and malformed frontmatter are not errors here: both
    return None so directory scans can skip foreign or half-written files.

    Args:
        file_path: Path to the SKILL.md file.

    Returns:
        Parsed frontmatter, or None if the file has no usable metadata.
    """
    path = _pathlib.Path(file_path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.debug("Cannot read skill file %s: %s", path, e)
        return None

    try:
        frontmatter, _body = parse_skill_markdown(content)
    except ValueError as e:
        _logger.debug("Skipping %s: %s", path, e)
        return None

    return frontmatter


def strip_frontmatter(content: str) -> str:
    """
    Remove the leading frontmatter block from skill content.

    Content without a complete frontmatter block is returned unchanged.
    """
    split = _split_frontmatter(content)
    if split is None:
        return content
    return split[1]

"""
Stack detection and stack profiles for Envoy.

Detection decides which stack profiles (markdown best-practice documents)
are relevant to a project:
- detect_stacks: scan a project tree against STACK_RULES
- detect_stacks_from_files: classify the paths in a diff

Any detected web application stack (dotnet, react, api-patterns) also
brings in the "security" profile.
"""

from envoy.stacks.detector import detect_stacks, detect_stacks_from_files
from envoy.stacks.profiles import (
    extract_common_mistakes,
    extract_review_checklist,
    get_stack_profile_path,
    list_stack_profiles,
    load_stack_profile,
    load_stack_profiles,
)
from envoy.stacks.query import (
    FilesystemQuery,
    LocalFilesystemQuery,
    QueryError,
    QueryTimeoutError,
    matches_glob,
)
from envoy.stacks.rules import (
    SECURITY_STACK,
    STACK_RULES,
    WEB_INDICATOR_STACKS,
    ContentMatchRule,
    FileExistenceRule,
    StackRule,
    get_rule,
)

__all__ = [
    # Detection
    "detect_stacks",
    "detect_stacks_from_files",
    # Rules
    "ContentMatchRule",
    "FileExistenceRule",
    "SECURITY_STACK",
    "STACK_RULES",
    "StackRule",
    "WEB_INDICATOR_STACKS",
    "get_rule",
    # Filesystem queries
    "FilesystemQuery",
    "LocalFilesystemQuery",
    "QueryError",
    "QueryTimeoutError",
    "matches_glob",
    # Profiles
    "extract_common_mistakes",
    "extract_review_checklist",
    "get_stack_profile_path",
    "list_stack_profiles",
    "load_stack_profile",
    "load_stack_profiles",
]

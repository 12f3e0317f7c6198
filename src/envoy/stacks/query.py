"""
Filesystem queries used by stack detection.

Detection rules only need two questions answered about a project tree:
- does a file matching this glob exist near the root?
- does any file in scope contain a match for this pattern?

FilesystemQuery is the interface; LocalFilesystemQuery answers the
questions against the real filesystem with a time budget per query.
"""

from __future__ import annotations

import abc as _abc
import fnmatch as _fnmatch
import logging as _logging
import os as _os
import pathlib as _pathlib
import re as _re
import time as _time
import typing as _typing

import envoy.constants as constants

_logger = _logging.getLogger(__name__)


class QueryError(Exception):
    """A filesystem query could not produce an answer."""

    pass


class QueryTimeoutError(QueryError):
    """A filesystem query ran past its time budget."""

    def __init__(self, root: _pathlib.Path, timeout: float) -> None:
        self.root = root
        self.timeout = timeout
        super().__init__(f"Query under {root} exceeded {timeout:g}s")


class FilesystemQuery(_abc.ABC):
    """Answers existence and content questions about a directory tree."""

    @_abc.abstractmethod
    def file_exists(
        self,
        pattern: str,
        root: _pathlib.Path,
        max_depth: int,
    ) -> bool:
        """
        Check whether a file matching a glob exists below root.

        A file directly inside root is at depth 1. Patterns containing a
        '/' are matched against the root-relative path segment by segment;
        other patterns are matched against the file name.

        Raises:
            QueryError: If the question could not be answered.
        """
        ...

    @_abc.abstractmethod
    def grep_content(
        self,
        pattern: _re.Pattern[str],
        file_globs: _typing.Sequence[str],
        root: _pathlib.Path,
    ) -> bool:
        """
        Check whether any in-scope file below root contains a match.

        Raises:
            QueryError: If the question could not be answered.
        """
        ...


def matches_glob(pattern: str, relative_path: str) -> bool:
    """
    Match a root-relative POSIX path against a detection glob.

    Args:
        pattern: Glob such as "*.csproj" or ".github/workflows/*.yml".
        relative_path: Path of a file relative to the project root.

    Returns:
        True if the path matches.
    """
    if "/" not in pattern:
        return _fnmatch.fnmatchcase(relative_path.rsplit("/", 1)[-1], pattern)

    pattern_parts = pattern.strip("/").split("/")
    path_parts = relative_path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(
        _fnmatch.fnmatchcase(part, glob)
        for part, glob in zip(path_parts, pattern_parts)
    )


class LocalFilesystemQuery(FilesystemQuery):
    """
    Filesystem queries against local disk.

    Walks with os.walk, never following symlinked directories and never
    descending into ignored directory names. Each query has its own time
    budget; running past it raises QueryTimeoutError.
    """

    def __init__(
        self,
        *,
        timeout: float | None = constants.DEFAULT_QUERY_TIMEOUT_SECONDS,
        ignored_dirs: _typing.Iterable[str] = constants.DEFAULT_IGNORED_DIRS,
    ) -> None:
        """
        Initialize the query.

        Args:
            timeout: Seconds allowed per query, or None for no limit.
            ignored_dirs: Directory names to skip while walking.
        """
        self._timeout = timeout
        self._ignored_dirs = frozenset(ignored_dirs)

    def _walk(
        self,
        root: _pathlib.Path,
        max_depth: int | None,
    ) -> _typing.Iterator[tuple[str, _pathlib.Path]]:
        """
        Yield (relative_posix_path, absolute_path) for files below root.

        Only files at depth <= max_depth are yielded (None = unbounded).
        """
        deadline = None if self._timeout is None else _time.monotonic() + self._timeout

        for dirpath, dirnames, filenames in _os.walk(root):
            if deadline is not None and _time.monotonic() > deadline:
                raise QueryTimeoutError(root, _typing.cast(float, self._timeout))

            current = _pathlib.Path(dirpath)
            relative_dir = current.relative_to(root)
            depth = len(relative_dir.parts)

            # Files in this directory sit at depth + 1
            if max_depth is not None and depth + 1 >= max_depth:
                dirnames[:] = []
            else:
                dirnames[:] = sorted(d for d in dirnames if d not in self._ignored_dirs)

            if max_depth is not None and depth + 1 > max_depth:
                continue

            for filename in sorted(filenames):
                relative = (relative_dir / filename).as_posix()
                yield relative, current / filename

    def file_exists(
        self,
        pattern: str,
        root: _pathlib.Path,
        max_depth: int,
    ) -> bool:
        for relative, _path in self._walk(_pathlib.Path(root), max_depth):
            if matches_glob(pattern, relative):
                _logger.debug("%s matched %s", pattern, relative)
                return True
        return False

    def grep_content(
        self,
        pattern: _re.Pattern[str],
        file_globs: _typing.Sequence[str],
        root: _pathlib.Path,
    ) -> bool:
        for relative, path in self._walk(_pathlib.Path(root), None):
            if not any(matches_glob(glob, relative) for glob in file_globs):
                continue
            try:
                text = path.read_bytes().decode("utf-8", errors="replace")
            except OSError as e:
                _logger.debug("Skipping unreadable file %s: %s", path, e)
                continue
            if pattern.search(text):
                _logger.debug("%s matched in %s", pattern.pattern, relative)
                return True
        return False

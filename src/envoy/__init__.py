"""
Envoy - skill resolution and stack detection for the Envoy plugin.

Envoy steers an AI coding assistant through a brainstorm, pickup, review,
finalize and cleanup workflow. The workflow itself lives in markdown; this
package holds the two pieces with actual logic:
- Skill resolution (personal skills shadow plugin skills)
- Stack detection (which technology profiles apply to a project)
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("envoy-plugin")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "Envoy Contributors"

from envoy.config import Settings  # noqa: E402

__all__ = ["__version__", "__version_info__", "Settings"]

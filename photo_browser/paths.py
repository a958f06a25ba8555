"""
Path resolution and root confinement.

Resolution is pure path algebra: the home shorthand is expanded, relative
paths are anchored at the server root and the result is normalized. Nothing
here touches the filesystem, so a confinement decision is made on the same
text the rest of the request will use and before any stat or read happens.
"""

import logging
import os
from typing import Optional

from .config import UNRESTRICTED_FLAG
from .errors import AccessDenied, InvalidRequest
from .models import ResolvedPath

logger = logging.getLogger(__name__)

HOME_MARKER = "~"


class PathResolver:
    """Turns request paths into confined absolute paths."""

    def __init__(self, root: str, confined: bool = True, home: Optional[str] = None):
        self.root = os.path.normpath(root)
        self.confined = confined
        self.home = os.path.normpath(home or os.path.expanduser(HOME_MARKER))

    @classmethod
    def from_config(cls, config) -> "PathResolver":
        return cls(config.root, confined=config.confined, home=config.home)

    @property
    def default_path(self) -> str:
        """Path listed when a request names none."""
        # The root when confined; the home directory otherwise
        return "" if self.confined else HOME_MARKER

    def expand_home(self, requested: str) -> str:
        """Replace a leading ``~`` segment with the home directory."""
        if requested == HOME_MARKER:
            return self.home
        for sep in {"/", os.sep}:
            prefix = HOME_MARKER + sep
            if requested.startswith(prefix):
                return os.path.join(self.home, requested[len(prefix):])
        return requested

    def is_within_root(self, absolute: str) -> bool:
        root = os.path.normcase(self.root)
        candidate = os.path.normcase(absolute)
        try:
            return os.path.commonpath([root, candidate]) == root
        except ValueError:
            # Different drives on Windows
            return False

    def resolve(self, requested: Optional[str]) -> ResolvedPath:
        """
        Resolve a request path.

        Args:
            requested: Path as sent by the client; absolute, relative to the
                root, or starting with ``~``

        Returns:
            ResolvedPath with the normalized absolute path

        Raises:
            InvalidRequest: The path contains a NUL byte
            AccessDenied: Confinement is on and the path leaves the root
        """
        requested = requested or ""
        if "\x00" in requested:
            raise InvalidRequest("Path must not contain NUL bytes")
        expanded = self.expand_home(requested)
        if not os.path.isabs(expanded):
            expanded = os.path.join(self.root, expanded)
        absolute = os.path.normpath(expanded)
        within_root = self.is_within_root(absolute)

        if self.confined and not within_root:
            logger.warning(f"Rejected path outside root: {requested!r} -> {absolute}")
            raise AccessDenied(
                f"Access denied: {absolute} is outside {self.root}",
                hint=f"Start the server with {UNRESTRICTED_FLAG} to browse outside the root directory",
            )

        return ResolvedPath(requested=requested, absolute=absolute, within_root=within_root)

    def relative_to_root(self, absolute: str) -> str:
        """Render an absolute path the way clients send it back (forward slashes)."""
        try:
            relative = os.path.relpath(absolute, self.root)
        except ValueError:
            relative = absolute
        return relative.replace("\\", "/")

    def parent_of(self, resolved: ResolvedPath) -> Optional[str]:
        """Client path of the parent directory, or None when there is no way up."""
        absolute = resolved.absolute
        if self.confined and os.path.normcase(absolute) == os.path.normcase(self.root):
            return None
        parent = os.path.dirname(absolute)
        if parent == absolute:
            return None
        return self.relative_to_root(parent)

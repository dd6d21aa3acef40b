"""Workspace root discovery.

Used when no allowed directories are configured (or the client supplies an
empty roots list): walk up from a start directory looking for project markers
and offer the directory found as the single allowed root.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from sandbox_fs.config.constants import WORKSPACE_MARKERS

logger = logging.getLogger(__name__)


class RootDiscovery(Protocol):
    """Collaborator returning zero or one directory to use as allowed root."""

    def discover(self) -> str | None: ...


class MarkerWorkspaceDiscovery:
    """Find the workspace root by walking up to the nearest project marker.

    Example:
        >>> discovery = MarkerWorkspaceDiscovery("/home/me/project/src")
        >>> discovery.discover()
        '/home/me/project'
    """

    def __init__(
        self,
        start: str | Path | None = None,
        markers: Iterable[str] = WORKSPACE_MARKERS,
    ):
        """Initialize discovery.

        Args:
            start: Directory to start from. Defaults to $PWD, then the cwd.
            markers: File or directory names that mark a workspace root
        """
        self.start = str(start) if start else (os.getenv("PWD") or os.getcwd())
        self.markers = tuple(markers)

    def discover(self) -> str | None:
        """Return the nearest ancestor (or start itself) holding a marker.

        Falls back to the start directory when no marker is found before the
        filesystem root.
        """
        start = os.path.normpath(os.path.abspath(os.path.expanduser(self.start)))
        current = start

        while current != os.path.dirname(current):
            for marker in self.markers:
                if os.path.exists(os.path.join(current, marker)):
                    logger.debug(f"Workspace marker {marker} found in {current}")
                    return current
            current = os.path.dirname(current)

        logger.debug(f"No workspace marker above {start}, using it as workspace root")
        return start

"""Allowed-root management.

The allow-list is the only state shared between concurrent tool calls. It is
held as an immutable ``RootSet`` snapshot; ``RootsManager`` replaces the
snapshot by swapping a single reference, so a validation in flight always sees
either the old set or the new one in full.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from sandbox_fs.discovery import RootDiscovery

logger = logging.getLogger(__name__)


def expand_home(path: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the user's home directory."""
    if path == "~" or path.startswith("~/"):
        return str(Path.home()) + path[1:]
    return path


def normalize_root(raw: str) -> str:
    """Canonicalize a root given as a path or a ``file://`` URI.

    Symlinks are resolved; when the directory does not exist yet, the deepest
    existing ancestor is resolved and the remaining components re-appended.
    """
    if raw.startswith("file://"):
        raw = url2pathname(unquote(urlparse(raw).path))
    absolute = os.path.abspath(expand_home(raw))
    return os.path.realpath(absolute)


def dedupe(paths: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(paths))


@dataclass(frozen=True)
class RootSet:
    """Immutable snapshot of the allowed directories.

    Attributes:
        roots: Canonical absolute directory paths, unique, in priority order
        generation: Incremented on every replacement
    """

    roots: tuple[str, ...] = ()
    generation: int = 0

    def __iter__(self) -> Iterator[str]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def __bool__(self) -> bool:
        return bool(self.roots)

    def contains(self, canonical_path: str) -> bool:
        """Check whether a canonical path equals or descends from any root."""
        candidate = Path(canonical_path)
        return any(candidate.is_relative_to(root) for root in self.roots)


class RootsManager:
    """Owns the current RootSet and applies root-update events.

    Example:
        >>> manager = RootsManager(["~/project"])
        >>> manager.current().roots
        ('/home/me/project',)
        >>> manager.update_roots(["file:///home/me/other"]).roots
        ('/home/me/other',)
    """

    def __init__(
        self,
        roots: Iterable[str] = (),
        discovery: RootDiscovery | None = None,
        workspace_mode: bool = False,
    ):
        """Initialize with startup roots.

        Args:
            roots: Initial allowed directories (paths or file:// URIs)
            discovery: Fallback collaborator consulted when an update is empty
            workspace_mode: Whether the discovery fallback is enabled
        """
        self._snapshot = RootSet(dedupe(normalize_root(r) for r in roots))
        self.discovery = discovery
        self.workspace_mode = workspace_mode

    def current(self) -> RootSet:
        """Return the current snapshot. Callers should read it once per check."""
        return self._snapshot

    def replace(self, roots: Iterable[str]) -> RootSet:
        """Replace the allow-list wholesale with already-validated roots."""
        snapshot = RootSet(
            dedupe(normalize_root(r) for r in roots),
            generation=self._snapshot.generation + 1,
        )
        self._snapshot = snapshot
        logger.info(f"Allowed directories updated: {', '.join(snapshot.roots) or '(none)'}")
        return snapshot

    def discover_workspace(self) -> str | None:
        """Ask the discovery collaborator for a root, if workspace mode is on."""
        if not self.workspace_mode or self.discovery is None:
            return None
        try:
            return self.discovery.discover()
        except OSError as e:
            logger.warning(f"Workspace discovery failed: {e}")
            return None

    def update_roots(self, candidates: Iterable[str]) -> RootSet:
        """Apply a root-update event from the client.

        Valid candidates (existing directories) replace the set. With no valid
        candidate, the discovery fallback is used when enabled; otherwise the
        current set is kept.

        Args:
            candidates: Paths or file:// URIs proposed as the new roots

        Returns:
            The RootSet in effect after the update
        """
        valid = valid_root_directories(candidates)
        if valid:
            logger.info(f"Using {len(valid)} root(s) supplied by the client")
            return self.replace(valid)

        logger.warning("No valid root directories provided by client")
        workspace = self.discover_workspace()
        if workspace:
            logger.info(f"Falling back to workspace root {workspace}")
            return self.replace([workspace])
        return self._snapshot


def valid_root_directories(candidates: Iterable[str]) -> tuple[str, ...]:
    """Normalize candidates and keep only those naming existing directories."""
    valid = []
    for candidate in candidates:
        try:
            root = normalize_root(candidate)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping root {candidate}: {e}")
            continue
        if os.path.isdir(root):
            valid.append(root)
        else:
            logger.warning(f"Skipping root {candidate}: not an existing directory")
    return dedupe(valid)

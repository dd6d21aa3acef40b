"""Path validation and canonicalization.

This is the core security function that enforces sandboxing. Every operation
MUST call ``PathValidator.resolve`` before touching the filesystem; nothing
downstream builds a path from a raw client string.

Security checks:
1. The path is canonicalized through the real-path operation, so symlinks
   (including one pointing from inside a root to outside it) are followed
   before the containment check
2. A path whose final component does not exist yet is validated through its
   canonical parent, so creation targets need not pre-exist
3. A dangling symlink's own target must also be inside the roots
4. The canonical result must equal or descend from an allowed root
"""

import errno
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from sandbox_fs.exceptions import IOFailureError, PathEscapeError, PathNotFoundError
from sandbox_fs.roots import RootSet, RootsManager, expand_home

logger = logging.getLogger(__name__)

_MISSING_ERRNOS = {errno.ENOENT, errno.ENOTDIR}


@dataclass(frozen=True)
class ResolvedPath:
    """Canonical absolute path that passed the containment check.

    Attributes:
        path: Canonical, symlink-resolved absolute path
        exists: Whether the entry existed at resolution time
        requested: The raw path string the client supplied
    """

    path: Path
    exists: bool
    requested: str

    def __fspath__(self) -> str:
        return str(self.path)

    def __str__(self) -> str:
        return str(self.path)

    @property
    def name(self) -> str:
        return self.path.name


def _is_missing(error: OSError) -> bool:
    return error.errno in _MISSING_ERRNOS


class PathValidator:
    """Resolve client paths against the current allow-list.

    Example:
        >>> validator = PathValidator(RootsManager(["/ws"]))
        >>> validator.resolve("/ws/src/main.py").path
        PosixPath('/ws/src/main.py')
        >>> validator.resolve("/etc/passwd")
        Traceback (most recent call last):
        PathEscapeError: Access denied - path outside allowed directories: ...
    """

    def __init__(self, roots: RootsManager):
        """Initialize validator.

        Args:
            roots: Manager holding the current RootSet
        """
        self.roots = roots

    def absolute(self, raw_path: str, root_set: RootSet) -> str:
        """Expand home and make absolute.

        Relative paths are taken relative to the first allowed root, or to the
        working directory when no root is configured.
        """
        expanded = expand_home(raw_path)
        if not os.path.isabs(expanded) and root_set.roots:
            expanded = os.path.join(root_set.roots[0], expanded)
        return os.path.abspath(expanded)

    def resolve(self, raw_path: str, allow_missing_ancestors: bool = False) -> ResolvedPath:
        """Canonicalize a client path and check it against the allowed roots.

        Args:
            raw_path: Path as supplied by the client
            allow_missing_ancestors: Accept any number of missing trailing
                components (used for recursive directory creation). By default
                only the final component may be missing.

        Returns:
            ResolvedPath for the canonical location

        Raises:
            PathEscapeError: Canonical path is outside every allowed root
            PathNotFoundError: Parent directory does not exist
            IOFailureError: Resolution failed for another OS reason
        """
        root_set = self.roots.current()
        absolute = self.absolute(raw_path, root_set)

        try:
            canonical = os.path.realpath(absolute, strict=True)
            exists = True
        except OSError as e:
            if not _is_missing(e):
                raise IOFailureError.from_os_error(e, raw_path) from e
            canonical = self._resolve_missing(absolute, raw_path, allow_missing_ancestors)
            exists = False

        self._check_contained(canonical, raw_path, root_set)

        if not exists and os.path.islink(canonical):
            # Dangling symlink: wherever it points must be allowed as well
            self._check_contained(os.path.realpath(canonical), raw_path, root_set)

        logger.debug(f"Path resolved: {raw_path} -> {canonical}")
        return ResolvedPath(path=Path(canonical), exists=exists, requested=raw_path)

    def _resolve_missing(self, absolute: str, raw_path: str, allow_missing_ancestors: bool) -> str:
        parent, name = os.path.split(absolute)
        missing = [name]

        while True:
            try:
                real_parent = os.path.realpath(parent, strict=True)
                break
            except OSError as e:
                if not _is_missing(e):
                    raise IOFailureError.from_os_error(e, raw_path) from e
                head, tail = os.path.split(parent)
                if not allow_missing_ancestors or not tail:
                    raise PathNotFoundError(
                        f"Parent directory does not exist: {parent}", path=raw_path
                    ) from e
                missing.append(tail)
                parent = head

        return os.path.join(real_parent, *reversed(missing))

    def _check_contained(self, canonical: str, raw_path: str, root_set: RootSet) -> None:
        if root_set.contains(canonical):
            return

        logger.warning(f"Path outside allowed directories: {raw_path} -> {canonical}")
        allowed = ", ".join(root_set.roots) or "(no allowed directories configured)"
        raise PathEscapeError(
            f"Access denied - path outside allowed directories: {canonical} not in {allowed}",
            path=raw_path,
        )

"""Atomic, symlink-safe file mutations.

Creation uses an exclusive create, so a pre-existing file or symlink at the
target name is never written through. Overwrites never happen in place: the
content goes to a sibling temp file which is then renamed onto the target.
The rename replaces the destination name in one filesystem operation and does
not follow a symlink there, so a link swapped in between validation and write
is replaced rather than followed.
"""

import logging
import os
import stat
import tempfile

from sandbox_fs.exceptions import IOFailureError, PathNotFoundError
from sandbox_fs.paths import ResolvedPath

logger = logging.getLogger(__name__)

_EXCLUSIVE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_NOFOLLOW", 0)


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except OSError:
        pass


class AtomicMutator:
    """Create, overwrite, move and mkdir on validated paths."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def write_new(self, target: ResolvedPath, content: str) -> None:
        """Create a file that must not exist yet.

        Raises:
            IOFailureError: The name exists (as file or symlink) or the create failed
        """
        try:
            self._create_exclusive(str(target), content)
        except OSError as e:
            raise IOFailureError.from_os_error(e, target.requested) from e

    def write_replace(self, target: ResolvedPath, content: str) -> None:
        """Replace a file's content through a temp file and an atomic rename.

        Raises:
            IOFailureError: Writing the temp file or renaming it failed. The
                temp file is removed (best effort) before raising.
        """
        directory = os.path.dirname(str(target))
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix=f"{target.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
            self._copy_mode(str(target), temp_path)
            os.replace(temp_path, str(target))
        except OSError as e:
            if temp_path is not None:
                _remove_quietly(temp_path)
            raise IOFailureError.from_os_error(e, target.requested) from e

        logger.debug(f"Replaced {target} atomically")

    def write(self, target: ResolvedPath, content: str) -> bool:
        """Create the file, or replace it atomically if it already exists.

        Returns:
            True if the file existed before the write
        """
        try:
            self._create_exclusive(str(target), content)
            return False
        except FileExistsError:
            self.write_replace(target, content)
            return True
        except OSError as e:
            raise IOFailureError.from_os_error(e, target.requested) from e

    def move(self, source: ResolvedPath, destination: ResolvedPath) -> None:
        """Rename source onto destination; both must already be validated.

        Raises:
            PathNotFoundError: Source does not exist
            IOFailureError: Rename failed (e.g. cross-device, permissions)
        """
        if not source.exists:
            raise PathNotFoundError(f"Source does not exist: {source.requested}", path=source.requested)
        try:
            os.rename(str(source), str(destination))
        except OSError as e:
            # Either side can be at fault (EXDEV, EISDIR, ENOTEMPTY...), so name both
            raise IOFailureError(
                f"{e.strerror or e}: {source.requested} -> {destination.requested}",
                path=destination.requested,
                original_error=e,
            ) from e

        logger.debug(f"Moved {source} -> {destination}")

    def make_directory(self, target: ResolvedPath) -> None:
        """Create a directory and any missing parents. Idempotent."""
        try:
            os.makedirs(str(target), exist_ok=True)
        except OSError as e:
            raise IOFailureError.from_os_error(e, target.requested) from e

    def _create_exclusive(self, path: str, content: str) -> None:
        fd = os.open(path, _EXCLUSIVE_FLAGS, 0o666)
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
        except OSError:
            _remove_quietly(path)
            raise

    @staticmethod
    def _copy_mode(source: str, destination: str) -> None:
        # mkstemp creates 0600; keep the replaced file's permission bits
        try:
            st = os.lstat(source)
        except FileNotFoundError:
            return
        if stat.S_ISREG(st.st_mode):
            os.chmod(destination, stat.S_IMODE(st.st_mode))

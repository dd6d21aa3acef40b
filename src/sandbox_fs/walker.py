"""Directory listing, tree building and recursive search.

Every child path discovered while walking is re-validated against the allowed
roots before it is used, since a symlinked entry can point out of the sandbox
even when its parent is inside it. Per-entry failures during a search become
``WalkOutcome`` skips folded into the result instead of aborting the walk.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Literal

from sandbox_fs.exceptions import IOFailureError, SandboxError
from sandbox_fs.paths import PathValidator, ResolvedPath

logger = logging.getLogger(__name__)

EntryKind = Literal["file", "directory"]

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a directory listing."""

    name: str
    kind: EntryKind
    size: int | None = None
    modified: datetime | None = None

    @property
    def is_directory(self) -> bool:
        return self.kind == "directory"


@dataclass(frozen=True)
class DirectoryListing:
    """Entries with sizes plus aggregate totals."""

    entries: list[DirectoryEntry]
    total_files: int
    total_directories: int
    combined_size: int


@dataclass
class TreeNode:
    """Entry in a recursive directory tree. Files have no children."""

    name: str
    kind: EntryKind
    children: list["TreeNode"] | None = None

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "type": self.kind}
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(frozen=True)
class WalkOutcome:
    """Result for one entry visited by ``search``.

    Exactly one of ``match`` or ``skipped`` describes the outcome; an entry that
    was visited but did not match has neither.
    """

    path: str
    match: ResolvedPath | None = None
    skipped: str | None = None


@dataclass
class SearchFilter:
    """Case-insensitive name pattern plus exclusion globs."""

    pattern: str
    exclude_patterns: list[str] = field(default_factory=list)

    def matches_name(self, name: str) -> bool:
        return self.pattern.lower() in name.lower()

    def is_excluded(self, relative_path: str) -> bool:
        """Check a root-relative path against the exclusion globs.

        A glob without a wildcard behaves like ``**/<glob>/**``: it names an
        entry (or a run of nested entries such as ``src/nested``) anywhere in
        the tree, together with everything under it. A glob with a wildcard
        is matched against the relative path; a leading ``**/`` or trailing
        ``/**`` may also match zero segments.
        """
        relative = PurePosixPath(relative_path)
        for pattern in self.exclude_patterns:
            if "*" not in pattern:
                if _contains_run(relative.parts, PurePosixPath(pattern.strip("/")).parts):
                    return True
                continue
            if any(fnmatch.fnmatchcase(relative.as_posix(), p) for p in _glob_variants(pattern)):
                return True
        return False


def _contains_run(parts: tuple[str, ...], run: tuple[str, ...]) -> bool:
    if not run:
        return False
    size = len(run)
    return any(parts[i : i + size] == run for i in range(len(parts) - size + 1))


def _glob_variants(pattern: str) -> list[str]:
    variants = [pattern]
    if pattern.startswith("**/"):
        variants.append(pattern[3:])
    if pattern.endswith("/**"):
        variants.extend(v[:-3] for v in list(variants))
    return variants


def _kind(entry: os.DirEntry) -> EntryKind:
    return "directory" if entry.is_dir(follow_symlinks=False) else "file"


class DirectoryWalker:
    """Enumerate directories under the allowed roots."""

    def __init__(self, validator: PathValidator):
        """Initialize walker.

        Args:
            validator: Used to re-validate every child path
        """
        self.validator = validator

    def list_entries(self, directory: ResolvedPath) -> list[DirectoryEntry]:
        """List one directory level with entry kinds."""
        with os.scandir(directory) as it:
            return [DirectoryEntry(name=entry.name, kind=_kind(entry)) for entry in it]

    def list_with_sizes(self, directory: ResolvedPath, sort_by: str = "name") -> DirectoryListing:
        """List one level with size and mtime, sorted, plus totals.

        Args:
            directory: Validated directory
            sort_by: "name" (case-insensitive, ascending) or "size" (descending)
        """
        entries = []
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    st = entry.stat()
                    size = st.st_size
                    modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
                except OSError:
                    size, modified = 0, _EPOCH
                entries.append(
                    DirectoryEntry(name=entry.name, kind=_kind(entry), size=size, modified=modified)
                )

        if sort_by == "size":
            entries.sort(key=lambda e: e.size or 0, reverse=True)
        else:
            entries.sort(key=lambda e: (e.name.casefold(), e.name))

        files = [e for e in entries if not e.is_directory]
        return DirectoryListing(
            entries=entries,
            total_files=len(files),
            total_directories=len(entries) - len(files),
            combined_size=sum(e.size or 0 for e in files),
        )

    def tree(self, directory: ResolvedPath) -> list[TreeNode]:
        """Build the nested tree below a directory.

        Each subdirectory is re-validated before descending into it.
        """
        nodes = []
        with os.scandir(directory) as it:
            for entry in it:
                kind = _kind(entry)
                node = TreeNode(name=entry.name, kind=kind)
                if kind == "directory":
                    child = self.validator.resolve(entry.path)
                    node.children = self.tree(child)
                nodes.append(node)
        return nodes

    def walk(self, root: ResolvedPath, search: SearchFilter) -> list[WalkOutcome]:
        """Visit every descendant of root, one outcome per entry."""
        outcomes: list[WalkOutcome] = []
        self._walk(str(root), str(root), search, outcomes)
        return outcomes

    def search(
        self, root: ResolvedPath, pattern: str, exclude_patterns: list[str] | None = None
    ) -> list[str]:
        """Find descendants whose name contains pattern (case-insensitive).

        Args:
            root: Validated directory to search under
            pattern: Substring to look for in entry names
            exclude_patterns: Globs excluding entries (and their subtrees)

        Returns:
            Paths of the matching entries themselves (a symlink is reported
            under its own name, not its target), in walk order
        """
        outcomes = self.walk(root, SearchFilter(pattern, list(exclude_patterns or [])))
        return [outcome.path for outcome in outcomes if outcome.match is not None]

    def _walk(
        self, root: str, current: str, search: SearchFilter, outcomes: list[WalkOutcome]
    ) -> None:
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            outcomes.append(WalkOutcome(path=current, skipped=str(IOFailureError.from_os_error(e))))
            return

        for entry in entries:
            outcome = self._visit(root, entry, search)
            outcomes.append(outcome)
            if outcome.skipped is None and entry.is_dir(follow_symlinks=False):
                self._walk(root, entry.path, search, outcomes)

    def _visit(self, root: str, entry: os.DirEntry, search: SearchFilter) -> WalkOutcome:
        try:
            resolved = self.validator.resolve(entry.path)
        except SandboxError as e:
            logger.debug(f"Skipping {entry.path}: {e}")
            return WalkOutcome(path=entry.path, skipped=str(e))

        relative = os.path.relpath(entry.path, root).replace(os.sep, "/")
        if search.is_excluded(relative):
            return WalkOutcome(path=entry.path, skipped="excluded")

        if search.matches_name(entry.name):
            return WalkOutcome(path=entry.path, match=resolved)
        return WalkOutcome(path=entry.path)

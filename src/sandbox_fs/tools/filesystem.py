"""Filesystem tools for safe, sandboxed file operations.

This module exposes the sandbox core (path validation, atomic mutation,
streaming reads, directory walking and fuzzy patching) as async tools.

Key Features:
- Every client path is canonicalized and checked against the allowed roots
- Creation never writes through an existing file or symlink
- Overwrites go through a temp file and an atomic rename
- head/tail reads in bounded memory
- Multi-edit patches that are all-or-nothing, with a unified diff preview

Blocking filesystem work runs in a worker thread so concurrent tool calls do
not stall the event loop. Tools never raise: failures come back as error
responses carrying the exception's code.
"""

import asyncio
import json
import logging
import os
import stat
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from sandbox_fs.atomic import AtomicMutator
from sandbox_fs.config.constants import ALL_TOOLS
from sandbox_fs.config.schema import ServerSettings
from sandbox_fs.exceptions import InvalidArgumentError, PathNotFoundError, SandboxError
from sandbox_fs.patch import EditOperation, PatchResult, apply_edits
from sandbox_fs.paths import PathValidator, ResolvedPath
from sandbox_fs.reader import StreamingReader
from sandbox_fs.roots import RootsManager
from sandbox_fs.tools.toolset import SandboxToolset
from sandbox_fs.utils.formatting import format_size
from sandbox_fs.walker import DirectoryWalker

logger = logging.getLogger(__name__)

SortBy = Literal["name", "size"]


class EditInstruction(BaseModel):
    """One search/replace edit as sent by the client."""

    model_config = ConfigDict(populate_by_name=True)

    old_text: str = Field(alias="oldText", description="Text to search for - must match exactly")
    new_text: str = Field(alias="newText", description="Text to replace with")

    def to_operation(self) -> EditOperation:
        return EditOperation(search_text=self.old_text, replacement_text=self.new_text)


def _timestamp(value: float) -> str:
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _format_info_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _require_existing(resolved: ResolvedPath) -> ResolvedPath:
    if not resolved.exists:
        raise PathNotFoundError(
            f"No such file or directory: {resolved.requested}", path=resolved.requested
        )
    return resolved


class FileSystemTools(SandboxToolset):
    """Filesystem tools for safe, sandboxed file operations.

    This toolset provides structured file operations with security guarantees:
    - All paths must resolve under one of the allowed directories
    - Symlinks are followed before the check, so links out of a root are rejected
    - Writes are exclusive-create or temp-file-plus-rename

    Example:
        >>> tools = FileSystemTools(ServerSettings(), RootsManager(["/home/user/project"]))
        >>> result = await tools.list_directory("/home/user/project")
        >>> print(result["result"])
        [DIR] src
        [FILE] README.md
    """

    def __init__(
        self,
        settings: ServerSettings,
        roots: RootsManager,
        reader: StreamingReader | None = None,
        mutator: AtomicMutator | None = None,
    ):
        """Initialize FileSystemTools.

        Args:
            settings: Effective server settings (enabled tools)
            roots: Manager owning the allowed directories
            reader: Optional reader (e.g. with a smaller chunk size for tests)
            mutator: Optional mutator
        """
        super().__init__(settings, roots)
        self.validator = PathValidator(roots)
        self.reader = reader or StreamingReader()
        self.mutator = mutator or AtomicMutator()
        self.walker = DirectoryWalker(self.validator)

    def get_tools(self) -> list[Callable]:
        """Get the enabled filesystem tools, in registration order.

        Returns:
            List of bound tool methods whose names are in enabled_tools
        """
        enabled = set(self.settings.filesystem.enabled_tools)
        return [getattr(self, name) for name in ALL_TOOLS if name in enabled]

    async def _resolve(self, path: str, allow_missing_ancestors: bool = False) -> ResolvedPath:
        return await asyncio.to_thread(self.validator.resolve, path, allow_missing_ancestors)

    async def read_file(
        self,
        path: Annotated[str, Field(description="Path of the file to read")],
        head: Annotated[
            int | None, Field(description="If provided, returns only the first N lines of the file")
        ] = None,
        tail: Annotated[
            int | None, Field(description="If provided, returns only the last N lines of the file")
        ] = None,
    ) -> dict:
        """Read the complete contents of a file, or only its first or last lines.

        Handles various text encodings; undecodable bytes are replaced. Use
        head or tail (not both) to read part of a large file without loading
        all of it.

        Args:
            path: Path of the file to read
            head: Number of lines from the start
            tail: Number of lines from the end

        Returns:
            Success response with the file text, or an error response
        """
        if head is not None and tail is not None:
            return self._create_error_response(
                error=InvalidArgumentError.code,
                message="Cannot specify both head and tail parameters simultaneously",
            )
        for name, value in (("head", head), ("tail", tail)):
            if value is not None and value < 0:
                return self._create_error_response(
                    error=InvalidArgumentError.code,
                    message=f"{name} must be a non-negative integer, got {value}",
                )

        try:
            resolved = _require_existing(await self._resolve(path))
            if tail is not None:
                text = await asyncio.to_thread(self.reader.tail, resolved, tail)
            elif head is not None:
                text = await asyncio.to_thread(self.reader.head, resolved, head)
            else:
                text = await asyncio.to_thread(self.reader.read_text, resolved)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        return self._create_success_response(result=text, message=f"Read {path}")

    async def read_multiple_files(
        self,
        paths: Annotated[list[str], Field(description="Paths of the files to read")],
    ) -> dict:
        """Read several files at once.

        A failure on one file does not stop the others: its section carries
        the error message instead of the content.

        Returns:
            Success response with one section per path, separated by ``---``
        """

        async def read_one(path: str) -> str:
            response = await self.read_file(path)
            if response["success"]:
                return f"{path}:\n{response['result']}\n"
            return f"{path}: Error - {response['message']}"

        sections = await asyncio.gather(*(read_one(p) for p in paths))
        return self._create_success_response(
            result="\n---\n".join(sections), message=f"Read {len(paths)} file(s)"
        )

    async def write_file(
        self,
        path: Annotated[str, Field(description="Path of the file to write")],
        content: Annotated[str, Field(description="Content to write")],
    ) -> dict:
        """Create a new file or completely overwrite an existing one.

        A new file is created exclusively; an existing file is replaced through
        a temp file and an atomic rename, so it is never seen half-written.

        Returns:
            Success response, or an error response for validation/IO errors
        """
        try:
            resolved = await self._resolve(path)
            existed_before = await asyncio.to_thread(self.mutator.write, resolved, content)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        action = "Replaced" if existed_before else "Created"
        return self._create_success_response(
            result=f"Successfully wrote to {path}",
            message=f"{action} {path} ({len(content.encode('utf-8'))} bytes)",
        )

    async def edit_file(
        self,
        path: Annotated[str, Field(description="Path of the file to edit")],
        edits: Annotated[
            list[EditInstruction],
            Field(description="Ordered search/replace edits (oldText, newText)"),
        ],
        dry_run: Annotated[
            bool,
            Field(
                description="Preview changes using git-style diff format",
                validation_alias=AliasChoices("dry_run", "dryRun"),
            ),
        ] = False,
    ) -> dict:
        """Make line-based edits to a text file.

        Each edit replaces the first exact occurrence of its oldText. When
        there is none, a block whose lines match ignoring surrounding
        whitespace is replaced instead, keeping the block's indentation. If
        any edit fails to match, the file is left untouched.

        Returns:
            Success response with a fenced unified diff of the changes
        """
        operations = [edit.to_operation() for edit in edits]
        try:
            resolved = _require_existing(await self._resolve(path))
            result = await asyncio.to_thread(self._apply_edits, resolved, operations, dry_run)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        verb = "Previewed" if dry_run else "Applied"
        return self._create_success_response(
            result=result.diff, message=f"{verb} {len(operations)} edit(s) to {path}"
        )

    def _apply_edits(
        self, resolved: ResolvedPath, operations: list[EditOperation], dry_run: bool
    ) -> PatchResult:
        original = self.reader.read_text(resolved)
        result = apply_edits(original, operations, path=str(resolved))
        if not dry_run:
            self.mutator.write_replace(resolved, result.content)
        return result

    async def create_directory(
        self,
        path: Annotated[str, Field(description="Path of the directory to create")],
    ) -> dict:
        """Create a directory, including missing parents. Succeeds if it already exists."""
        try:
            resolved = await self._resolve(path, allow_missing_ancestors=True)
            await asyncio.to_thread(self.mutator.make_directory, resolved)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        return self._create_success_response(
            result=f"Successfully created directory {path}", message=f"Created {path}"
        )

    async def list_directory(
        self,
        path: Annotated[str, Field(description="Path of the directory to list")],
    ) -> dict:
        """List the entries of a directory, marking each as [DIR] or [FILE]."""
        try:
            resolved = _require_existing(await self._resolve(path))
            entries = await asyncio.to_thread(self.walker.list_entries, resolved)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        lines = [f"{'[DIR]' if e.is_directory else '[FILE]'} {e.name}" for e in entries]
        return self._create_success_response(
            result="\n".join(lines), message=f"Listed {len(entries)} entries in {path}"
        )

    async def list_directory_with_sizes(
        self,
        path: Annotated[str, Field(description="Path of the directory to list")],
        sort_by: Annotated[
            SortBy,
            Field(
                description="Sort entries by name or by size (largest first)",
                validation_alias=AliasChoices("sort_by", "sortBy"),
            ),
        ] = "name",
    ) -> dict:
        """List a directory with file sizes, followed by file/directory totals."""
        if sort_by not in ("name", "size"):
            return self._create_error_response(
                error=InvalidArgumentError.code,
                message=f"Invalid sort_by '{sort_by}'. Valid values: name, size",
            )

        try:
            resolved = _require_existing(await self._resolve(path))
            listing = await asyncio.to_thread(self.walker.list_with_sizes, resolved, sort_by)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        lines = []
        for entry in listing.entries:
            marker = "[DIR]" if entry.is_directory else "[FILE]"
            size = "" if entry.is_directory else format_size(entry.size or 0).rjust(10)
            lines.append(f"{marker} {entry.name.ljust(30)} {size}")
        lines += [
            "",
            f"Total: {listing.total_files} files, {listing.total_directories} directories",
            f"Combined size: {format_size(listing.combined_size)}",
        ]
        return self._create_success_response(
            result="\n".join(lines), message=f"Listed {len(listing.entries)} entries in {path}"
        )

    async def directory_tree(
        self,
        path: Annotated[str, Field(description="Path of the directory to walk")],
    ) -> dict:
        """Get a recursive tree of files and directories as JSON.

        Each entry has a name and a type ("file" or "directory"); directories
        also carry a children list.
        """
        try:
            resolved = _require_existing(await self._resolve(path))
            tree = await asyncio.to_thread(self.walker.tree, resolved)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        return self._create_success_response(
            result=json.dumps([node.to_dict() for node in tree], indent=2),
            message=f"Built tree for {path}",
        )

    async def move_file(
        self,
        source: Annotated[str, Field(description="Path to move from")],
        destination: Annotated[str, Field(description="Path to move to")],
    ) -> dict:
        """Move or rename a file or directory. Both paths must be allowed."""
        try:
            resolved_source = await self._resolve(source)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, source)
        try:
            resolved_destination = await self._resolve(destination)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, destination)

        try:
            await asyncio.to_thread(self.mutator.move, resolved_source, resolved_destination)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, f"{source} -> {destination}")

        return self._create_success_response(
            result=f"Successfully moved {source} to {destination}",
            message=f"Moved {source} -> {destination}",
        )

    async def search_files(
        self,
        path: Annotated[str, Field(description="Directory to search under")],
        pattern: Annotated[str, Field(description="Case-insensitive substring of entry names")],
        exclude_patterns: Annotated[
            list[str] | None,
            Field(
                description="Glob patterns of paths to exclude",
                validation_alias=AliasChoices("exclude_patterns", "excludePatterns"),
            ),
        ] = None,
    ) -> dict:
        """Recursively search for files and directories whose name contains pattern.

        Entries that cannot be read or resolve outside the allowed directories
        are skipped silently.
        """
        try:
            resolved = _require_existing(await self._resolve(path))
            matches = await asyncio.to_thread(
                self.walker.search, resolved, pattern, list(exclude_patterns or [])
            )
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        text = "\n".join(str(m) for m in matches) if matches else "No matches found"
        return self._create_success_response(
            result=text, message=f"Found {len(matches)} match(es) under {path}"
        )

    async def get_file_info(
        self,
        path: Annotated[str, Field(description="Path to inspect")],
    ) -> dict:
        """Retrieve metadata about a file or directory without reading it.

        Reports size, creation/modification/access times (ISO 8601, UTC),
        type and permission bits.
        """
        try:
            resolved = _require_existing(await self._resolve(path))
            st = await asyncio.to_thread(os.stat, resolved)
        except (SandboxError, OSError) as e:
            return self._error_from_exception(e, path)

        info = {
            "size": st.st_size,
            "created": _timestamp(getattr(st, "st_birthtime", st.st_ctime)),
            "modified": _timestamp(st.st_mtime),
            "accessed": _timestamp(st.st_atime),
            "isDirectory": stat.S_ISDIR(st.st_mode),
            "isFile": stat.S_ISREG(st.st_mode),
            "permissions": f"{stat.S_IMODE(st.st_mode):03o}"[-3:],
        }
        text = "\n".join(f"{key}: {_format_info_value(value)}" for key, value in info.items())
        return self._create_success_response(result=text, message=f"Retrieved metadata for {path}")

    async def list_allowed_directories(self) -> dict:
        """List the directories this server is allowed to access."""
        root_set = self.roots.current()
        return self._create_success_response(
            result="Allowed directories:\n" + "\n".join(root_set.roots),
            message=f"{len(root_set)} allowed director{'y' if len(root_set) == 1 else 'ies'}",
        )

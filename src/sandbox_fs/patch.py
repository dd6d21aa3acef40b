"""Fuzzy text-patch engine.

Applies an ordered list of search/replace edits to in-memory content and
renders a unified diff of the result. The engine never touches the
filesystem: callers persist the returned content only when every edit
matched, which makes a multi-edit patch all-or-nothing.

Matching, per edit:
1. Exact substring match (first occurrence replaced)
2. Line-window match ignoring leading/trailing whitespace, with the
   replacement re-indented to the matched block (first window wins)
"""

import difflib
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from sandbox_fs.exceptions import InvalidArgumentError, PatchMismatchError

logger = logging.getLogger(__name__)

_LEADING_WHITESPACE = re.compile(r"^\s*")
_BACKTICK_RUN = re.compile(r"`+")


@dataclass(frozen=True)
class EditOperation:
    """Replace ``search_text`` with ``replacement_text``."""

    search_text: str
    replacement_text: str


@dataclass(frozen=True)
class PatchResult:
    """Outcome of a successful ``apply_edits`` call.

    Attributes:
        original: Original content, line endings normalized
        content: Content after every edit was applied
        diff: Fenced unified diff of original vs content
    """

    original: str
    content: str
    diff: str

    @property
    def changed(self) -> bool:
        return self.original != self.content


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n")


def _indent_of(line: str) -> str:
    return _LEADING_WHITESPACE.match(line).group(0)


def _reindent(
    window_first_line: str, search_lines: list[str], replacement_lines: list[str]
) -> list[str]:
    """Re-base the replacement block onto the matched block's indentation.

    The first replacement line takes the matched block's first-line indentation.
    A later line whose search counterpart and itself are both indented keeps
    its indentation delta relative to that search line; other lines are kept
    as written.
    """
    original_indent = _indent_of(window_first_line)
    reindented = []

    for j, line in enumerate(replacement_lines):
        if j == 0:
            reindented.append(original_indent + line.lstrip())
            continue

        old_indent = _indent_of(search_lines[j]) if j < len(search_lines) else ""
        new_indent = _indent_of(line)
        if old_indent and new_indent:
            relative = len(new_indent) - len(old_indent)
            reindented.append(original_indent + " " * max(0, relative) + line.lstrip())
        else:
            reindented.append(line)

    return reindented


def _apply_fuzzy(content: str, search: str, replacement: str) -> str | None:
    search_lines = search.split("\n")
    content_lines = content.split("\n")
    width = len(search_lines)
    stripped_search = [line.strip() for line in search_lines]

    for i in range(len(content_lines) - width + 1):
        window = content_lines[i : i + width]
        if all(line.strip() == wanted for line, wanted in zip(window, stripped_search)):
            new_lines = _reindent(content_lines[i], search_lines, replacement.split("\n"))
            logger.debug(f"Fuzzy match for edit at line {i + 1}")
            return "\n".join(content_lines[:i] + new_lines + content_lines[i + width :])

    return None


def apply_edit(content: str, edit: EditOperation) -> str:
    """Apply a single edit to already-normalized content.

    Raises:
        InvalidArgumentError: The search text is empty
        PatchMismatchError: Neither an exact nor a fuzzy match exists
    """
    search = normalize_line_endings(edit.search_text)
    replacement = normalize_line_endings(edit.replacement_text)

    if not search:
        raise InvalidArgumentError("Edit search text cannot be empty")

    if search in content:
        return content.replace(search, replacement, 1)

    patched = _apply_fuzzy(content, search, replacement)
    if patched is None:
        raise PatchMismatchError(edit.search_text)
    return patched


def apply_edits(original: str, edits: Iterable[EditOperation], path: str = "file") -> PatchResult:
    """Apply edits in order, each to the output of the previous one.

    Args:
        original: File content before editing
        edits: Ordered edit operations
        path: Label used for both sides of the diff

    Returns:
        PatchResult with the new content and the fenced diff

    Raises:
        PatchMismatchError: An edit did not match; no partial result is returned
    """
    normalized = normalize_line_endings(original)
    content = normalized

    for edit in edits:
        try:
            content = apply_edit(content, edit)
        except PatchMismatchError as e:
            e.path = path
            raise

    return PatchResult(
        original=normalized,
        content=content,
        diff=fence_diff(unified_diff(normalized, content, path)),
    )


def unified_diff(original: str, modified: str, path: str = "file") -> str:
    """Render a unified diff with both file markers set to ``path``."""
    original = normalize_line_endings(original)
    modified = normalize_line_endings(modified)

    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        modified.splitlines(keepends=True),
        fromfile=path,
        tofile=path,
        fromfiledate="original",
        tofiledate="modified",
    )

    body = []
    for line in lines:
        if line.endswith("\n"):
            body.append(line)
        else:
            body.append(line + "\n\\ No newline at end of file\n")

    if not body:
        body = [f"--- {path}\toriginal\n", f"+++ {path}\tmodified\n"]

    header = f"Index: {path}\n{'=' * 67}\n"
    return header + "".join(body)


def fence_diff(diff: str) -> str:
    """Wrap a diff in a backtick fence that its own content cannot close."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(diff)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}diff\n{diff}{fence}\n\n"

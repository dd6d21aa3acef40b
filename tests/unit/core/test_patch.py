"""Unit tests for sandbox_fs.patch (exact and fuzzy edits, diff rendering)."""

import pytest

from sandbox_fs.exceptions import InvalidArgumentError, PatchMismatchError
from sandbox_fs.patch import (
    EditOperation,
    apply_edit,
    apply_edits,
    fence_diff,
    normalize_line_endings,
    unified_diff,
)


@pytest.mark.unit
class TestExactMatch:
    def test_simple_replacement_and_diff(self):
        result = apply_edits("foo\nbar\n", [EditOperation("foo", "baz")], path="/ws/a.txt")

        assert result.content == "baz\nbar\n"
        assert result.changed is True
        assert "-foo" in result.diff
        assert "+baz" in result.diff

    def test_only_first_occurrence_replaced(self):
        assert apply_edit("x x x", EditOperation("x", "y")) == "y x x"

    def test_edits_apply_in_order(self):
        edits = [EditOperation("one", "two"), EditOperation("two", "three")]

        result = apply_edits("one\n", edits)

        assert result.content == "three\n"

    def test_crlf_content_is_normalized(self):
        result = apply_edits("foo\r\nbar\r\n", [EditOperation("foo\r\nbar", "baz")])

        assert result.content == "baz\n"
        assert result.original == "foo\nbar\n"

    def test_replacement_with_empty_text_deletes(self):
        assert apply_edit("keep\ndrop\n", EditOperation("drop\n", "")) == "keep\n"

    def test_empty_search_text_rejected(self):
        with pytest.raises(InvalidArgumentError):
            apply_edit("content", EditOperation("", "x"))


@pytest.mark.unit
class TestFuzzyMatch:
    def test_relative_indent_follows_search_line(self):
        content = "def f():\n    if x:\n        return 1\n"
        edit = EditOperation("if x:\n    return 1", "if y:\n        return 2")

        assert apply_edit(content, edit) == "def f():\n    if y:\n        return 2\n"

    def test_first_line_takes_matched_indentation(self):
        content = "class A:\n        value = 1\n"

        assert apply_edit(content, EditOperation("  value = 1  ", "value = 2")) == (
            "class A:\n        value = 2\n"
        )

    def test_unindented_replacement_lines_kept_verbatim(self):
        content = "  start\n  end\n"
        edit = EditOperation(" start\n end", "begin\nfinish")

        assert apply_edit(content, edit) == "  begin\nfinish\n"

    def test_extra_replacement_lines_beyond_search(self):
        content = "    a\n    b\n"
        edit = EditOperation("a\nb", "a\nb\n    c")

        assert apply_edit(content, edit) == "    a\nb\n    c\n"

    def test_first_window_wins(self):
        content = "  item\nother\n    item\n"

        assert apply_edit(content, EditOperation(" item ", "thing")) == "  thing\nother\n    item\n"

    def test_no_match_raises(self):
        with pytest.raises(PatchMismatchError) as exc_info:
            apply_edit("alpha\nbeta\n", EditOperation("gamma", "delta"))

        assert exc_info.value.code == "patch_mismatch"
        assert exc_info.value.search_text == "gamma"
        assert str(exc_info.value) == "Could not find exact match for edit:\ngamma"


@pytest.mark.unit
class TestAllOrNothing:
    def test_failure_in_later_edit_returns_nothing(self):
        edits = [EditOperation("foo", "baz"), EditOperation("missing", "x")]

        with pytest.raises(PatchMismatchError) as exc_info:
            apply_edits("foo\nbar\n", edits, path="/ws/a.txt")

        assert exc_info.value.path == "/ws/a.txt"
        assert exc_info.value.search_text == "missing"


@pytest.mark.unit
class TestDiffRendering:
    def test_unified_diff_headers(self):
        diff = unified_diff("a\n", "b\n", "/ws/f.txt")

        assert diff.startswith("Index: /ws/f.txt\n" + "=" * 67 + "\n")
        assert "--- /ws/f.txt\toriginal\n" in diff
        assert "+++ /ws/f.txt\tmodified\n" in diff
        assert "@@ -1 +1 @@" in diff

    def test_missing_final_newline_marker(self):
        diff = unified_diff("a", "b", "f")

        assert "-a\n\\ No newline at end of file\n" in diff
        assert "+b\n\\ No newline at end of file\n" in diff

    def test_unchanged_content_has_headers_only(self):
        diff = unified_diff("same\n", "same\n", "f")

        assert "--- f\toriginal\n+++ f\tmodified\n" in diff
        assert "@@" not in diff

    def test_fence_is_three_backticks(self):
        fenced = fence_diff("-a\n+b\n")

        assert fenced == "```diff\n-a\n+b\n```\n\n"

    def test_fence_grows_past_backticks_in_content(self):
        fenced = fence_diff("+```python\n+````\n")

        assert fenced.startswith("`````diff\n")
        assert fenced.endswith("\n`````\n\n")

    def test_normalize_line_endings(self):
        assert normalize_line_endings("a\r\nb\r\n") == "a\nb\n"

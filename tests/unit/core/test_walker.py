"""Unit tests for sandbox_fs.walker (listing, tree and search)."""

import os

import pytest

from sandbox_fs.exceptions import PathEscapeError
from sandbox_fs.paths import ResolvedPath
from sandbox_fs.walker import DirectoryWalker, SearchFilter


@pytest.fixture
def walker(validator):
    return DirectoryWalker(validator)


def _names(paths, root):
    return sorted(os.path.relpath(str(p), root) for p in paths)


@pytest.mark.unit
class TestListEntries:
    def test_kinds(self, walker, validator, sample_files):
        entries = walker.list_entries(validator.resolve(str(sample_files)))

        kinds = {e.name: e.kind for e in entries}
        assert kinds["a.txt"] == "file"
        assert kinds["src"] == "directory"
        assert kinds["node_modules"] == "directory"

    def test_sizes_sorted_by_name(self, walker, validator, workspace):
        (workspace / "b.txt").write_text("12345")
        (workspace / "A.txt").write_text("1")
        (workspace / "dir").mkdir()

        listing = walker.list_with_sizes(validator.resolve(str(workspace)))

        assert [e.name for e in listing.entries] == ["A.txt", "b.txt", "dir"]
        assert listing.total_files == 2
        assert listing.total_directories == 1
        assert listing.combined_size == 6

    def test_sizes_sorted_by_size_descending(self, walker, validator, workspace):
        (workspace / "small.txt").write_text("1")
        (workspace / "large.txt").write_text("1" * 100)
        (workspace / "medium.txt").write_text("1" * 10)

        listing = walker.list_with_sizes(validator.resolve(str(workspace)), sort_by="size")

        assert [e.name for e in listing.entries] == ["large.txt", "medium.txt", "small.txt"]

    def test_broken_symlink_gets_zero_size(self, walker, validator, workspace):
        os.symlink(workspace / "gone", workspace / "broken")

        listing = walker.list_with_sizes(validator.resolve(str(workspace)))

        assert listing.entries[0].size == 0
        assert listing.entries[0].modified.timestamp() == 0


@pytest.mark.unit
class TestTree:
    def test_nested_structure(self, walker, validator, workspace):
        (workspace / "f.txt").write_text("x")
        (workspace / "d").mkdir()
        (workspace / "d" / "g.txt").write_text("y")

        tree = walker.tree(validator.resolve(str(workspace)))
        as_dicts = sorted((node.to_dict() for node in tree), key=lambda d: d["name"])

        assert as_dicts == [
            {"name": "d", "type": "directory", "children": [{"name": "g.txt", "type": "file"}]},
            {"name": "f.txt", "type": "file"},
        ]

    def test_empty_directory_has_empty_children(self, walker, validator, workspace):
        (workspace / "empty").mkdir()

        tree = walker.tree(validator.resolve(str(workspace)))

        assert tree[0].to_dict() == {"name": "empty", "type": "directory", "children": []}

    def test_symlinked_directory_is_a_file_entry(self, walker, validator, workspace, outside):
        os.symlink(outside, workspace / "link")

        tree = walker.tree(validator.resolve(str(workspace)))

        assert tree[0].to_dict() == {"name": "link", "type": "file"}


@pytest.mark.unit
class TestSearch:
    def test_case_insensitive_substring(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), "MAIN")

        assert _names(matches, sample_files) == ["src/main.py"]

    def test_matches_directories_and_files(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), "n")

        names = _names(matches, sample_files)
        assert "src/nested" in names
        assert "src/main.py" in names
        assert "node_modules" in names

    def test_every_descendant_with_empty_exclusions(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), ".", [])

        assert _names(matches, sample_files) == [
            "a.txt",
            "node_modules/pkg/index.js",
            "notes.md",
            "src/main.py",
            "src/nested/deep.txt",
            "src/util.py",
        ]

    def test_exclusion_removes_named_subtree(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), ".", ["node_modules"])

        assert not any("node_modules" in str(m) for m in matches)
        assert "src/main.py" in _names(matches, sample_files)

    def test_nested_literal_exclusion_removes_subtree(self, walker, validator, sample_files):
        root = validator.resolve(str(sample_files))

        assert walker.search(root, "deep", ["src/nested"]) == []
        assert _names(walker.search(root, "deep"), sample_files) == ["src/nested/deep.txt"]

    def test_nested_literal_exclusion_needs_contiguous_components(
        self, walker, validator, sample_files
    ):
        matches = walker.search(validator.resolve(str(sample_files)), "deep", ["src/deep.txt"])

        assert _names(matches, sample_files) == ["src/nested/deep.txt"]

    def test_symlink_reported_under_its_own_name(self, walker, validator, workspace):
        (workspace / "target.txt").write_text("x")
        os.symlink(workspace / "target.txt", workspace / "foo_link")

        matches = walker.search(validator.resolve(str(workspace)), "foo")

        assert matches == [str(workspace / "foo_link")]

    def test_glob_exclusion(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), ".", ["**/*.py"])

        assert not any(str(m).endswith(".py") for m in matches)
        assert "a.txt" in _names(matches, sample_files)

    def test_trailing_globstar_excludes_directory(self, walker, validator, sample_files):
        matches = walker.search(validator.resolve(str(sample_files)), "", ["src/**"])

        names = _names(matches, sample_files)
        assert not any(n.startswith("src") for n in names)
        assert "a.txt" in names

    def test_escaping_symlink_is_skipped(self, walker, validator, workspace, outside):
        (workspace / "secret-notes.txt").write_text("x")
        os.symlink(outside, workspace / "secret-link")

        matches = walker.search(validator.resolve(str(workspace)), "secret")

        assert _names(matches, workspace) == ["secret-notes.txt"]

    def test_skips_are_reported_by_walk(self, walker, validator, workspace, outside):
        os.symlink(outside, workspace / "link")

        outcomes = walker.walk(validator.resolve(str(workspace)), SearchFilter("link"))

        assert len(outcomes) == 1
        assert outcomes[0].match is None
        assert "outside allowed directories" in outcomes[0].skipped


@pytest.mark.unit
class TestSearchFilter:
    def test_plain_name_matches_any_component(self):
        search = SearchFilter("x", ["build"])

        assert search.is_excluded("build")
        assert search.is_excluded("a/build/out.o")
        assert not search.is_excluded("builder/out.o")

    def test_literal_with_slash_matches_component_run(self):
        search = SearchFilter("x", ["src/nested"])

        assert search.is_excluded("src/nested")
        assert search.is_excluded("src/nested/deep.txt")
        assert search.is_excluded("pkg/src/nested/deep.txt")
        assert not search.is_excluded("src/other/nested")
        assert not search.is_excluded("src")

    def test_empty_pattern_excludes_nothing(self):
        assert not SearchFilter("x", [""]).is_excluded("a.txt")

    def test_leading_globstar_matches_top_level(self):
        search = SearchFilter("x", ["**/*.log"])

        assert search.is_excluded("app.log")
        assert search.is_excluded("var/app.log")
        assert not search.is_excluded("app.txt")


@pytest.mark.unit
class TestValidationOfChildren:
    def test_tree_rejects_root_outside(self, walker, outside):
        # The walker trusts its argument, but children are validated again
        (outside / "sub").mkdir()
        start = ResolvedPath(path=outside, exists=True, requested=str(outside))

        with pytest.raises(PathEscapeError):
            walker.tree(start)

"""Tests for glob matching - patterns, trees, and the path matcher."""

import os

import pytest

from conftest import write_file
from msbuild_eval_mcp.evaluation.errors import InvalidPatternError
from msbuild_eval_mcp.evaluation.globbing import (
    DiskFileTree,
    MemoryFileTree,
    PathMatcher,
    compile_pattern,
    normalize_pattern,
    root_relative_pattern,
)


class TestCompilePattern:
    """Tests for glob to regex translation."""

    def test_recursive_wildcard_matches_root_and_nested(self):
        """Test ** matches zero or more segments."""
        pattern = compile_pattern("**/*.cs")
        assert pattern.fullmatch("Helper.cs")
        assert pattern.fullmatch("Code/Class1.cs")
        assert pattern.fullmatch("a/b/c/Deep.cs")
        assert not pattern.fullmatch("Helper.vb")

    def test_single_star_stays_in_segment(self):
        """Test * does not cross separators."""
        pattern = compile_pattern("*.cs")
        assert pattern.fullmatch("Helper.cs")
        assert not pattern.fullmatch("Code/Class1.cs")

    def test_question_mark_matches_one_char(self):
        """Test ? matches a single character."""
        pattern = compile_pattern("Class?.cs")
        assert pattern.fullmatch("Class1.cs")
        assert not pattern.fullmatch("Class12.cs")
        assert not pattern.fullmatch("Class/.cs")

    def test_directory_glob(self):
        """Test bin/** matches everything below bin."""
        pattern = compile_pattern("bin/**")
        assert pattern.fullmatch("bin/source.cs")
        assert pattern.fullmatch("bin/Debug/netstandard1.5/x.cs")
        assert not pattern.fullmatch("binary/source.cs")
        assert not pattern.fullmatch("Code/bin.cs")

    def test_nested_directory_glob(self):
        """Test **/bin/** matches bin at any depth."""
        pattern = compile_pattern("**/bin/**")
        assert pattern.fullmatch("bin/a.cs")
        assert pattern.fullmatch("sub/bin/a.cs")
        assert not pattern.fullmatch("sub/a.cs")

    def test_literal_path(self):
        """Test pattern without wildcards matches exactly."""
        pattern = compile_pattern("Code/Class1.cs")
        assert pattern.fullmatch("Code/Class1.cs")
        assert not pattern.fullmatch("Code/Class2.cs")

    def test_regex_metacharacters_are_literal(self):
        """Test characters like + and ( are not regex syntax."""
        pattern = compile_pattern("Gen+(1).cs")
        assert pattern.fullmatch("Gen+(1).cs")
        assert not pattern.fullmatch("Genn(1).cs")

    def test_case_insensitive(self):
        """Test matching ignores case on every platform."""
        pattern = compile_pattern("bin/**")
        assert pattern.fullmatch("BIN/Source.CS")
        assert compile_pattern("**/*.cs").fullmatch("Code/CLASS1.CS")

    def test_backslash_separators(self):
        """Test Windows-style separators are accepted."""
        pattern = compile_pattern("Code\\**\\*.cs")
        assert pattern.fullmatch("Code/Class1.cs")
        assert pattern.fullmatch("Code/Sub/Class2.cs")

    def test_trailing_separator_means_everything_below(self):
        """Test obj/ behaves like obj/**."""
        assert normalize_pattern("obj/") == "obj/**"
        assert compile_pattern("obj\\").fullmatch("obj/Debug/a.cs")

    def test_leading_dot_slash_stripped(self):
        """Test ./Helper.cs is root-relative."""
        assert compile_pattern("./Helper.cs").fullmatch("Helper.cs")


class TestInvalidPatterns:
    """Tests for InvalidPattern errors."""

    @pytest.mark.parametrize(
        "pattern",
        [
            "",
            "   ",
            "a**b/*.cs",
            "src/**.cs",
            "/etc/**",
            "C:/src/*.cs",
            "c:\\src\\*.cs",
            "../Other/*.cs",
            "src/../../x.cs",
            "bad|name.cs",
            "bad<name>.cs",
            'quoted"name.cs',
        ],
    )
    def test_invalid_pattern_raises(self, pattern):
        """Test malformed patterns raise InvalidPatternError."""
        with pytest.raises(InvalidPatternError):
            compile_pattern(pattern)

    def test_error_carries_pattern_and_reason(self):
        """Test error exposes the offending pattern."""
        with pytest.raises(InvalidPatternError) as exc_info:
            compile_pattern("src/**.cs")
        assert exc_info.value.pattern == "src/**.cs"
        assert "whole path segment" in exc_info.value.reason

    def test_matcher_raises_even_for_missing_root(self, tmp_path):
        """Test bad patterns are reported regardless of the tree."""
        matcher = PathMatcher()
        with pytest.raises(InvalidPatternError):
            matcher.match(tmp_path / "missing", ["**/*.cs"], ["a**"])


class TestRootRelativePattern:
    """Tests for rewriting patterns against the project root."""

    def test_absolute_under_root(self):
        """Test an absolute pattern under the root loses the root prefix."""
        assert root_relative_pattern("/proj/Code/*.cs", "/proj") == "Code/*.cs"

    def test_absolute_root_case_and_separators(self):
        """Test the root prefix compares without case and with either separator."""
        assert root_relative_pattern("C:\\Proj\\A.cs", "c:/proj") == "A.cs"
        assert root_relative_pattern("/PROJ/a/", "/proj/") == "a/"

    def test_root_itself_means_everything(self):
        """Test the root with a trailing separator selects everything below."""
        assert root_relative_pattern("/proj/", "/proj") == "**"

    @pytest.mark.parametrize(
        "pattern",
        ["/other/*.cs", "/projects/A.cs", "D:/x/**", "../artifacts/obj/**", "src/../../x.cs", ".."],
    )
    def test_outside_root(self, pattern):
        """Test patterns that cannot select anything under the root."""
        assert root_relative_pattern(pattern, "/proj") is None

    @pytest.mark.parametrize("pattern", ["**/*.cs", "Code\\*.cs", "a**b", "", "src/../x.cs"])
    def test_relative_unchanged(self, pattern):
        """Test relative patterns pass through for validation."""
        assert root_relative_pattern(pattern, "/proj") == pattern


class TestMemoryFileTree:
    """Tests for the in-memory tree."""

    def test_iter_files_relative_and_sorted(self):
        """Test files are relative to root in walk order."""
        tree = MemoryFileTree(
            ["/proj/b.cs", "/proj/a/z.cs", "/proj/a.cs", "/other/x.cs"]
        )
        assert list(tree.iter_files("/proj")) == ["a/z.cs", "a.cs", "b.cs"]

    def test_is_dir(self):
        """Test directories exist when they hold files or are declared."""
        tree = MemoryFileTree(["/proj/a.cs"], directories=["/empty"])
        assert tree.is_dir("/proj")
        assert tree.is_dir("/empty")
        assert not tree.is_dir("/missing")
        assert not tree.is_dir("/pro")


class TestDiskFileTree:
    """Tests for the filesystem tree."""

    def test_walk_order_matches_memory_tree(self, tmp_path):
        """Test disk and memory trees enumerate in the same order."""
        files = ["b.cs", "a/z.cs", "a.cs", "a/b/c.cs"]
        for name in files:
            write_file(tmp_path / name, "")

        disk = list(DiskFileTree().iter_files(tmp_path))
        memory = list(
            MemoryFileTree([f"/root/{f}" for f in files]).iter_files("/root")
        )
        assert disk == memory

    def test_vanished_directory_is_absent(self, tmp_path):
        """Test a directory removed before walking yields nothing."""
        tree = DiskFileTree()
        assert list(tree.iter_files(tmp_path / "gone")) == []

    def test_file_removed_mid_walk_is_skipped(self, tmp_path):
        """Test files deleted during enumeration do not raise."""
        write_file(tmp_path / "a" / "one.cs", "")
        write_file(tmp_path / "b" / "two.cs", "")

        walk = DiskFileTree().iter_files(tmp_path)
        first = next(walk)
        os.remove(tmp_path / "b" / "two.cs")
        os.rmdir(tmp_path / "b")

        assert first == "a/one.cs"
        assert list(walk) == []

    def test_unreadable_directory_is_skipped(self, tmp_path, monkeypatch, caplog):
        """Test a directory that cannot be listed is treated as absent."""
        write_file(tmp_path / "A.cs", "")
        write_file(tmp_path / "locked" / "B.cs", "")
        real_scandir = os.scandir

        def scandir(path):
            if os.path.basename(os.fspath(path)) == "locked":
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)

        assert list(DiskFileTree().iter_files(tmp_path)) == ["A.cs"]
        assert "unreadable directory" in caplog.text

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks")
    def test_directory_symlinks_not_followed(self, tmp_path):
        """Test symlinked directories are not walked."""
        write_file(tmp_path / "real" / "a.cs", "")
        os.symlink(tmp_path / "real", tmp_path / "link")

        assert list(DiskFileTree().iter_files(tmp_path)) == ["real/a.cs"]


class TestPathMatcher:
    """Tests for PathMatcher.match."""

    @pytest.fixture
    def tree(self):
        return MemoryFileTree(
            [
                "/proj/Helper.cs",
                "/proj/Code/Class1.cs",
                "/proj/bin/source.cs",
                "/proj/obj/source.cs",
                "/proj/packages/source.cs",
                "/proj/README.md",
            ]
        )

    def test_include_only(self, tree):
        """Test includes select matching files."""
        result = PathMatcher(tree).match("/proj", ["**/*.cs"])
        assert set(result) == {
            "Helper.cs",
            "Code/Class1.cs",
            "bin/source.cs",
            "obj/source.cs",
            "packages/source.cs",
        }

    def test_excludes_take_precedence(self, tree):
        """Test excludes win over includes."""
        result = PathMatcher(tree).match(
            "/proj", ["**/*.cs"], ["bin/**", "obj/**", "packages/**"]
        )
        assert result == ("Code/Class1.cs", "Helper.cs")

    def test_exclude_precedence_independent_of_order(self, tree):
        """Test reordering includes/excludes does not change the result."""
        matcher = PathMatcher(tree)
        first = matcher.match("/proj", ["*.cs", "**/*.cs"], ["packages/**", "bin/**", "obj/**"])
        second = matcher.match("/proj", ["**/*.cs", "*.cs"], ["obj/**", "bin/**", "packages/**"])
        assert first == second

    def test_duplicates_removed(self, tree):
        """Test a file matched by several includes appears once."""
        result = PathMatcher(tree).match("/proj", ["**/*.cs", "Helper.cs", "*.cs"], ["**/source.cs"])
        assert result.count("Helper.cs") == 1

    def test_missing_root_returns_empty(self, tree):
        """Test a missing root is empty, not an error."""
        assert PathMatcher(tree).match("/nowhere", ["**/*.cs"]) == ()

    def test_no_includes_returns_empty(self, tree):
        """Test an empty include list selects nothing."""
        assert PathMatcher(tree).match("/proj", []) == ()

    def test_default_tree_is_disk(self, tmp_path):
        """Test the matcher walks the filesystem by default."""
        write_file(tmp_path / "Program.cs", "")
        matcher = PathMatcher()
        assert isinstance(matcher.tree, DiskFileTree)
        assert matcher.match(tmp_path, ["**/*.cs"]) == ("Program.cs",)

    def test_root_that_is_a_file_returns_empty(self, tmp_path):
        """Test a file passed as root selects nothing."""
        target = write_file(tmp_path / "Program.cs", "")
        assert PathMatcher().match(target, ["**/*.cs"]) == ()

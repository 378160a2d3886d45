"""Tests for ingestion.scanner and ingestion.classification."""

import os

import pytest

from common.exceptions import ScanError
from ingestion import FileScanner, ScanOptions, detect_document_type, is_test_file
from ingestion.classification import NO_EXTENSION, file_extension


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scanner():
    return FileScanner()


@pytest.fixture
def tree(tmp_path):
    """a.md, b.pdf, c.xyz at the root."""
    (tmp_path / "a.md").write_text("# A\n", encoding="utf-8")
    (tmp_path / "b.pdf").write_bytes(b"%PDF-1.4\n")
    (tmp_path / "c.xyz").write_text("?", encoding="utf-8")
    return tmp_path


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassification:
    @pytest.mark.parametrize("path,expected", [
        ("guide.md", "markdown"),
        ("GUIDE.MD", "markdown"),
        ("notes.txt", "text"),
        ("page.htm", "html"),
        ("report.pdf", "pdf"),
        ("slides.pptx", "pptx"),
        ("sheet.xls", "xlsx"),
        ("talk.m4a", "audio"),
        ("main.py", None),
        ("Makefile", None),
    ])
    def test_document_type(self, path, expected):
        assert detect_document_type(path) == expected

    def test_extension_of_last_component_only(self):
        assert file_extension("dir.v2/README") == ""
        assert file_extension("archive.tar.gz") == ".gz"

    @pytest.mark.parametrize("path", [
        "tests/guide.md",
        "src/test/notes.txt",
        "web/__tests__/page.html",
        "spec/overview.md",
        "docs/test_plan.md",
        "docs/api.spec.md",
    ])
    def test_test_files(self, path):
        assert is_test_file(path)

    @pytest.mark.parametrize("path", ["docs/guide.md", "contest/rules.md", "latest/notes.txt"])
    def test_non_test_files(self, path):
        assert not is_test_file(path)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------

class TestScan:
    def test_statistics(self, scanner, tree):
        stats = scanner.scan(tree).statistics
        assert stats.total_files == 3
        assert stats.supported_files == 2
        assert stats.unsupported_files == 1
        assert stats.unsupported_by_extension == {".xyz": 1}

    def test_files_are_classified(self, scanner, tree):
        files = {f.relative_path: f for f in scanner.scan(tree).files}
        assert files["a.md"].document_type == "markdown"
        assert files["b.pdf"].document_type == "pdf"
        assert files["c.xyz"].supported is False
        assert files["a.md"].path == str(tree.resolve() / "a.md")

    def test_supported_and_unsupported_helpers(self, scanner, tree):
        files = scanner.scan(tree).files
        assert {f.relative_path for f in FileScanner.supported_files(files)} == {"a.md", "b.pdf"}
        assert [f.relative_path for f in FileScanner.unsupported_files(files)] == ["c.xyz"]

    def test_sorted_recursive_order(self, scanner, tmp_path):
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "z.md").write_text("z", encoding="utf-8")
        (tmp_path / "a.md").write_text("a", encoding="utf-8")
        (tmp_path / "c.md").write_text("c", encoding="utf-8")
        paths = [f.relative_path for f in scanner.scan(tmp_path).files]
        assert paths == ["a.md", "b/z.md", "c.md"]

    def test_no_extension_bucket(self, scanner, tmp_path):
        (tmp_path / "LICENSE").write_text("MIT", encoding="utf-8")
        stats = scanner.scan(tmp_path).statistics
        assert stats.unsupported_by_extension == {NO_EXTENSION: 1}

    def test_empty_directory(self, scanner, tmp_path):
        result = scanner.scan(tmp_path)
        assert result.files == []
        assert result.statistics.total_files == 0

    def test_missing_root_raises(self, scanner, tmp_path):
        with pytest.raises(ScanError):
            scanner.scan(tmp_path / "missing")

    def test_file_root_raises(self, scanner, tree):
        with pytest.raises(ScanError):
            scanner.scan(tree / "a.md")


class TestSkipping:
    def test_hidden_entries_skipped(self, scanner, tree):
        (tree / ".secret.md").write_text("x", encoding="utf-8")
        (tree / ".cache").mkdir()
        (tree / ".cache" / "page.md").write_text("x", encoding="utf-8")
        stats = scanner.scan(tree).statistics
        assert stats.total_files == 3
        assert stats.skipped_hidden == 2

    def test_hidden_entries_included_when_disabled(self, scanner, tree):
        (tree / ".secret.md").write_text("x", encoding="utf-8")
        stats = scanner.scan(tree, ScanOptions(skip_hidden=False)).statistics
        assert stats.total_files == 4

    def test_gitignore_patterns(self, scanner, tree):
        (tree / "build").mkdir()
        (tree / "build" / "out.md").write_text("x", encoding="utf-8")
        (tree / "draft.md").write_text("x", encoding="utf-8")
        (tree / ".gitignore").write_text("build/\ndraft.md\n", encoding="utf-8")

        result = scanner.scan(tree)
        paths = {f.relative_path for f in result.files}
        assert "draft.md" not in paths
        assert "build/out.md" not in paths
        assert result.statistics.skipped_by_ignore_file == 2

    def test_gitignore_disabled(self, scanner, tree):
        (tree / "draft.md").write_text("x", encoding="utf-8")
        (tree / ".gitignore").write_text("draft.md\n", encoding="utf-8")
        result = scanner.scan(tree, ScanOptions(respect_ignore_file=False))
        assert "draft.md" in {f.relative_path for f in result.files}

    def test_oversized_files_skipped(self, scanner, tree):
        (tree / "big.md").write_text("x" * 2048, encoding="utf-8")
        result = scanner.scan(tree, ScanOptions(max_file_size=1024))
        assert "big.md" not in {f.relative_path for f in result.files}
        assert result.statistics.skipped_too_large == 1
        assert result.statistics.total_files == 3

    @pytest.mark.skipif(
        os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced",
    )
    def test_unreadable_directory_is_counted(self, scanner, tree):
        locked = tree / "locked"
        locked.mkdir()
        (locked / "inner.md").write_text("x", encoding="utf-8")
        locked.chmod(0)
        try:
            stats = scanner.scan(tree).statistics
        finally:
            locked.chmod(0o755)
        assert stats.unreadable_directories == 1
        assert stats.total_files == 3

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="needs symlinks")
    def test_directory_symlink_loop_not_followed(self, scanner, tmp_path):
        root = tmp_path / "docs"
        (root / "sub").mkdir(parents=True)
        (root / "a.md").write_text("# A\n", encoding="utf-8")
        os.symlink(root, root / "sub" / "loop", target_is_directory=True)

        result = scanner.scan(root)

        assert [f.relative_path for f in result.files] == ["a.md"]
        assert result.statistics.total_files == 1

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="needs symlinks")
    def test_file_symlink_not_followed(self, scanner, tmp_path):
        outside = tmp_path / "outside.md"
        outside.write_text("# Outside\n", encoding="utf-8")
        root = tmp_path / "docs"
        root.mkdir()
        (root / "a.md").write_text("# A\n", encoding="utf-8")
        os.symlink(outside, root / "link.md")

        result = scanner.scan(root)

        assert [f.relative_path for f in result.files] == ["a.md"]

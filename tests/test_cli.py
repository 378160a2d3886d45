"""Tests for the command-line entry point."""

import json
import logging

import pytest
from unittest.mock import patch

import main
from common.exceptions import StoreError


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli(services):
    """Run main() against the in-memory services."""
    def run(*argv: str) -> int:
        with patch("main.build_services", return_value=services):
            return main.main(["--quiet", *argv])
    return run


class TestCli:
    def test_scan(self, docs_dir, capsys):
        assert main.main(["--quiet", "scan", str(docs_dir)]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["totalFiles"] == 3
        assert stats["unsupportedByExtension"] == {".xyz": 1}

    def test_ingest_list_search(self, cli, docs_dir, capsys):
        assert cli("ingest", str(docs_dir), "--name", "docs") == 0
        assert json.loads(capsys.readouterr().out)["filesChunked"] == 2

        assert cli("list") == 0
        assert [kb["name"] for kb in json.loads(capsys.readouterr().out)] == ["docs"]

        assert cli("search", "refunds", "--kb", "docs", "--json") == 0
        body = json.loads(capsys.readouterr().out)
        assert body["results"][0]["relativePath"] == "notes.txt"

    def test_search_text_output(self, cli, docs_dir, capsys):
        cli("ingest", str(docs_dir), "--name", "docs")
        capsys.readouterr()
        assert cli("search", "rollback", "-n", "1") == 0
        out = capsys.readouterr().out
        assert "guide/deploy.md" in out
        assert "Deployment > Rollback" in out

    def test_rename_and_delete(self, cli, docs_dir, capsys):
        cli("ingest", str(docs_dir), "--name", "docs")
        assert cli("rename", "docs", "handbook") == 0
        assert cli("delete", "handbook") == 0
        capsys.readouterr()
        assert cli("list") == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_missing_knowledge_base_fails(self, cli):
        assert cli("stats", "missing") == 1

    def test_missing_directory_fails(self, cli, tmp_path):
        assert cli("ingest", str(tmp_path / "missing"), "--name", "docs") == 1

    def test_ingest_with_leftover_chunks_exits_with_warning(self, cli, services, docs_dir, capsys):
        cli("ingest", str(docs_dir), "--name", "docs")
        capsys.readouterr()
        with patch.object(
            services.store, "delete_by_filter", side_effect=StoreError("delete_by_filter")
        ):
            assert cli("ingest", str(docs_dir), "--name", "docs") == 2
        assert len(json.loads(capsys.readouterr().out)["warnings"]) == 1

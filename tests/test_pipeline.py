"""Tests for ingestion.pipeline and ingestion.readers."""

import pytest
from unittest.mock import MagicMock, patch

import pymupdf

from common.exceptions import EmbeddingError, IngestionError, ScanError, StoreError
from ingestion import has_reader, read_document


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

class TestReaders:
    def test_plain_text(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes("café ".encode("utf-8") + b"\xff")
        text = read_document(path, "text")
        assert text.startswith("café")
        assert "�" in text

    def test_html_drops_scripts(self, tmp_path):
        path = tmp_path / "page.html"
        path.write_text(
            "<html><head><style>p {}</style><script>var x = 1;</script></head>"
            "<body><h1>Title</h1><p>Visible text</p></body></html>",
            encoding="utf-8",
        )
        text = read_document(path, "html")
        assert "Title" in text
        assert "Visible text" in text
        assert "var x" not in text

    def test_pdf(self, tmp_path):
        path = tmp_path / "doc.pdf"
        doc = pymupdf.open()
        doc.new_page().insert_text((72, 72), "Hello from page one")
        doc.new_page().insert_text((72, 72), "Hello from page two")
        doc.save(str(path))
        doc.close()

        text = read_document(path, "pdf")
        assert "page one" in text
        assert "page two" in text

    def test_no_reader(self, tmp_path):
        assert not has_reader("docx")
        with pytest.raises(ValueError):
            read_document(tmp_path / "a.docx", "docx")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestIngest:
    def test_ingest_statistics(self, services, docs_dir):
        stats = services.pipeline.ingest(docs_dir, "docs")

        assert stats.files_scanned == 3
        assert stats.supported_files == 2
        assert stats.unsupported_files == 1
        assert stats.unsupported_by_extension == {".xyz": 1}
        assert stats.files_chunked == 2
        assert stats.chunks_created == services.store.count("docs")
        assert stats.stale_chunks_removed == 0
        assert stats.root_path == str(docs_dir.resolve())

    def test_collection_metadata_updated(self, services, docs_dir):
        stats = services.pipeline.ingest(docs_dir, "docs")
        metadata = services.store.get_metadata("docs")
        assert metadata.file_count == 2
        assert metadata.last_ingestion == stats.ingestion_timestamp
        assert metadata.created_at == stats.ingestion_timestamp
        assert metadata.root_path == str(docs_dir.resolve())

    def test_records_carry_provenance(self, services, docs_dir):
        stats = services.pipeline.ingest(docs_dir, "docs")
        records = services.store.get_all("docs")
        deploy = [r for r in records if r.metadata["relative_path"] == "guide/deploy.md"]
        assert deploy
        assert {tuple(r.metadata["heading_path"]) for r in deploy} >= {("Deployment", "Rollback")}
        assert all(r.metadata["document_type"] == "markdown" for r in deploy)
        assert all(r.metadata["ingestion_timestamp"] == stats.ingestion_timestamp for r in records)
        assert all(r.metadata["knowledge_base_name"] == "docs" for r in records)

    def test_reingest_replaces_previous_chunks(self, services, docs_dir):
        first = services.pipeline.ingest(docs_dir, "docs")
        (docs_dir / "notes.txt").write_text("Refunds now take ten days.\n", encoding="utf-8")

        second = services.pipeline.ingest(docs_dir, "docs")

        assert second.stale_chunks_removed == first.chunks_created
        records = services.store.get_all("docs")
        assert len(records) == second.chunks_created
        assert {r.metadata["ingestion_timestamp"] for r in records} == {second.ingestion_timestamp}
        assert services.store.get_metadata("docs").created_at == first.ingestion_timestamp

    def test_deleted_file_disappears_after_reingest(self, services, docs_dir):
        services.pipeline.ingest(docs_dir, "docs")
        (docs_dir / "notes.txt").unlink()
        services.pipeline.ingest(docs_dir, "docs")
        paths = {r.metadata["relative_path"] for r in services.store.get_all("docs")}
        assert paths == {"guide/deploy.md"}

    def test_files_without_reader_are_skipped(self, services, docs_dir):
        (docs_dir / "spec.docx").write_bytes(b"PK\x03\x04")
        stats = services.pipeline.ingest(docs_dir, "docs")
        skipped = {s.relative_path: s.reason for s in stats.skipped_files}
        assert "No text reader" in skipped["spec.docx"]
        assert stats.files_chunked == 2

    def test_empty_file_is_skipped(self, services, docs_dir):
        (docs_dir / "empty.md").write_text("  \n", encoding="utf-8")
        stats = services.pipeline.ingest(docs_dir, "docs")
        skipped = {s.relative_path: s.reason for s in stats.skipped_files}
        assert skipped["empty.md"] == "No text content"

    def test_empty_directory_creates_empty_knowledge_base(self, services, tmp_path):
        root = tmp_path / "nothing"
        root.mkdir()
        stats = services.pipeline.ingest(root, "empty")
        assert stats.chunks_created == 0
        assert services.store.count("empty") == 0

    def test_progress_callback(self, services, docs_dir):
        progress = MagicMock()
        services.pipeline.ingest(docs_dir, "docs", progress_callback=progress)
        assert progress.call_args_list[-1].args == (2, 2, "Done")

    def test_missing_root_writes_nothing(self, services, tmp_path):
        with pytest.raises(ScanError):
            services.pipeline.ingest(tmp_path / "missing", "docs")
        assert not services.store.exists("docs")

    def test_api_shape(self, services, docs_dir):
        body = services.pipeline.ingest(docs_dir, "docs").to_api()
        assert body["knowledgeBaseName"] == "docs"
        assert "chunksCreated" in body
        assert "unsupportedByExtension" in body


class TestRollback:
    def test_failed_first_ingest_drops_collection(self, services, docs_dir):
        with patch.object(
            services.embeddings, "embed_batch", side_effect=EmbeddingError("model down")
        ):
            with pytest.raises(IngestionError) as exc_info:
                services.pipeline.ingest(docs_dir, "docs")

        assert isinstance(exc_info.value.original_error, EmbeddingError)
        assert not services.store.exists("docs")

    def test_failed_reingest_keeps_previous_state(self, services, docs_dir):
        first = services.pipeline.ingest(docs_dir, "docs")
        real_embed = services.embeddings.embed_batch
        calls = []

        def fail_second_batch(texts):
            calls.append(texts)
            if len(calls) > 1:
                raise EmbeddingError("model down")
            return real_embed(texts)

        # Enough new text for more than one store batch
        (docs_dir / "long.md").write_text(
            "\n\n".join(f"Paragraph {i} " + "filler text " * 20 for i in range(20)),
            encoding="utf-8",
        )
        with patch.object(services.embeddings, "embed_batch", side_effect=fail_second_batch):
            with pytest.raises(IngestionError):
                services.pipeline.ingest(docs_dir, "docs")

        records = services.store.get_all("docs")
        assert len(records) == first.chunks_created
        assert {r.metadata["ingestion_timestamp"] for r in records} == {first.ingestion_timestamp}

    def test_failed_metadata_update_keeps_previous_state(self, services, docs_dir):
        first = services.pipeline.ingest(docs_dir, "docs")

        with patch.object(
            services.store, "update_metadata", side_effect=StoreError("update_metadata")
        ):
            with pytest.raises(IngestionError):
                services.pipeline.ingest(docs_dir, "docs")

        records = services.store.get_all("docs")
        assert len(records) == first.chunks_created
        assert {r.metadata["ingestion_timestamp"] for r in records} == {first.ingestion_timestamp}
        assert services.store.get_metadata("docs").last_ingestion == first.ingestion_timestamp

    def test_failed_stale_removal_keeps_both_chunk_sets(self, services, docs_dir):
        first = services.pipeline.ingest(docs_dir, "docs")

        with patch.object(
            services.store, "delete_by_filter", side_effect=StoreError("delete_by_filter")
        ):
            second = services.pipeline.ingest(docs_dir, "docs")

        assert second.stale_chunks_removed == 0
        assert len(second.warnings) == 1
        timestamps = {r.metadata["ingestion_timestamp"] for r in services.store.get_all("docs")}
        assert timestamps == {first.ingestion_timestamp, second.ingestion_timestamp}
        assert services.store.get_metadata("docs").last_ingestion == second.ingestion_timestamp

        removed = services.knowledge_bases.delete_chunk_set("docs", first.ingestion_timestamp)
        assert removed.deleted_count == first.chunks_created

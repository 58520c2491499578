# tests/test_store.py
"""
Tests for store.py - pending text class discovery and updates
"""
import sqlite3

import pytest

from mdproc.errors import StoreError
from mdproc.store import PendingDocument, TextClassStore


class TestPendingDocuments:
    """Tests for TextClassStore.pending_documents"""

    def test_returns_uploaded_unprocessed_rows(self, store):
        store.add_text_class(2, "Cells", file_name="sync/1/2/5/file.md", class_id=5)

        assert store.pending_documents() == [
            PendingDocument(class_id=5, course_id=2, grade_id=1,
                            source_path="sync/1/2/5/file.md"),
        ]

    def test_skips_rows_without_upload(self, store):
        store.add_text_class(2, "No file yet", file_name="")
        store.add_text_class(2, "Null file", file_name=None)
        assert store.pending_documents() == []

    def test_skips_processed_rows(self, store):
        store.add_text_class(2, "Done", file_name="sync/1/2/7/a.md",
                             proc_file_name="sync/1/2/7/processed_a.md")
        assert store.pending_documents() == []

    def test_null_processed_path_counts_as_pending(self, store):
        store.add_text_class(1, "Legacy row", file_name="sync/1/1/3/a.md",
                             proc_file_name=None, class_id=3)
        assert [d.class_id for d in store.pending_documents()] == [3]

    def test_result_is_materialized(self, store):
        for class_id in (1, 2, 3):
            store.add_text_class(2, f"C{class_id}", file_name=f"f{class_id}.md",
                                 class_id=class_id)

        pending = store.pending_documents()
        for doc in pending:
            store.mark_processed(doc.class_id, "done")

        assert isinstance(pending, list)
        assert [d.class_id for d in pending] == [1, 2, 3]
        assert store.pending_documents() == []

    def test_missing_schema_raises_store_error(self, tmp_path):
        with TextClassStore(str(tmp_path / "empty.db")) as empty:
            with pytest.raises(StoreError):
                empty.pending_documents()


class TestMarkProcessed:
    """Tests for TextClassStore.mark_processed"""

    def test_sets_processed_path(self, store):
        store.add_text_class(2, "Cells", file_name="sync/1/2/5/file.md", class_id=5)

        assert store.mark_processed(5, "sync/1/2/5/processed_file.md") is True
        assert store.processed_path(5) == "sync/1/2/5/processed_file.md"

    def test_unknown_class_returns_false(self, store):
        assert store.mark_processed(99, "whatever") is False

    def test_update_visible_to_other_connections(self, store, config):
        store.add_text_class(2, "Cells", file_name="f.md", class_id=5)
        store.mark_processed(5, "processed_f.md")

        conn = sqlite3.connect(config.db_path)
        try:
            row = conn.execute("SELECT proc_file_name FROM text_class WHERE id = 5").fetchone()
        finally:
            conn.close()
        assert row == ("processed_f.md",)


class TestSchema:
    def test_ensure_schema_is_repeatable(self, store):
        store.ensure_schema()
        store.ensure_schema()

    def test_course_requires_existing_grade(self, store):
        with pytest.raises(StoreError):
            store.add_course(42, "Orphan")

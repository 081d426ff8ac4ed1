"""Tests for the history and error store."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine

from queryflow.storage.metadata import MetadataStore


class TestMetadataStore:

    def test_history_round_trip(self, metadata_store):
        metadata_store.insert_history("dw", "hive", "select 1", "qid-1")

        row = metadata_store.get_history("qid-1")
        assert row["datasource"] == "dw"
        assert row["engine"] == "hive"
        assert row["query_string"] == "select 1"
        assert row["fetch_result_time_string"]

    def test_missing_rows_return_none(self, metadata_store):
        assert metadata_store.get_history("nope") is None
        assert metadata_store.get_error("nope") is None

    def test_store_error_writes_row_and_error_file(self, metadata_store, result_store):
        metadata_store.store_error("dw", "hive", "20240101_000000_abc", "select x", "boom")

        assert metadata_store.get_error("20240101_000000_abc")["error_message"] == "boom"
        path = result_store.error_path("dw", "20240101_000000_abc")
        assert path.read_text(encoding="utf-8") == "boom"
        assert path.parent.name == "20240101"

    def test_store_error_accepts_missing_message(self, metadata_store):
        metadata_store.store_error("dw", "hive", "qid-2", "select x", None)

        assert metadata_store.get_error("qid-2")["error_message"] is None

    def test_without_result_store_only_row_is_written(self):
        store = MetadataStore(engine=create_engine("sqlite://"))
        store.result_store = None

        store.store_error("dw", "hive", "qid-3", "select x", "boom")

        assert store.get_error("qid-3")["error_message"] == "boom"
        store.dispose()

    def test_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            MetadataStore()

    def test_result_store_receives_message(self):
        result_store = MagicMock()
        store = MetadataStore(engine=create_engine("sqlite://"), result_store=result_store)

        store.store_error("dw", "hive", "qid-4", "select x", "boom")

        result_store.write_error.assert_called_once_with("dw", "qid-4", "boom")
        store.dispose()

"""Tests for the service facade."""

from unittest.mock import MagicMock

import pytest

from queryflow import HiveQueryService, QueryError
from queryflow.storage.metadata import MetadataStore


@pytest.fixture
def service(settings, metadata_store):
    service = HiveQueryService(settings, metadata_store=metadata_store)
    yield service
    service.close()


class TestHiveQueryService:

    def test_do_query(self, service):
        result = service.do_query("dw", "select 'x' as c", "alice", True, 10)

        assert result.columns == ["c"]
        assert result.records == [["x"]]
        assert service.metadata_store.get_history(result.query_id) is not None

    def test_do_query_async(self, service, result_store):
        query_id = service.do_query_async("dw", "select 'x' as c", "alice")
        service.dispatcher.shutdown(wait=True)

        assert result_store.result_path("dw", query_id).exists()

    def test_do_query_failure(self, service):
        with pytest.raises(QueryError):
            service.do_query("dw", "select * from missing_table", "alice", True, 10)

    def test_builds_metadata_store_from_settings(self, settings):
        with HiveQueryService(settings) as service:
            assert isinstance(service.metadata_store, MetadataStore)
            assert service.metadata_store.result_store is service.result_store
            dispose = MagicMock(wraps=service.metadata_store.dispose)
            service.metadata_store.dispose = dispose

        dispose.assert_called_once_with()

    def test_injected_metadata_store_is_left_open(self, settings, metadata_store):
        dispose = MagicMock()
        metadata_store.dispose = dispose

        HiveQueryService(settings, metadata_store=metadata_store).close()

        dispose.assert_not_called()
        del metadata_store.dispose

"""Shared fixtures: SQLite-backed datasources and stores under tmp_path."""

import pytest
from sqlalchemy import create_engine

from queryflow.compute.factory import SQLEngineFactory
from queryflow.execution.executor import QueryExecutor
from queryflow.settings import DatasourceSettings, Settings
from queryflow.storage.metadata import MetadataStore
from queryflow.storage.result_store import ResultStore


def sqlite_datasource(**overrides) -> DatasourceSettings:
    values = dict(
        type="generic",
        url="sqlite://",
        user="",
        password="",
        query_max_run_time_seconds=60,
    )
    values.update(overrides)
    return DatasourceSettings(**values)


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings rooted in tmp_path, with keyword overrides."""

    def _make(**overrides) -> Settings:
        values = dict(
            result_dir=tmp_path / "result",
            metadata_url=f"sqlite:///{tmp_path / 'metadata.db'}",
            max_result_file_byte_size=1_000_000,
            select_limit=100,
            datasources={"dw": sqlite_datasource()},
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def result_store(settings) -> ResultStore:
    return ResultStore(settings.result_dir)


@pytest.fixture
def metadata_store(settings, result_store) -> MetadataStore:
    engine = create_engine(settings.metadata_url, connect_args={"check_same_thread": False})
    store = MetadataStore(engine=engine, result_store=result_store)
    yield store
    store.dispose()


@pytest.fixture
def make_executor(result_store, metadata_store):
    """Build a QueryExecutor for the given settings; engines are disposed after the test."""
    factories = []

    def _make(settings: Settings, **kwargs) -> QueryExecutor:
        factory = SQLEngineFactory(settings)
        factories.append(factory)
        return QueryExecutor(
            settings=settings,
            engine_factory=factory,
            result_store=result_store,
            metadata_store=metadata_store,
            **kwargs,
        )

    yield _make
    for factory in factories:
        factory.dispose()


@pytest.fixture
def executor(settings, make_executor) -> QueryExecutor:
    return make_executor(settings)

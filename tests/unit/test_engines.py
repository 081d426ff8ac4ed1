"""Tests for SQL engines and the engine factory."""

import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from queryflow.common.exceptions import ErrorCode, QueryFlowError
from queryflow.compute.engines.generic import GenericSQLEngine
from queryflow.compute.engines.hive import HiveSQLEngine, parse_jdbc_url
from queryflow.compute.factory import SQLEngineFactory
from queryflow.settings import DatasourceSettings, Settings

from tests.conftest import sqlite_datasource


def _hive(url="jdbc:hive2://hive.example.com:10000/analytics", user="etl", password="secret", **overrides):
    settings = DatasourceSettings(url=url, user=user, password=password, **overrides)
    return HiveSQLEngine("dw", settings, url, user, password)


class TestParseJdbcUrl:

    def test_full_url(self):
        parts = parse_jdbc_url("jdbc:hive2://hive:10001/db;auth=LDAP;transportMode=http")

        assert parts == {
            "host": "hive",
            "port": 10001,
            "database": "db",
            "params": {"auth": "LDAP", "transportMode": "http"},
        }

    def test_host_only(self):
        parts = parse_jdbc_url("jdbc:hive2://hive")

        assert parts["host"] == "hive"
        assert parts["port"] is None
        assert parts["database"] is None


class TestHiveSQLEngine:

    def test_build_url_from_jdbc(self):
        url = _hive().build_url()

        assert url.drivername == "hive"
        assert url.host == "hive.example.com"
        assert url.port == 10000
        assert url.database == "analytics"
        assert url.username == "etl"
        assert url.password == "secret"
        assert url.query["auth"] == "LDAP"

    def test_build_url_without_password_has_no_auth(self):
        url = _hive(password="").build_url()

        assert url.password is None
        assert "auth" not in url.query

    def test_explicit_auth_is_kept(self):
        url = _hive(url="jdbc:hive2://hive:10000/default;auth=CUSTOM").build_url()

        assert url.query["auth"] == "CUSTOM"

    @pytest.mark.parametrize(
        "jdbc_auth, mode",
        [("noSasl", "NOSASL"), ("none", "NONE"), ("ldap", "LDAP"), ("Kerberos", "KERBEROS"), ("custom", "CUSTOM")],
    )
    def test_jdbc_auth_spellings_are_normalised(self, jdbc_auth, mode):
        url = _hive(url=f"jdbc:hive2://hive:10000/default;auth={jdbc_auth}", password="").build_url()

        assert url.query["auth"] == mode

    def test_password_dropped_outside_ldap_and_custom(self):
        url = _hive(url="jdbc:hive2://hive:10000/default;auth=noSasl").build_url()

        assert url.query["auth"] == "NOSASL"
        assert url.password is None

    def test_unknown_auth_is_config_error(self):
        with pytest.raises(QueryFlowError) as exc_info:
            _hive(url="jdbc:hive2://hive:10000/default;auth=saml").build_url()

        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING
        assert exc_info.value.details["config_key"] == "hive.jdbc.dw.url"

    def test_prepare_session_sets_timeout_and_job_name(self):
        conn = MagicMock()

        _hive().prepare_session(conn, "20240101_000000_abc", 120)

        statements = [call.args[0] for call in conn.exec_driver_sql.call_args_list]
        assert statements == [
            "set hive.query.timeout.seconds=120s",
            "set mapreduce.job.name=yanagishima-hive-20240101_000000_abc",
        ]

    def test_zero_timeout_and_disabled_tag_send_nothing(self):
        conn = MagicMock()

        _hive(job_tag_enabled=False).prepare_session(conn, "qid", 0)

        conn.exec_driver_sql.assert_not_called()

    def test_rejected_job_tag_fails_by_default(self):
        conn = MagicMock()
        conn.exec_driver_sql.side_effect = [None, OperationalError("set", {}, Exception("denied"))]

        with pytest.raises(OperationalError):
            _hive().prepare_session(conn, "qid", 60)

    def test_rejected_job_tag_ignored_when_best_effort(self):
        conn = MagicMock()
        conn.exec_driver_sql.side_effect = [None, OperationalError("set", {}, Exception("denied"))]

        _hive(job_tag_best_effort=True).prepare_session(conn, "qid", 60)

        assert conn.exec_driver_sql.call_count == 2


class TestGenericSQLEngine:

    def test_runs_queries(self):
        engine = GenericSQLEngine("dw", sqlite_datasource(), "sqlite://")

        with engine.connect() as conn, engine.stream(conn, "select 1 as a, 2 as b") as result:
            assert result.columns == ["a", "b"]
            assert list(result) == [(1, 2)]
        engine.dispose()

    def test_prepare_session_is_noop(self):
        conn = MagicMock()

        GenericSQLEngine("dw", sqlite_datasource(), "sqlite://").prepare_session(conn, "qid", 60)

        conn.exec_driver_sql.assert_not_called()

    def test_unknown_dialect_is_driver_error(self):
        engine = GenericSQLEngine("dw", sqlite_datasource(), "nosuchdialect://host/db")

        with pytest.raises(QueryFlowError) as exc_info:
            with engine.connect():
                pass

        assert exc_info.value.error_code == ErrorCode.ENGINE_NOT_AVAILABLE

    def test_concurrent_first_use_creates_one_engine(self):
        engine = GenericSQLEngine("dw", sqlite_datasource(), "sqlite://")
        real_create = engine._create_engine
        created = []

        def slow_create():
            time.sleep(0.05)
            created.append(real_create())
            return created[-1]

        engine._create_engine = slow_create
        with ThreadPoolExecutor(max_workers=5) as pool:
            seen = list(pool.map(lambda _: engine.engine, range(5)))

        assert len(created) == 1
        assert all(e is created[0] for e in seen)
        engine.dispose()

    def test_malformed_url_is_config_error(self):
        engine = GenericSQLEngine("dw", sqlite_datasource(), "not a url")

        with pytest.raises(QueryFlowError) as exc_info:
            engine.build_url()

        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING


class TestSQLEngineFactory:

    def test_engine_is_cached_per_datasource(self):
        settings = Settings(datasources={"a": sqlite_datasource(), "b": sqlite_datasource()})
        factory = SQLEngineFactory(settings)

        assert factory.get("a") is factory.get("a")
        assert factory.get("a") is not factory.get("b")
        assert isinstance(factory.get("a"), GenericSQLEngine)
        factory.dispose()

    def test_hive_type_selects_hive_engine(self):
        datasource = DatasourceSettings(url="jdbc:hive2://hive:10000", user="u", password="")
        factory = SQLEngineFactory(Settings(datasources={"dw": datasource}))

        assert isinstance(factory.get("dw"), HiveSQLEngine)

    def test_missing_coordinates_fail_before_engine_creation(self):
        factory = SQLEngineFactory(Settings(datasources={"dw": sqlite_datasource(user=None)}))

        with pytest.raises(QueryFlowError) as exc_info:
            factory.get("dw")

        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING

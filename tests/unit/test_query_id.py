"""Tests for query identifier generation."""

import hashlib
import re
from datetime import datetime

from queryflow.execution import query_id as query_id_module
from queryflow.execution.query_id import generate_query_id

QUERY_ID_PATTERN = re.compile(r"^\d{8}_\d{6}_[0-9a-f]{32}$")


class _FixedDatetime(datetime):
    @classmethod
    def now(cls, tz=None):
        return cls(2024, 3, 9, 7, 5, 1, 123456)


class TestGenerateQueryId:

    def test_format(self):
        assert QUERY_ID_PATTERN.match(generate_query_id("dw", "select 1"))

    def test_same_query_twice_yields_distinct_ids(self):
        first = generate_query_id("dw", "select 1")
        second = generate_query_id("dw", "select 1")
        assert first != second

    def test_digest_covers_datasource_query_instant_and_random(self, monkeypatch):
        monkeypatch.setattr(query_id_module, "datetime", _FixedDatetime)
        monkeypatch.setattr(query_id_module.random, "randrange", lambda n: 42)

        query_id = generate_query_id("dw", "select 1")

        instant = _FixedDatetime.now().astimezone()
        expected = hashlib.md5(f"dw;select 1;{instant.isoformat()};42".encode("utf-8")).hexdigest()
        assert query_id == f"20240309_070501_{expected}"

    def test_arbitrary_input_never_fails(self):
        assert QUERY_ID_PATTERN.match(generate_query_id("", "sélect ';' \n"))

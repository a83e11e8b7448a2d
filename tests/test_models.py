"""Unit tests for API models and response decoding."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from honeycomb_client.decoder import decode, list_of
from honeycomb_client.errors import DecodeError
from honeycomb_client.models import (
    Authorizations,
    Column,
    Dataset,
    QueryResultStatus,
    parse_timestamp,
)
from honeycomb_client.transport import TransportResponse

from tests.fixtures.mock_service import authorizations_json


class TestAuthorizations:

    def test_has_required_access(self):
        auth = Authorizations.from_dict(authorizations_json(columns=True, queries=True, markers=False))

        assert auth.has_required_access(["columns", "queries"])
        assert not auth.has_required_access(["columns", "markers"])
        assert not auth.has_required_access(["boards"])
        assert auth.has_required_access([])

    def test_str_lists_access(self):
        auth = Authorizations.from_dict(authorizations_json(columns=True))

        text = str(auth)

        assert "api_key_access:\ncolumns: True\n" in text
        assert "environment: Production" in text
        assert text.endswith("team: Acme")


class TestQueryResultStatus:

    def test_complete_result(self):
        status = QueryResultStatus.from_dict({
            "id": "r1",
            "complete": True,
            "links": {"query_url": "https://ui/q", "graph_image_url": "https://ui/g"},
            "data": {"series": [], "results": [{"data": {"COUNT": 4}}]},
        })

        assert status.complete
        assert status.links.query_url == "https://ui/q"
        assert QueryResultStatus.rows(status) == [{"COUNT": 4}]

    @pytest.mark.parametrize("data", [None, "oops", {"results": None}, {"results": [1, None]}])
    def test_malformed_data_is_empty(self, data):
        status = QueryResultStatus.from_dict({"id": "r1", "data": data, "links": None})

        assert not status.complete
        assert status.links.query_url == ""
        assert QueryResultStatus.rows(status) == []

    def test_rows_of_none(self):
        assert QueryResultStatus.rows(None) == []


class TestDecode:

    def test_list_of_datasets(self):
        response = TransportResponse(200, {}, '[{"slug": "api", "last_written_at": "2024-01-14T00:00:00Z"}]')

        datasets = decode(response, list_of(Dataset.from_dict))

        assert datasets == [Dataset("api", None, datetime(2024, 1, 14, tzinfo=timezone.utc))]

    def test_object_where_list_expected(self):
        response = TransportResponse(401, {"x": "y"}, '{"error": "unknown API key"}')

        with pytest.raises(DecodeError) as exc_info:
            decode(response, list_of(Dataset.from_dict))

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"x": "y"}

    def test_not_json(self):
        with pytest.raises(DecodeError, match="Failed to parse JSON data"):
            decode(TransportResponse(502, {}, "Bad Gateway"), Dataset.from_dict)


def test_parse_timestamp():
    assert parse_timestamp("2024-01-14T12:30:00Z") == datetime(2024, 1, 14, 12, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-14T12:30:00") == datetime(2024, 1, 14, 12, 30, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None


@pytest.mark.parametrize(
    "value, microsecond",
    [
        ("2024-01-14T12:30:00.1Z", 100000),
        ("2024-01-14T12:30:00.12Z", 120000),
        ("2024-01-14T12:30:00.123Z", 123000),
        ("2024-01-14T12:30:00.1234Z", 123400),
        ("2024-01-14T12:30:00.123456Z", 123456),
        ("2024-01-14T12:30:00.1234567Z", 123456),
        ("2024-01-14T12:30:00.123456789+00:00", 123456),
    ],
)
def test_parse_timestamp_fractional_seconds(value, microsecond):
    assert parse_timestamp(value) == datetime(2024, 1, 14, 12, 30, 0, microsecond, tzinfo=timezone.utc)


def test_parse_timestamp_with_offset():
    parsed = parse_timestamp("2024-01-14T14:30:00.5+02:00")
    assert parsed == datetime(2024, 1, 14, 12, 30, 0, 500000, tzinfo=timezone.utc)


def test_columns_with_nanosecond_timestamps_decode():
    body = '[{"id": "c1", "key_name": "k", "type": "string", "description": "", ' \
           '"hidden": false, "last_written": "2024-01-14T00:00:00.123456789Z"}]'

    columns = decode(TransportResponse(200, {}, body), list_of(Column.from_dict))

    assert columns[0].last_written.microsecond == 123456

"""
Tests for the tunasync status client and StatusRecord decoding.

Tests cover:
- StatusRecord.from_api_response() with and without next_schedule fields
- TunasyncClient.get_status() with mocked HTTP
- Sorting by last_update_ts
- Error handling (network failure, bad JSON, wrong shape)
"""

from unittest.mock import patch, Mock

import pytest
import requests

from tunasync_monitor.domain.status import StatusRecord
from tunasync_monitor.exit_codes import DecodeError, TransportError, FETCH_ERROR
from tunasync_monitor.infra.tunasync_client import (
    TunasyncClient,
    decode_status,
    sort_by_last_update,
)


# ──────────────────────────────────────────────
# Fixtures: sample tunasync.json entries
# ──────────────────────────────────────────────

SAMPLE_ENTRY = {
    "name": "ubuntu",
    "is_master": True,
    "status": "success",
    "last_update": "2020-01-31 12:00:00 +0800",
    "last_update_ts": 1580443200,
    "last_ended": "2020-01-31 12:00:00 +0800",
    "last_ended_ts": 1580443200,
    "next_schedule": "2020-01-31 14:00:00 +0800",
    "next_schedule_ts": 1580450400,
    "upstream": "rsync://archive.ubuntu.com/ubuntu/",
    "size": "1.2TiB",
}

SAMPLE_ENTRY_NO_SCHEDULE = {
    "name": "debian",
    "is_master": True,
    "status": "failed",
    "last_update": "0001-01-01 00:00:00 +0000",
    "last_update_ts": 0,
    "last_ended": "2020-01-31 13:00:00 +0800",
    "last_ended_ts": 1580446800,
    "upstream": "rsync://ftp.debian.org/debian/",
    "size": "unknown",
}

SAMPLE_ENTRY_RECENT = dict(SAMPLE_ENTRY, name="fedora", last_update_ts=1580500000, size="800GiB")


def mock_json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


class TestStatusRecord:
    """Tests for StatusRecord decoding."""

    def test_from_api_response_basic(self):
        record = StatusRecord.from_api_response(SAMPLE_ENTRY)
        assert record.name == "ubuntu"
        assert record.is_master is True
        assert record.last_update_ts == 1580443200
        assert record.next_schedule_ts == 1580450400
        assert record.size == "1.2TiB"
        assert not record.never_updated

    def test_next_schedule_optional(self):
        record = StatusRecord.from_api_response(SAMPLE_ENTRY_NO_SCHEDULE)
        assert record.next_schedule is None
        assert record.next_schedule_ts is None
        assert record.never_updated
        assert record.is_failed

    def test_to_dict_omits_missing_schedule(self):
        data = StatusRecord.from_api_response(SAMPLE_ENTRY_NO_SCHEDULE).to_dict()
        assert 'next_schedule' not in data
        assert data['upstream'] == "rsync://ftp.debian.org/debian/"

    def test_to_dict_round_trips_fields(self):
        assert StatusRecord.from_api_response(SAMPLE_ENTRY).to_dict() == SAMPLE_ENTRY

    def test_missing_required_field(self):
        entry = dict(SAMPLE_ENTRY)
        del entry['last_update_ts']
        with pytest.raises(DecodeError, match="last_update_ts"):
            StatusRecord.from_api_response(entry)

    def test_wrong_type(self):
        with pytest.raises(DecodeError):
            StatusRecord.from_api_response(dict(SAMPLE_ENTRY, last_update_ts="yesterday"))

    def test_bool_timestamp_rejected(self):
        with pytest.raises(DecodeError):
            StatusRecord.from_api_response(dict(SAMPLE_ENTRY, last_update_ts=True))

    def test_not_an_object(self):
        with pytest.raises(DecodeError):
            StatusRecord.from_api_response(["ubuntu"])


class TestDecodeStatus:

    def test_sorted_most_recent_first(self):
        records = decode_status([SAMPLE_ENTRY_NO_SCHEDULE, SAMPLE_ENTRY, SAMPLE_ENTRY_RECENT])
        assert [r.name for r in records] == ["fedora", "ubuntu", "debian"]

    def test_sorted_for_any_input_order(self):
        entries = [dict(SAMPLE_ENTRY, name=f"r{i}", last_update_ts=ts)
                   for i, ts in enumerate([5, 1, 9, 0, 7, 7, 3])]
        records = decode_status(entries)
        stamps = [r.last_update_ts for r in records]
        assert stamps == sorted(stamps, reverse=True)

    def test_sort_does_not_mutate_input(self):
        records = [StatusRecord.from_api_response(e) for e in (SAMPLE_ENTRY, SAMPLE_ENTRY_RECENT)]
        sort_by_last_update(records)
        assert records[0].name == "ubuntu"

    def test_empty_array(self):
        assert decode_status([]) == []

    def test_object_body_rejected(self):
        with pytest.raises(DecodeError, match="array"):
            decode_status({"ubuntu": SAMPLE_ENTRY}, "mirror.example.org")

    def test_bad_entry_names_server(self):
        with pytest.raises(DecodeError, match="mirror.example.org"):
            decode_status([{"name": "broken"}], "mirror.example.org")


class TestTunasyncClient:
    """Tests for TunasyncClient with mocked HTTP."""

    def test_get_status(self):
        client = TunasyncClient()
        payload = [SAMPLE_ENTRY, SAMPLE_ENTRY_RECENT]

        with patch.object(client.session, 'get', return_value=mock_json_response(payload)) as mock_get:
            records = client.get_status("mirrors.example.org")

        assert [r.name for r in records] == ["fedora", "ubuntu"]
        mock_get.assert_called_once()
        assert mock_get.call_args.args[0] == "https://mirrors.example.org/static/tunasync.json"

    def test_user_agent_header(self):
        client = TunasyncClient()
        assert client.session.headers['User-Agent'] == "tunasync-monitor"

    def test_custom_scheme_and_path(self):
        client = TunasyncClient(scheme="http", status_path="status.json")
        assert client.status_url("localhost:8080") == "http://localhost:8080/status.json"

    def test_connection_error(self):
        client = TunasyncClient()
        with patch.object(client.session, 'get', side_effect=requests.ConnectionError("refused")):
            with pytest.raises(TransportError) as exc_info:
                client.get_status("down.example.org")

        assert exc_info.value.server == "down.example.org"
        assert exc_info.value.exit_code == FETCH_ERROR

    def test_timeout(self):
        client = TunasyncClient(timeout=1)
        with patch.object(client.session, 'get', side_effect=requests.Timeout("slow")):
            with pytest.raises(TransportError):
                client.get_status("slow.example.org")

    def test_http_error_status(self):
        client = TunasyncClient()
        response = mock_json_response([])
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

        with patch.object(client.session, 'get', return_value=response):
            with pytest.raises(TransportError):
                client.get_status("mirrors.example.org")

    def test_invalid_json(self):
        client = TunasyncClient()
        response = mock_json_response(None)
        response.json.side_effect = ValueError("Expecting value")

        with patch.object(client.session, 'get', return_value=response):
            with pytest.raises(DecodeError):
                client.get_status("mirrors.example.org")

    def test_context_manager_closes_session(self):
        client = TunasyncClient()
        with patch.object(client.session, 'close') as mock_close:
            with client:
                pass
        mock_close.assert_called_once()

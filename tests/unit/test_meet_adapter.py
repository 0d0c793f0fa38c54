from __future__ import annotations

import pytest
import requests

from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.connectors.meet import adapter
from party_meetings.connectors.meet.payloads import extract_meeting_code, space_from_payload


class _Resp:
    def __init__(self, data=None, status_code: int = 200) -> None:
        self._data = data
        self.status_code = status_code
        self.content = b"{}" if data is not None else b""

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            err = requests.HTTPError(f"{self.status_code}")
            err.response = self
            raise err

    def json(self):
        return self._data


def test_paths_and_auth_header(monkeypatch) -> None:
    calls: list[dict] = []

    def _request(*, method, url, json=None, params=None, headers=None, timeout=None):
        _ = json, timeout
        calls.append({"method": method, "url": url, "params": params, "auth": headers["Authorization"]})
        return _Resp(None)

    monkeypatch.setattr(adapter.requests, "request", _request)
    conn = adapter.GoogleMeetConnector(base_url="https://meet.example/v2/", timeout_sec=3)

    conn.end_active_conference("tok", "abc-defg-hij")
    conn.list_conference_records("tok", page_size=0, page_token="next")
    conn.list_transcript_entries("tok", "conferenceRecords/c-1", "t-1")

    assert calls[0]["url"] == "https://meet.example/v2/spaces/abc-defg-hij:endActiveConference"
    assert calls[0]["auth"] == "Bearer tok"
    assert calls[1]["params"] == {"pageSize": 1, "pageToken": "next"}
    assert calls[2]["url"] == "https://meet.example/v2/conferenceRecords/c-1/transcripts/t-1/entries"


def test_http_error_is_wrapped(monkeypatch) -> None:
    monkeypatch.setattr(adapter.requests, "request", lambda **_k: _Resp({}, status_code=403))
    conn = adapter.GoogleMeetConnector(base_url="https://meet.example/v2")
    with pytest.raises(ProviderError) as ei:
        conn.list_participants("tok", "c-1")
    assert ei.value.code == ErrCode.CONNECTOR_PROVIDER_ERROR
    assert ei.value.details["status"] == 403


def test_space_descriptor_and_meeting_code() -> None:
    space = space_from_payload(
        {"name": "spaces/jQCFfuBOdN5z", "meetingUri": "https://meet.google.com/abc-mnop-xyz"}
    )
    assert space.space_id == "jQCFfuBOdN5z"
    assert space.meeting_code == "abc-mnop-xyz"
    assert extract_meeting_code("https://meet.google.com/lookup/abc-mnop-xyz?authuser=0") == "abc-mnop-xyz"
    assert extract_meeting_code("") is None

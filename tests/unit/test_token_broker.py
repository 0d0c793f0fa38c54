from __future__ import annotations

import pytest
import requests

from party_meetings.auth import token_broker as tb
from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.domain.enums import READ_CAPABILITIES, Capability


class _Resp:
    def __init__(self, data: dict, status_code: int = 200) -> None:
        self._data = data
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self) -> dict:
        return self._data


def test_scopes_collapse_read_capabilities() -> None:
    assert tb.scopes_for(READ_CAPABILITIES) == [
        "https://www.googleapis.com/auth/meetings.space.readonly"
    ]
    assert len(tb.scopes_for(Capability)) == 3


def test_oauth_broker_requests_union_of_scopes(monkeypatch) -> None:
    calls: list[dict] = []

    def _post(url, data=None, timeout=None):
        _ = url, timeout
        calls.append(dict(data))
        return _Resp({"access_token": f"at-{len(calls)}", "expires_in": 3600})

    monkeypatch.setattr(tb.requests, "post", _post)
    broker = tb.OAuthRefreshTokenBroker(
        token_url="https://oauth.example/token", client_id="cid", refresh_token="rt"
    )

    first = broker.request_token({Capability.space_creation})
    second = broker.request_token({Capability.document_read})

    assert first.value == "at-1"
    assert first.expires_at is not None
    assert "meetings.space.created" in calls[1]["scope"]
    assert "drive.readonly" in calls[1]["scope"]
    assert second.capabilities == frozenset({Capability.space_creation, Capability.document_read})
    assert calls[0]["grant_type"] == "refresh_token"


def test_oauth_broker_wraps_http_errors(monkeypatch) -> None:
    monkeypatch.setattr(tb.requests, "post", lambda *_a, **_k: _Resp({}, status_code=401))
    broker = tb.OAuthRefreshTokenBroker(
        token_url="https://oauth.example/token", client_id="cid", refresh_token="rt"
    )
    with pytest.raises(ProviderError) as ei:
        broker.request_token(READ_CAPABILITIES)
    assert ei.value.code == ErrCode.TOKEN_ERROR


def test_oauth_broker_requires_credentials() -> None:
    broker = tb.OAuthRefreshTokenBroker(token_url="https://oauth.example/token", client_id="cid")
    broker.refresh_token = ""
    with pytest.raises(ProviderError):
        broker.request_token(READ_CAPABILITIES)


def test_static_broker_covers_everything() -> None:
    token = tb.StaticTokenBroker("static-1").request_token({Capability.record_read})
    assert token.value == "static-1"
    assert token.capabilities == frozenset(Capability)


def test_resolve_by_settings(monkeypatch) -> None:
    s = tb.get_settings()
    monkeypatch.setattr(s, "token_broker", "mock")
    assert isinstance(tb.resolve_token_broker(), tb.MockTokenBroker)
    monkeypatch.setattr(s, "token_broker", "kerberos")
    with pytest.raises(ProviderError):
        tb.resolve_token_broker()

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apps.api_gateway import main as gateway_main
from party_meetings.common.config import get_settings


def test_health_and_metrics() -> None:
    client = TestClient(gateway_main.create_app())

    assert client.get("/health").json()["ok"] is True
    client.get("/health")
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "party_meetings_requests_total" in metrics.text


def test_cors_wildcard_refused_in_prod(monkeypatch) -> None:
    s = get_settings()
    monkeypatch.setattr(s, "app_env", "prod")
    monkeypatch.setattr(s, "cors_allowed_origins", "*")
    with pytest.raises(RuntimeError):
        gateway_main.create_app()


def test_credentials_dropped_for_wildcard(monkeypatch) -> None:
    s = get_settings()
    monkeypatch.setattr(s, "cors_allowed_origins", "")
    monkeypatch.setattr(s, "cors_allow_credentials", True)
    assert gateway_main._cors_params() == (["*"], False)

from __future__ import annotations

from party_meetings.common.config import Settings


def test_file_override(monkeypatch, tmp_path) -> None:
    secret = tmp_path / "backend_token"
    secret.write_text("from-file\n", encoding="utf-8")
    monkeypatch.setenv("BACKEND_API_TOKEN", "from-env")
    monkeypatch.setenv("BACKEND_API_TOKEN_FILE", str(secret))

    s = Settings()
    assert s.backend_api_token == "from-file"


def test_defaults(monkeypatch) -> None:
    for key in ("MEET_PROVIDER", "MEETING_DEFAULT_DURATION_MIN", "PERSISTENCE_MODE"):
        monkeypatch.delenv(key, raising=False)
    s = Settings(_env_file=None)
    assert s.meet_provider == "mock"
    assert s.meeting_default_duration_min == 30
    assert s.persistence_mode == "memory"
    assert s.meet_record_page_size == 10

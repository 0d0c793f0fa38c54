"""
Адаптер Google Meet REST API (v2).

Назначение:
- создание пространства, завершение конференции
- чтение conference records / participants / transcripts / recordings
"""

from __future__ import annotations

from typing import Any

import requests

from party_meetings.common.config import get_settings
from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.common.logging import get_project_logger
from party_meetings.connectors.base import ConferencingProvider

log = get_project_logger()


def _space_path(space_or_code: str) -> str:
    value = (space_or_code or "").strip()
    return value if value.startswith("spaces/") else f"spaces/{value}"


def _record_path(conference_id: str) -> str:
    value = (conference_id or "").strip()
    return value if value.startswith("conferenceRecords/") else f"conferenceRecords/{value}"


class GoogleMeetConnector(ConferencingProvider):
    def __init__(self, *, base_url: str | None = None, timeout_sec: int | None = None) -> None:
        s = get_settings()
        self.base_url = (base_url or s.meet_api_base or "").rstrip("/")
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.meet_timeout_sec)

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict:
        if not self.base_url:
            raise ProviderError(ErrCode.CONNECTOR_PROVIDER_ERROR, "MEET_API_BASE не настроен")

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.request(
                method=method.upper(),
                url=url,
                json=payload,
                params=params,
                headers=headers,
                timeout=self.timeout_sec,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            raise ProviderError(
                ErrCode.CONNECTOR_PROVIDER_ERROR,
                "Ошибка обращения к Google Meet API",
                details={"path": path, "status": status, "err": str(e)[:300]},
            ) from e

        if not resp.content:
            return {}
        try:
            data = resp.json()
            return data if isinstance(data, dict) else {}
        except ValueError:
            return {}

    def create_space(self, token: str, config: dict[str, Any] | None = None) -> dict:
        data = self._request("POST", "spaces", token=token, payload={"config": config or {}})
        log.info("meet_create_space_ok", extra={"payload": {"space": data.get("name")}})
        return data

    def get_space(self, token: str, name_or_code: str) -> dict:
        return self._request("GET", _space_path(name_or_code), token=token)

    def end_active_conference(self, token: str, space_or_code: str) -> None:
        self._request("POST", f"{_space_path(space_or_code)}:endActiveConference", token=token)
        log.info("meet_end_active_conference_ok", extra={"payload": {"space": space_or_code}})

    def list_conference_records(
        self, token: str, *, page_size: int, page_token: str | None = None
    ) -> dict:
        params: dict[str, Any] = {"pageSize": max(1, int(page_size))}
        if page_token:
            params["pageToken"] = page_token
        return self._request("GET", "conferenceRecords", token=token, params=params)

    def get_conference_record(self, token: str, conference_id: str) -> dict:
        return self._request("GET", _record_path(conference_id), token=token)

    def list_participants(self, token: str, conference_id: str) -> dict:
        return self._request("GET", f"{_record_path(conference_id)}/participants", token=token)

    def list_transcripts(self, token: str, conference_id: str) -> dict:
        return self._request("GET", f"{_record_path(conference_id)}/transcripts", token=token)

    def list_transcript_entries(self, token: str, conference_id: str, transcript_id: str) -> dict:
        return self._request(
            "GET",
            f"{_record_path(conference_id)}/transcripts/{transcript_id}/entries",
            token=token,
        )

    def list_recordings(self, token: str, conference_id: str) -> dict:
        return self._request("GET", f"{_record_path(conference_id)}/recordings", token=token)

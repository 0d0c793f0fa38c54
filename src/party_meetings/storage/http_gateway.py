"""
PersistenceGateway поверх backend REST API (/api/meetings).
"""

from __future__ import annotations

from typing import Any

import requests

from party_meetings.common.config import get_settings
from party_meetings.common.errors import ErrCode, NotFoundError, ProviderError
from party_meetings.common.logging import get_project_logger
from party_meetings.domain.models import (
    ArtifactInput,
    InternalIdentity,
    MeetingDetails,
    MeetingSession,
    ReconciledParticipant,
)
from party_meetings.storage.gateway import PartyRosterSource, PersistenceGateway
from party_meetings.storage.serializers import (
    artifact_to_dto,
    details_from_dto,
    identity_from_member_dto,
    participant_to_dto,
    session_from_dto,
    session_to_dto,
)

log = get_project_logger()


class HttpPersistenceGateway(PersistenceGateway, PartyRosterSource):
    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.base_url = (base_url or s.backend_api_base or "").rstrip("/")
        self.api_token = (api_token or s.backend_api_token or "").strip()
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.backend_timeout_sec)

    def _request(self, method: str, path: str, *, payload: Any = None) -> Any:
        if not self.base_url:
            raise ProviderError(ErrCode.PERSISTENCE_ERROR, "BACKEND_API_BASE не настроен")

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        try:
            resp = requests.request(
                method=method.upper(),
                url=f"{self.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            raise ProviderError(
                ErrCode.PERSISTENCE_ERROR,
                "Ошибка обращения к backend API",
                details={"path": path, "err": str(e)[:300]},
            ) from e

        if resp.status_code == 404:
            raise NotFoundError("Встреча не найдена", details={"path": path})
        if resp.status_code >= 400:
            raise ProviderError(
                ErrCode.PERSISTENCE_ERROR,
                "Backend API вернул ошибку",
                details={"path": path, "status": resp.status_code, "body": resp.text[:300]},
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    def list_party_meetings(self, party_id: str) -> list[MeetingSession]:
        data = self._request("GET", f"/api/meetings/party/{party_id}")
        out: list[MeetingSession] = []
        for item in data or []:
            if not isinstance(item, dict):
                continue
            try:
                out.append(session_from_dto(item))
            except (KeyError, ValueError) as e:
                log.warning(
                    "backend_meeting_dto_invalid",
                    extra={"payload": {"party_id": party_id, "error": str(e)[:200]}},
                )
        return out

    def upsert_session(self, session: MeetingSession) -> MeetingSession:
        data = self._request("POST", "/api/meetings", payload=session_to_dto(session))
        if isinstance(data, dict) and data:
            return session_from_dto(data)
        return session

    def upsert_participants(
        self, session_id: str, participants: list[ReconciledParticipant]
    ) -> None:
        self._request(
            "POST",
            f"/api/meetings/{session_id}/participants",
            payload=[participant_to_dto(p) for p in participants],
        )

    def submit_artifacts(
        self,
        session_id: str,
        artifacts: list[ArtifactInput],
        *,
        access_token: str | None = None,
    ) -> None:
        self._request(
            "POST",
            f"/api/meetings/{session_id}/artifacts",
            payload={
                "meetingId": session_id,
                "artifacts": [artifact_to_dto(a) for a in artifacts],
                "accessToken": access_token,
            },
        )

    def get_meeting_details(self, session_id: str) -> MeetingDetails:
        data = self._request("GET", f"/api/meetings/{session_id}")
        if not isinstance(data, dict):
            raise NotFoundError("Встреча не найдена", details={"meeting_id": session_id})
        return details_from_dto(data)

    def list_party_members(self, party_id: str) -> list[InternalIdentity]:
        data = self._request("GET", f"/api/parties/{party_id}/members")
        out: list[InternalIdentity] = []
        for item in data or []:
            if not isinstance(item, dict):
                continue
            identity = identity_from_member_dto(item)
            if identity is not None:
                out.append(identity)
        return out

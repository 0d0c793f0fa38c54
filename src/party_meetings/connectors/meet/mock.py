"""
Mock-провайдер Google Meet для dev/тестов.

Назначение:
- гонять create/end без реального провайдера
- каждое созданное пространство сразу получает conference record (auto_conference)
"""

from __future__ import annotations

import secrets
from typing import Any

from party_meetings.common.errors import ErrCode, ProviderError
from party_meetings.common.time import utc_now_iso
from party_meetings.connectors.base import ConferencingProvider


def _mock_code() -> str:
    return f"{secrets.token_hex(2)[:3]}-{secrets.token_hex(2)}-{secrets.token_hex(2)[:3]}"


class MockMeetConnector(ConferencingProvider):
    def __init__(self, *, auto_conference: bool = True) -> None:
        self.auto_conference = auto_conference
        self.spaces: dict[str, dict[str, Any]] = {}
        # новые записи в начале списка
        self.records: list[dict[str, Any]] = []
        self.participants: dict[str, list[dict[str, Any]]] = {}
        self.transcripts: dict[str, list[dict[str, Any]]] = {}
        self.entries: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.recordings: dict[str, list[dict[str, Any]]] = {}
        self.ended: list[str] = []
        self.fail_end_conference = False

    # ------------------------------------------------------------------
    # seed-хелперы
    # ------------------------------------------------------------------
    def add_conference_record(self, space_name: str | None = None) -> str:
        conference_id = f"conf-{len(self.records) + 1}"
        self.records.insert(
            0,
            {
                "name": f"conferenceRecords/{conference_id}",
                "space": space_name,
                "startTime": utc_now_iso(),
            },
        )
        return conference_id

    def add_participant(self, conference_id: str, participant: dict[str, Any]) -> None:
        self.participants.setdefault(conference_id, []).append(participant)

    def add_transcript(
        self,
        conference_id: str,
        transcript: dict[str, Any],
        entries: list[dict[str, Any]] | None = None,
    ) -> None:
        self.transcripts.setdefault(conference_id, []).append(transcript)
        tid = str(transcript.get("name") or "").split("/")[-1]
        self.entries[(conference_id, tid)] = list(entries or [])

    def add_recording(self, conference_id: str, recording: dict[str, Any]) -> None:
        self.recordings.setdefault(conference_id, []).append(recording)

    # ------------------------------------------------------------------
    # контракт провайдера
    # ------------------------------------------------------------------
    def create_space(self, token: str, config: dict[str, Any] | None = None) -> dict:
        _ = token
        space_id = f"mock-space-{len(self.spaces) + 1}"
        code = _mock_code()
        space = {
            "name": f"spaces/{space_id}",
            "meetingUri": f"https://meet.google.com/{code}",
            "meetingCode": code,
            "config": dict(config or {}),
        }
        self.spaces[space["name"]] = space
        if self.auto_conference:
            self.add_conference_record(space["name"])
        return dict(space)

    def get_space(self, token: str, name_or_code: str) -> dict:
        _ = token
        for space in self.spaces.values():
            if name_or_code in {space["name"], space["meetingCode"]} or space["name"].endswith(
                f"/{name_or_code}"
            ):
                return dict(space)
        raise ProviderError(
            ErrCode.CONNECTOR_PROVIDER_ERROR,
            "Пространство не найдено",
            details={"space": name_or_code, "status": 404},
        )

    def end_active_conference(self, token: str, space_or_code: str) -> None:
        _ = token
        if self.fail_end_conference:
            raise ProviderError(
                ErrCode.CONNECTOR_PROVIDER_ERROR,
                "Нет активной конференции",
                details={"space": space_or_code, "status": 400},
            )
        self.ended.append(space_or_code)

    def list_conference_records(
        self, token: str, *, page_size: int, page_token: str | None = None
    ) -> dict:
        _ = token
        start = int(page_token or 0)
        end = start + max(1, page_size)
        payload: dict[str, Any] = {"conferenceRecords": [dict(r) for r in self.records[start:end]]}
        if end < len(self.records):
            payload["nextPageToken"] = str(end)
        return payload

    def get_conference_record(self, token: str, conference_id: str) -> dict:
        _ = token
        for r in self.records:
            if r["name"].endswith(f"/{conference_id}") or r["name"] == conference_id:
                return dict(r)
        return {}

    def list_participants(self, token: str, conference_id: str) -> dict:
        _ = token
        return {"participants": list(self.participants.get(conference_id, []))}

    def list_transcripts(self, token: str, conference_id: str) -> dict:
        _ = token
        return {"transcripts": list(self.transcripts.get(conference_id, []))}

    def list_transcript_entries(self, token: str, conference_id: str, transcript_id: str) -> dict:
        _ = token
        return {"transcriptEntries": list(self.entries.get((conference_id, transcript_id), []))}

    def list_recordings(self, token: str, conference_id: str) -> dict:
        _ = token
        return {"recordings": list(self.recordings.get(conference_id, []))}

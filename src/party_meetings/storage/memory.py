"""
In-memory PersistenceGateway для dev/тестов.

Повторные upsert'ы идемпотентны: участники ключуются по user_id, артефакты по url.
"""

from __future__ import annotations

from dataclasses import replace

from party_meetings.common.errors import NotFoundError
from party_meetings.common.ids import new_meeting_id
from party_meetings.domain.models import (
    ArtifactInput,
    InternalIdentity,
    MeetingDetails,
    MeetingSession,
    ReconciledParticipant,
)
from party_meetings.storage.gateway import PartyRosterSource, PersistenceGateway


class InMemoryPersistenceGateway(PersistenceGateway, PartyRosterSource):
    def __init__(self) -> None:
        self.sessions: dict[str, MeetingSession] = {}
        self.participants: dict[str, dict[str, ReconciledParticipant]] = {}
        self.artifacts: dict[str, dict[str, ArtifactInput]] = {}
        self.summaries: dict[str, str] = {}
        self.members: dict[str, list[InternalIdentity]] = {}

    def add_member(self, party_id: str, identity: InternalIdentity) -> None:
        self.members.setdefault(party_id, []).append(identity)

    def list_party_members(self, party_id: str) -> list[InternalIdentity]:
        return list(self.members.get(party_id, []))

    def list_party_meetings(self, party_id: str) -> list[MeetingSession]:
        return [replace(m) for m in self.sessions.values() if m.party_id == party_id]

    def upsert_session(self, session: MeetingSession) -> MeetingSession:
        saved = replace(session, id=session.id or new_meeting_id())
        self.sessions[saved.id] = saved
        return replace(saved)

    def upsert_participants(
        self, session_id: str, participants: list[ReconciledParticipant]
    ) -> None:
        self._require(session_id)
        bucket = self.participants.setdefault(session_id, {})
        for p in participants:
            bucket[p.user_id] = replace(p, session_id=session_id)

    def submit_artifacts(
        self,
        session_id: str,
        artifacts: list[ArtifactInput],
        *,
        access_token: str | None = None,
    ) -> None:
        _ = access_token
        self._require(session_id)
        bucket = self.artifacts.setdefault(session_id, {})
        for a in artifacts:
            bucket[a.url] = a

    def get_meeting_details(self, session_id: str) -> MeetingDetails:
        session = self._require(session_id)
        return MeetingDetails(
            session=replace(session),
            participants=list(self.participants.get(session_id, {}).values()),
            summary_text=self.summaries.get(session_id),
        )

    def _require(self, session_id: str) -> MeetingSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Встреча не найдена", details={"meeting_id": session_id})
        return session

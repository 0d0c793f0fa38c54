"""
PersistenceGateway: контракт backend-хранилища встреч.

Каждый вызов должен быть безопасен для повтора (идемпотентен) с точки зрения контроллера;
собственного retry-цикла контроллер не держит.
"""

from __future__ import annotations

from typing import Protocol

from party_meetings.domain.models import (
    ArtifactInput,
    InternalIdentity,
    MeetingDetails,
    MeetingSession,
    ReconciledParticipant,
)


class PersistenceGateway(Protocol):
    def list_party_meetings(self, party_id: str) -> list[MeetingSession]:
        ...

    def upsert_session(self, session: MeetingSession) -> MeetingSession:
        """Создать или обновить встречу; вернуть сохранённую версию (с id)."""
        ...

    def upsert_participants(
        self, session_id: str, participants: list[ReconciledParticipant]
    ) -> None:
        ...

    def submit_artifacts(
        self,
        session_id: str,
        artifacts: list[ArtifactInput],
        *,
        access_token: str | None = None,
    ) -> None:
        """Передать артефакты на обработку и суммаризацию."""
        ...

    def get_meeting_details(self, session_id: str) -> MeetingDetails:
        ...


class PartyRosterSource(Protocol):
    """
    Состав party (внешний сервис членства); только чтение.
    """

    def list_party_members(self, party_id: str) -> list[InternalIdentity]:
        ...

"""
Доменные модели сессии встречи и reconciliation.

Все модели: простые dataclass'ы без привязки к транспорту:
сериализация в camelCase JSON живёт в storage/, разбор ответов провайдера в services/.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from party_meetings.domain.enums import (
    ArtifactType,
    AttendeeType,
    Capability,
    MeetingStatus,
)


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    @classmethod
    def starting_at(cls, start: datetime, *, minutes: int) -> TimeWindow:
        return cls(start=start, end=start + timedelta(minutes=max(1, int(minutes))))

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass
class MeetingSession:
    """
    Сессия встречи party.

    id назначается persistence при первом сохранении.
    """

    party_id: str
    organizer_id: str
    title: str
    scheduled_start: datetime
    scheduled_end: datetime
    join_link: str = ""
    id: str | None = None
    actual_start: datetime | None = None
    actual_end: datetime | None = None
    meeting_code: str | None = None
    space_name: str | None = None
    status: MeetingStatus | None = None

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.scheduled_start, end=self.scheduled_end)

    def ended(self, at: datetime) -> MeetingSession:
        return replace(self, actual_end=at, status=MeetingStatus.ended_processing)


@dataclass(frozen=True)
class SpaceDescriptor:
    """
    Ответ провайдера на создание пространства встречи.
    """

    space_name: str | None
    space_id: str | None
    join_uri: str
    meeting_code: str | None = None


@dataclass(frozen=True)
class AccessToken:
    value: str
    capabilities: frozenset[Capability]
    expires_at: datetime | None = None

    def covers(self, required: frozenset[Capability] | set[Capability], now: datetime) -> bool:
        if not set(required).issubset(self.capabilities):
            return False
        return self.expires_at is None or now < self.expires_at


@dataclass(frozen=True)
class ConferenceRecord:
    conference_id: str
    space: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


@dataclass(frozen=True)
class ExternalAttendeeRecord:
    """
    Участник по данным провайдера. Только для чтения, напрямую не сохраняется.
    """

    role: str
    type: AttendeeType | None
    display_name: str | None
    email: str | None
    earliest_join_time: datetime | None
    end_time: datetime | None


@dataclass(frozen=True)
class InternalIdentity:
    party_member_id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None

    @property
    def full_name(self) -> str:
        return f"{(self.first_name or '').strip()} {(self.last_name or '').strip()}".strip()

    @property
    def display_name(self) -> str | None:
        username = (self.username or "").strip()
        if username:
            return username
        if self.full_name:
            return self.full_name
        return (self.email or "").strip() or None


@dataclass
class ReconciledParticipant:
    user_id: str
    role_in_meeting: str
    join_time: datetime | None
    leave_time: datetime | None
    type: AttendeeType | None
    display_name: str | None
    session_id: str | None


@dataclass(frozen=True)
class ArtifactInput:
    artifact_type: ArtifactType
    url: str
    state: str | None = None
    export_uri: str | None = None
    provider_document_id: str | None = None


@dataclass
class MeetingDetails:
    session: MeetingSession
    participants: list[ReconciledParticipant] = field(default_factory=list)
    summary_text: str | None = None


@dataclass
class SessionEpisode:
    """
    Время жизни одной сессии от create до end.

    Передаётся явно через пайплайн; токен переиспользуется на весь эпизод.
    """

    party_id: str
    session: MeetingSession
    token: AccessToken | None = None
    space: SpaceDescriptor | None = None
    started_at: datetime | None = None

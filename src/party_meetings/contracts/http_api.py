"""
HTTP API контракты (Pydantic-модели).

Назначение:
- валидация входа/выхода на уровне FastAPI
- стабильные структуры для клиентов
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from party_meetings.domain.enums import StepOutcome
from party_meetings.domain.models import (
    MeetingDetails,
    MeetingSession,
    ReconciledParticipant,
)
from party_meetings.domain.results import EndReport

HTTP_API_VERSION = "v1"


# =============================================================================
# ЗАПРОСЫ
# =============================================================================
class MeetingCreateRequest(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    organizer_id: str = Field(min_length=1)
    title: str | None = None
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None

    @model_validator(mode="after")
    def _check_window(self) -> MeetingCreateRequest:
        if (self.scheduled_start is None) != (self.scheduled_end is None):
            raise ValueError("scheduled_start и scheduled_end задаются вместе")
        if self.scheduled_start and self.scheduled_end and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end должен быть позже scheduled_start")
        return self


class MeetingEndRequest(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    organizer_id: str | None = None


# =============================================================================
# ОТВЕТЫ
# =============================================================================
class MeetingSessionOut(BaseModel):
    id: str | None = None
    party_id: str
    organizer_id: str
    title: str
    scheduled_start: datetime
    scheduled_end: datetime
    actual_start: datetime | None = None
    actual_end: datetime | None = None
    join_link: str = ""
    meeting_code: str | None = None
    space_name: str | None = None
    status: str | None = None

    @classmethod
    def from_domain(cls, s: MeetingSession) -> MeetingSessionOut:
        return cls(
            id=s.id,
            party_id=s.party_id,
            organizer_id=s.organizer_id,
            title=s.title,
            scheduled_start=s.scheduled_start,
            scheduled_end=s.scheduled_end,
            actual_start=s.actual_start,
            actual_end=s.actual_end,
            join_link=s.join_link,
            meeting_code=s.meeting_code,
            space_name=s.space_name,
            status=s.status.value if s.status else None,
        )


class MeetingListResponse(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    party_id: str
    meetings: list[MeetingSessionOut] = Field(default_factory=list)


class ActiveMeetingResponse(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    party_id: str
    active: MeetingSessionOut | None = None


class MeetingCreateResponse(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    meeting: MeetingSessionOut


class EndStepOut(BaseModel):
    step: str
    outcome: StepOutcome
    reason: str | None = None


class MeetingEndResponse(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    ended: MeetingSessionOut
    successor: MeetingSessionOut | None = None
    steps: list[EndStepOut] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: EndReport) -> MeetingEndResponse:
        return cls(
            ended=MeetingSessionOut.from_domain(report.ended),
            successor=MeetingSessionOut.from_domain(report.successor) if report.successor else None,
            steps=[EndStepOut(step=r.step, outcome=r.outcome, reason=r.reason) for r in report.steps],
        )


class ParticipantOut(BaseModel):
    user_id: str
    role_in_meeting: str
    join_time: datetime | None = None
    leave_time: datetime | None = None
    type: str | None = None
    display_name: str | None = None

    @classmethod
    def from_domain(cls, p: ReconciledParticipant) -> ParticipantOut:
        return cls(
            user_id=p.user_id,
            role_in_meeting=p.role_in_meeting,
            join_time=p.join_time,
            leave_time=p.leave_time,
            type=p.type.value if p.type else None,
            display_name=p.display_name,
        )


class MeetingDetailsResponse(BaseModel):
    api_version: str = Field(default=HTTP_API_VERSION)
    meeting: MeetingSessionOut
    participants: list[ParticipantOut] = Field(default_factory=list)
    summary_text: str | None = None

    @classmethod
    def from_domain(cls, d: MeetingDetails) -> MeetingDetailsResponse:
        return cls(
            meeting=MeetingSessionOut.from_domain(d.session),
            participants=[ParticipantOut.from_domain(p) for p in d.participants],
            summary_text=d.summary_text,
        )
